"""Turn rendered posts into a consistent site: order, links, pages and tags."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from postpress.modules.frontmatter import Frontmatter, parse_post_date
from postpress.modules.text import slugify_tag, titlecase

PAGE_SIZE = 5
WORDS_PER_MINUTE = 238


@dataclass
class Tag:
    slug: str
    label: str

    @classmethod
    def from_text(cls, text: str) -> Tag:
        return cls(slug=slugify_tag(text), label=text.lower())


@dataclass
class Post:
    date: datetime.datetime
    title: str
    source_id: str
    body_html: str
    description: str = ""
    tags: list[Tag] = field(default_factory=list)
    word_count: int = 0
    languages: list[str] = field(default_factory=list)
    meta_image: Optional[str] = None
    discussion_url: Optional[str] = None
    older_post: Optional[tuple[str, str]] = None
    newer_post: Optional[tuple[str, str]] = None

    @classmethod
    def from_render(cls, source_id, body_html, ctx, discussion_url=None) -> Post:
        """Build a post from a rendered document and its render context."""
        fm: Frontmatter = ctx.frontmatter
        fm.require(source_id)
        return cls(
            date=parse_post_date(fm.date, source_id),
            title=titlecase(fm.title),
            source_id=source_id,
            body_html=body_html,
            description=fm.description,
            tags=[Tag.from_text(t) for t in fm.tags],
            word_count=ctx.word_count,
            languages=sorted(ctx.languages),
            meta_image=ctx.meta_image.path if ctx.meta_image else None,
            discussion_url=discussion_url,
        )

    @property
    def read_time(self) -> int:
        # Whole minutes, rounded down: a 200 word post reads in 0 minutes
        return self.word_count // WORDS_PER_MINUTE

    @property
    def read_time_label(self) -> str:
        return f"{self.read_time} Mins" if self.read_time > 1 else f"{self.read_time} Min"

    @property
    def date_label(self) -> str:
        return self.date.strftime("%Y-%m-%d")

    def template_data(self) -> dict:
        """Flat record handed to the post and index templates."""
        data = {
            "date": self.date_label,
            "description": self.description,
            "src": self.source_id,
            "md": self.body_html,
            "title": self.title,
            "tags": [{"slug": t.slug, "tag": t.label} for t in self.tags],
            "word_count": self.word_count,
            "read_time": self.read_time_label,
        }
        if self.newer_post:
            data["newer_post_title"], data["newer_post_folder"] = self.newer_post
        if self.older_post:
            data["older_post_title"], data["older_post_folder"] = self.older_post
        if self.discussion_url:
            data["discussion_url"] = self.discussion_url
        if self.meta_image:
            data["meta_img"] = self.meta_image
        if self.languages:
            data["langs"] = list(self.languages)
        return data


@dataclass
class PageBundle:
    posts: list[Post]
    page_links: list[dict]
    prev_link: Optional[str] = None
    next_link: Optional[str] = None


@dataclass
class TagEntry:
    label: str
    post_indices: list[int] = field(default_factory=list)


@dataclass
class TagListing:
    slug: str
    label: str
    posts: list[Post]
    pages: list[PageBundle]


@dataclass
class Corpus:
    posts: list[Post]
    pages: list[PageBundle]
    tags: list[TagListing]


def sort_posts(posts: list[Post]) -> list[Post]:
    """Newest first; posts sharing a date keep their input order."""
    return sorted(posts, key=lambda p: p.date, reverse=True)


def link_posts(posts: list[Post]) -> None:
    """Point every post at its chronological neighbours in a sorted list."""
    for i, post in enumerate(posts):
        if i > 0:
            newer = posts[i - 1]
            post.newer_post = (newer.title, newer.source_id)
        if i < len(posts) - 1:
            older = posts[i + 1]
            post.older_post = (older.title, older.source_id)


def index_page_link(number: int) -> str:
    return "/index.html" if number == 1 else f"/index{number}.html"


def tag_page_link(slug: str, number: int) -> str:
    return f"/tags/{slug}" + index_page_link(number)


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(total / page_size)


def paginate(posts: list[Post], link_for: Callable[[int], str], page_size: int = PAGE_SIZE) -> list[PageBundle]:
    """Split posts into fixed-size pages with numbered and prev/next links.

    ``link_for`` maps a 1-based page number to its URL.
    """
    count = page_count(len(posts), page_size)
    pages = []
    for index in range(count):
        number = index + 1
        page_links = [
            {"id": n, "current": n == number, "link": link_for(n)}
            for n in range(1, count + 1)
        ]
        pages.append(PageBundle(
            posts=posts[index * page_size:number * page_size],
            page_links=page_links,
            prev_link=link_for(number - 1) if number > 1 else None,
            next_link=link_for(number + 1) if number < count else None,
        ))
    return pages


def build_tag_index(posts: list[Post]) -> dict[str, TagEntry]:
    """Map each tag slug to its label and the indices of the posts carrying it.

    Indices follow the order of ``posts``; a tag repeated within one post is
    recorded once.
    """
    index: dict[str, TagEntry] = {}
    for i, post in enumerate(posts):
        for tag in post.tags:
            entry = index.setdefault(tag.slug, TagEntry(label=tag.label))
            if not entry.post_indices or entry.post_indices[-1] != i:
                entry.post_indices.append(i)
    return index


def assemble(posts: list[Post], page_size: int = PAGE_SIZE) -> Corpus:
    """Sort, cross-link, paginate and tag-index a complete set of posts."""
    ordered = sort_posts(posts)
    link_posts(ordered)

    tags = []
    for slug, entry in build_tag_index(ordered).items():
        tagged = [ordered[i] for i in entry.post_indices]
        tags.append(TagListing(
            slug=slug,
            label=entry.label,
            posts=tagged,
            pages=paginate(tagged, lambda n, slug=slug: tag_page_link(slug, n), page_size),
        ))

    return Corpus(
        posts=ordered,
        pages=paginate(ordered, index_page_link, page_size),
        tags=tags,
    )
