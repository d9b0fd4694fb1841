"""Render a markdown syntax tree to HTML.

The walk is depth-first in document order. Everything that is not HTML text
(word count, code languages, footnotes, the meta image, frontmatter and the
file effects images need) accumulates in a ``RenderContext`` that the caller
owns, one per document.
"""

from __future__ import annotations

import html
import posixpath
from dataclasses import dataclass, field
from typing import Optional

from postpress.modules import nodes
from postpress.modules.errors import BuildError
from postpress.modules.frontmatter import Frontmatter
from postpress.modules.media import CopyFile, WriteThumbnail, fit_within, squareness, thumbnail_name
from postpress.modules.text import titlecase

YOUTUBE_EMBED = (
    '<iframe class="video" src="https://www.youtube.com/embed/{}" '
    'title="YouTube video player" frameborder="0" '
    'allow="accelerometer; autoplay; clipboard-write; encrypted-media; '
    'gyroscope; picture-in-picture; web-share" allowfullscreen></iframe>'
)


@dataclass
class Footnote:
    identifier: str
    number: int
    html: str = ""


@dataclass
class ImageCandidate:
    path: str
    pixels: int
    squareness: float

    @classmethod
    def from_size(cls, path: str, width: int, height: int) -> ImageCandidate:
        return cls(path=path, pixels=width * height, squareness=squareness(width, height))

    def replaces(self, current: ImageCandidate) -> bool:
        # Either criterion alone is enough to win
        return self.squareness < current.squareness or self.pixels > current.pixels


@dataclass
class RenderContext:
    """Mutable state for rendering one document."""

    folder: str
    images: object
    word_count: int = 0
    languages: set[str] = field(default_factory=set)
    footnotes: dict[str, Footnote] = field(default_factory=dict)
    meta_image: Optional[ImageCandidate] = None
    frontmatter: Frontmatter = field(default_factory=Frontmatter)
    effects: list = field(default_factory=list)

    def footnote(self, identifier: str) -> Footnote:
        """Return the footnote for identifier, numbering it on first sight."""
        if identifier not in self.footnotes:
            self.footnotes[identifier] = Footnote(identifier, len(self.footnotes) + 1)
        return self.footnotes[identifier]

    def offer_meta_image(self, candidate: ImageCandidate) -> None:
        if self.meta_image is None or candidate.replaces(self.meta_image):
            self.meta_image = candidate


def count_words(text: str) -> int:
    return len(text.split())


def render(node: nodes.Node, ctx: RenderContext) -> str:
    """Render a node and its subtree."""
    handler = _HANDLERS.get(type(node))
    if handler is None:
        raise TypeError(f"No renderer registered for {type(node).__name__}")
    return handler(node, ctx)


def render_children(node: nodes.Node, ctx: RenderContext) -> str:
    return "".join(render(child, ctx) for child in node.children)


def _wrap(tag):
    def render_wrapped(node, ctx):
        return f"<{tag}>{render_children(node, ctx)}</{tag}>"
    return render_wrapped


def _literal(template):
    def render_literal(node, ctx):
        return template.format(html.escape(node.value, quote=False))
    return render_literal


def _render_text(node, ctx):
    ctx.word_count += count_words(node.value)
    return html.escape(node.value, quote=False)


def _render_heading(node, ctx):
    return f"<h{node.depth}>{render_children(node, ctx)}</h{node.depth}>"


def _render_list(node, ctx):
    tag = "ol" if node.ordered else "ul"
    return f"<{tag}>{render_children(node, ctx)}</{tag}>"


def _render_link(node, ctx):
    parts = [f'<a class="link" href="{html.escape(node.url)}" target="_blank">']
    if node.title:
        ctx.word_count += count_words(node.title)
        parts.append(html.escape(node.title, quote=False))
    parts.append(render_children(node, ctx))
    parts.append("</a>")
    return "".join(parts)


def _render_code(node, ctx):
    if node.lang is None:
        return f"<pre><code>{html.escape(node.value, quote=False)}</code></pre>"
    if node.lang == "youtube":
        return YOUTUBE_EMBED.format(node.value.strip())
    ctx.languages.add(node.lang)
    lang = html.escape(node.lang)
    return f'<pre><code class="language-{lang} code-block">{html.escape(node.value, quote=False)}</code></pre>'


def _render_html(node, ctx):
    return node.value


def _render_nothing(node, ctx):
    return ""


def _render_unsupported(node, ctx):
    print(f"[WARNING] {ctx.folder}: unsupported markdown node '{node.kind}' skipped")
    return ""


def _render_yaml(node, ctx):
    ctx.frontmatter = Frontmatter.from_yaml(node.value, ctx.folder)
    return ""


def _render_footnote_definition(node, ctx):
    body = render_children(node, ctx)
    ctx.footnote(node.identifier).html = body
    return ""


def _render_footnote_reference(node, ctx):
    footnote = ctx.footnote(node.identifier)
    return (
        f'<a class="footnote-ref" href="#footnote_{html.escape(node.identifier)}">'
        f'[{footnote.number}]</a>'
    )


def _render_image(node, ctx):
    alt_parts = node.alt.split("|")
    caption = html.escape(titlecase(alt_parts[0]))
    sources = [html.escape(s) for s in alt_parts[1:]]
    sources_attr = ",".join(f'"{s}"' for s in sources)

    source_path = posixpath.join(ctx.folder, node.url)
    try:
        width, height = ctx.images.size(source_path)
    except OSError as e:
        raise BuildError(ctx.folder, f"cannot read image {source_path}: {e}", field="image") from e

    url = html.escape(node.url)
    thumb_size = fit_within(width, height)
    if thumb_size:
        thumb_url = thumbnail_name(node.url)
        thumb_path = posixpath.join(ctx.folder, thumb_url)
        ctx.effects.append(WriteThumbnail(source_path, thumb_path, thumb_size))
        img = (
            f'<img class="img" onclick="openImage(this)" src="{html.escape(thumb_url)}" '
            f'original_src="{url}" alt="{caption}" sources=\'[{sources_attr}]\' />'
        )
        candidate = ImageCandidate.from_size(thumb_path, *thumb_size)
    else:
        img = (
            f'<img class="img" onclick="openImage(this)" src="{url}" '
            f'alt="{caption}" sources=\'[{sources_attr}]\' />'
        )
        candidate = ImageCandidate.from_size(source_path, width, height)
    ctx.offer_meta_image(candidate)

    links = []
    for i, source in enumerate(sources, start=1):
        label = f"SOURCE {i}" if len(sources) > 1 else "SOURCE"
        links.append(f'<a class="img-source" target="_blank" href="{source}">[{label}]</a>')

    # The original is published too, whether or not a thumbnail stands in for it
    ctx.effects.append(CopyFile(source_path, source_path))

    return (
        f'<div class="img-container">{img}'
        f'<div class="img-title">{caption}{"".join(links)}</div></div>'
    )


_HANDLERS = {
    nodes.Root: render_children,
    nodes.Paragraph: _wrap("p"),
    nodes.Blockquote: _wrap("blockquote"),
    nodes.Emphasis: _wrap("em"),
    nodes.Strong: _wrap("strong"),
    nodes.ListItem: _wrap("li"),
    nodes.List: _render_list,
    nodes.Heading: _render_heading,
    nodes.Link: _render_link,
    nodes.Text: _render_text,
    nodes.InlineCode: _literal("<code>{}</code>"),
    nodes.InlineMath: _literal('<code class="language-math math-inline">{}</code>'),
    nodes.Math: _literal(
        '<p class="katex-display-counter"><code class="language-math math-block">{}</code></p>'
    ),
    nodes.Code: _render_code,
    nodes.Break: lambda node, ctx: "<br />",
    nodes.ThematicBreak: _render_nothing,
    nodes.Html: _render_html,
    nodes.Image: _render_image,
    nodes.FootnoteDefinition: _render_footnote_definition,
    nodes.FootnoteReference: _render_footnote_reference,
    nodes.Yaml: _render_yaml,
    nodes.Unsupported: _render_unsupported,
}


def render_footnote_table(footnotes: dict[str, Footnote]) -> str:
    """Render footnote definitions as a table, rows ordered by identifier."""
    if not footnotes:
        return ""
    rows = []
    for identifier in sorted(footnotes):
        f = footnotes[identifier]
        rows.append(
            f'<tr class="footnote-row" id="footnote_{html.escape(f.identifier)}">'
            f'<td>[{f.number}]: </td><td>{f.html}</td></tr>'
        )
    return f'<table class="footnote-def">{"".join(rows)}</table>'


def render_document(root: nodes.Root, folder: str, images, meta_image: Optional[ImageCandidate] = None):
    """Render a parsed document, returning ``(html, context)``.

    ``meta_image`` seeds the meta-image selection, typically with the site
    logo. The context carries the word count, languages, footnotes, chosen
    meta image, frontmatter and the file effects still to be applied.
    """
    ctx = RenderContext(folder=folder, images=images, meta_image=meta_image)
    body = render(root, ctx)
    return body + render_footnote_table(ctx.footnotes), ctx
