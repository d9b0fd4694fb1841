"""RSS feed generation.

Items are derived from the assembled, newest-first post list. The feed
carries no build timestamp so identical inputs produce an identical file.
"""
from dataclasses import dataclass
from html import escape
from typing import Optional


@dataclass
class FeedItem:
    title: str
    link: str
    description: str
    guid: str
    comments: Optional[str] = None


def permalink(blog_url, source_id):
    return f"{blog_url.rstrip('/')}/{source_id}"


def build_feed_items(posts, blog_url):
    """One item per post, in the order given"""
    items = []
    for post in posts:
        link = permalink(blog_url, post.source_id)
        items.append(FeedItem(
            title=post.title,
            link=link,
            description=post.description,
            guid=link,
            comments=post.discussion_url,
        ))
    return items


def generate_rss_feed(site_config, posts):
    """Generate the RSS 2.0 document for the whole blog"""
    blog_url = site_config.url.rstrip('/')

    rss_content = f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
    <title>{escape(site_config.title)}</title>
    <link>{escape(blog_url)}</link>
    <description>{escape(site_config.description)}</description>
"""

    # Channel image only when the site has a logo
    if site_config.logo:
        rss_content += f"""    <image>
        <url>{escape(f"{blog_url}/{site_config.logo}")}</url>
        <title>{escape(site_config.title)}</title>
        <link>{escape(blog_url)}</link>
    </image>
"""

    for item in build_feed_items(posts, blog_url):
        rss_content += f"""    <item>
        <title>{escape(item.title)}</title>
        <link>{escape(item.link)}</link>
        <description>{escape(item.description)}</description>
"""
        if item.comments:
            rss_content += f"        <comments>{escape(item.comments)}</comments>\n"
        rss_content += f"""        <guid>{escape(item.guid)}</guid>
    </item>
"""

    rss_content += """</channel>
</rss>
"""
    return rss_content
