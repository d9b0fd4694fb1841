"""Markdown syntax tree used by the renderer.

The parser (markdown-it-py with the front matter, footnote and dollar-math
plugins) produces a token stream; ``parse_markdown`` folds it into the closed
set of node dataclasses below so the renderer never sees parser internals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import unquote

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.front_matter import front_matter_plugin


@dataclass
class Node:
    children: list[Node] = field(default_factory=list)


@dataclass
class Root(Node):
    pass


@dataclass
class Paragraph(Node):
    pass


@dataclass
class Blockquote(Node):
    pass


@dataclass
class Emphasis(Node):
    pass


@dataclass
class Strong(Node):
    pass


@dataclass
class ListItem(Node):
    pass


@dataclass
class List(Node):
    ordered: bool = False


@dataclass
class Heading(Node):
    depth: int = 1


@dataclass
class Link(Node):
    url: str = ""
    title: Optional[str] = None


@dataclass
class FootnoteDefinition(Node):
    identifier: str = ""


@dataclass
class Text(Node):
    value: str = ""


@dataclass
class InlineCode(Node):
    value: str = ""


@dataclass
class Code(Node):
    value: str = ""
    lang: Optional[str] = None


@dataclass
class InlineMath(Node):
    value: str = ""


@dataclass
class Math(Node):
    value: str = ""


@dataclass
class Html(Node):
    value: str = ""


@dataclass
class Yaml(Node):
    value: str = ""


@dataclass
class Image(Node):
    url: str = ""
    alt: str = ""


@dataclass
class FootnoteReference(Node):
    identifier: str = ""


@dataclass
class Break(Node):
    pass


@dataclass
class ThematicBreak(Node):
    pass


@dataclass
class Unsupported(Node):
    """A construct the parser recognised but the renderer has no output for."""

    kind: str = ""


def _create_parser():
    # GFM tables and strikethrough are recognised so they can be skipped
    md = MarkdownIt("commonmark").enable(["table", "strikethrough"])
    md.use(front_matter_plugin)
    # Definitions stay where the author wrote them so numbering follows
    # document order; references to undefined footnotes still match.
    md.use(footnote_plugin, inline=False, move_to_end=False, always_match_refs=True)
    md.use(dollarmath_plugin)
    return md


_MD = _create_parser()


def parse_markdown(text: str) -> Root:
    """Parse markdown text into a ``Root`` node."""
    tree = SyntaxTreeNode(_MD.parse(text))
    return Root(children=_convert_children(tree))


def _convert_children(node: SyntaxTreeNode) -> list[Node]:
    converted = []
    for child in node.children:
        if child.type == "inline":
            converted.extend(_convert_children(child))
        elif child.type == "text" and not child.content:
            continue
        else:
            converted.append(_convert(child))
    return converted


def _strip_final_newline(value: str) -> str:
    return value[:-1] if value.endswith("\n") else value


def _plain_text(node: SyntaxTreeNode) -> str:
    if node.type in ("text", "code_inline"):
        return node.content
    if node.type in ("softbreak", "hardbreak"):
        return "\n"
    return "".join(_plain_text(child) for child in node.children)


def _footnote_label(node: SyntaxTreeNode) -> str:
    meta = node.meta or {}
    return str(meta.get("label", meta.get("id", "")))


def _convert(node: SyntaxTreeNode) -> Node:
    kind = node.type
    attrs = node.attrs

    if kind == "paragraph":
        return Paragraph(children=_convert_children(node))
    if kind == "heading":
        return Heading(children=_convert_children(node), depth=int(node.tag[1:]))
    if kind == "blockquote":
        return Blockquote(children=_convert_children(node))
    if kind in ("bullet_list", "ordered_list"):
        return List(children=_convert_children(node), ordered=kind == "ordered_list")
    if kind == "list_item":
        return ListItem(children=_convert_children(node))
    if kind == "em":
        return Emphasis(children=_convert_children(node))
    if kind == "strong":
        return Strong(children=_convert_children(node))
    if kind == "link":
        title = attrs.get("title")
        return Link(
            children=_convert_children(node),
            url=str(attrs.get("href", "")),
            title=str(title) if title else None,
        )
    if kind == "footnote_reference":
        return FootnoteDefinition(
            children=_convert_children(node), identifier=_footnote_label(node)
        )

    if kind == "text":
        return Text(value=node.content)
    if kind == "softbreak":
        return Text(value="\n")
    if kind == "hardbreak":
        return Break()
    if kind == "code_inline":
        return InlineCode(value=node.content)
    if kind == "fence":
        info = node.info.strip()
        return Code(
            value=_strip_final_newline(node.content),
            lang=info.split()[0] if info else None,
        )
    if kind == "code_block":
        return Code(value=_strip_final_newline(node.content))
    if kind == "math_inline":
        return InlineMath(value=node.content)
    if kind in ("math_block", "math_block_label"):
        return Math(value=node.content.strip("\n"))
    if kind in ("html_block", "html_inline"):
        return Html(value=node.content)
    if kind == "hr":
        return ThematicBreak()
    if kind == "image":
        # The parser percent-encodes URLs; image paths name files on disk
        return Image(url=unquote(str(attrs.get("src", ""))), alt=_plain_text(node))
    if kind == "footnote_ref":
        return FootnoteReference(identifier=_footnote_label(node))
    if kind == "front_matter":
        return Yaml(value=node.content)

    return Unsupported(kind=kind)
