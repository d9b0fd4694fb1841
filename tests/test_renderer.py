from dataclasses import dataclass

import pytest

from postpress.modules import nodes
from postpress.modules.errors import BuildError
from postpress.modules.media import CopyFile, WriteThumbnail
from postpress.modules.nodes import parse_markdown
from postpress.modules.renderer import (
    Footnote,
    ImageCandidate,
    RenderContext,
    render,
    render_document,
    render_footnote_table,
)


class FakeImages:
    """Image backend answering from a dict of path -> (width, height)."""

    def __init__(self, sizes=None):
        self.sizes = sizes or {}

    def size(self, path):
        if path not in self.sizes:
            raise FileNotFoundError(path)
        return self.sizes[path]


def doc(*children):
    return nodes.Root(children=list(children))


def para(*children):
    return nodes.Paragraph(children=list(children))


def text(value):
    return nodes.Text(value=value)


def render_root(root, images=None, folder="post"):
    return render_document(root, folder, images or FakeImages())


def test_word_count_covers_text_and_link_titles_only():
    root = doc(
        para(
            text("hello brave new world"),
            nodes.Link(url="https://example.com", title="two words", children=[text("link text")]),
        ),
        nodes.Code(value="not counted at all", lang="python"),
        nodes.Html(value="<span>not counted</span>"),
        para(nodes.Image(url="a.png", alt="caption words")),
    )
    _, ctx = render_root(root, FakeImages({"post/a.png": (10, 10)}))

    assert ctx.word_count == 4 + 2 + 2


def test_containers_wrap_children_in_order():
    root = doc(
        nodes.Blockquote(children=[para(nodes.Emphasis(children=[text("a")]), nodes.Strong(children=[text("b")]))]),
        nodes.List(ordered=True, children=[nodes.ListItem(children=[text("one")])]),
        nodes.List(ordered=False, children=[nodes.ListItem(children=[text("two")])]),
    )
    html, _ = render_root(root)

    assert html == (
        "<blockquote><p><em>a</em><strong>b</strong></p></blockquote>"
        "<ol><li>one</li></ol>"
        "<ul><li>two</li></ul>"
    )


def test_heading_depth_is_not_clamped():
    html, _ = render_root(doc(nodes.Heading(depth=7, children=[text("Deep")])))
    assert html == "<h7>Deep</h7>"


def test_link_renders_title_before_children():
    link = nodes.Link(url="https://example.com/?a=1&b=2", title="Title", children=[text("body")])
    html, _ = render_root(doc(link))
    assert html == '<a class="link" href="https://example.com/?a=1&amp;b=2" target="_blank">Titlebody</a>'


def test_code_block_registers_language():
    html, ctx = render_root(doc(nodes.Code(value="x = 1 < 2", lang="python")))

    assert html == '<pre><code class="language-python code-block">x = 1 &lt; 2</code></pre>'
    assert ctx.languages == {"python"}


def test_code_block_without_language_is_not_registered():
    html, ctx = render_root(doc(nodes.Code(value="plain")))

    assert html == "<pre><code>plain</code></pre>"
    assert ctx.languages == set()


def test_youtube_block_becomes_video_embed():
    html, ctx = render_root(doc(nodes.Code(value="dQw4w9WgXcQ", lang="youtube")))

    assert '<iframe class="video" src="https://www.youtube.com/embed/dQw4w9WgXcQ"' in html
    assert ctx.languages == set()


def test_math_is_passed_through():
    html, _ = render_root(doc(para(nodes.InlineMath(value="x^2")), nodes.Math(value="a+b")))

    assert '<code class="language-math math-inline">x^2</code>' in html
    assert '<code class="language-math math-block">a+b</code>' in html


def test_break_and_thematic_break():
    html, _ = render_root(doc(para(text("a"), nodes.Break(), text("b")), nodes.ThematicBreak()))
    assert html == "<p>a<br />b</p>"


def test_reference_before_definition_gets_number_one():
    root = doc(
        para(text("Text"), nodes.FootnoteReference(identifier="a"), text(".")),
        nodes.FootnoteDefinition(identifier="a", children=[para(text("body"))]),
    )
    html, ctx = render_root(root)

    assert '<a class="footnote-ref" href="#footnote_a">[1]</a>' in html
    assert ctx.footnotes["a"] == Footnote("a", 1, "<p>body</p>")
    assert '<tr class="footnote-row" id="footnote_a"><td>[1]: </td><td><p>body</p></td></tr>' in html


def test_definition_before_reference_keeps_its_number():
    root = doc(
        nodes.FootnoteDefinition(identifier="b", children=[para(text("first"))]),
        para(nodes.FootnoteReference(identifier="a"), nodes.FootnoteReference(identifier="b")),
    )
    html, ctx = render_root(root)

    assert ctx.footnotes["b"].number == 1
    assert ctx.footnotes["a"].number == 2
    assert 'href="#footnote_b">[1]</a>' in html
    assert 'href="#footnote_a">[2]</a>' in html


def test_undefined_footnote_keeps_empty_body():
    _, ctx = render_root(doc(para(nodes.FootnoteReference(identifier="ghost"))))
    assert ctx.footnotes["ghost"] == Footnote("ghost", 1, "")


def test_footnote_rows_follow_identifier_order_not_numbers():
    # "zeta" is referenced first and numbered 1, but its row sorts last
    root = doc(para(nodes.FootnoteReference(identifier="zeta"), nodes.FootnoteReference(identifier="alpha")))
    html, _ = render_root(root)

    assert html.index('id="footnote_alpha"><td>[2]') < html.index('id="footnote_zeta"><td>[1]')


def test_footnote_table_is_omitted_without_footnotes():
    assert render_footnote_table({}) == ""
    html, _ = render_root(doc(para(text("no notes"))))
    assert "footnote-def" not in html


def test_rendering_twice_is_idempotent():
    root = doc(
        para(nodes.FootnoteReference(identifier="x"), text("words here")),
        nodes.FootnoteDefinition(identifier="y", children=[para(text("y body"))]),
        nodes.FootnoteDefinition(identifier="x", children=[para(text("x body"))]),
        para(nodes.Image(url="a.png", alt="a")),
    )
    images = FakeImages({"post/a.png": (900, 900)})
    first_html, first = render_root(root, images)
    second_html, second = render_root(root, images)

    assert first_html == second_html
    assert first.footnotes == second.footnotes
    assert first.meta_image == second.meta_image
    assert first.effects == second.effects


def test_large_image_gets_thumbnail():
    images = FakeImages({"post/pic.png": (1000, 300)})
    html, ctx = render_root(doc(para(nodes.Image(url="pic.png", alt="view"))), images)

    assert ctx.effects == [
        WriteThumbnail("post/pic.png", "post/thumb_pic.png", (768, 230)),
        CopyFile("post/pic.png", "post/pic.png"),
    ]
    assert 'src="thumb_pic.png" original_src="pic.png"' in html
    assert ctx.meta_image == ImageCandidate.from_size("post/thumb_pic.png", 768, 230)


def test_small_image_is_embedded_directly():
    images = FakeImages({"post/pic.png": (768, 400)})
    html, ctx = render_root(doc(para(nodes.Image(url="pic.png", alt="view"))), images)

    assert ctx.effects == [CopyFile("post/pic.png", "post/pic.png")]
    assert 'src="pic.png"' in html
    assert "original_src" not in html
    assert ctx.meta_image.path == "post/pic.png"


def test_image_caption_and_sources():
    images = FakeImages({"post/pic.png": (10, 10)})
    alt = "a view of the bay|https://a.example/?x=1&y=2|https://b.example"
    html, _ = render_root(doc(para(nodes.Image(url="pic.png", alt=alt))), images)

    assert 'alt="A View of the Bay"' in html
    assert '<div class="img-title">A View of the Bay' in html
    assert 'href="https://a.example/?x=1&amp;y=2">[SOURCE 1]</a>' in html
    assert 'href="https://b.example">[SOURCE 2]</a>' in html


def test_single_source_has_no_number():
    images = FakeImages({"post/pic.png": (10, 10)})
    html, _ = render_root(doc(para(nodes.Image(url="pic.png", alt="cat|https://a.example"))), images)
    assert "[SOURCE]</a>" in html


def test_missing_image_is_fatal():
    with pytest.raises(BuildError) as excinfo:
        render_root(doc(para(nodes.Image(url="gone.png", alt=""))))

    assert excinfo.value.document == "post"
    assert excinfo.value.field == "image"


def test_more_pixels_replace_a_squarer_image():
    images = FakeImages({"post/square.png": (100, 100), "post/wide.png": (300, 200)})
    root = doc(para(nodes.Image(url="square.png", alt=""), nodes.Image(url="wide.png", alt="")))
    _, ctx = render_root(root, images)

    assert ctx.meta_image.path == "post/wide.png"


def test_squarer_image_replaces_a_larger_one():
    images = FakeImages({"post/square.png": (100, 100), "post/wide.png": (300, 200)})
    root = doc(para(nodes.Image(url="wide.png", alt=""), nodes.Image(url="square.png", alt="")))
    _, ctx = render_root(root, images)

    assert ctx.meta_image.path == "post/square.png"


def test_smaller_equally_square_image_does_not_replace():
    images = FakeImages({"post/big.png": (100, 100), "post/small.png": (50, 50)})
    root = doc(para(nodes.Image(url="big.png", alt=""), nodes.Image(url="small.png", alt="")))
    _, ctx = render_root(root, images)

    assert ctx.meta_image.path == "post/big.png"


def test_meta_image_seed_competes_with_document_images():
    logo = ImageCandidate.from_size("logo.png", 200, 200)
    images = FakeImages({"post/small.png": (50, 60)})
    _, ctx = render_document(doc(para(nodes.Image(url="small.png", alt=""))), "post", images, logo)

    assert ctx.meta_image == logo


def test_frontmatter_block_is_parsed_and_last_one_wins():
    root = doc(
        nodes.Yaml(value="title: First\ndate: 2021-01-01"),
        nodes.Yaml(value="title: Second\ndate: 2021-02-02\ntags: [a, b]\nisDraft: true"),
    )
    html, ctx = render_root(root)

    assert html == ""
    assert ctx.frontmatter.title == "Second"
    assert ctx.frontmatter.tags == ["a", "b"]
    assert ctx.frontmatter.is_draft is True


def test_unsupported_node_is_skipped_with_warning(capsys):
    html, ctx = render_root(doc(para(text("kept")), nodes.Unsupported(kind="table", children=[text("dropped")])))

    assert html == "<p>kept</p>"
    assert ctx.word_count == 1
    assert "table" in capsys.readouterr().out


def test_unregistered_node_class_fails_loudly():
    @dataclass
    class Mystery(nodes.Node):
        pass

    with pytest.raises(TypeError):
        render(Mystery(), RenderContext(folder="post", images=FakeImages()))


def test_strikethrough_and_tables_add_no_output_or_words(capsys):
    source = "More ~~gone~~ text.\n\n| a | b |\n|---|---|\n| 1 | 2 |\n| 3 | 4 |\n"
    html, ctx = render_root(parse_markdown(source))

    assert html == "<p>More  text.</p>"
    assert ctx.word_count == 2
    out = capsys.readouterr().out
    assert "'s' skipped" in out
    assert "'table' skipped" in out
