"""
Test markdown conversion
"""
from post2social.core.frontmatter import build_document
from post2social.core.markdown_converter import (
    MarkdownConverter,
    find_placeholders,
    render_inline,
    replace_placeholders,
)
from post2social.core.models import BlockKind


def convert(body):
    return MarkdownConverter().convert(body)


class TestEndToEnd:
    """Test the whole document path"""

    def test_hello_document(self):
        """Test hello document"""
        text = "---\ntitle: Hello\n---\n# Hello\n\nSome **bold** text.\n\n![alt](./a.png)\n"
        document = build_document(text)
        content = convert(document.body_markdown)

        assert document.title == "Hello"
        assert content.title == "Hello"
        assert [block.kind for block in content.blocks] == [BlockKind.PARAGRAPH, BlockKind.IMAGE_PLACEHOLDER]
        assert content.blocks[0].html == "<p>Some <strong>bold</strong> text.</p>"
        assert content.blocks[1].html == "<p>[[IMAGE_PLACEHOLDER_1]]</p>"
        assert content.blocks[1].placeholder == "[[IMAGE_PLACEHOLDER_1]]"

        assert len(content.images) == 1
        image = content.images[0]
        assert image.source_uri == "./a.png"
        assert image.alt == "alt"
        assert image.block_index == 1
        assert image.resolved_local_path is None

    def test_numbered_placeholders(self):
        """Test numbered placeholders"""
        body = "\n\n".join(f"![img {n}](img{n}.png)" for n in range(1, 6))
        content = convert(body)

        assert [image.placeholder for image in content.images] == [
            f"[[IMAGE_PLACEHOLDER_{n}]]" for n in range(1, 6)
        ]
        assert find_placeholders(content.html) == [image.placeholder for image in content.images]
        for image in content.images:
            assert content.block_for(image).placeholder == image.placeholder

    def test_block_indexes_are_dense(self):
        """Test block indexes are dense"""
        content = convert("## A\n\ntext\n\n- x\n- y\n\n> q\n\n![i](i.png)\n\n<div>raw</div>")
        assert [block.index for block in content.blocks] == list(range(len(content.blocks)))


class TestHeadings:
    """Test heading handling"""

    def test_levels(self):
        """Test levels"""
        content = convert("## Two\n### Three ###\n###### Six")
        assert [(block.level, block.html) for block in content.blocks] == [
            (2, "<h2>Two</h2>"),
            (3, "<h3>Three</h3>"),
            (6, "<h6>Six</h6>"),
        ]

    def test_later_h1_is_demoted(self):
        """Test later h1 is demoted"""
        content = convert("# First\n\ntext\n\n# Second")
        assert content.title == "First"
        assert content.blocks[-1].html == "<h2>Second</h2>"
        assert content.blocks[-1].level == 2

    def test_no_title(self):
        """Test no title"""
        assert convert("just text").title is None

    def test_title_ignores_code(self):
        """Test title ignores code"""
        assert MarkdownConverter.find_title("```\n# not a title\n```\n# Real") == "Real"


class TestBlocks:
    """Test block grouping"""

    def test_paragraph_lines_join(self):
        """Test paragraph lines join"""
        content = convert("one\ntwo\n\nthree")
        assert [block.html for block in content.blocks] == ["<p>one two</p>", "<p>three</p>"]

    def test_blockquote(self):
        """Test blockquote"""
        content = convert("> first\n> second\n\nafter")
        assert content.blocks[0].kind is BlockKind.BLOCKQUOTE
        assert content.blocks[0].html == "<blockquote><p>first<br>second</p></blockquote>"

    def test_lists(self):
        """Test lists"""
        content = convert("- one\n* two\n1. first\n2) second")
        unordered, ordered = content.blocks
        assert unordered.html == "<ul><li>one</li><li>two</li></ul>"
        assert unordered.items == ("one", "two")
        assert not unordered.ordered
        assert ordered.html == "<ol><li>first</li><li>second</li></ol>"
        assert ordered.ordered

    def test_code_fence(self):
        """Test code fence"""
        content = convert("```python\n<b>x</b>\n**y**\n```\nafter")
        assert content.blocks[0].kind is BlockKind.BLOCKQUOTE
        assert content.blocks[0].html == "<blockquote><p>&lt;b&gt;x&lt;/b&gt;<br>**y**</p></blockquote>"
        assert content.blocks[1].html == "<p>after</p>"

    def test_unclosed_fence_runs_to_end(self):
        """Test unclosed fence runs to end"""
        content = convert("~~~\ncode\nmore")
        assert len(content.blocks) == 1
        assert content.blocks[0].html == "<blockquote><p>code<br>more</p></blockquote>"

    def test_images_in_code_are_not_references(self):
        """Test images in code are not references"""
        content = convert("```\n![x](a.png)\n```")
        assert content.images == []

    def test_raw_html(self):
        """Test raw HTML"""
        content = convert('<div class="note">\n  <b>hi</b>\n</div>')
        assert len(content.blocks) == 1
        assert content.blocks[0].kind is BlockKind.RAW_HTML
        assert content.blocks[0].html == '<div class="note">\n  <b>hi</b>\n</div>'

    def test_inline_image_splits_paragraph(self):
        """Test inline image splits paragraph"""
        content = convert("Before ![x](a.png) after")
        assert [block.html for block in content.blocks] == [
            "<p>Before</p>",
            "<p>[[IMAGE_PLACEHOLDER_1]]</p>",
            "<p>after</p>",
        ]

    def test_image_in_list_item(self):
        """Test image in list item"""
        content = convert("- ![x](a.png)")
        assert [block.kind for block in content.blocks] == [BlockKind.IMAGE_PLACEHOLDER]

    def test_empty_input(self):
        """Test empty input"""
        content = convert("")
        assert content.blocks == []
        assert content.html == ""


class TestInline:
    """Test inline rendering"""

    def test_escapes_text(self):
        """Test escapes text"""
        assert render_inline("a < b & c") == "a &lt; b &amp; c"

    def test_emphasis(self):
        """Test emphasis"""
        assert render_inline("**b** and *i*") == "<strong>b</strong> and <em>i</em>"

    def test_code_span_is_literal(self):
        """Test code span is literal"""
        assert render_inline("`**x** <y>`") == "<code>**x** &lt;y&gt;</code>"

    def test_link_href_as_written(self):
        """Test link href as written"""
        assert render_inline("[see *this*](https://x.test/?a=1&b=2)") == (
            '<a href="https://x.test/?a=1&b=2">see <em>this</em></a>'
        )

    def test_link_href_quote_escaped(self):
        """Test a quote in the URL stays inside the href attribute"""
        assert render_inline('[x](https://x.test/a"onclick="b)') == (
            '<a href="https://x.test/a&quot;onclick=&quot;b">x</a>'
        )


class TestPlaceholders:
    """Test placeholder replacement"""

    def test_replace_all(self):
        """Test replace all"""
        content = "<p>[[IMAGE_PLACEHOLDER_1]]</p><p>[[IMAGE_PLACEHOLDER_10]]</p>"
        result = replace_placeholders(
            content,
            {"[[IMAGE_PLACEHOLDER_1]]": "<img one>", "[[IMAGE_PLACEHOLDER_10]]": "<img ten>"},
        )
        assert result == "<p><img one></p><p><img ten></p>"

    def test_missing_placeholder_is_ignored(self):
        """Test missing placeholder is ignored"""
        assert replace_placeholders("<p>x</p>", {"[[IMAGE_PLACEHOLDER_2]]": "y"}) == "<p>x</p>"
