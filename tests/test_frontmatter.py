"""
Test frontmatter parsing and metadata precedence
"""
from pathlib import Path

import pytest

from post2social.core.errors import MalformedInputWarning
from post2social.core.frontmatter import build_document, default_title, parse_frontmatter


class TestParseFrontmatter:
    """Test parse_frontmatter"""

    def test_basic(self):
        """Test basic"""
        header, body = parse_frontmatter("---\ntitle: Hello\nauthor: 'Ann'\n---\nBody\n")
        assert header == {"title": "Hello", "author": "Ann"}
        assert body == "Body\n"

    def test_crlf(self):
        """Test crlf"""
        header, body = parse_frontmatter("---\r\ntitle: \"X\"\r\n---\r\nBody")
        assert header == {"title": "X"}
        assert body == "Body"

    def test_value_keeps_later_colons(self):
        """Test value keeps later colons"""
        header, _ = parse_frontmatter("---\ncover: https://example.com/a.png\n---\n")
        assert header["cover"] == "https://example.com/a.png"

    def test_skips_blank_and_comment_lines(self):
        """Test skips blank and comment lines"""
        header, _ = parse_frontmatter("---\n\n# note\ntitle: T\n---\n")
        assert header == {"title": "T"}

    def test_no_frontmatter(self):
        """Test no frontmatter"""
        text = "# Title\n\nBody"
        assert parse_frontmatter(text) == ({}, text)

    def test_unclosed_block_is_not_frontmatter(self):
        """Test unclosed block is not frontmatter"""
        text = "---\ntitle: T\nBody"
        assert parse_frontmatter(text) == ({}, text)

    def test_delimiter_must_be_first_line(self):
        """Test delimiter must be first line"""
        text = "\n---\ntitle: T\n---\n"
        assert parse_frontmatter(text) == ({}, text)

    def test_malformed_line_warns(self):
        """Test malformed line warns"""
        with pytest.warns(MalformedInputWarning):
            header, body = parse_frontmatter("---\njust text\n: no key\ntitle: T\n---\nBody")
        assert header == {"title": "T"}
        assert body == "Body"


class TestBuildDocument:
    """Test metadata precedence"""

    TEXT = (
        "---\n"
        "title: From Frontmatter\n"
        "author: Frontmatter Author\n"
        "summary: Summary text\n"
        "description: Description text\n"
        "featureImage: feature.png\n"
        "image: image.png\n"
        "---\n"
        "# Heading Title\n\nFirst sentence. Second sentence.\n"
    )

    def test_override_wins(self):
        """Test override wins"""
        document = build_document(self.TEXT, title="CLI Title", author="CLI Author", summary="CLI summary")
        assert document.title == "CLI Title"
        assert document.author == "CLI Author"
        assert document.summary == "CLI summary"

    def test_frontmatter_over_heading(self):
        """Test frontmatter over heading"""
        document = build_document(self.TEXT)
        assert document.title == "From Frontmatter"
        assert document.author == "Frontmatter Author"

    def test_heading_over_body(self):
        """Test heading over body"""
        document = build_document("# Heading Title\n\nFirst sentence. Second.")
        assert document.title == "Heading Title"

    def test_first_sentence(self):
        """Test first sentence"""
        document = build_document("Hello **world**. More text follows.")
        assert document.title == "Hello world"

    def test_first_sentence_cjk(self):
        """Test first sentence cjk"""
        assert default_title("你好世界。第二句。") == "你好世界"

    def test_default_title_is_cut(self):
        """Test default title is cut"""
        document = build_document("a" * 100)
        assert document.title == "a" * 64

    def test_fallback_title(self):
        """Test fallback title"""
        assert build_document("", fallback_title="my-post").title == "my-post"
        assert build_document("").title == "Untitled"

    def test_blank_override_is_ignored(self):
        """Test blank override is ignored"""
        assert build_document(self.TEXT, title="  ").title == "From Frontmatter"

    def test_summary_order(self):
        """Test summary order"""
        assert build_document(self.TEXT).summary == "Summary text"
        text = "---\ndigest: Digest text\nsummary: Summary text\n---\nBody"
        assert build_document(text).summary == "Digest text"

    def test_cover_order(self):
        """Test cover order"""
        assert build_document(self.TEXT).cover_image == "feature.png"
        text = "---\ncoverImage: b.png\ncover: a.png\n---\nBody"
        assert build_document(text).cover_image == "a.png"
        assert build_document(text, cover="cli.png").cover_image == "cli.png"

    def test_no_cover(self):
        """Test no cover"""
        assert build_document("Body").cover_image is None

    def test_source_path(self, tmp_path: Path):
        """Test source path"""
        document = build_document("Body", source_path=tmp_path / "post.md")
        assert document.source_path == (tmp_path / "post.md").resolve()
        assert document.body_markdown == "Body"
