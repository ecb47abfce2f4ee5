"""
Test CSS inlining
"""
import pytest

from post2social.core.css_inliner import (
    CSSInliner,
    apply_stylesheet,
    clean_html_whitespace,
    extract_stylesheets,
    inline_css,
    merge_style,
    parse_declarations,
    parse_stylesheet,
)
from post2social.core.themes import list_themes, load_theme


class TestParseStylesheet:
    """Test stylesheet parsing"""

    def test_selector_lists_split(self):
        """Test selector lists split"""
        rules = parse_stylesheet("h1, h2 { color: red; color: blue; margin: 0 }")
        assert [rule.selector for rule in rules] == ["h1", "h2"]
        assert rules[0].declarations == {"color": "blue", "margin": "0"}

    def test_comments_and_at_rules_dropped(self):
        """Test comments and at rules dropped"""
        css = (
            "@import url(base.css);\n"
            "/* heading */\n"
            "@media (max-width: 600px) { p { color: red; } }\n"
            "p { margin: 0; }"
        )
        rules = parse_stylesheet(css)
        assert len(rules) == 1
        assert rules[0].selector == "p"
        assert rules[0].declarations == {"margin": "0"}

    def test_empty_rules_skipped(self):
        """Test empty rules skipped"""
        assert parse_stylesheet("p {} div { }") == []

    def test_declaration_value_keeps_colons(self):
        """Test declaration value keeps colons"""
        assert parse_declarations("background: url(http://x.test/a.png)") == {
            "background": "url(http://x.test/a.png)"
        }


class TestApplyStylesheet:
    """Test rule application"""

    def test_class_token_match(self):
        """Test class token match"""
        html = '<p class="foobar">a</p><p class="bar foo baz">b</p>'
        result = inline_css(html, ".foo { color: red; }")
        assert result == '<p class="foobar">a</p><p class="bar foo baz" style="color:red">b</p>'

    def test_tag_match_is_exact(self):
        """Test tag match is exact"""
        html = "<pre>x</pre><p>y</p>"
        assert inline_css(html, "p { color: red; }") == '<pre>x</pre><p style="color:red">y</p>'

    def test_rule_wins_over_inline_style(self):
        """Test rule wins over inline style"""
        html = '<p style="color: blue; margin: 0">x</p>'
        assert inline_css(html, "p { color: red; }") == '<p style="color:red;margin:0">x</p>'

    def test_later_rule_wins(self):
        """Test later rule wins"""
        html = '<p class="lead">x</p>'
        result = inline_css(html, ".lead { color: red; } p { color: green; }")
        assert result == '<p class="lead" style="color:green">x</p>'

    def test_self_closing_tag(self):
        """Test self closing tag"""
        result = inline_css('<img src="a.png" />', "img { max-width: 100%; }")
        assert result == '<img src="a.png" style="max-width:100%" />'

    def test_unsupported_selectors_skipped(self):
        """Test unsupported selectors skipped"""
        html = '<div id="main"><p class="a b">x</p><a href="#">y</a></div>'
        css = "div p { color: red } * { margin: 0 } a:hover { color: red } #main { color: red } .a.b { color: red }"
        assert inline_css(html, css) == html

    def test_document_tags_skipped(self):
        """Test document tags skipped"""
        html = "<html><body><p>x</p></body></html>"
        result = inline_css(html, "body { margin: 0 } html { color: red }")
        assert result == html

    def test_style_blocks_and_links_removed(self):
        """Test style blocks and links removed"""
        html = '<link rel="stylesheet" href="a.css"><style>p { color: red; }</style><p>x</p>'
        assert apply_stylesheet(html, []) == "<p>x</p>"

    def test_double_quotes_in_values(self):
        """Test double quotes in values"""
        result = inline_css("<p>x</p>", 'p { font-family: "Helvetica Neue", sans-serif; }')
        assert result == "<p style=\"font-family:'Helvetica Neue', sans-serif\">x</p>"

    def test_data_style_attribute_untouched(self):
        """Test data style attribute untouched"""
        tag = '<p data-style="x">'
        assert merge_style(tag, {"color": "red"}) == '<p data-style="x" style="color:red">'

    def test_idempotent(self):
        """Test idempotent"""
        html = (
            "<style>.note { color: gray; }</style>\n"
            '<h2>Title</h2>\n  <p class="note" style="margin: 4px">Some   text</p>\n<img src="a.png"/>'
        )
        css = "h2 { font-size: 20px; } .note { color: gray; padding: 2px; } img { width: 100%; }"
        once = inline_css(html, css)
        assert inline_css(once, css) == once

    def test_extract_stylesheets(self):
        """Test extract stylesheets"""
        html = "<style>p { a: b; }</style><p>x</p><STYLE type=\"text/css\">h2 { c: d; }</STYLE>"
        assert extract_stylesheets(html) == "p { a: b; }\nh2 { c: d; }"


class TestCleanWhitespace:
    """Test whitespace normalization"""

    def test_clean(self):
        """Test clean"""
        html = '<div class="">\n  <p>a   b</p>\n</div>  '
        assert clean_html_whitespace(html) == "<div><p>a b</p></div>"

    def test_idempotent(self):
        """Test idempotent"""
        once = clean_html_whitespace("<p> a  b  c </p>\n\n<p>d</p>")
        assert clean_html_whitespace(once) == once


class TestCSSInliner:
    """Test CSSInliner wrapper and themes"""

    def test_apply(self):
        """Test apply"""
        inliner = CSSInliner("p { color: red; } h2 { margin: 0; }")
        assert len(inliner) == 2
        assert inliner.apply("<h2>T</h2>\n<p>x</p>") == '<h2 style="margin:0">T</h2><p style="color:red">x</p>'

    def test_builtin_themes(self):
        """Test builtin themes"""
        assert {"default", "grace", "simple"} <= set(list_themes())
        for name in list_themes():
            inliner = CSSInliner(load_theme(name))
            assert 'style="' in inliner.apply("<p>x</p>")

    def test_unknown_theme(self):
        """Test unknown theme"""
        with pytest.raises(ValueError):
            load_theme("no-such-theme")
