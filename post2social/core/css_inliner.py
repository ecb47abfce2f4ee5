"""
CSS inlining - copy simple stylesheet rules into style attributes

Only bare class (.name) and bare tag (p, h2...) selectors are applied. The
destination editors drop <style> blocks, so their effect is written onto each
matching element instead.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from .models import StyleRule

logger = logging.getLogger(__name__)

SKIP_TAGS = {"html", "head", "body", "meta", "link", "script", "style", "title", "doctype"}

_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_RULE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_CLASS_SELECTOR = re.compile(r"\.[A-Za-z_-][\w-]*")
_TAG_SELECTOR = re.compile(r"[A-Za-z][A-Za-z0-9-]*")
_OPEN_TAG = re.compile(r"<[A-Za-z][^<>]*>")
_STYLE_ATTR = re.compile(r"""(?<![\w-])style\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)
_CLASS_ATTR = re.compile(
    r"""(?<![\w-])class\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
    re.IGNORECASE,
)
_STYLE_BLOCK = re.compile(r"<style[^>]*>(.*?)</style\s*>", re.IGNORECASE | re.DOTALL)
_STYLESHEET_LINK = re.compile(r"""<link\b[^>]*\brel\s*=\s*["']?stylesheet["']?[^>]*>""", re.IGNORECASE)


def parse_declarations(text: str) -> Dict[str, str]:
    """Parse 'prop: value; prop: value' into an ordered dict, last write wins"""
    declarations: Dict[str, str] = {}
    for part in (text or "").split(";"):
        prop, sep, value = part.partition(":")
        prop = prop.strip().lower()
        value = value.strip()
        if sep and prop and value:
            declarations[prop] = value
    return declarations


def serialize_declarations(declarations: Dict[str, str]) -> str:
    return ";".join(f"{prop}:{value.replace(chr(34), chr(39))}" for prop, value in declarations.items())


def parse_stylesheet(css: str) -> List[StyleRule]:
    """
    Parse a flat stylesheet into single-selector rules

    Args:
        css: Stylesheet text

    Returns:
        Rules in source order, one per selector of each selector list
    """
    text = _strip_at_rules(_COMMENT.sub("", css or ""))
    rules: List[StyleRule] = []
    for match in _RULE.finditer(text):
        declarations = parse_declarations(match.group(2))
        if not declarations:
            continue
        for selector in match.group(1).split(","):
            selector = selector.strip()
            if selector:
                rules.append(StyleRule(selector=selector, declarations=dict(declarations)))
    return rules


def extract_stylesheets(html_text: str) -> str:
    """Concatenated contents of every <style> block"""
    return "\n".join(match.group(1) for match in _STYLE_BLOCK.finditer(html_text or ""))


def strip_stylesheets(html_text: str) -> str:
    html_text = _STYLE_BLOCK.sub("", html_text)
    return _STYLESHEET_LINK.sub("", html_text)


def apply_stylesheet(html_text: str, rules: List[StyleRule]) -> str:
    """
    Write matching rule declarations into each element's style attribute

    Stylesheet values override existing inline values for the same property.
    Rules apply in order, so a later rule wins over an earlier one.
    """
    result = strip_stylesheets(html_text or "")

    for rule in rules:
        selector = rule.selector
        if selector == "*":
            continue

        if _CLASS_SELECTOR.fullmatch(selector):
            class_name = selector[1:]

            def _class_replace(match: re.Match, rule: StyleRule = rule, class_name: str = class_name) -> str:
                tag = match.group(0)
                if class_name not in _class_tokens(tag):
                    return tag
                return merge_style(tag, rule.declarations)

            result = _OPEN_TAG.sub(_class_replace, result)
        elif _TAG_SELECTOR.fullmatch(selector):
            if selector.lower() in SKIP_TAGS:
                continue
            pattern = re.compile(rf"<{re.escape(selector)}(?=[\s/>])[^<>]*>", re.IGNORECASE)
            result = pattern.sub(lambda match, rule=rule: merge_style(match.group(0), rule.declarations), result)
        else:
            logger.debug("Skipping unsupported selector: %s", selector)

    return result


def merge_style(tag: str, declarations: Dict[str, str]) -> str:
    """Overlay declarations onto the tag's style attribute (declarations win)"""
    match = _STYLE_ATTR.search(tag)
    existing: Dict[str, str] = {}
    if match:
        existing = parse_declarations(match.group(1) if match.group(1) is not None else match.group(2))

    merged = dict(existing)
    merged.update(declarations)
    attribute = f'style="{serialize_declarations(merged)}"'

    if match:
        return tag[: match.start()] + attribute + tag[match.end():]
    if tag.endswith("/>"):
        return f"{tag[:-2].rstrip()} {attribute} />"
    return f"{tag[:-1]} {attribute}>"


def clean_html_whitespace(html_text: str) -> str:
    """Collapse whitespace that the destination editor would turn into &nbsp;"""
    html_text = re.sub(r"\sclass=\"\"", "", html_text)
    html_text = re.sub(r">\s+<", "><", html_text)
    html_text = re.sub(r"(?<=\S)\s{2,}(?=\S)", " ", html_text)
    return html_text.strip()


def inline_css(html_text: str, css: str) -> str:
    return clean_html_whitespace(apply_stylesheet(html_text, parse_stylesheet(css)))


class CSSInliner:
    """A parsed stylesheet that can be applied to many documents"""

    def __init__(self, css: str = "", rules: Optional[List[StyleRule]] = None):
        self.rules = list(rules) if rules is not None else parse_stylesheet(css)

    def apply(self, html_text: str) -> str:
        return clean_html_whitespace(apply_stylesheet(html_text, self.rules))

    def __len__(self) -> int:
        return len(self.rules)


def _class_tokens(tag: str) -> List[str]:
    match = _CLASS_ATTR.search(tag)
    if not match:
        return []
    value = next(group for group in match.groups() if group is not None)
    return value.split()


def _strip_at_rules(css: str) -> str:
    output: List[str] = []
    pos = 0
    length = len(css)
    while pos < length:
        if css[pos] != "@":
            output.append(css[pos])
            pos += 1
            continue

        end = pos
        while end < length and css[end] not in "{;":
            end += 1
        if end >= length:
            break
        if css[end] == ";":
            pos = end + 1
            continue

        depth = 0
        while end < length:
            if css[end] == "{":
                depth += 1
            elif css[end] == "}":
                depth -= 1
                if depth == 0:
                    break
            end += 1
        pos = end + 1
    return "".join(output)
