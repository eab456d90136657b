"""Markdown to HTML conversion for preview documents (Python-Markdown)."""

from __future__ import annotations

import xml.etree.ElementTree as etree

import markdown
from markdown import util
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor, SimpleTagInlineProcessor

STRIKETHROUGH_RE = r"()~~(.+?)~~"
# bare http(s):// and www. addresses at the start of a word
LINKIFY_RE = r"(?<![^\s(*_~])((?:https?://|www\.)[^\s<>\"\x02\x03]+)"
_TRAILING_PUNCTUATION = "?!.,:;*_~'\""


class StrikethroughExtension(Extension):
    """``~~text~~`` to ``<del>text</del>``."""

    def extendMarkdown(self, md):
        md.inlinePatterns.register(SimpleTagInlineProcessor(STRIKETHROUGH_RE, "del"), "strikethrough", 40)


def _trim_url(url: str) -> str:
    """Drop trailing punctuation and unbalanced closing parentheses."""
    while True:
        trimmed = url.rstrip(_TRAILING_PUNCTUATION)
        if trimmed.endswith(")") and trimmed.count(")") > trimmed.count("("):
            trimmed = trimmed[:-1]
        if trimmed == url:
            return url
        url = trimmed


class LinkifyInlineProcessor(InlineProcessor):
    """Turn bare URLs in running text into links."""

    ANCESTOR_EXCLUDES = ("a",)

    def handleMatch(self, m, data):
        url = _trim_url(m.group(1))
        if url in ("http://", "https://") or url.rstrip(".") == "www":
            return None, None, None
        el = etree.Element("a")
        el.set("href", url if "://" in url else f"http://{url}")
        el.text = util.AtomicString(url)
        return el, m.start(1), m.start(1) + len(url)


class LinkifyExtension(Extension):
    def extendMarkdown(self, md):
        # after links, autolinks and raw html, so their URLs are already stashed
        md.inlinePatterns.register(LinkifyInlineProcessor(LINKIFY_RE, md), "linkify", 85)


def _converter() -> markdown.Markdown:
    # the converter keeps per-document state (toc, footnotes), so one per call
    return markdown.Markdown(
        extensions=["extra", "sane_lists", "toc", "nl2br", StrikethroughExtension(), LinkifyExtension()],
        output_format="xhtml",
    )


def render_markdown(md_text: str) -> str:
    """Convert markdown text to an HTML fragment."""
    return _converter().convert(md_text)
