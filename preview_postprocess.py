"""
Rewrite rendered markdown HTML so it works inside the single-page preview.

Two passes run over each document:

1. Image paths. Relative ``<img src>`` values are resolved against the
   directory of the markdown file and rewritten as root-relative paths,
   because the artifact lives at the root and the static server exposes the
   root. Every image also gets the lightbox hooks (``preview-image`` class and
   an ``openImageModal`` onclick). Absolute, remote and data URIs keep their
   src. Tags that already carry the onclick hook are left alone, so running
   the pass twice is a no-op.

2. Diagram blocks. ``<pre><code class="language-mermaid">`` (or
   ``class="mermaid"``) blocks become ``<div class="mermaid">`` holding the
   unescaped diagram source, which is what mermaid.js expects.

Tags are located with the standard library tokenizer; the output is built by
splicing replacements into the original string, so untouched markup is
copied byte for byte. A tag the tokenizer cannot complete ends processing and
the remainder of the document is emitted verbatim.
"""

from __future__ import annotations

import html
import logging
import posixpath
import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import List, Optional, Sequence, Tuple

from preview_errors import PostProcessDegradation

logger = logging.getLogger(__name__)

MAX_IMAGE_REWRITES = 1000
PREVIEW_IMAGE_CLASS = "preview-image"
LIGHTBOX_ONCLICK = "openImageModal(this.src)"
LIGHTBOX_MARKER = 'onclick="openImageModal'
DIAGRAM_CLASSES = ("language-mermaid", "mermaid")
EXTERNAL_PREFIXES = ("/", "http://", "https://", "data:")

Attrs = List[Tuple[str, Optional[str]]]

_QUOTED_VALUE_RE = re.compile(r"\"[^\"]*\"|'[^']*'")


# -- tokenizing --
@dataclass
class _Tag:
    kind: str  # "start" or "end"
    name: str
    attrs: Attrs
    start: int
    end: int
    raw: str
    self_closing: bool = False


class _TagLocator(HTMLParser):
    """Record every complete tag of a fragment with its offsets in the source."""

    def __init__(self, source: str):
        super().__init__(convert_charrefs=False)
        self.source = source
        self.tags: List[_Tag] = []
        self._line_starts = [0]
        for index, char in enumerate(source):
            if char == "\n":
                self._line_starts.append(index + 1)

    def _offset(self) -> int:
        line, column = self.getpos()
        return self._line_starts[line - 1] + column

    def _record_start(self, tag: str, attrs: Attrs, self_closing: bool) -> None:
        start = self._offset()
        raw = self.get_starttag_text() or ""
        self.tags.append(_Tag("start", tag, list(attrs), start, start + len(raw), raw, self_closing))

    def handle_starttag(self, tag, attrs):
        self._record_start(tag, attrs, False)

    def handle_startendtag(self, tag, attrs):
        self._record_start(tag, attrs, True)

    def handle_endtag(self, tag):
        start = self._offset()
        end = self.source.find(">", start) + 1
        self.tags.append(_Tag("end", tag, [], start, end, self.source[start:end]))


def _locate_tags(source: str) -> List[_Tag]:
    locator = _TagLocator(source)
    # no close(): an unterminated trailing tag stays unparsed and is copied verbatim
    locator.feed(source)
    return locator.tags


def _splice(source: str, edits: Sequence[Tuple[int, int, str]]) -> str:
    out: List[str] = []
    cursor = 0
    for start, end, replacement in edits:
        out.append(source[cursor:start])
        out.append(replacement)
        cursor = end
    out.append(source[cursor:])
    return "".join(out)


# -- helpers: images --
def is_external(src: str) -> bool:
    """True for absolute paths, http(s) URLs and data URIs."""
    return src.startswith(EXTERNAL_PREFIXES)


def resolve_image_path(src: str, source_path: str) -> str:
    """Resolve src relative to the markdown file's directory as a root-relative path.

    >>> resolve_image_path("../img/a.png", "notes/sub/page.md")
    'notes/img/a.png'
    """
    base_dir = posixpath.dirname(source_path)
    if base_dir == ".":
        base_dir = ""
    joined = posixpath.join(base_dir, src) if base_dir else src
    resolved = posixpath.normpath(joined).replace("\\", "/")
    return resolved.lstrip("/")


def _attr(attrs: Attrs, name: str) -> Optional[str]:
    for key, value in attrs:
        if key == name:
            return value
    return None


def _with_lightbox(attrs: Attrs, new_src: Optional[str]) -> Attrs:
    result: Attrs = []
    has_class = False
    for key, value in attrs:
        if key == "src" and new_src is not None:
            value = new_src
        elif key == "class":
            has_class = True
            classes = (value or "").split()
            if PREVIEW_IMAGE_CLASS not in classes:
                classes.append(PREVIEW_IMAGE_CLASS)
            value = " ".join(classes)
        result.append((key, value))
    if not has_class:
        result.append(("class", PREVIEW_IMAGE_CLASS))
    result.append(("onclick", LIGHTBOX_ONCLICK))
    return result


def _render_tag(name: str, attrs: Attrs, self_closing: bool) -> str:
    parts = [f"<{name}"]
    for key, value in attrs:
        parts.append(key if value is None else f'{key}="{html.escape(value, quote=True)}"')
    return " ".join(parts) + (" />" if self_closing else ">")


def _is_malformed(tag: _Tag) -> bool:
    """A "<" outside quoted values means the tag ran into the next one."""
    return "<" in _QUOTED_VALUE_RE.sub("", tag.raw[1:])


def _image_edits(source: str, source_path: str, ceiling: int) -> List[Tuple[int, int, str]]:
    edits: List[Tuple[int, int, str]] = []
    for tag in _locate_tags(source):
        if tag.kind != "start":
            continue
        if _is_malformed(tag):
            # the tokenizer swallowed following markup into this tag: stop rewriting here
            logger.warning("%s: malformed tag at offset %d, rest of document left as is", source_path, tag.start)
            break
        if tag.name != "img" or LIGHTBOX_MARKER in tag.raw:
            continue
        src = _attr(tag.attrs, "src")
        if src is None:
            continue
        if len(edits) >= ceiling:
            raise PostProcessDegradation(f"more than {ceiling} image tags", source_path)
        new_src = None if is_external(src) else resolve_image_path(src, source_path)
        edits.append((tag.start, tag.end, _render_tag("img", _with_lightbox(tag.attrs, new_src), tag.self_closing)))
    return edits


def fix_image_paths(rendered: str, source_path: str, ceiling: int = MAX_IMAGE_REWRITES) -> str:
    """Rewrite image tags; fall back to the untouched fragment past the ceiling."""
    try:
        edits = _image_edits(rendered, source_path, ceiling)
    except PostProcessDegradation as exc:
        logger.warning("%s: image rewriting skipped (%s)", source_path, exc)
        return rendered
    return _splice(rendered, edits)


# -- helpers: diagrams --
def _is_diagram_code(tag: _Tag) -> bool:
    classes = (_attr(tag.attrs, "class") or "").split()
    return any(cls in DIAGRAM_CLASSES for cls in classes)


def extract_diagram_blocks(rendered: str, source_path: str = "") -> str:
    """Replace mermaid code blocks with ``<div class="mermaid">`` wrappers.

    Blocks are handled left to right. A block whose ``</code></pre>`` never
    arrives stops extraction; everything from it onwards stays as rendered.
    """
    edits: List[Tuple[int, int, str]] = []
    pre: Optional[_Tag] = None
    block_start: Optional[int] = None
    content_start = 0
    code_end: Optional[_Tag] = None

    for tag in _locate_tags(rendered):
        if block_start is None:
            if tag.kind == "start" and tag.name == "pre" and not tag.self_closing:
                pre = tag
                continue
            if (tag.kind == "start" and tag.name == "code" and pre is not None
                    and pre.end == tag.start and _is_diagram_code(tag)):
                block_start, content_start = pre.start, tag.end
            pre = None
            continue

        if tag.kind == "end" and tag.name == "code":
            code_end = tag
            continue
        if tag.kind == "end" and tag.name == "pre" and code_end is not None and code_end.end == tag.start:
            source = html.unescape(rendered[content_start:code_end.start]).strip()
            edits.append((block_start, tag.end, f'<div class="mermaid">{source}</div>'))
            block_start = None
        code_end = None

    if block_start is not None:
        logger.warning("%s: unterminated diagram block at offset %d", source_path or "<fragment>", block_start)
    return _splice(rendered, edits)


def post_process(rendered: str, source_path: str) -> str:
    """Finalize one rendered document for the preview artifact."""
    return extract_diagram_blocks(fix_image_paths(rendered, source_path), source_path)
