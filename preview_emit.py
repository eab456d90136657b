"""Write the published preview state out as a single HTML file."""

from __future__ import annotations

import html
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Union

from preview_build import PublishedState
from preview_config import DEFAULT_TITLE
from preview_template import FILES_PLACEHOLDER, HTML_TEMPLATE, TITLE_PLACEHOLDER, TREE_PLACEHOLDER

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile("|".join(re.escape(p) for p in (TREE_PLACEHOLDER, FILES_PLACEHOLDER, TITLE_PLACEHOLDER)))

# characters that could end the <script> element or break a JS string literal
_SCRIPT_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def script_json(value: Any) -> str:
    """JSON that is safe to embed verbatim inside a <script> element."""
    text = json.dumps(value, ensure_ascii=False)
    return "".join(_SCRIPT_ESCAPES.get(ch, ch) for ch in text)


def render_artifact(state: PublishedState, title: str = DEFAULT_TITLE) -> str:
    values = {
        TREE_PLACEHOLDER: script_json([child.to_json() for child in state.tree.children]),
        FILES_PLACEHOLDER: script_json(state.html_by_path()),
        TITLE_PLACEHOLDER: html.escape(title),
    }
    # single pass so inserted content is never scanned for placeholders
    return _PLACEHOLDER_RE.sub(lambda m: values[m.group(0)], HTML_TEMPLATE)


def emit(state: PublishedState, destination: Union[str, Path], title: str = DEFAULT_TITLE) -> Path:
    """Atomically replace destination with the rendered artifact.

    The page is written to a hidden temporary file next to destination and
    renamed over it, so readers see either the old or the new file. Raises
    OSError if the write fails; the previous artifact is then left in place.
    """
    destination = Path(destination)
    content = render_artifact(state, title).encode("utf-8")
    fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
        # mkstemp creates 0600 files; the artifact is meant to be served
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, destination)
    except OSError:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.debug("wrote %s (%d bytes)", destination, len(content))
    return destination
