"""
Full rebuilds of the preview state.

A build scans the tree, renders and post-processes every markdown file on
private data, then swaps the finished (tree, documents) pair into the
StateStore in one step. Readers only ever see complete snapshots.
"""

from __future__ import annotations

import html
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

from preview_config import PreviewConfig
from preview_errors import RenderError
from preview_postprocess import post_process
from preview_render import render_markdown
from preview_tree import ROOT_MARKER, TreeNode, scan

logger = logging.getLogger(__name__)

Renderer = Callable[[str], str]


# -- data structures --
@dataclass(frozen=True)
class RenderedDocument:
    path: str
    html: str
    error: Optional[str] = None


def _empty_documents() -> Mapping[str, RenderedDocument]:
    return MappingProxyType({})


@dataclass(frozen=True)
class PublishedState:
    """Immutable snapshot consumed by the artifact emitter."""

    tree: TreeNode = field(default_factory=lambda: TreeNode(ROOT_MARKER, ROOT_MARKER, True))
    documents: Mapping[str, RenderedDocument] = field(default_factory=_empty_documents)

    @property
    def files(self) -> List[str]:
        return list(self.documents)

    @property
    def failed(self) -> List[str]:
        """Paths whose document is an error fragment."""
        return [path for path, doc in self.documents.items() if doc.error is not None]

    def html_by_path(self) -> Dict[str, str]:
        return {path: doc.html for path, doc in self.documents.items()}


class StateStore:
    """Holds the current PublishedState; the lock only covers the reference swap."""

    def __init__(self, initial: Optional[PublishedState] = None):
        self._lock = threading.Lock()
        self._state = initial or PublishedState()
        self._generation = 0

    def snapshot(self) -> PublishedState:
        with self._lock:
            return self._state

    def publish(self, state: PublishedState) -> int:
        """Replace the current state and return the new generation number."""
        with self._lock:
            self._state = state
            self._generation += 1
            return self._generation

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation


# -- helpers: rendering --
def error_fragment(message: str) -> str:
    return f"<p>Render error: {html.escape(message)}</p>"


def render_file(root: Path, rel_path: str, renderer: Renderer = render_markdown) -> str:
    """Read, render and post-process one document. Raises RenderError."""
    try:
        text = (root / rel_path).read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RenderError(rel_path, str(exc)) from exc
    try:
        rendered = renderer(text)
    except Exception as exc:  # the renderer is a black box; any failure is per-file
        raise RenderError(rel_path, str(exc) or exc.__class__.__name__) from exc
    return post_process(rendered, rel_path)


class Builder:
    """Runs full builds and publishes them to a StateStore."""

    def __init__(
        self,
        config: PreviewConfig,
        store: Optional[StateStore] = None,
        renderer: Renderer = render_markdown,
    ):
        self.config = config
        self.store = store or StateStore()
        self.renderer = renderer

    def build(self) -> PublishedState:
        """Rebuild everything from disk and publish it. Raises ScanError if the root is unreadable."""
        root = self.config.root
        tree, files = scan(root, self.config)
        total = len(files)
        documents: Dict[str, RenderedDocument] = {}
        for i, rel_path in enumerate(files):
            if i == 0 or (i + 1) % self.config.progress_every == 0:
                logger.info("processing file %d/%d: %s", i + 1, total, rel_path)
            try:
                documents[rel_path] = RenderedDocument(rel_path, render_file(root, rel_path, self.renderer))
            except RenderError as exc:
                logger.warning("render failed: %s", exc)
                documents[rel_path] = RenderedDocument(rel_path, error_fragment(str(exc)), error=str(exc))

        state = PublishedState(tree=tree, documents=MappingProxyType(documents))
        generation = self.store.publish(state)
        logger.info("build %d published with %d markdown files", generation, total)
        return state
