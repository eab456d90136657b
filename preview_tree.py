"""
Scan a notes folder into the sidebar tree shown by the preview.

Rules:
- hidden entries (leading ".") and reserved directories (node_modules, .git, ...) are skipped
- only files with the markdown suffix become leaves
- directories with no markdown anywhere beneath them are pruned
- at each level directories come first, then files, each sorted by name
- paths are root-relative and always use "/" as separator
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from preview_config import PreviewConfig
from preview_errors import ScanError

logger = logging.getLogger(__name__)

ROOT_MARKER = "."


# -- data structures --
@dataclass(frozen=True)
class TreeNode:
    """One file or directory shown in the preview sidebar."""

    name: str
    path: str
    is_dir: bool
    children: Tuple["TreeNode", ...] = field(default_factory=tuple)

    def to_json(self) -> Dict[str, Any]:
        """Shape used by the artifact script: children only when non-empty."""
        data: Dict[str, Any] = {"name": self.name, "path": self.path, "isDir": self.is_dir}
        if self.children:
            data["children"] = [child.to_json() for child in self.children]
        return data

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


# -- helpers: scanning --
def _join(parent: str, name: str) -> str:
    return name if parent == ROOT_MARKER else f"{parent}/{name}"


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _sorted_entries(directory: Path) -> List[os.DirEntry]:
    """List a directory with directories first, then by name (code point order)."""
    with os.scandir(directory) as it:
        entries = list(it)
    entries.sort(key=lambda e: (not _is_dir(e), e.name))
    return entries


def _scan_dir(directory: Path, rel: str, config: PreviewConfig, files: List[str]) -> List[TreeNode]:
    children: List[TreeNode] = []
    for entry in _sorted_entries(directory):
        is_dir = _is_dir(entry)
        if config.is_excluded(entry.name, is_dir):
            continue
        path = _join(rel, entry.name)
        if is_dir:
            try:
                grandchildren = _scan_dir(Path(entry.path), path, config, files)
            except OSError as exc:
                # unreadable branch: treat as empty
                logger.debug("skipping unreadable directory %s: %s", path, exc)
                continue
            if grandchildren:
                children.append(TreeNode(entry.name, path, True, tuple(grandchildren)))
        elif config.is_markdown(entry.name):
            files.append(path)
            children.append(TreeNode(entry.name, path, False))
    return children


def scan(root: Union[str, Path], config: Optional[PreviewConfig] = None) -> Tuple[TreeNode, List[str]]:
    """Build the tree for root and return it with the markdown paths in traversal order.

    Raises ScanError only when root itself cannot be listed.
    """
    config = config or PreviewConfig(root=Path(root))
    root = Path(root)
    files: List[str] = []
    try:
        children = _scan_dir(root, ROOT_MARKER, config, files)
    except OSError as exc:
        raise ScanError(root, exc.strerror or str(exc)) from exc
    return TreeNode(ROOT_MARKER, ROOT_MARKER, True, tuple(children)), files


def watch_dirs(root: Union[str, Path], config: Optional[PreviewConfig] = None) -> List[Path]:
    """Every directory under root that survives the exclusion rules, root included.

    Unlike the tree, directories without markdown are kept so that files
    created in them later are noticed.
    """
    config = config or PreviewConfig(root=Path(root))
    found: List[Path] = []

    def _visit(directory: Path) -> None:
        try:
            entries = _sorted_entries(directory)
        except OSError as exc:
            logger.debug("not watching unreadable directory %s: %s", directory, exc)
            return
        found.append(directory)
        for entry in entries:
            if _is_dir(entry) and not config.is_excluded(entry.name, True):
                _visit(Path(entry.path))

    _visit(Path(root))
    return found
