"""
Exceptions raised by the preview pipeline.

Only ScanError is fatal. The others degrade one unit of work (a file, a tag)
or are logged by the watch loop.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class PreviewError(Exception):
    """Base class for preview pipeline errors."""


class ScanError(PreviewError):
    """The source root could not be listed."""

    def __init__(self, root: Union[str, Path], reason: str):
        self.root = root
        super().__init__(f"cannot scan {root}: {reason}")


class RenderError(PreviewError):
    """One markdown document could not be read, decoded or rendered."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"{path}: {reason}")


class PostProcessDegradation(PreviewError):
    """A rendered fragment could not be rewritten safely."""

    def __init__(self, reason: str, path: Optional[str] = None):
        self.path = path
        super().__init__(reason)


class WatchSubsystemError(PreviewError):
    """The file watcher could not start, subscribe or unsubscribe, or one of its threads stopped."""
