"""
Rebuild the preview when the notes folder changes.

watchdog observers push raw filesystem events onto one queue from their own
threads. A single consumer (WatchLoop.run) drains that queue and drives a
small state machine:

    IDLE --qualifying event--> PENDING_REBUILD --window elapsed--> REBUILDING --> IDLE

Further qualifying events while pending only push the deadline back, so a
burst of saves produces one rebuild that sees the filesystem as it is when
the window closes. Rebuilds run on the consumer thread, one at a time.
Every eligible directory gets its own non-recursive subscription; the set is
re-synchronised after each rebuild.

watchdog gives no callback when one of its emitter threads dies (for example
when inotify fails on a directory). While idle the loop checks the emitters
every HEALTH_CHECK_SECONDS, reports stopped ones on the error channel and
subscribes again.
"""

from __future__ import annotations

import enum
import logging
import os
import queue
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from preview_config import PreviewConfig
from preview_errors import WatchSubsystemError
from preview_tree import watch_dirs

logger = logging.getLogger(__name__)

HEALTH_CHECK_SECONDS = 5.0
STRUCTURAL_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED})

_EVENT = "event"
_ERROR = "error"
_STOP = "stop"


class WatchState(enum.Enum):
    IDLE = "idle"
    PENDING_REBUILD = "pending_rebuild"
    REBUILDING = "rebuilding"


class _QueueingHandler(FileSystemEventHandler):
    """Forward every watchdog event to the loop's queue."""

    def __init__(self, loop: "WatchLoop"):
        super().__init__()
        self._loop = loop

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._loop.submit_event(event)


class WatchLoop:
    def __init__(
        self,
        config: PreviewConfig,
        rebuild: Callable[[], Any],
        observer_factory: Callable[[], Any] = Observer,
    ):
        self.config = config
        self.rebuild = rebuild
        self.root = Path(config.root).resolve()
        self.artifact = self.root / config.output_name
        self.state = WatchState.IDLE
        self.rebuild_count = 0
        self._observer_factory = observer_factory
        self._observer: Optional[Any] = None
        self._handler = _QueueingHandler(self)
        self._watches: Dict[Path, Any] = {}
        self._queue: "queue.Queue[Tuple[str, Any]]" = queue.Queue()
        self._deadline: Optional[float] = None
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -- producers (any thread) --
    def submit_event(self, event: FileSystemEvent) -> None:
        self._queue.put((_EVENT, event))

    def submit_error(self, error: BaseException) -> None:
        self._queue.put((_ERROR, error))

    # -- event filtering --
    def _ignored(self, path: str) -> bool:
        name = os.path.basename(path.rstrip("/\\"))
        if self.config.is_excluded(name, True):
            return True
        return Path(path) == self.artifact

    def is_qualifying(self, event: FileSystemEvent) -> bool:
        """Markdown edits, or creation/removal/rename of any eligible entry."""
        paths = [os.fsdecode(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(os.fsdecode(dest))
        relevant = [p for p in paths if not self._ignored(p)]
        if not relevant:
            return False
        if event.event_type in STRUCTURAL_EVENTS:
            return True
        return (event.event_type == EVENT_TYPE_MODIFIED and not event.is_directory
                and any(self.config.is_markdown(p) for p in relevant))

    # -- subscriptions --
    def resync(self) -> None:
        """Subscribe to new eligible directories and drop vanished ones."""
        if self._observer is None:
            return
        wanted = set(watch_dirs(self.root, self.config))
        for directory in sorted(set(self._watches) - wanted):
            watch = self._watches.pop(directory)
            try:
                self._observer.unschedule(watch)
            except (KeyError, OSError) as exc:
                self.submit_error(WatchSubsystemError(f"cannot unwatch {directory}: {exc}"))
        for directory in sorted(wanted - set(self._watches)):
            try:
                self._watches[directory] = self._observer.schedule(self._handler, str(directory), recursive=False)
            except OSError as exc:
                self.submit_error(WatchSubsystemError(f"cannot watch {directory}: {exc}"))
        logger.debug("watching %d directories", len(self._watches))

    @property
    def watched(self):
        return sorted(self._watches)

    def check_emitters(self) -> None:
        """Report emitter threads that stopped and subscribe their directories again."""
        observer = self._observer
        if observer is None or not observer.is_alive():
            return
        dead = [emitter.watch for emitter in list(observer.emitters) if not emitter.is_alive()]
        if not dead:
            return
        for watch in dead:
            directory = next((d for d, w in self._watches.items() if w == watch), None)
            self.submit_error(WatchSubsystemError(f"watcher for {directory or watch.path} stopped"))
            if directory is not None:
                del self._watches[directory]
            try:
                observer.unschedule(watch)
            except (KeyError, OSError) as exc:
                self.submit_error(WatchSubsystemError(f"cannot unwatch {watch.path}: {exc}"))
        self.resync()

    # -- consumer --
    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def poll(self) -> None:
        """Handle one queue item, or fire the rebuild if the window elapsed."""
        if self._deadline_passed():
            self._fire()
            return
        if self._deadline is None:
            timeout = HEALTH_CHECK_SECONDS
        else:
            timeout = max(0.0, self._deadline - time.monotonic())
        try:
            kind, payload = self._queue.get(timeout=timeout)
        except queue.Empty:
            if self._deadline is None:
                self.check_emitters()
            else:
                self._fire()
            return

        if kind == _STOP:
            self._stopping.set()
        elif kind == _ERROR:
            logger.error("file watcher error: %s", payload)
        elif self.is_qualifying(payload):
            logger.debug("%s %s", payload.event_type, os.fsdecode(payload.src_path))
            self._deadline = time.monotonic() + self.config.debounce_seconds
            self.state = WatchState.PENDING_REBUILD

    def _fire(self) -> None:
        if not self._deadline_passed():
            return
        self._deadline = None
        self.state = WatchState.REBUILDING
        logger.info("change detected, rebuilding...")
        try:
            self.rebuild()
        except Exception as exc:  # keep watching whatever the build did
            logger.exception("rebuild failed: %s", exc)
        finally:
            self.rebuild_count += 1
            self.state = WatchState.IDLE
        self.resync()

    def run(self) -> None:
        while not self._stopping.is_set():
            self.poll()

    # -- lifecycle --
    def subscribe(self) -> None:
        """Create the observer if needed and subscribe to every eligible directory."""
        if self._observer is None:
            self._observer = self._observer_factory()
        self.resync()

    def start(self) -> bool:
        """Subscribe and start the consumer thread. Returns False if watching is unavailable."""
        try:
            self.subscribe()
            self._observer.start()
        except OSError as exc:
            logger.error("%s", WatchSubsystemError(f"cannot start file watcher: {exc}"))
            self._observer = None
            return False
        self._thread = threading.Thread(target=self.run, name="preview-watch", daemon=True)
        self._thread.start()
        logger.info("watching %d directories under %s", len(self._watches), self.root)
        return True

    def stop(self, timeout: float = 2.0) -> None:
        self._queue.put((_STOP, None))
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
