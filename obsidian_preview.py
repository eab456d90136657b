#!/usr/bin/env python3
"""
Live single-page preview of a folder of markdown notes.

Scans the folder, renders every .md file into one self-contained index.html
at the folder root, serves the folder over HTTP and rebuilds the page when
notes change.

Usage:
  python obsidian_preview.py
  python obsidian_preview.py --root ~/notes --port 8080 --open
  python obsidian_preview.py --no-serve --no-watch   # build index.html once
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from preview_build import Builder, PublishedState, StateStore
from preview_config import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_OUTPUT, DEFAULT_PORT, DEFAULT_TITLE, PreviewConfig
from preview_emit import emit
from preview_errors import ScanError
from preview_watch import WatchLoop
from serve import serve_site

logger = logging.getLogger("obsidian_preview")


def report_failures(state: PublishedState) -> None:
    failed = state.failed
    if failed:
        print(f"{len(failed)} of them could not be rendered: {', '.join(failed)}")


class PreviewApp:
    """Wires builder, state store and artifact writer for one source root."""

    def __init__(self, config: PreviewConfig):
        self.config = config
        self.store = StateStore()
        self.builder = Builder(config, self.store)

    def build_and_emit(self) -> PublishedState:
        """Build and write the artifact. Raises ScanError or OSError."""
        self.builder.build()
        state = self.store.snapshot()
        emit(state, self.config.output_path, title=self.config.title)
        return state

    def rebuild(self) -> None:
        """Watch-loop callback: failures are reported, the old artifact stays."""
        try:
            state = self.build_and_emit()
        except ScanError as exc:
            logger.error("rescan failed: %s", exc)
            return
        except OSError as exc:
            logger.error("could not write %s: %s", self.config.output_path, exc)
            return
        print(f"Updated, found {len(state.files)} markdown files")
        report_failures(state)


# -- CLI --
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Preview a folder of markdown notes as a single HTML page, rebuilt on change."
    )
    parser.add_argument("--root", type=Path, default=Path("."), help="Notes folder to preview (default: current directory)")
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help=f"Artifact file name inside the root (default: {DEFAULT_OUTPUT})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help=f"HTTP port (default: {DEFAULT_PORT})")
    parser.add_argument("--host", default="", help="Bind address (default: all interfaces)")
    parser.add_argument(
        "--debounce",
        type=float,
        default=DEFAULT_DEBOUNCE_SECONDS,
        help=f"Seconds to wait after the last change before rebuilding (default: {DEFAULT_DEBOUNCE_SECONDS})",
    )
    parser.add_argument("--title", default=DEFAULT_TITLE, help="Page title of the artifact")
    parser.add_argument("--no-watch", action="store_true", help="Do not rebuild on file changes")
    parser.add_argument("--no-serve", action="store_true", help="Do not start the HTTP server")
    parser.add_argument("--open", action="store_true", help="Open the preview in a browser")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> PreviewConfig:
    return PreviewConfig(
        root=args.root.expanduser(),
        output_name=args.output,
        port=args.port,
        host=args.host,
        debounce_seconds=args.debounce,
        title=args.title,
        watch=not args.no_watch,
        serve=not args.no_serve,
        open_browser=args.open,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = config_from_args(args)
    try:
        config.validate()
    except ValueError as exc:
        parser.error(str(exc))

    # initial build runs before anything can read the artifact
    print(f"Scanning directory: {config.root}")
    app = PreviewApp(config)
    try:
        state = app.build_and_emit()
    except ScanError as exc:
        print(f"Error scanning directory: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error writing {config.output_path}: {exc}", file=sys.stderr)
        return 1
    print(f"Found {len(state.files)} markdown files")
    report_failures(state)

    watcher = WatchLoop(config, app.rebuild) if config.watch else None
    if watcher is not None:
        watcher.start()

    try:
        if config.serve:
            serve_site(config.root, host=config.host, port=config.port, open_browser=config.open_browser, page=config.output_name)
        elif watcher is not None:
            print("Watching for changes, press Ctrl+C to stop")
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopped.")
    except OSError as exc:
        print(f"Error starting HTTP server: {exc}", file=sys.stderr)
        return 1
    finally:
        if watcher is not None:
            watcher.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
