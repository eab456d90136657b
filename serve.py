#!/usr/bin/env python3
"""
Static HTTP server for the notes folder.

Serves the preview root so that index.html and the images it references
resolve with the same root-relative paths the builder writes.

Usage:
  python serve.py [port]
"""

import functools
import http.server
import logging
import sys
import webbrowser
from pathlib import Path
from typing import Union

from preview_config import DEFAULT_OUTPUT, DEFAULT_PORT

logger = logging.getLogger(__name__)


class PreviewRequestHandler(http.server.SimpleHTTPRequestHandler):
    """Request handler that logs through logging instead of stderr."""

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(root: Union[str, Path] = ".", host: str = "", port: int = DEFAULT_PORT) -> http.server.ThreadingHTTPServer:
    handler = functools.partial(PreviewRequestHandler, directory=str(Path(root).resolve()))
    return http.server.ThreadingHTTPServer((host, port), handler)


def serve_site(root: Union[str, Path] = ".", host: str = "", port: int = DEFAULT_PORT, open_browser: bool = False, page: str = DEFAULT_OUTPUT) -> None:
    httpd = make_server(root, host, port)
    url = f"http://localhost:{httpd.server_address[1]}/{page}"
    print(f"HTTP server running at {url}")
    print("Press Ctrl+C to stop")

    if open_browser:
        webbrowser.open(url)

    with httpd:
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            print("\nServer stopped.")


if __name__ == "__main__":
    port = DEFAULT_PORT
    if len(sys.argv) > 1:
        try:
            port = int(sys.argv[1])
        except ValueError:
            pass
    serve_site(port=port)
