"""
Shared pytest fixtures.

The modules live at the repository root, so the root is put on sys.path for
runs without an editable install.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

from preview_config import PreviewConfig  # noqa: E402

PAGE_MD = """# Page

![a](img/a.png)

![b](../img/a.png)

![remote](https://example.com/a.png)
"""

DIAGRAMS_MD = """# Diagrams

```mermaid
graph TD
A --> B
```
"""

EXPECTED_FILES = [
    "notes/sub/page.md",
    "notes/intro.md",
    "UPPER.MD",
    "Zeta.md",
    "alpha.md",
    "diagrams.md",
]


def write(root: Path, rel: str, text: str = "") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """A small notes folder covering pruning, exclusion and ordering rules."""
    root = tmp_path / "vault"
    root.mkdir()
    write(root, "notes/sub/page.md", PAGE_MD)
    write(root, "notes/sub/img/a.png", "png")
    write(root, "notes/intro.md", "# Intro\n\nHello.\n")
    write(root, "Zeta.md", "# Zeta\n")
    write(root, "alpha.md", "# Alpha\n")
    write(root, "UPPER.MD", "# Upper\n")
    write(root, "diagrams.md", DIAGRAMS_MD)
    write(root, "empty_dir/readme.txt", "no markdown here")
    write(root, ".hidden/secret.md", "# Secret\n")
    write(root, "node_modules/pkg/readme.md", "# Package\n")
    write(root, "notes/.draft.md", "# Draft\n")
    return root


@pytest.fixture
def config(vault: Path) -> PreviewConfig:
    return PreviewConfig(root=vault, debounce_seconds=0.05)


@pytest.fixture
def expected_files():
    """Markdown paths of the vault fixture in traversal order."""
    return list(EXPECTED_FILES)
