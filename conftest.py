"""
Project-wide PyTest bootstrap.

Puts every `*/src` directory on sys.path so tests can import the project's
packages without an editable install.
"""

from pathlib import Path
import sys

# ── add all source roots to sys.path (prepend so we win over site-packages) ─
ROOT = Path(__file__).parent.resolve()
_paths = (
    [str(p) for p in sorted((ROOT / "packages").glob("*/src"))]  # packages/*/src
    + [str(p) for p in sorted((ROOT / "services").glob("*/src"))]  # services/*/src
)
# Preserve order but ensure local paths take precedence
for _p in reversed(_paths):
    if _p not in sys.path:
        sys.path.insert(0, _p)
