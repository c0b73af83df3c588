#!/usr/bin/env python3
"""Check the year-of-assessment YAML files from a source checkout.

Usage: ``scripts/validate_config.py [YEAR ...]``. Exits non-zero when any
configured year reports issues.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from gigtax.backend.config.validator import main  # noqa: E402


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
