from __future__ import annotations

import sys
from pathlib import Path


def _ensure_paths() -> None:
    # Make the repo root and the shared fakes importable regardless of import mode.
    tests_dir = Path(__file__).resolve().parent
    for path in (tests_dir.parent, tests_dir):
        path_str = str(path)
        if path_str not in sys.path:
            sys.path.insert(0, path_str)


_ensure_paths()
