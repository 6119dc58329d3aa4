from __future__ import annotations

import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[2]
    src = repo_root / "conformance-harness" / "src"
    src_str = str(src)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

    # Shared fakes for suite tests live under `tests/unit/suite/`.
    suite_tests_root = Path(__file__).resolve().parent / "unit" / "suite"
    suite_tests_root_str = str(suite_tests_root)
    if suite_tests_root.is_dir() and suite_tests_root_str not in sys.path:
        sys.path.insert(0, suite_tests_root_str)


_ensure_src_on_path()
