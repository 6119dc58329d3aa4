"""Conformance suite: test model, run engine and result store.

The engine lives in `suite.engine`; import it from there.
"""

from __future__ import annotations

__all__ = ["catalog", "context", "engine", "store", "types"]
