"""Built-in conformance tests, registered in `suite.catalog` on import."""

from __future__ import annotations

__all__ = ["http_basic"]
