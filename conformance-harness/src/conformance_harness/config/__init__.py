"""Suite configuration: timeouts and YAML/JSON suite config files."""

from __future__ import annotations

__all__ = ["loader", "timeouts"]
