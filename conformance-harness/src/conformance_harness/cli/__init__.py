"""Command-line entry points."""

from __future__ import annotations

__all__ = ["run_suite"]
