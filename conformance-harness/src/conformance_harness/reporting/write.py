from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from conformance_harness.reporting.types import ConformanceReport
from conformance_harness.reporting.validators import assert_conformance_report


def _json_dumps_canonical(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


def render_report(report: ConformanceReport, *, fmt: str = "json") -> str:
    payload = report.to_dict()
    assert_conformance_report(payload)
    if fmt == "yaml":
        return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
    if fmt == "json":
        return _json_dumps_canonical(payload) + "\n"
    raise ValueError(f"unsupported report format: {fmt}")


def write_report(report: ConformanceReport, out_path: Path) -> Dict[str, Any]:
    """Validate and write `report`; YAML for .yaml/.yml paths, JSON otherwise."""

    out_path = Path(out_path)
    fmt = "yaml" if out_path.suffix.lower() in {".yaml", ".yml"} else "json"
    _write_text_atomic(out_path, render_report(report, fmt=fmt))
    return report.to_dict()
