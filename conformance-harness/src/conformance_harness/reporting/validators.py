from __future__ import annotations

import json
from collections.abc import Mapping as MappingABC
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft202012Validator

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"
CONFORMANCE_REPORT_SCHEMA = SCHEMAS_DIR / "conformance_report.schema.json"


@lru_cache(maxsize=None)
def _load_report_schema() -> Dict[str, Any]:
    schema = json.loads(CONFORMANCE_REPORT_SCHEMA.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be an object: {CONFORMANCE_REPORT_SCHEMA}")
    return schema


def _status_errors(where: str, status: MappingABC[str, Any]) -> List[str]:
    errors: List[str] = []
    stats = status.get("statistics") or {}
    failed = status.get("failed_tests") or []
    skipped = status.get("skipped_tests") or []
    if int(stats.get("failed", 0)) != len(failed):
        errors.append(f"{where}: statistics.failed does not match failed_tests")
    if int(stats.get("skipped", 0)) != len(skipped):
        errors.append(f"{where}: statistics.skipped does not match skipped_tests")
    return errors


def conformance_report_errors(report: MappingABC[str, Any]) -> List[str]:
    validator = Draft202012Validator(_load_report_schema())
    schema_errors = sorted(validator.iter_errors(report), key=lambda e: list(e.path))
    errors: List[str] = []
    for e in schema_errors[:20]:
        loc = "/".join(str(p) for p in e.path)
        errors.append(f"report:{loc}: {e.message}")
    if len(schema_errors) > 20:
        errors.append(f"... ({len(schema_errors) - 20} more)")
    if errors:
        return errors

    names = [p["name"] for p in report["profiles"]]
    if names != sorted(set(names)):
        errors.append("profiles must be unique and sorted by name")

    for profile in report["profiles"]:
        name = profile["name"]
        errors.extend(_status_errors(f"{name}.core", profile["core"]))
        for feature, status in profile["extended"].items():
            errors.extend(_status_errors(f"{name}.extended.{feature}", status))
        overlap = set(profile["supported_extended_features"]) & set(
            profile["unsupported_extended_features"]
        )
        if overlap:
            errors.append(f"{name}: features both supported and unsupported: {sorted(overlap)}")
    return errors


def assert_conformance_report(report: MappingABC[str, Any]) -> None:
    errors = conformance_report_errors(report)
    if errors:
        raise ValueError("ConformanceReport contract violation: " + "; ".join(errors))
