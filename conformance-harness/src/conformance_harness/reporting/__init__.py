"""Conformance report model, compiler and writers."""

from __future__ import annotations

from conformance_harness.reporting.compile import (
    compile_profile_reports,
    compile_report,
    extended_features_for,
    rfc3339_now,
)
from conformance_harness.reporting.types import (
    STATUS_FAILURE,
    STATUS_SKIPPED,
    STATUS_SUCCESS,
    STATUS_UNSET,
    UNSET_API_VERSION,
    ConformanceReport,
    ProfileReport,
    Statistics,
    StatusReport,
)
from conformance_harness.reporting.validators import (
    assert_conformance_report,
    conformance_report_errors,
)
from conformance_harness.reporting.write import render_report, write_report

__all__ = [
    "STATUS_FAILURE",
    "STATUS_SKIPPED",
    "STATUS_SUCCESS",
    "STATUS_UNSET",
    "UNSET_API_VERSION",
    "ConformanceReport",
    "ProfileReport",
    "Statistics",
    "StatusReport",
    "assert_conformance_report",
    "compile_profile_reports",
    "compile_report",
    "conformance_report_errors",
    "extended_features_for",
    "render_report",
    "rfc3339_now",
    "write_report",
]
