from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence

REPORT_KIND = "ConformanceReport"

# The report format is owned by whoever publishes it; until then the version
# marker stays unset.
UNSET_API_VERSION = "unset"

STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"
STATUS_SKIPPED = "skipped"
STATUS_UNSET = "unset"

ALLOWED_STATUSES = {STATUS_SUCCESS, STATUS_FAILURE, STATUS_SKIPPED, STATUS_UNSET}


@dataclass(frozen=True)
class Statistics:
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"passed": self.passed, "failed": self.failed, "skipped": self.skipped}


@dataclass(frozen=True)
class StatusReport:
    result: str
    statistics: Statistics = field(default_factory=Statistics)
    failed_tests: Sequence[str] = ()
    skipped_tests: Sequence[str] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "statistics": self.statistics.to_dict(),
            "failed_tests": list(self.failed_tests),
            "skipped_tests": list(self.skipped_tests),
        }


@dataclass(frozen=True)
class ProfileReport:
    name: str
    core: StatusReport
    extended: Dict[str, StatusReport] = field(default_factory=dict)
    supported_extended_features: Sequence[str] = ()
    unsupported_extended_features: Sequence[str] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "core": self.core.to_dict(),
            "extended": {k: self.extended[k].to_dict() for k in sorted(self.extended)},
            "supported_extended_features": list(self.supported_extended_features),
            "unsupported_extended_features": list(self.unsupported_extended_features),
        }


@dataclass(frozen=True)
class ConformanceReport:
    date: str
    api_version: str = UNSET_API_VERSION
    profile_reports: Sequence[ProfileReport] = ()

    def profile(self, name: str) -> ProfileReport:
        for report in self.profile_reports:
            if report.name == name:
                return report
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": REPORT_KIND,
            "api_version": self.api_version,
            "date": self.date,
            "profiles": [p.to_dict() for p in self.profile_reports],
        }
