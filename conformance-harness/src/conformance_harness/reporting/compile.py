"""Compile per-test outcomes into per-profile conformance status.

Results are grouped by (profile, bucket) where the bucket is either the
profile's Core or one of its Extended features. Every bucket is an
order-independent fold over its results, so the compiled report depends only
on the result store and the catalog, not on execution order.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import AbstractSet, Any, Callable, Dict, Iterable, Optional

from conformance_harness.features.profiles import ConformanceProfile, ProfileCatalog
from conformance_harness.features.registry import Feature
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
from conformance_harness.suite.types import TestResult

_CORE = ""


def rfc3339_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _new_bucket() -> dict[str, Any]:
    return {"passed": [], "failed": [], "skipped": []}


def _bucket_add(bucket: dict[str, Any], result: TestResult) -> None:
    if result.succeeded:
        bucket["passed"].append(result.name)
    elif result.failed:
        bucket["failed"].append(result.name)
    else:
        bucket["skipped"].append(result.name)


def _bucket_status(bucket: dict[str, Any]) -> str:
    if bucket["failed"]:
        return STATUS_FAILURE
    if bucket["passed"]:
        return STATUS_SUCCESS
    if bucket["skipped"]:
        return STATUS_SKIPPED
    return STATUS_UNSET


def _bucket_to_status_report(bucket: dict[str, Any]) -> StatusReport:
    return StatusReport(
        result=_bucket_status(bucket),
        statistics=Statistics(
            passed=len(bucket["passed"]),
            failed=len(bucket["failed"]),
            skipped=len(bucket["skipped"]),
        ),
        failed_tests=sorted(bucket["failed"]),
        skipped_tests=sorted(bucket["skipped"]),
    )


def extended_features_for(profile: ConformanceProfile, result: TestResult) -> list[Feature]:
    """Extended features of `profile` that `result`'s test exercises.

    An empty list means the test counts toward the profile's Core status.
    """

    return sorted(result.test.features & profile.extended_features)


def compile_profile_reports(
    results: Iterable[TestResult],
    *,
    catalog: ProfileCatalog,
    supported_features: AbstractSet[Feature] = frozenset(),
) -> list[ProfileReport]:
    buckets: Dict[str, Dict[str, dict[str, Any]]] = defaultdict(
        lambda: defaultdict(_new_bucket)
    )

    for result in results:
        for profile_name in sorted(result.test.profiles):
            profile = catalog.resolve_profile(profile_name)
            profile_buckets = buckets[profile.name]
            extended = extended_features_for(profile, result)
            if not extended:
                _bucket_add(profile_buckets[_CORE], result)
                continue
            for feature in extended:
                _bucket_add(profile_buckets[feature], result)

    reports: list[ProfileReport] = []
    for profile_name in sorted(buckets.keys()):
        profile = catalog.resolve_profile(profile_name)
        profile_buckets = buckets[profile_name]
        core_bucket = profile_buckets.get(_CORE) or _new_bucket()
        extended = {
            feature: _bucket_to_status_report(profile_buckets[feature])
            for feature in sorted(k for k in profile_buckets.keys() if k != _CORE)
        }
        reports.append(
            ProfileReport(
                name=profile_name,
                core=_bucket_to_status_report(core_bucket),
                extended=extended,
                supported_extended_features=sorted(
                    profile.extended_features & frozenset(supported_features)
                ),
                unsupported_extended_features=sorted(
                    profile.extended_features - frozenset(supported_features)
                ),
            )
        )
    return reports


def compile_report(
    results: Iterable[TestResult],
    *,
    catalog: ProfileCatalog,
    supported_features: AbstractSet[Feature] = frozenset(),
    api_version: str = UNSET_API_VERSION,
    now: Optional[Callable[[], str]] = None,
) -> ConformanceReport:
    """Build a ConformanceReport from one run's results.

    Raises ProfileNotFoundError if a test is attributed to a profile the
    catalog does not know.
    """

    profile_reports = compile_profile_reports(
        results, catalog=catalog, supported_features=supported_features
    )
    return ConformanceReport(
        date=(now or rfc3339_now)(),
        api_version=api_version,
        profile_reports=profile_reports,
    )
