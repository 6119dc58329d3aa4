from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence

from conformance_harness.features.registry import Feature

if TYPE_CHECKING:
    from conformance_harness.suite.context import HarnessContext

OUTCOME_SUCCEEDED = "succeeded"
OUTCOME_FAILED = "failed"
OUTCOME_SKIPPED = "skipped"

ALLOWED_OUTCOMES = {OUTCOME_SUCCEEDED, OUTCOME_FAILED, OUTCOME_SKIPPED}


class TestSkipped(Exception):
    """Raised from a test body to mark the test skipped."""

    __test__ = False


@dataclass(frozen=True)
class TestOutcome:
    result: str
    message: str = ""

    __test__ = False

    def __post_init__(self) -> None:
        if self.result not in ALLOWED_OUTCOMES:
            raise ValueError(f"result must be one of {sorted(ALLOWED_OUTCOMES)}: {self.result!r}")

    @classmethod
    def passed(cls, message: str = "") -> "TestOutcome":
        return cls(OUTCOME_SUCCEEDED, message)

    @classmethod
    def failed(cls, message: str) -> "TestOutcome":
        return cls(OUTCOME_FAILED, message)

    @classmethod
    def skipped(cls, message: str) -> "TestOutcome":
        return cls(OUTCOME_SKIPPED, message)


TestBody = Callable[["HarnessContext"], Optional[TestOutcome]]


@dataclass(frozen=True, eq=False)
class ConformanceTest:
    """One conformance test.

    Identity is the short name: two tests with the same `short_name` are the
    same test as far as the result store is concerned.
    """

    short_name: str
    body: TestBody
    description: str = ""
    features: frozenset[Feature] = field(default_factory=frozenset)
    profiles: frozenset[str] = field(default_factory=frozenset)
    manifests: Sequence[str] = ()

    __test__ = False

    def __post_init__(self) -> None:
        if not isinstance(self.short_name, str) or not self.short_name.strip():
            raise ValueError("short_name must be a non-empty string")
        object.__setattr__(self, "features", frozenset(self.features))
        object.__setattr__(self, "profiles", frozenset(self.profiles))
        object.__setattr__(self, "manifests", tuple(self.manifests))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConformanceTest):
            return NotImplemented
        return self.short_name == other.short_name

    def __hash__(self) -> int:
        return hash(self.short_name)

    def run(self, ctx: "HarnessContext") -> TestOutcome:
        """Run the body and turn its signalling into an explicit outcome.

        A body passes by returning None (or a passing outcome), fails by
        raising AssertionError, and skips by raising TestSkipped. Any other
        exception propagates to the caller.
        """

        try:
            outcome = self.body(ctx)
        except TestSkipped as e:
            return TestOutcome.skipped(str(e))
        except AssertionError as e:
            return TestOutcome.failed(str(e) or "assertion failed")
        if outcome is None:
            return TestOutcome.passed()
        if not isinstance(outcome, TestOutcome):
            raise TypeError(
                f"test {self.short_name!r} returned {type(outcome).__name__}, "
                "expected TestOutcome or None"
            )
        return outcome


@dataclass(frozen=True)
class TestResult:
    test: ConformanceTest
    result: str
    message: str = ""
    duration_s: float = 0.0

    __test__ = False

    def __post_init__(self) -> None:
        if self.result not in ALLOWED_OUTCOMES:
            raise ValueError(f"result must be one of {sorted(ALLOWED_OUTCOMES)}: {self.result!r}")

    @property
    def name(self) -> str:
        return self.test.short_name

    @property
    def succeeded(self) -> bool:
        return self.result == OUTCOME_SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.result == OUTCOME_FAILED

    @property
    def skipped(self) -> bool:
        return self.result == OUTCOME_SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "result": self.result,
            "message": self.message,
            "duration_s": self.duration_s,
            "features": sorted(self.test.features),
            "profiles": sorted(self.test.profiles),
        }
