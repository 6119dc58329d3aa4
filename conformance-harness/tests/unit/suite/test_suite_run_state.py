from __future__ import annotations

import threading

import pytest
from fakes import BlockingBody, FakeApplier, FakeRoundTripper, make_test

from conformance_harness.errors import ConcurrentRunError, DuplicateTestError, NotReadyError
from conformance_harness.features.registry import SUPPORT_GATEWAY, SUPPORT_MESH
from conformance_harness.suite.engine import ConformanceTestSuite, SuiteOptions
from conformance_harness.suite.types import (
    OUTCOME_FAILED,
    OUTCOME_SKIPPED,
    OUTCOME_SUCCEEDED,
    ConformanceTest,
    TestSkipped,
)


def _suite(**kwargs) -> ConformanceTestSuite:
    kwargs.setdefault("supported_features", frozenset({SUPPORT_GATEWAY}))
    return ConformanceTestSuite(SuiteOptions(round_tripper=FakeRoundTripper(), **kwargs))


def _start_blocked_run(suite: ConformanceTestSuite, body: BlockingBody) -> threading.Thread:
    blocking = ConformanceTest(short_name="Blocking", body=body)
    errors: list[BaseException] = []

    def _target() -> None:
        try:
            suite.run([blocking, make_test("After")])
        except BaseException as e:  # pragma: no cover
            errors.append(e)

    thread = threading.Thread(target=_target, daemon=True)
    thread.start()
    assert body.started.wait(timeout=5.0)
    thread.errors = errors  # type: ignore[attr-defined]
    return thread


def test_results_cover_exactly_the_tests_passed_in() -> None:
    suite = _suite()
    suite.run([make_test("A"), make_test("B", passes=False), make_test("C")])

    results = suite.results()
    assert results.names() == ["A", "B", "C"]
    assert results.require("A").result == OUTCOME_SUCCEEDED
    assert results.require("B").result == OUTCOME_FAILED
    assert "failed on purpose" in results.require("B").message

    suite.run([make_test("D")])
    assert suite.results().names() == ["D"]


def test_failures_and_exceptions_do_not_stop_the_catalog() -> None:
    calls: list[str] = []

    def _explodes(ctx) -> None:
        calls.append("Explodes")
        raise RuntimeError("boom")

    suite = _suite()
    suite.run(
        [
            make_test("First", passes=False, calls=calls),
            ConformanceTest(short_name="Explodes", body=_explodes),
            make_test("Last", calls=calls),
        ]
    )

    assert calls == ["First", "Explodes", "Last"]
    results = suite.results()
    assert results.require("Explodes").failed
    assert results.require("Explodes").message == "RuntimeError: boom"
    assert results.require("Last").succeeded


def test_tests_run_in_the_given_order() -> None:
    calls: list[str] = []
    suite = _suite()
    suite.run([make_test(n, calls=calls) for n in ["Z", "A", "M"]])
    assert calls == ["Z", "A", "M"]


def test_unsupported_features_and_skip_list_produce_skipped_results() -> None:
    calls: list[str] = []

    def _skips(ctx) -> None:
        raise TestSkipped("not applicable")

    suite = _suite(skip_tests=("Listed",))
    suite.run(
        [
            make_test("NeedsMesh", features={SUPPORT_MESH}, calls=calls),
            make_test("Listed", calls=calls),
            make_test("Runs", features={SUPPORT_GATEWAY}, calls=calls),
            ConformanceTest(short_name="SelfSkip", body=_skips),
        ]
    )

    results = suite.results()
    assert calls == ["Runs"]
    assert results.require("NeedsMesh").result == OUTCOME_SKIPPED
    assert "Mesh" in results.require("NeedsMesh").message
    assert results.require("Listed").skipped
    assert results.require("Runs").succeeded
    assert results.require("SelfSkip").skipped
    assert results.require("SelfSkip").message == "not applicable"


def test_run_test_limits_execution_to_one_test() -> None:
    calls: list[str] = []
    suite = _suite(run_test="B")
    suite.run([make_test(n, calls=calls) for n in ["A", "B", "C"]])

    assert calls == ["B"]
    assert [r.result for r in suite.results()] == [OUTCOME_SKIPPED, OUTCOME_SUCCEEDED, OUTCOME_SKIPPED]


def test_duplicate_names_are_rejected_before_running() -> None:
    calls: list[str] = []
    suite = _suite()
    suite.run([make_test("Prior")])

    with pytest.raises(DuplicateTestError):
        suite.run([make_test("A", calls=calls), make_test("A", calls=calls)])

    assert calls == []
    assert suite.running is False
    assert suite.results().names() == ["Prior"]


def test_report_before_any_run_is_empty() -> None:
    suite = _suite()
    assert len(suite.results()) == 0
    report = suite.report()
    assert list(report.profile_reports) == []
    assert report.to_dict()["profiles"] == []


def test_concurrent_run_is_rejected_and_report_is_gated() -> None:
    suite = _suite()
    suite.run([make_test("Previous")])

    body = BlockingBody()
    thread = _start_blocked_run(suite, body)
    try:
        assert suite.running is True

        with pytest.raises(ConcurrentRunError, match=r"already running"):
            suite.run([make_test("Intruder")])
        with pytest.raises(NotReadyError, match=r"currently running"):
            suite.report()
        with pytest.raises(NotReadyError):
            suite.results()
    finally:
        body.release.set()
        thread.join(timeout=10.0)

    assert not thread.is_alive()
    assert thread.errors == []  # type: ignore[attr-defined]
    assert suite.running is False
    assert suite.results().names() == ["After", "Blocking"]


def test_many_concurrent_runs_only_one_wins() -> None:
    suite = _suite()
    body = BlockingBody()
    thread = _start_blocked_run(suite, body)

    outcomes: list[str] = []
    lock = threading.Lock()

    def _attempt(i: int) -> None:
        try:
            suite.run([make_test(f"Other{i}")])
            result = "ran"
        except ConcurrentRunError:
            result = "rejected"
        with lock:
            outcomes.append(result)

    attempts = [threading.Thread(target=_attempt, args=(i,)) for i in range(8)]
    for t in attempts:
        t.start()
    for t in attempts:
        t.join(timeout=5.0)

    body.release.set()
    thread.join(timeout=10.0)

    assert outcomes == ["rejected"] * 8
    assert suite.results().names() == ["After", "Blocking"]


def test_interrupted_run_returns_to_idle_without_publishing() -> None:
    suite = _suite()
    suite.run([make_test("Previous")])

    def _interrupt(ctx) -> None:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        suite.run([ConformanceTest(short_name="Interrupted", body=_interrupt)])

    assert suite.running is False
    assert len(suite.results()) == 0
    assert list(suite.report().profile_reports) == []
    suite.run([make_test("Again")])
    assert suite.results().names() == ["Again"]


def test_duplicate_names_during_a_run_are_rejected_as_concurrent() -> None:
    suite = _suite()
    body = BlockingBody()
    thread = _start_blocked_run(suite, body)
    try:
        with pytest.raises(ConcurrentRunError):
            suite.run([make_test("Dup"), make_test("Dup")])
    finally:
        body.release.set()
        thread.join(timeout=10.0)

    assert suite.results().names() == ["After", "Blocking"]


def test_report_is_idempotent_between_runs() -> None:
    suite = _suite(
        conformance_profiles=frozenset({"HTTP"}),
        supported_features=frozenset({"HTTPRouteMethodMatching"}),
    )
    suite.run(
        [
            make_test("CoreOk", features={"HTTPRoute"}, profiles={"HTTP"}),
            make_test("CoreBad", passes=False, features={"Gateway"}, profiles={"HTTP"}),
            make_test(
                "Method", features={"HTTPRouteMethodMatching"}, profiles={"HTTP"}
            ),
            make_test("Mirror", features={"HTTPRouteRequestMirror"}, profiles={"HTTP"}),
        ]
    )

    first = suite.report().to_dict()
    second = suite.report().to_dict()
    first.pop("date")
    second.pop("date")
    assert first == second
    assert first["profiles"][0]["core"]["failed_tests"] == ["CoreBad"]


def test_test_manifests_are_applied_before_the_body() -> None:
    applier = FakeApplier()
    calls: list[str] = []

    def _body(ctx) -> None:
        calls.append(f"body after {len(applier.calls)} apply call(s)")

    suite = _suite(applier=applier, cleanup_base_resources=False)
    suite.run(
        [
            ConformanceTest(
                short_name="WithManifests",
                body=_body,
                manifests=["tests/route.yaml", "tests/backend.yaml"],
            )
        ]
    )

    assert applier.calls == [
        ("apply_manifest", "tests/route.yaml", False),
        ("apply_manifest", "tests/backend.yaml", False),
    ]
    assert calls == ["body after 2 apply call(s)"]
    assert suite.results().require("WithManifests").result == OUTCOME_SUCCEEDED


def test_manifest_failure_fails_only_that_test() -> None:
    applier = FakeApplier(fail_on_manifest="tests/broken.yaml")
    calls: list[str] = []

    suite = _suite(applier=applier)
    suite.run(
        [
            ConformanceTest(
                short_name="Broken",
                body=lambda ctx: calls.append("Broken"),
                manifests=["tests/broken.yaml"],
            ),
            make_test("Next", calls=calls),
        ]
    )

    broken = suite.results().require("Broken")
    assert broken.result == OUTCOME_FAILED
    assert "failed to apply tests/broken.yaml" in broken.message
    assert suite.results().require("Next").result == OUTCOME_SUCCEEDED
    assert calls == ["Next"]


def test_skipped_tests_do_not_apply_manifests() -> None:
    applier = FakeApplier()
    suite = _suite(applier=applier, skip_tests=("Skipped",))
    suite.run(
        [ConformanceTest(short_name="Skipped", body=lambda ctx: None, manifests=["tests/x.yaml"])]
    )

    assert applier.calls == []
    assert suite.results().require("Skipped").result == OUTCOME_SKIPPED
