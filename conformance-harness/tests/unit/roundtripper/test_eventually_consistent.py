from __future__ import annotations

from typing import Optional

import pytest

from conformance_harness.config.timeouts import TimeoutConfig
from conformance_harness.roundtripper.base import (
    CapturedRequest,
    CapturedResponse,
    RedirectRequest,
    Request,
)
from conformance_harness.roundtripper.expect import (
    ExpectedResponse,
    compare_response,
    make_request_and_expect_eventually_consistent_response,
)

TIMEOUTS = TimeoutConfig(max_time_to_consistency_s=10.0, required_consecutive_successes=3)

GOOD = (
    CapturedRequest(path="/", method="GET", namespace="infra", pod="infra-backend-v1-xyz"),
    CapturedResponse(status_code=200),
)
BAD = (CapturedRequest(), CapturedResponse(status_code=503))


class ScriptedRoundTripper:
    def __init__(self, script) -> None:
        self.script = list(script)
        self.requests: list[Request] = []

    def capture_round_trip(self, request: Request):
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _probe(rt, expected: Optional[ExpectedResponse] = None, clock: Optional[FakeClock] = None):
    clock = clock or FakeClock()
    make_request_and_expect_eventually_consistent_response(
        rt,
        TIMEOUTS,
        "192.0.2.10:80",
        expected or ExpectedResponse(path="/", backend="infra-backend-v1", namespace="infra"),
        sleep=clock.sleep,
        clock=clock,
    )
    return clock


def test_returns_after_required_consecutive_successes() -> None:
    rt = ScriptedRoundTripper([GOOD])
    clock = _probe(rt)
    assert len(rt.requests) == 3
    assert rt.requests[0].url == "http://192.0.2.10:80/"
    assert len(clock.sleeps) == 2


def test_a_mismatch_resets_the_streak() -> None:
    rt = ScriptedRoundTripper([GOOD, GOOD, BAD, RuntimeError("connection reset"), GOOD])
    _probe(rt)
    assert len(rt.requests) == 7


def test_times_out_with_last_mismatch() -> None:
    rt = ScriptedRoundTripper([BAD])
    with pytest.raises(AssertionError, match="expected status code 200, got 503"):
        _probe(rt)
    assert len(rt.requests) == 11


def test_compare_checks_backend_and_namespace() -> None:
    expected = ExpectedResponse(path="/", backend="infra-backend-v2", namespace="infra")
    assert "pod name" in compare_response(expected, *GOOD)
    other_ns = ExpectedResponse(path="/", namespace="apps")
    assert "namespace" in compare_response(other_ns, *GOOD)
    assert compare_response(ExpectedResponse(path="/"), *GOOD) is None


def test_compare_checks_response_headers() -> None:
    captured = CapturedResponse(status_code=200, headers={"x-header-set": ["v1"]})
    ok = ExpectedResponse(path="/", response_headers={"X-Header-Set": "v1"})
    assert compare_response(ok, GOOD[0], captured) is None
    absent = ExpectedResponse(path="/", absent_response_headers=["X-Header-Set"])
    assert "absent" in compare_response(absent, GOOD[0], captured)


def test_compare_checks_redirects_without_echo_body() -> None:
    redirect = RedirectRequest(scheme="https", host="example.org", port="", path="/")
    expected = ExpectedResponse(
        path="/", status_code=302, unfollow_redirect=True, redirect_request=redirect
    )
    captured = CapturedResponse(status_code=302, redirect_request=redirect)
    assert compare_response(expected, CapturedRequest(), captured) is None
    wrong = CapturedResponse(status_code=302)
    assert "expected redirect" in compare_response(expected, CapturedRequest(), wrong)


def test_expected_response_builds_request() -> None:
    expected = ExpectedResponse(
        path="/q?x=1", host="example.com", method="POST", headers={"X-A": "b"}
    )
    request = expected.to_request("192.0.2.10")
    assert request.url == "http://192.0.2.10/q?x=1"
    assert request.host == "example.com"
    assert request.headers == {"X-A": ["b"]}
