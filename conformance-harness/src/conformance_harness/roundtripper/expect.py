"""Helpers for test bodies that probe the gateway over HTTP.

Routes take time to propagate through an implementation, so a probe only
counts once it has matched `required_consecutive_successes` times in a row.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence

from conformance_harness.config.timeouts import TimeoutConfig
from conformance_harness.roundtripper.base import (
    CapturedRequest,
    CapturedResponse,
    RedirectRequest,
    Request,
    RoundTripper,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpectedResponse:
    path: str
    host: str = ""
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    unfollow_redirect: bool = False

    status_code: int = 200
    backend: str = ""
    namespace: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)
    absent_response_headers: Sequence[str] = ()
    redirect_request: Optional[RedirectRequest] = None

    def to_request(self, gateway_address: str, *, scheme: str = "http") -> Request:
        return Request(
            url=f"{scheme}://{gateway_address}{self.path}",
            host=self.host,
            method=self.method,
            headers={k: [v] for k, v in self.headers.items()},
            unfollow_redirect=self.unfollow_redirect,
        )


def _first_header(headers: Mapping[str, Sequence[str]], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, values in headers.items():
        if key.lower() == wanted and values:
            return values[0]
    return None


def compare_response(
    expected: ExpectedResponse,
    captured_request: CapturedRequest,
    captured_response: CapturedResponse,
) -> Optional[str]:
    """Return a mismatch description, or None when the response matches."""

    if captured_response.status_code != expected.status_code:
        return (
            f"expected status code {expected.status_code}, "
            f"got {captured_response.status_code}"
        )

    if 200 <= expected.status_code < 300:
        if captured_request.path != expected.path:
            return f"expected path {expected.path!r}, got {captured_request.path!r}"
        if captured_request.method and captured_request.method != expected.method:
            return f"expected method {expected.method!r}, got {captured_request.method!r}"
        if expected.namespace and captured_request.namespace != expected.namespace:
            return (
                f"expected namespace {expected.namespace!r}, "
                f"got {captured_request.namespace!r}"
            )
        if expected.backend and not captured_request.pod.startswith(expected.backend):
            return f"expected pod name to start with {expected.backend!r}, got {captured_request.pod!r}"

    for name, value in expected.response_headers.items():
        actual = _first_header(captured_response.headers, name)
        if actual != value:
            return f"expected response header {name}={value!r}, got {actual!r}"

    for name in expected.absent_response_headers:
        if _first_header(captured_response.headers, name) is not None:
            return f"expected response header {name!r} to be absent"

    if expected.redirect_request is not None:
        if captured_response.redirect_request != expected.redirect_request:
            return (
                f"expected redirect {expected.redirect_request!r}, "
                f"got {captured_response.redirect_request!r}"
            )

    return None


def make_request_and_expect_eventually_consistent_response(
    round_tripper: RoundTripper,
    timeouts: TimeoutConfig,
    gateway_address: str,
    expected: ExpectedResponse,
    *,
    poll_interval_s: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Probe until the expected response is seen enough times in a row.

    Raises AssertionError (failing the calling test) when
    `timeouts.max_time_to_consistency_s` elapses first.
    """

    request = expected.to_request(gateway_address)
    required = max(1, int(timeouts.required_consecutive_successes))
    deadline = clock() + float(timeouts.max_time_to_consistency_s)
    consecutive = 0
    last_mismatch = "no request sent"

    while True:
        try:
            captured_request, captured_response = round_tripper.capture_round_trip(request)
            mismatch = compare_response(expected, captured_request, captured_response)
        except Exception as e:
            mismatch = f"request failed: {e!r}"

        if mismatch is None:
            consecutive += 1
            if consecutive >= required:
                return
        else:
            if consecutive:
                logger.debug("response became inconsistent after %d successes", consecutive)
            consecutive = 0
            last_mismatch = mismatch

        if clock() >= deadline:
            raise AssertionError(
                f"{expected.method} {request.url} (host={expected.host!r}) did not reach "
                f"{required} consecutive matching responses within "
                f"{timeouts.max_time_to_consistency_s}s: {last_mismatch}"
            )
        sleep(poll_interval_s)
