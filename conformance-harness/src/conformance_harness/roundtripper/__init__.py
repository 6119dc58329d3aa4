"""Request/response probing used by conformance test bodies."""

from __future__ import annotations

from conformance_harness.roundtripper.base import (
    CapturedRequest,
    CapturedResponse,
    RedirectRequest,
    Request,
    RoundTripError,
    RoundTripper,
)
from conformance_harness.roundtripper.expect import (
    ExpectedResponse,
    compare_response,
    make_request_and_expect_eventually_consistent_response,
)
from conformance_harness.roundtripper.http import DefaultRoundTripper

__all__ = [
    "CapturedRequest",
    "CapturedResponse",
    "DefaultRoundTripper",
    "ExpectedResponse",
    "RedirectRequest",
    "Request",
    "RoundTripError",
    "RoundTripper",
    "compare_response",
    "make_request_and_expect_eventually_consistent_response",
]
