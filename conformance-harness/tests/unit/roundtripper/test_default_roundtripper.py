from __future__ import annotations

import httpx
import pytest

from conformance_harness.config.timeouts import TimeoutConfig
from conformance_harness.roundtripper.base import RedirectRequest, Request, RoundTripError, RoundTripper
from conformance_harness.roundtripper.http import DefaultRoundTripper


def _echo(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "path": request.url.path,
            "host": request.headers.get("host"),
            "method": request.method,
            "proto": "HTTP/1.1",
            "headers": {"X-Echo": request.headers.get("x-echo", "")},
            "namespace": "gateway-conformance-infra",
            "pod": "infra-backend-v1-abc",
        },
        headers={"X-Header-Set": "set"},
    )


def _rt(handler) -> DefaultRoundTripper:
    return DefaultRoundTripper(
        timeout_config=TimeoutConfig(request_timeout_s=1.0), transport=httpx.MockTransport(handler)
    )


def test_satisfies_round_tripper_protocol() -> None:
    assert isinstance(_rt(_echo), RoundTripper)


def test_captures_echoed_request_and_response() -> None:
    rt = _rt(_echo)
    captured_request, captured_response = rt.capture_round_trip(
        Request(
            url="http://192.0.2.10/match",
            host="example.com",
            method="POST",
            headers={"X-Echo": ["hello"]},
        )
    )
    assert captured_request.path == "/match"
    assert captured_request.host == "example.com"
    assert captured_request.method == "POST"
    assert captured_request.headers == {"X-Echo": ["hello"]}
    assert captured_request.namespace == "gateway-conformance-infra"
    assert captured_request.pod.startswith("infra-backend-v1")

    assert captured_response.status_code == 200
    assert captured_response.content_length > 0
    assert captured_response.headers["x-header-set"] == ["set"]
    assert captured_response.redirect_request is None


def test_non_2xx_response_does_not_parse_body() -> None:
    rt = _rt(lambda request: httpx.Response(404, text="not found"))
    captured_request, captured_response = rt.capture_round_trip(Request(url="http://192.0.2.10/"))
    assert captured_response.status_code == 404
    assert captured_request.path == ""


def test_unfollowed_redirect_is_captured() -> None:
    rt = _rt(
        lambda request: httpx.Response(
            302, headers={"Location": "https://example.org:8443/elsewhere"}
        )
    )
    _, captured_response = rt.capture_round_trip(
        Request(url="http://192.0.2.10/old", unfollow_redirect=True)
    )
    assert captured_response.status_code == 302
    assert captured_response.redirect_request == RedirectRequest(
        scheme="https", host="example.org", port="8443", path="/elsewhere"
    )


def test_redirects_are_followed_by_default() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "http://192.0.2.10/new"})
        return _echo(request)

    captured_request, captured_response = _rt(handler).capture_round_trip(
        Request(url="http://192.0.2.10/old")
    )
    assert captured_response.status_code == 200
    assert captured_request.path == "/new"


def test_invalid_echo_body_raises() -> None:
    rt = _rt(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(RoundTripError, match="unexpected response body"):
        rt.capture_round_trip(Request(url="http://192.0.2.10/"))


def test_non_object_echo_body_raises() -> None:
    rt = _rt(lambda request: httpx.Response(200, json=[1, 2]))
    with pytest.raises(RoundTripError, match="must be a JSON object"):
        rt.capture_round_trip(Request(url="http://192.0.2.10/"))


def test_unsupported_protocol_raises() -> None:
    with pytest.raises(RoundTripError, match="unsupported protocol"):
        _rt(_echo).capture_round_trip(Request(url="grpc://192.0.2.10/", protocol="GRPC"))
