from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from conformance_harness.config.timeouts import TimeoutConfig, setup_timeout_config
from conformance_harness.roundtripper.base import (
    CapturedRequest,
    CapturedResponse,
    RedirectRequest,
    Request,
    RoundTripError,
)

logger = logging.getLogger(__name__)


def _multi_headers(headers: httpx.Headers) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for key, value in headers.multi_items():
        out.setdefault(key, []).append(value)
    return out


def _parse_redirect(location: str) -> RedirectRequest:
    parts = urlsplit(location)
    return RedirectRequest(
        scheme=parts.scheme,
        host=parts.hostname or "",
        port=str(parts.port) if parts.port is not None else "",
        path=parts.path,
    )


class DefaultRoundTripper:
    """RoundTripper backed by httpx.

    `transport` is forwarded to `httpx.Client`; tests pass an
    `httpx.MockTransport` there.
    """

    def __init__(
        self,
        *,
        timeout_config: Optional[TimeoutConfig] = None,
        debug: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout_config = setup_timeout_config(timeout_config)
        self.debug = bool(debug)
        self.transport = transport

    def _headers_for(self, request: Request) -> list[tuple[str, str]]:
        headers: list[tuple[str, str]] = []
        if request.host:
            headers.append(("Host", request.host))
        for key, values in request.headers.items():
            for value in values:
                headers.append((str(key), str(value)))
        return headers

    def capture_round_trip(self, request: Request) -> Tuple[CapturedRequest, CapturedResponse]:
        if request.protocol.upper() not in {"HTTP", "HTTPS"}:
            raise RoundTripError(f"unsupported protocol: {request.protocol}")

        if self.debug:
            logger.debug("sending request: %s %s host=%s", request.method, request.url, request.host)

        with httpx.Client(
            timeout=self.timeout_config.request_timeout_s,
            follow_redirects=not request.unfollow_redirect,
            transport=self.transport,
        ) as client:
            resp = client.request(request.method, request.url, headers=self._headers_for(request))

        if self.debug:
            logger.debug("received response: %s %s", resp.status_code, resp.http_version)

        captured_request = CapturedRequest()
        if 200 <= resp.status_code < 300 and resp.content:
            try:
                payload = resp.json()
            except json.JSONDecodeError as e:
                raise RoundTripError(f"unexpected response body from {request.url}: {e}") from e
            if not isinstance(payload, dict):
                raise RoundTripError(f"echo response must be a JSON object: {request.url}")
            captured_request = CapturedRequest.from_echo_payload(payload)

        redirect: Optional[RedirectRequest] = None
        location = resp.headers.get("location")
        if 300 <= resp.status_code < 400 and location:
            redirect = _parse_redirect(location)

        captured_response = CapturedResponse(
            status_code=int(resp.status_code),
            content_length=len(resp.content),
            protocol=resp.http_version,
            headers=_multi_headers(resp.headers),
            redirect_request=redirect,
        )
        return captured_request, captured_response
