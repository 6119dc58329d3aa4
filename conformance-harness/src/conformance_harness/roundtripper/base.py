from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable


class RoundTripError(RuntimeError):
    pass


@dataclass(frozen=True)
class Request:
    url: str
    host: str = ""
    method: str = "GET"
    protocol: str = "HTTP"
    headers: Mapping[str, List[str]] = field(default_factory=dict)
    unfollow_redirect: bool = False


@dataclass(frozen=True)
class CapturedRequest:
    """Request as seen by the echo backend that served it."""

    path: str = ""
    host: str = ""
    method: str = ""
    protocol: str = ""
    headers: Dict[str, List[str]] = field(default_factory=dict)
    namespace: str = ""
    pod: str = ""

    @classmethod
    def from_echo_payload(cls, payload: Mapping[str, Any]) -> "CapturedRequest":
        raw_headers = payload.get("headers")
        headers: Dict[str, List[str]] = {}
        if isinstance(raw_headers, Mapping):
            for key, value in raw_headers.items():
                if isinstance(value, list):
                    headers[str(key)] = [str(v) for v in value]
                else:
                    headers[str(key)] = [str(value)]
        return cls(
            path=str(payload.get("path") or ""),
            host=str(payload.get("host") or ""),
            method=str(payload.get("method") or ""),
            protocol=str(payload.get("proto") or payload.get("protocol") or ""),
            headers=headers,
            namespace=str(payload.get("namespace") or ""),
            pod=str(payload.get("pod") or ""),
        )


@dataclass(frozen=True)
class RedirectRequest:
    scheme: str
    host: str
    port: str
    path: str


@dataclass(frozen=True)
class CapturedResponse:
    status_code: int
    content_length: int = 0
    protocol: str = ""
    headers: Dict[str, List[str]] = field(default_factory=dict)
    redirect_request: Optional[RedirectRequest] = None


@runtime_checkable
class RoundTripper(Protocol):
    def capture_round_trip(self, request: Request) -> Tuple[CapturedRequest, CapturedResponse]: ...
