from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from conformance_harness.config.timeouts import TimeoutConfig
from conformance_harness.features.registry import Feature
from conformance_harness.roundtripper.base import RoundTripper


@runtime_checkable
class Applier(Protocol):
    """Installs manifests and objects into the cluster under test.

    The `must_*` methods raise on failure; the suite does not catch them.
    """

    def must_apply_with_cleanup(
        self,
        client: Any,
        timeouts: TimeoutConfig,
        manifest_path: str,
        cleanup: bool,
    ) -> None: ...

    def must_apply_objects_with_cleanup(
        self,
        client: Any,
        timeouts: TimeoutConfig,
        objects: Sequence[Any],
        cleanup: bool,
    ) -> None: ...

    def make_self_signed_cert_secret(
        self,
        namespace: str,
        name: str,
        hosts: Sequence[str],
    ) -> Any: ...


@runtime_checkable
class ClusterReadiness(Protocol):
    def gateway_class_must_be_accepted(
        self,
        client: Any,
        timeouts: TimeoutConfig,
        gateway_class_name: str,
    ) -> str: ...

    def namespaces_must_be_ready(
        self,
        client: Any,
        timeouts: TimeoutConfig,
        namespaces: Sequence[str],
    ) -> None: ...

    def gateway_must_have_address(
        self,
        client: Any,
        timeouts: TimeoutConfig,
        namespace: str,
        gateway_name: str,
    ) -> str: ...


@dataclass(frozen=True)
class HarnessContext:
    """Shared execution environment handed to every test body."""

    client: Any
    round_tripper: RoundTripper
    timeout_config: TimeoutConfig
    gateway_class_name: str
    controller_name: Optional[str] = None
    applier: Optional[Applier] = None
    readiness: Optional[ClusterReadiness] = None
    supported_features: frozenset[Feature] = field(default_factory=frozenset)
    cleanup: bool = True
    debug: bool = False

    def supports(self, feature: Feature) -> bool:
        return feature in self.supported_features
