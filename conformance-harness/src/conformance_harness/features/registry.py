"""Feature registry.

A feature is a named, independently testable capability of the implementation
under test. The built-in catalog below is fixed; callers that need a different
catalog construct their own `FeatureRegistry`.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Iterator

Feature = str

# Core-level features.
SUPPORT_GATEWAY: Feature = "Gateway"
SUPPORT_REFERENCE_GRANT: Feature = "ReferenceGrant"
SUPPORT_HTTP_ROUTE: Feature = "HTTPRoute"
SUPPORT_TLS_ROUTE: Feature = "TLSRoute"
SUPPORT_MESH: Feature = "Mesh"

# Gateway extended features.
SUPPORT_GATEWAY_CLASS_OBSERVED_GENERATION_BUMP: Feature = "GatewayClassObservedGenerationBump"
SUPPORT_GATEWAY_PORT_8080: Feature = "GatewayPort8080"

# HTTPRoute extended features.
SUPPORT_HTTP_ROUTE_QUERY_PARAM_MATCHING: Feature = "HTTPRouteQueryParamMatching"
SUPPORT_HTTP_ROUTE_METHOD_MATCHING: Feature = "HTTPRouteMethodMatching"
SUPPORT_HTTP_ROUTE_RESPONSE_HEADER_MODIFICATION: Feature = "HTTPRouteResponseHeaderModification"
SUPPORT_HTTP_ROUTE_PORT_REDIRECT: Feature = "HTTPRoutePortRedirect"
SUPPORT_HTTP_ROUTE_SCHEME_REDIRECT: Feature = "HTTPRouteSchemeRedirect"
SUPPORT_HTTP_ROUTE_PATH_REDIRECT: Feature = "HTTPRoutePathRedirect"
SUPPORT_HTTP_ROUTE_HOST_REWRITE: Feature = "HTTPRouteHostRewrite"
SUPPORT_HTTP_ROUTE_PATH_REWRITE: Feature = "HTTPRoutePathRewrite"
SUPPORT_HTTP_ROUTE_REQUEST_MIRROR: Feature = "HTTPRouteRequestMirror"
SUPPORT_HTTP_ROUTE_REQUEST_MULTIPLE_MIRRORS: Feature = "HTTPRouteRequestMultipleMirrors"

GATEWAY_CORE_FEATURES = frozenset({SUPPORT_GATEWAY, SUPPORT_REFERENCE_GRANT})

GATEWAY_EXTENDED_FEATURES = frozenset(
    {
        SUPPORT_GATEWAY_CLASS_OBSERVED_GENERATION_BUMP,
        SUPPORT_GATEWAY_PORT_8080,
    }
)

HTTP_CORE_FEATURES = frozenset({SUPPORT_HTTP_ROUTE})

HTTP_EXTENDED_FEATURES = frozenset(
    {
        SUPPORT_HTTP_ROUTE_QUERY_PARAM_MATCHING,
        SUPPORT_HTTP_ROUTE_METHOD_MATCHING,
        SUPPORT_HTTP_ROUTE_RESPONSE_HEADER_MODIFICATION,
        SUPPORT_HTTP_ROUTE_PORT_REDIRECT,
        SUPPORT_HTTP_ROUTE_SCHEME_REDIRECT,
        SUPPORT_HTTP_ROUTE_PATH_REDIRECT,
        SUPPORT_HTTP_ROUTE_HOST_REWRITE,
        SUPPORT_HTTP_ROUTE_PATH_REWRITE,
        SUPPORT_HTTP_ROUTE_REQUEST_MIRROR,
        SUPPORT_HTTP_ROUTE_REQUEST_MULTIPLE_MIRRORS,
    }
)

TLS_CORE_FEATURES = frozenset({SUPPORT_TLS_ROUTE})

MESH_CORE_FEATURES = frozenset({SUPPORT_MESH})


def _normalize_feature(value: object) -> Feature:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"feature identifier must be a non-empty string: {value!r}")
    return value.strip()


class FeatureRegistry:
    """Closed catalog of known feature identifiers."""

    def __init__(self, features: Iterable[Feature]) -> None:
        self._features = frozenset(_normalize_feature(f) for f in features)

    def all(self) -> frozenset[Feature]:
        return self._features

    def has(self, feature: Feature) -> bool:
        return feature in self._features

    def __contains__(self, feature: object) -> bool:
        return feature in self._features

    def __iter__(self) -> Iterator[Feature]:
        return iter(sorted(self._features))

    def __len__(self) -> int:
        return len(self._features)

    def union(self, *feature_sets: AbstractSet[Feature]) -> frozenset[Feature]:
        out: set[Feature] = set()
        for features in feature_sets:
            out |= set(features)
        return frozenset(out)

    def complement(self, supported: AbstractSet[Feature]) -> frozenset[Feature]:
        """Return the registered features that are not in `supported`."""

        return self._features - frozenset(supported)

    def unknown(self, features: Iterable[Feature]) -> list[Feature]:
        return sorted({str(f) for f in features} - self._features)

    def extend(self, features: Iterable[Feature]) -> "FeatureRegistry":
        return FeatureRegistry(self._features | {_normalize_feature(f) for f in features})


ALL_FEATURES = (
    GATEWAY_CORE_FEATURES
    | GATEWAY_EXTENDED_FEATURES
    | HTTP_CORE_FEATURES
    | HTTP_EXTENDED_FEATURES
    | TLS_CORE_FEATURES
    | MESH_CORE_FEATURES
)

DEFAULT_FEATURE_REGISTRY = FeatureRegistry(ALL_FEATURES)
