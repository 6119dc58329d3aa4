"""Feature registry and conformance profile catalog."""

from __future__ import annotations

from conformance_harness.features.profiles import (
    DEFAULT_PROFILE_CATALOG,
    HTTP_PROFILE_NAME,
    MESH_PROFILE_NAME,
    TLS_PROFILE_NAME,
    ConformanceProfile,
    ProfileCatalog,
)
from conformance_harness.features.registry import (
    ALL_FEATURES,
    DEFAULT_FEATURE_REGISTRY,
    Feature,
    FeatureRegistry,
)

__all__ = [
    "ALL_FEATURES",
    "DEFAULT_FEATURE_REGISTRY",
    "DEFAULT_PROFILE_CATALOG",
    "HTTP_PROFILE_NAME",
    "MESH_PROFILE_NAME",
    "TLS_PROFILE_NAME",
    "ConformanceProfile",
    "Feature",
    "FeatureRegistry",
    "ProfileCatalog",
]
