from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, Optional

from conformance_harness.errors import ProfileNotFoundError
from conformance_harness.features.registry import (
    DEFAULT_FEATURE_REGISTRY,
    GATEWAY_CORE_FEATURES,
    HTTP_CORE_FEATURES,
    HTTP_EXTENDED_FEATURES,
    MESH_CORE_FEATURES,
    SUPPORT_GATEWAY_PORT_8080,
    TLS_CORE_FEATURES,
    Feature,
    FeatureRegistry,
)

HTTP_PROFILE_NAME = "HTTP"
TLS_PROFILE_NAME = "TLS"
MESH_PROFILE_NAME = "MESH"


@dataclass(frozen=True)
class ConformanceProfile:
    """Named bundle of required (Core) and optional (Extended) features."""

    name: str
    core_features: frozenset[Feature] = field(default_factory=frozenset)
    extended_features: frozenset[Feature] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("conformance profile name must be a non-empty string")
        object.__setattr__(self, "core_features", frozenset(self.core_features))
        object.__setattr__(self, "extended_features", frozenset(self.extended_features))
        overlap = self.core_features & self.extended_features
        if overlap:
            raise ValueError(
                f"profile {self.name!r}: features cannot be both core and extended: "
                f"{sorted(overlap)}"
            )

    def features(self) -> frozenset[Feature]:
        return self.core_features | self.extended_features


class ProfileCatalog:
    """Lookup of conformance profiles by name, backed by a feature registry."""

    def __init__(
        self,
        profiles: Iterable[ConformanceProfile],
        *,
        features: FeatureRegistry = DEFAULT_FEATURE_REGISTRY,
    ) -> None:
        self.features = features
        self._profiles: Dict[str, ConformanceProfile] = {}
        for profile in profiles:
            if profile.name in self._profiles:
                raise ValueError(f"duplicate conformance profile name: {profile.name}")
            unknown = features.unknown(profile.features())
            if unknown:
                raise ValueError(f"profile {profile.name!r} references unknown features: {unknown}")
            self._profiles[profile.name] = profile

    def resolve_profile(self, name: str) -> ConformanceProfile:
        profile = self._profiles.get(str(name))
        if profile is None:
            raise ProfileNotFoundError(str(name))
        return profile

    def get(self, name: str) -> Optional[ConformanceProfile]:
        return self._profiles.get(str(name))

    def __contains__(self, name: object) -> bool:
        return str(name) in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def names(self) -> list[str]:
        return sorted(self._profiles.keys())

    def profiles(self) -> list[ConformanceProfile]:
        return [self._profiles[name] for name in self.names()]

    def union_core_features(self, names: Iterable[str]) -> frozenset[Feature]:
        """Union of the Core features of every named profile.

        A run has to satisfy all selected profiles at once, so this is a union
        and not an intersection.
        """

        return self.features.union(*(self.resolve_profile(n).core_features for n in names))

    def complement(self, supported: AbstractSet[Feature]) -> frozenset[Feature]:
        return self.features.complement(supported)

    def with_profiles(
        self,
        profiles: Iterable[ConformanceProfile],
        *,
        extra_features: Iterable[Feature] = (),
    ) -> "ProfileCatalog":
        return ProfileCatalog(
            [*self._profiles.values(), *profiles],
            features=self.features.extend(extra_features),
        )


HTTP_CONFORMANCE_PROFILE = ConformanceProfile(
    name=HTTP_PROFILE_NAME,
    core_features=GATEWAY_CORE_FEATURES | HTTP_CORE_FEATURES,
    extended_features=HTTP_EXTENDED_FEATURES | {SUPPORT_GATEWAY_PORT_8080},
)

TLS_CONFORMANCE_PROFILE = ConformanceProfile(
    name=TLS_PROFILE_NAME,
    core_features=GATEWAY_CORE_FEATURES | TLS_CORE_FEATURES,
)

MESH_CONFORMANCE_PROFILE = ConformanceProfile(
    name=MESH_PROFILE_NAME,
    core_features=MESH_CORE_FEATURES,
    extended_features=HTTP_EXTENDED_FEATURES,
)

DEFAULT_PROFILE_CATALOG = ProfileCatalog(
    [HTTP_CONFORMANCE_PROFILE, TLS_CONFORMANCE_PROFILE, MESH_CONFORMANCE_PROFILE]
)
