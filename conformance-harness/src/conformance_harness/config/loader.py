from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from jsonschema import Draft202012Validator

from conformance_harness.config.timeouts import (
    TimeoutConfig,
    timeout_config_from_env,
    timeout_config_from_mapping,
)
from conformance_harness.errors import ConfigFileError
from conformance_harness.features.profiles import (
    DEFAULT_PROFILE_CATALOG,
    ConformanceProfile,
    ProfileCatalog,
)
from conformance_harness.suite.engine import DEFAULT_GATEWAY_CLASS_NAME, SuiteOptions

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"
SUITE_CONFIG_SCHEMA = SCHEMAS_DIR / "suite_config.schema.json"


def load_yaml_or_json(path: Path) -> Dict[str, Any]:
    """Load a YAML/JSON suite config into a dict.

    The top level must be a mapping. Every file problem surfaces as
    ConfigFileError so callers handle one error type.
    """
    if not path.exists():
        raise ConfigFileError(f"Config file not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ConfigFileError(f"Unsupported config file extension: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigFileError(f"Malformed config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(f"Top-level config must be an object: {path}")
    return data


def load_schema(schema_path: Path) -> Dict[str, Any]:
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise ConfigFileError(f"Schema must be an object: {schema_path}")
    return schema


def validate_against_schema(
    instance: Dict[str, Any],
    schema: Dict[str, Any],
    *,
    where: str,
) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        msgs = []
        for e in errors[:20]:
            loc = "/".join([str(p) for p in e.path])
            msgs.append(f"- {where}:{loc}: {e.message}")
        if len(errors) > 20:
            msgs.append(f"... ({len(errors)-20} more)")
        raise ConfigFileError("\n".join(msgs))


@dataclass
class SuiteConfig:
    gateway_class_name: str = DEFAULT_GATEWAY_CLASS_NAME
    base_manifests: str = ""
    cleanup_base_resources: bool = True
    debug: bool = False
    conformance_profiles: List[str] = field(default_factory=list)
    supported_features: List[str] = field(default_factory=list)
    enable_all_supported_features: bool = False
    skip_tests: List[str] = field(default_factory=list)
    run_test: Optional[str] = None
    namespace_labels: Dict[str, str] = field(default_factory=dict)
    valid_unique_listener_ports: List[int] = field(default_factory=list)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    extra_features: List[str] = field(default_factory=list)
    extra_profiles: List[ConformanceProfile] = field(default_factory=list)

    def catalog(self, base: ProfileCatalog = DEFAULT_PROFILE_CATALOG) -> ProfileCatalog:
        if not self.extra_profiles and not self.extra_features:
            return base
        try:
            return base.with_profiles(self.extra_profiles, extra_features=self.extra_features)
        except ValueError as e:
            raise ConfigFileError(str(e)) from e

    def to_options(self, **overrides: Any) -> SuiteOptions:
        """Build SuiteOptions; keyword overrides win over file values."""

        values: Dict[str, Any] = {
            "gateway_class_name": self.gateway_class_name,
            "base_manifests": self.base_manifests,
            "cleanup_base_resources": self.cleanup_base_resources,
            "debug": self.debug,
            "conformance_profiles": frozenset(self.conformance_profiles),
            "supported_features": frozenset(self.supported_features) or None,
            "enable_all_supported_features": self.enable_all_supported_features,
            "skip_tests": tuple(self.skip_tests),
            "run_test": self.run_test,
            "namespace_labels": dict(self.namespace_labels),
            "valid_unique_listener_ports": list(self.valid_unique_listener_ports),
            "timeout_config": self.timeouts,
            "catalog": self.catalog(),
        }
        values.update(overrides)
        return SuiteOptions(**values)


def _parse_extra_profiles(raw: Any) -> List[ConformanceProfile]:
    profiles: List[ConformanceProfile] = []
    for item in raw or []:
        try:
            profiles.append(
                ConformanceProfile(
                    name=str(item["name"]),
                    core_features=frozenset(item.get("core_features") or ()),
                    extended_features=frozenset(item.get("extended_features") or ()),
                )
            )
        except ValueError as e:
            raise ConfigFileError(str(e)) from e
    return profiles


def parse_suite_config(
    data: Mapping[str, Any],
    *,
    where: str = "suite_config",
    environ: Optional[Mapping[str, str]] = None,
) -> SuiteConfig:
    data = dict(data)
    validate_against_schema(data, load_schema(SUITE_CONFIG_SCHEMA), where=where)

    try:
        timeouts = timeout_config_from_mapping(data.get("timeouts") or {})
    except ValueError as e:
        raise ConfigFileError(f"{where}:timeouts: {e}") from e
    timeouts = timeout_config_from_env(timeouts, environ=environ)

    cfg = SuiteConfig(
        gateway_class_name=str(data.get("gateway_class_name") or DEFAULT_GATEWAY_CLASS_NAME),
        base_manifests=str(data.get("base_manifests") or ""),
        cleanup_base_resources=bool(data.get("cleanup_base_resources", True)),
        debug=bool(data.get("debug", False)),
        conformance_profiles=list(data.get("conformance_profiles") or []),
        supported_features=list(data.get("supported_features") or []),
        enable_all_supported_features=bool(data.get("enable_all_supported_features", False)),
        skip_tests=list(data.get("skip_tests") or []),
        run_test=data.get("run_test"),
        namespace_labels=dict(data.get("namespace_labels") or {}),
        valid_unique_listener_ports=list(data.get("valid_unique_listener_ports") or []),
        timeouts=timeouts,
        extra_features=list(data.get("extra_features") or []),
        extra_profiles=_parse_extra_profiles(data.get("extra_profiles")),
    )
    # surface catalog problems at load time rather than at suite construction.
    cfg.catalog()
    return cfg


def load_suite_config(path: Path, *, environ: Optional[Mapping[str, str]] = None) -> SuiteConfig:
    return parse_suite_config(load_yaml_or_json(Path(path)), where=str(path), environ=environ)
