from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

TIMEOUT_ENV_PREFIX = "CONF_HARNESS_TIMEOUT_"


@dataclass(frozen=True)
class TimeoutConfig:
    """Timeouts (seconds) shared by setup collaborators and test bodies.

    A zero value means "use the default"; see `setup_timeout_config`.
    """

    create_timeout_s: float = 0.0
    delete_timeout_s: float = 0.0
    get_timeout_s: float = 0.0
    gateway_must_have_address_s: float = 0.0
    gateway_status_must_have_listeners_s: float = 0.0
    gateway_listeners_must_have_conditions_s: float = 0.0
    gateway_class_must_be_accepted_s: float = 0.0
    http_route_must_not_have_parents_s: float = 0.0
    http_route_must_have_condition_s: float = 0.0
    tls_route_must_have_condition_s: float = 0.0
    route_must_have_parents_s: float = 0.0
    manifest_fetch_timeout_s: float = 0.0
    max_time_to_consistency_s: float = 0.0
    namespaces_must_be_ready_s: float = 0.0
    request_timeout_s: float = 0.0
    required_consecutive_successes: int = 0

    def to_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_TIMEOUT_CONFIG = TimeoutConfig(
    create_timeout_s=60.0,
    delete_timeout_s=10.0,
    get_timeout_s=10.0,
    gateway_must_have_address_s=180.0,
    gateway_status_must_have_listeners_s=60.0,
    gateway_listeners_must_have_conditions_s=60.0,
    gateway_class_must_be_accepted_s=180.0,
    http_route_must_not_have_parents_s=60.0,
    http_route_must_have_condition_s=60.0,
    tls_route_must_have_condition_s=60.0,
    route_must_have_parents_s=60.0,
    manifest_fetch_timeout_s=10.0,
    max_time_to_consistency_s=30.0,
    namespaces_must_be_ready_s=300.0,
    request_timeout_s=10.0,
    required_consecutive_successes=3,
)


def setup_timeout_config(cfg: Optional[TimeoutConfig] = None) -> TimeoutConfig:
    """Fill every unset (zero) field of `cfg` with its default."""

    if cfg is None:
        return DEFAULT_TIMEOUT_CONFIG
    updates = {}
    for f in fields(cfg):
        if not getattr(cfg, f.name):
            updates[f.name] = getattr(DEFAULT_TIMEOUT_CONFIG, f.name)
    return replace(cfg, **updates)


def _coerce(name: str, raw: object) -> float | int:
    if name == "required_consecutive_successes":
        return int(raw)  # type: ignore[arg-type]
    return float(raw)  # type: ignore[arg-type]


def timeout_config_from_mapping(values: Mapping[str, object]) -> TimeoutConfig:
    known = {f.name for f in fields(TimeoutConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"unknown timeout fields: {unknown}")
    return TimeoutConfig(**{k: _coerce(k, v) for k, v in values.items()})


def timeout_config_from_env(
    base: Optional[TimeoutConfig] = None,
    *,
    prefix: str = TIMEOUT_ENV_PREFIX,
    environ: Optional[Mapping[str, str]] = None,
) -> TimeoutConfig:
    """Apply `<prefix><FIELD_NAME>` environment overrides on top of `base`.

    Values that do not parse are ignored.
    """

    env = os.environ if environ is None else environ
    cfg = base or TimeoutConfig()
    updates = {}
    for f in fields(cfg):
        raw = env.get(prefix + f.name.upper())
        if raw is None or not raw.strip():
            continue
        try:
            updates[f.name] = _coerce(f.name, raw.strip())
        except ValueError:
            continue
    return replace(cfg, **updates)
