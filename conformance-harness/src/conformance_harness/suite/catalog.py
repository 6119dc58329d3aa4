"""Conformance test catalog.

Test modules register their tests here at import time, so adding a test does
not require touching the runner or the CLI.
"""

from __future__ import annotations

import importlib
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from conformance_harness.features.registry import Feature
from conformance_harness.suite.types import ConformanceTest, TestBody

_REGISTRY: Dict[str, ConformanceTest] = {}
_BUILTIN_TEST_MODULES = [
    "conformance_harness.examples.http_basic",
]
_BUILTINS_LOADED = False


def register_conformance_test(test: ConformanceTest) -> ConformanceTest:
    if test.short_name in _REGISTRY:
        raise ValueError(f"duplicate conformance test name: {test.short_name}")
    _REGISTRY[test.short_name] = test
    return test


def conformance_test(
    short_name: str,
    *,
    description: str = "",
    features: Iterable[Feature] = (),
    profiles: Iterable[str] = (),
    manifests: Sequence[str] = (),
) -> Callable[[TestBody], ConformanceTest]:
    """Decorator turning a test body into a registered ConformanceTest."""

    def _decorator(body: TestBody) -> ConformanceTest:
        return register_conformance_test(
            ConformanceTest(
                short_name=short_name,
                body=body,
                description=description or (body.__doc__ or "").strip(),
                features=frozenset(features),
                profiles=frozenset(profiles),
                manifests=tuple(manifests),
            )
        )

    return _decorator


def load_builtin_tests() -> None:
    """Import built-in test modules so they can register their tests."""

    global _BUILTINS_LOADED
    if _BUILTINS_LOADED:
        return

    for module_name in _BUILTIN_TEST_MODULES:
        importlib.import_module(module_name)
    _BUILTINS_LOADED = True


def available_tests(*, profiles: Optional[Iterable[str]] = None) -> List[ConformanceTest]:
    """Registered tests in registration order, optionally limited to `profiles`."""

    load_builtin_tests()
    tests = list(_REGISTRY.values())
    if profiles is None:
        return tests
    wanted = set(profiles)
    return [t for t in tests if t.profiles & wanted]


def get_test(short_name: str) -> ConformanceTest:
    load_builtin_tests()
    test = _REGISTRY.get(short_name)
    if test is None:
        raise KeyError(f"unknown conformance test: {short_name}")
    return test
