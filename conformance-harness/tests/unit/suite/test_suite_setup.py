from __future__ import annotations

import pytest
from fakes import FakeApplier, FakeReadiness

from conformance_harness.errors import ConfigurationError
from conformance_harness.suite.engine import (
    SETUP_CERTIFICATES,
    SETUP_NAMESPACES,
    ConformanceTestSuite,
    SuiteOptions,
)


def _suite(**kwargs) -> ConformanceTestSuite:
    return ConformanceTestSuite(SuiteOptions(enable_all_supported_features=True, **kwargs))


def test_setup_applies_base_resources_and_waits_for_namespaces() -> None:
    applier = FakeApplier()
    readiness = FakeReadiness(controller_name="acme.io/gateway")
    suite = _suite(applier=applier, readiness=readiness, base_manifests="custom/base.yaml")

    suite.setup()

    assert suite.controller_name == "acme.io/gateway"
    assert suite.harness_context().controller_name == "acme.io/gateway"
    assert readiness.calls[0] == ("gateway_class", "gateway-conformance")
    assert readiness.calls[-1] == ("namespaces", SETUP_NAMESPACES)

    assert applier.calls[0] == ("apply_manifest", "custom/base.yaml", True)
    secrets = [c for c in applier.calls if c[0] == "make_secret"]
    assert [(ns, name, hosts) for _, ns, name, hosts in secrets] == [
        (ns, name, tuple(hosts)) for ns, name, hosts in SETUP_CERTIFICATES
    ]
    assert len([c for c in applier.calls if c[0] == "apply_objects"]) == len(SETUP_CERTIFICATES)


def test_setup_failure_propagates() -> None:
    applier = FakeApplier(fail_on_manifest="base/manifests.yaml")
    readiness = FakeReadiness()
    suite = _suite(applier=applier, readiness=readiness)

    with pytest.raises(RuntimeError, match=r"failed to apply"):
        suite.setup()
    assert ("namespaces", SETUP_NAMESPACES) not in readiness.calls


def test_setup_requires_collaborators() -> None:
    with pytest.raises(ConfigurationError, match=r"applier"):
        _suite(readiness=FakeReadiness()).setup()
