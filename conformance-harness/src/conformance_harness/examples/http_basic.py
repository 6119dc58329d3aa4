"""Built-in HTTPRoute conformance tests.

Each test resolves the address of its Gateway through the readiness
collaborator and probes it with the shared round-tripper. The routes and
backends are installed from the manifests named on each test.
"""

from __future__ import annotations

from conformance_harness.features.profiles import HTTP_PROFILE_NAME
from conformance_harness.features.registry import (
    SUPPORT_GATEWAY,
    SUPPORT_HTTP_ROUTE,
    SUPPORT_HTTP_ROUTE_METHOD_MATCHING,
    SUPPORT_HTTP_ROUTE_QUERY_PARAM_MATCHING,
    SUPPORT_HTTP_ROUTE_RESPONSE_HEADER_MODIFICATION,
)
from conformance_harness.roundtripper.expect import (
    ExpectedResponse,
    make_request_and_expect_eventually_consistent_response,
)
from conformance_harness.suite.catalog import conformance_test
from conformance_harness.suite.context import HarnessContext
from conformance_harness.suite.engine import INFRA_NAMESPACE

SAME_NAMESPACE_GATEWAY = "same-namespace"

_HTTP_CORE = (SUPPORT_GATEWAY, SUPPORT_HTTP_ROUTE)


def gateway_address(ctx: HarnessContext, gateway_name: str = SAME_NAMESPACE_GATEWAY) -> str:
    if ctx.readiness is None:
        raise AssertionError("no readiness collaborator configured to resolve the gateway address")
    address = ctx.readiness.gateway_must_have_address(
        ctx.client, ctx.timeout_config, INFRA_NAMESPACE, gateway_name
    )
    if not address:
        raise AssertionError(f"gateway {INFRA_NAMESPACE}/{gateway_name} has no address")
    return address


def _expect_all(ctx: HarnessContext, expectations: list[ExpectedResponse]) -> None:
    address = gateway_address(ctx)
    for expected in expectations:
        make_request_and_expect_eventually_consistent_response(
            ctx.round_tripper, ctx.timeout_config, address, expected
        )


@conformance_test(
    "HTTPRouteSimpleSameNamespace",
    features=_HTTP_CORE,
    profiles=[HTTP_PROFILE_NAME],
    manifests=["tests/httproute-simple-same-namespace.yaml"],
)
def http_route_simple_same_namespace(ctx: HarnessContext) -> None:
    """A single HTTPRoute in the gateway namespace attaches and routes traffic."""

    _expect_all(
        ctx,
        [ExpectedResponse(path="/", backend="infra-backend-v1", namespace=INFRA_NAMESPACE)],
    )


@conformance_test(
    "HTTPRouteQueryParamMatching",
    features=(*_HTTP_CORE, SUPPORT_HTTP_ROUTE_QUERY_PARAM_MATCHING),
    profiles=[HTTP_PROFILE_NAME],
    manifests=["tests/httproute-query-param-matching.yaml"],
)
def http_route_query_param_matching(ctx: HarnessContext) -> None:
    """Query parameter matches select between backends."""

    _expect_all(
        ctx,
        [
            ExpectedResponse(
                path="/?animal=whale", backend="infra-backend-v1", namespace=INFRA_NAMESPACE
            ),
            ExpectedResponse(
                path="/?animal=dolphin", backend="infra-backend-v2", namespace=INFRA_NAMESPACE
            ),
            ExpectedResponse(path="/?animal=shark", status_code=404),
        ],
    )


@conformance_test(
    "HTTPRouteMethodMatching",
    features=(*_HTTP_CORE, SUPPORT_HTTP_ROUTE_METHOD_MATCHING),
    profiles=[HTTP_PROFILE_NAME],
    manifests=["tests/httproute-method-matching.yaml"],
)
def http_route_method_matching(ctx: HarnessContext) -> None:
    """HTTP method matches select between backends."""

    _expect_all(
        ctx,
        [
            ExpectedResponse(
                path="/", method="POST", backend="infra-backend-v1", namespace=INFRA_NAMESPACE
            ),
            ExpectedResponse(
                path="/", method="GET", backend="infra-backend-v2", namespace=INFRA_NAMESPACE
            ),
        ],
    )


@conformance_test(
    "HTTPRouteResponseHeaderModifier",
    features=(*_HTTP_CORE, SUPPORT_HTTP_ROUTE_RESPONSE_HEADER_MODIFICATION),
    profiles=[HTTP_PROFILE_NAME],
    manifests=["tests/httproute-response-header-modifier.yaml"],
)
def http_route_response_header_modifier(ctx: HarnessContext) -> None:
    """ResponseHeaderModifier filters set and remove response headers."""

    _expect_all(
        ctx,
        [
            ExpectedResponse(
                path="/set",
                backend="infra-backend-v1",
                namespace=INFRA_NAMESPACE,
                response_headers={"X-Header-Set": "set-overwrites-values"},
            ),
            ExpectedResponse(
                path="/remove",
                backend="infra-backend-v1",
                namespace=INFRA_NAMESPACE,
                absent_response_headers=["X-Header-Remove"],
            ),
        ],
    )
