from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Dict, List, Optional, Sequence

from conformance_harness.config.timeouts import TimeoutConfig, setup_timeout_config
from conformance_harness.errors import (
    ConcurrentRunError,
    ConfigurationError,
    DuplicateTestError,
    NotReadyError,
)
from conformance_harness.features.profiles import DEFAULT_PROFILE_CATALOG, ProfileCatalog
from conformance_harness.features.registry import Feature
from conformance_harness.reporting.compile import compile_report
from conformance_harness.reporting.types import UNSET_API_VERSION, ConformanceReport
from conformance_harness.roundtripper.base import RoundTripper
from conformance_harness.roundtripper.http import DefaultRoundTripper
from conformance_harness.suite.context import Applier, ClusterReadiness, HarnessContext
from conformance_harness.suite.store import ResultStore
from conformance_harness.suite.types import (
    OUTCOME_FAILED,
    OUTCOME_SKIPPED,
    ConformanceTest,
    TestResult,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_MANIFESTS = "base/manifests.yaml"
DEFAULT_GATEWAY_CLASS_NAME = "gateway-conformance"

INFRA_NAMESPACE = "gateway-conformance-infra"
APP_BACKEND_NAMESPACE = "gateway-conformance-app-backend"
WEB_BACKEND_NAMESPACE = "gateway-conformance-web-backend"

SETUP_NAMESPACES = (INFRA_NAMESPACE, APP_BACKEND_NAMESPACE, WEB_BACKEND_NAMESPACE)

# (namespace, secret name, hosts) installed during setup.
SETUP_CERTIFICATES = (
    (WEB_BACKEND_NAMESPACE, "certificate", ("*",)),
    (INFRA_NAMESPACE, "tls-validity-checks-certificate", ("*",)),
    (INFRA_NAMESPACE, "tls-passthrough-checks-certificate", ("abc.example.com",)),
)


@dataclass
class SuiteOptions:
    client: Any = None
    round_tripper: Optional[RoundTripper] = None
    gateway_class_name: str = DEFAULT_GATEWAY_CLASS_NAME
    debug: bool = False
    cleanup_base_resources: bool = True
    base_manifests: str = ""
    namespace_labels: Dict[str, str] = field(default_factory=dict)
    valid_unique_listener_ports: List[int] = field(default_factory=list)

    supported_features: Optional[AbstractSet[Feature]] = None
    enable_all_supported_features: bool = False
    conformance_profiles: AbstractSet[str] = field(default_factory=frozenset)

    skip_tests: Sequence[str] = ()
    run_test: Optional[str] = None

    timeout_config: Optional[TimeoutConfig] = None
    applier: Optional[Applier] = None
    readiness: Optional[ClusterReadiness] = None
    catalog: ProfileCatalog = DEFAULT_PROFILE_CATALOG
    api_version: str = UNSET_API_VERSION


class ConformanceTestSuite:
    """Runs conformance tests and reports on the last completed run.

    `run` and `report` may be called from different threads. At most one run
    is in progress per suite; a second `run`, or a `report` issued while a run
    is in progress, fails immediately instead of waiting.
    """

    def __init__(self, options: SuiteOptions) -> None:
        catalog = options.catalog
        explicit = frozenset(options.supported_features or ())
        profiles = frozenset(options.conformance_profiles or ())

        # callers must provide a conformance profile OR at minimum a list of
        # features they support.
        if not explicit and not profiles and not options.enable_all_supported_features:
            raise ConfigurationError(
                "no conformance profile was selected for test run, and no supported "
                "features were provided so no tests could be selected"
            )

        # a profile implicitly enables every feature it requires at Core level.
        profile_core = catalog.union_core_features(sorted(profiles))

        if options.enable_all_supported_features:
            supported = catalog.features.all()
        else:
            supported = explicit | profile_core
            unknown = catalog.features.unknown(explicit)
            if unknown:
                logger.warning("supported features not in the feature registry: %s", unknown)

        self.catalog = catalog
        self.conformance_profiles = profiles
        self.supported_features: frozenset[Feature] = frozenset(supported)
        self.unsupported_features: frozenset[Feature] = catalog.complement(supported)

        self.timeout_config = setup_timeout_config(options.timeout_config)
        self.round_tripper: RoundTripper = options.round_tripper or DefaultRoundTripper(
            timeout_config=self.timeout_config, debug=options.debug
        )
        self.client = options.client
        self.gateway_class_name = options.gateway_class_name
        self.controller_name: Optional[str] = None
        self.debug = bool(options.debug)
        self.cleanup = bool(options.cleanup_base_resources)
        self.base_manifests = options.base_manifests or DEFAULT_BASE_MANIFESTS
        self.namespace_labels = dict(options.namespace_labels)
        self.valid_unique_listener_ports = list(options.valid_unique_listener_ports)
        self.skip_tests = frozenset(options.skip_tests)
        self.run_test = options.run_test or None
        self.applier = options.applier
        self.readiness = options.readiness
        self.api_version = options.api_version

        self._lock = threading.Lock()
        self._running = False
        self._results = ResultStore()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    # ------------------------------------------------------------------
    # setup
    # ------------------------------------------------------------------

    def setup(self) -> None:
        """Install base resources and wait for them to become ready.

        Collaborator errors propagate unchanged: a failed setup aborts the run.
        """

        if self.applier is None or self.readiness is None:
            raise ConfigurationError("setup requires both an applier and a readiness collaborator")

        logger.info("Test Setup: Ensuring GatewayClass has been accepted")
        self.controller_name = self.readiness.gateway_class_must_be_accepted(
            self.client, self.timeout_config, self.gateway_class_name
        )

        logger.info("Test Setup: Applying base manifests")
        self.applier.must_apply_with_cleanup(
            self.client, self.timeout_config, self.base_manifests, self.cleanup
        )

        logger.info("Test Setup: Applying programmatic resources")
        for namespace, name, hosts in SETUP_CERTIFICATES:
            secret = self.applier.make_self_signed_cert_secret(namespace, name, list(hosts))
            self.applier.must_apply_objects_with_cleanup(
                self.client, self.timeout_config, [secret], self.cleanup
            )

        logger.info("Test Setup: Ensuring Gateways and Pods from base manifests are ready")
        self.readiness.namespaces_must_be_ready(
            self.client, self.timeout_config, list(SETUP_NAMESPACES)
        )

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------

    def harness_context(self) -> HarnessContext:
        return HarnessContext(
            client=self.client,
            round_tripper=self.round_tripper,
            timeout_config=self.timeout_config,
            gateway_class_name=self.gateway_class_name,
            controller_name=self.controller_name,
            applier=self.applier,
            readiness=self.readiness,
            supported_features=self.supported_features,
            cleanup=self.cleanup,
            debug=self.debug,
        )

    def skip_reason(self, test: ConformanceTest) -> Optional[str]:
        if self.run_test is not None and test.short_name != self.run_test:
            return f"only running {self.run_test}"
        if test.short_name in self.skip_tests:
            return "listed in skip_tests"
        missing = sorted(test.features - self.supported_features)
        if missing:
            return f"unsupported features: {', '.join(missing)}"
        return None

    def _apply_manifests(self, test: ConformanceTest, ctx: HarnessContext) -> None:
        if ctx.applier is None or not test.manifests:
            return
        for manifest in test.manifests:
            logger.debug("applying %s for %s", manifest, test.short_name)
            ctx.applier.must_apply_with_cleanup(
                ctx.client, ctx.timeout_config, manifest, ctx.cleanup
            )

    def _execute(self, test: ConformanceTest, ctx: HarnessContext) -> TestResult:
        reason = self.skip_reason(test)
        if reason is not None:
            logger.info("SKIP %s: %s", test.short_name, reason)
            return TestResult(test=test, result=OUTCOME_SKIPPED, message=reason)

        started = time.monotonic()
        try:
            self._apply_manifests(test, ctx)
            outcome = test.run(ctx)
        except Exception as e:
            outcome_result, message = OUTCOME_FAILED, f"{type(e).__name__}: {e}"
        else:
            outcome_result, message = outcome.result, outcome.message
        duration_s = time.monotonic() - started

        if outcome_result == OUTCOME_FAILED:
            logger.warning("FAIL %s (%.2fs): %s", test.short_name, duration_s, message)
        else:
            logger.info("%s %s (%.2fs)", outcome_result.upper(), test.short_name, duration_s)
        return TestResult(test=test, result=outcome_result, message=message, duration_s=duration_s)

    def run(self, tests: Sequence[ConformanceTest]) -> None:
        """Run `tests` in order and publish their results as one update.

        Raises ConcurrentRunError if a run is already in progress.
        """

        tests = list(tests)
        with self._lock:
            if self._running:
                raise ConcurrentRunError(
                    "can't run the test suite multiple times in parallel: "
                    "the test suite is already running"
                )
            seen: set[str] = set()
            for test in tests:
                if test.short_name in seen:
                    raise DuplicateTestError(
                        f"duplicate conformance test name: {test.short_name}"
                    )
                seen.add(test.short_name)
            self._running = True
            self._results = ResultStore()

        published = False
        try:
            ctx = self.harness_context()
            logger.info("Running %d conformance test(s)", len(tests))
            results = ResultStore(self._execute(test, ctx) for test in tests)

            with self._lock:
                self._results = results
                self._running = False
                published = True
        finally:
            if not published:
                with self._lock:
                    self._running = False

    # ------------------------------------------------------------------
    # report
    # ------------------------------------------------------------------

    def results(self) -> ResultStore:
        with self._lock:
            if self._running:
                raise NotReadyError("the test suite is currently running")
            return self._results

    def report(self) -> ConformanceReport:
        """Compile a ConformanceReport for the current result store.

        Before the first run this is an empty report. Raises NotReadyError
        while a run is in progress.
        """

        results = self.results()
        return compile_report(
            results,
            catalog=self.catalog,
            supported_features=self.supported_features,
            api_version=self.api_version,
        )
