from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from conformance_harness.config.loader import SuiteConfig, load_suite_config
from conformance_harness.config.timeouts import TimeoutConfig
from conformance_harness.errors import ConformanceError
from conformance_harness.reporting.write import render_report, write_report
from conformance_harness.suite.catalog import available_tests
from conformance_harness.suite.engine import ConformanceTestSuite

logger = logging.getLogger(__name__)


class StaticGatewayReadiness:
    """Readiness collaborator for an implementation that is already running.

    Every Gateway resolves to the same address and nothing is waited on.
    """

    def __init__(self, address: str, *, controller_name: str = "static") -> None:
        self.address = address
        self.controller_name = controller_name

    def gateway_class_must_be_accepted(
        self, client: Any, timeouts: TimeoutConfig, gateway_class_name: str
    ) -> str:
        return self.controller_name

    def namespaces_must_be_ready(
        self, client: Any, timeouts: TimeoutConfig, namespaces: Sequence[str]
    ) -> None:
        return None

    def gateway_must_have_address(
        self, client: Any, timeouts: TimeoutConfig, namespace: str, gateway_name: str
    ) -> str:
        return self.address


def _split_csv(value: Optional[str]) -> list[str]:
    out: list[str] = []
    for raw in str(value or "").split(","):
        s = raw.strip()
        if s:
            out.append(s)
    return out


def _cmd_list_profiles(cfg: SuiteConfig) -> int:
    catalog = cfg.catalog()
    for profile in catalog.profiles():
        print(f"{profile.name}")
        print(f"  core:     {', '.join(sorted(profile.core_features)) or '-'}")
        print(f"  extended: {', '.join(sorted(profile.extended_features)) or '-'}")
    return 0


def _cmd_list_features(cfg: SuiteConfig) -> int:
    for feature in cfg.catalog().features:
        print(feature)
    return 0


def _cmd_list_tests() -> int:
    tests = available_tests()
    print(f"Registered {len(tests)} conformance test(s)")
    for t in tests:
        print(f"- {t.short_name}\t{','.join(sorted(t.profiles))}\t{','.join(sorted(t.features))}")
    return 0


def _cmd_run(
    cfg: SuiteConfig,
    *,
    gateway_address: str,
    report_output: Optional[Path],
    overrides: dict[str, Any],
) -> int:
    options = cfg.to_options(readiness=StaticGatewayReadiness(gateway_address), **overrides)
    try:
        suite = ConformanceTestSuite(options)
    except ConformanceError as e:
        raise SystemExit(f"invalid suite configuration: {e}") from e

    logger.info(
        "supported features: %s", ", ".join(sorted(suite.supported_features)) or "(none)"
    )
    logger.info("skipping cluster setup: running against static gateway %s", gateway_address)

    suite.run(available_tests())
    report = suite.report()

    if report_output is not None:
        write_report(report, report_output)
        logger.info("wrote conformance report: %s", report_output)
    else:
        print(render_report(report, fmt="yaml").rstrip())

    failed = [r.name for r in suite.results() if r.failed]
    if failed:
        logger.warning("%d test(s) failed: %s", len(failed), ", ".join(sorted(failed)))
        return 2
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run the conformance suite against a gateway and report per-profile status."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Suite config file (YAML or JSON); CLI flags override its values",
    )
    parser.add_argument(
        "--profiles",
        type=str,
        default=None,
        help="Comma-separated conformance profiles (example: HTTP,TLS)",
    )
    parser.add_argument(
        "--supported_features",
        type=str,
        default=None,
        help="Comma-separated features the implementation supports",
    )
    parser.add_argument(
        "--all_features",
        action="store_true",
        help="Claim support for every known feature",
    )
    parser.add_argument(
        "--skip_tests",
        type=str,
        default=None,
        help="Comma-separated test short names to skip",
    )
    parser.add_argument("--run_test", type=str, default=None, help="Only run this test")
    parser.add_argument(
        "--gateway_address",
        type=str,
        default=None,
        help="host[:port] of the gateway under test (required to run)",
    )
    parser.add_argument(
        "--report_output",
        type=Path,
        default=None,
        help="Write the report here (.json, .yaml or .yml); default prints YAML to stdout",
    )
    parser.add_argument("--list_profiles", action="store_true", help="List profiles and exit")
    parser.add_argument("--list_features", action="store_true", help="List features and exit")
    parser.add_argument("--list_tests", action="store_true", help="List tests and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        cfg = load_suite_config(args.config) if args.config is not None else SuiteConfig()
    except ConformanceError as e:
        raise SystemExit(f"invalid suite config: {e}") from e

    if args.list_profiles:
        return _cmd_list_profiles(cfg)
    if args.list_features:
        return _cmd_list_features(cfg)
    if args.list_tests:
        return _cmd_list_tests()

    if not args.gateway_address:
        parser.error("--gateway_address is required to run the suite")

    overrides: dict[str, Any] = {}
    if args.profiles is not None:
        overrides["conformance_profiles"] = frozenset(_split_csv(args.profiles))
    if args.supported_features is not None:
        overrides["supported_features"] = frozenset(_split_csv(args.supported_features)) or None
    if args.all_features:
        overrides["enable_all_supported_features"] = True
    if args.skip_tests is not None:
        overrides["skip_tests"] = tuple(_split_csv(args.skip_tests))
    if args.run_test is not None:
        overrides["run_test"] = args.run_test
    if args.debug:
        overrides["debug"] = True

    return _cmd_run(
        cfg,
        gateway_address=args.gateway_address,
        report_output=args.report_output,
        overrides=overrides,
    )


if __name__ == "__main__":
    raise SystemExit(main())
