"""Conformance harness.

Provides:
- a feature registry and named conformance profiles (Core vs Extended)
- a run engine that executes a catalog of conformance tests one run at a time
- a report compiler that rolls per-test outcomes up into per-profile status

Cluster bootstrapping and the bodies of individual tests live outside this
package; they are plugged in through the protocols in `suite.context`.
"""

__all__ = [
    "cli",
    "config",
    "errors",
    "examples",
    "features",
    "reporting",
    "roundtripper",
    "suite",
]
