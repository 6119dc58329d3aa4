from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from conformance_harness.suite.types import TestResult


class MissingResultError(KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"missing result for test={self.name!r}"


class ResultStore:
    """Index TestResults by test short name.

    A store is built once per run and is read-only after it is published.
    """

    def __init__(self, results: Iterable[TestResult] = ()) -> None:
        self._results: Dict[str, TestResult] = {}
        for result in results:
            if result.name in self._results:
                raise ValueError(f"duplicate result for test: {result.name}")
            self._results[result.name] = result

    def get(self, name: str) -> Optional[TestResult]:
        return self._results.get(str(name))

    def require(self, name: str) -> TestResult:
        result = self.get(name)
        if result is None:
            raise MissingResultError(str(name))
        return result

    def __contains__(self, name: object) -> bool:
        return str(name) in self._results

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[TestResult]:
        return iter(self._results.values())

    def names(self) -> list[str]:
        return sorted(self._results.keys())
