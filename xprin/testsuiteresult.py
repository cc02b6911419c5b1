"""Result of running one test suite file."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import TextIO

from xprin.status import Status
from xprin.testcaseresult import TestCaseResult


def _display_path(path: str) -> str:
    """Return path relative to the working directory when it lies below it."""
    if not os.path.isabs(path):
        return path
    try:
        rel = os.path.relpath(path, os.getcwd())
    except (OSError, ValueError):
        return path
    if rel.startswith(".."):
        return path
    return rel


@dataclass
class TestSuiteResult:
    """The outcome of all test cases of one suite file."""

    __test__ = False

    file_path: str
    verbose: bool = False
    results: list[TestCaseResult] = field(default_factory=list)
    duration: float = 0.0
    status: Status = Status.PASS
    start_time: float = field(default_factory=time.monotonic)

    def add_result(self, result: TestCaseResult) -> None:
        """Add a test case result; a failed one fails the whole suite."""
        self.results.append(result)
        if result.status is Status.FAIL:
            self.status = Status.FAIL

    def complete(self) -> TestSuiteResult:
        """Record the elapsed time since the suite started."""
        self.duration = time.monotonic() - self.start_time
        return self

    def print(self, out: TextIO) -> None:
        """Write the suite summary line in the style of go test."""
        path = _display_path(self.file_path)
        if self.status is Status.FAIL:
            out.write(f"{Status.FAIL}\n{Status.FAIL}\t{path}\t{self.duration:.3f}s\n")
            return
        if self.verbose:
            out.write(f"{Status.PASS}\n")
        out.write(f"ok\t{path}\t{self.duration:.3f}s\n")

    def has_failures(self) -> bool:
        """Whether any test case in the suite failed."""
        return self.status is Status.FAIL

    def completed_tests(self) -> dict[str, TestCaseResult]:
        """Map each test case ID to its result, skipping cases without an ID."""
        return {result.id: result for result in self.results if result.id}