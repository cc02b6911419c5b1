"""Results of the individual steps of a test case."""

from __future__ import annotations

from dataclasses import dataclass

from xprin.status import Status


@dataclass(frozen=True)
class AssertionResult:
    """The outcome of one assertion."""

    name: str
    status: Status
    message: str = ""


class HookExitError(Exception):
    """A hook command ran but finished with a non-zero exit code."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"exit status {exit_code}")
        self.exit_code = exit_code


@dataclass(frozen=True)
class HookResult:
    """The outcome of one hook: its command, combined output and any error."""

    name: str
    command: str
    output: bytes = b""
    error: BaseException | None = None