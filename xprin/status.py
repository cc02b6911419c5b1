"""Status of a test case or of one of its steps."""

from __future__ import annotations

from enum import Enum, auto


class Status(Enum):
    """Outcome of a test case, assertion or hook."""

    def _generate_next_value_(name, start, count, last_values):  # noqa: N805
        return name

    PASS = auto()
    FAIL = auto()
    SKIP = auto()
    ERROR = auto()

    def __str__(self) -> str:
        return self.value

    @property
    def symbol(self) -> str:
        """The marker shown in front of a line with this status."""
        return _SYMBOLS[self]


_SYMBOLS = {
    Status.PASS: "[✓]",
    Status.FAIL: "[x]",
    Status.SKIP: "[s]",
    Status.ERROR: "[!]",
}