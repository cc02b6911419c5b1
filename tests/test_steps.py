import dataclasses

import pytest

from xprin.status import Status
from xprin.steps import AssertionResult, HookExitError, HookResult


def test_assertion_result_keeps_fields():
    result = AssertionResult("count", Status.FAIL, "want 2, got 1")
    assert (result.name, result.status, result.message) == ("count", Status.FAIL, "want 2, got 1")


def test_assertion_result_equality():
    assert AssertionResult("a", Status.PASS, "ok") == AssertionResult("a", Status.PASS, "ok")
    assert AssertionResult("a", Status.PASS, "ok") != AssertionResult("a", Status.FAIL, "ok")


def test_assertion_result_is_immutable():
    result = AssertionResult("a", Status.PASS)
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.status = Status.FAIL


def test_hook_result_defaults():
    result = HookResult("setup", "echo hi")
    assert result.output == b""
    assert result.error is None
    assert result.command == "echo hi"


def test_hook_result_keeps_error():
    error = HookExitError(3)
    result = HookResult("", "false", b"boom\n", error)
    assert result.error is error
    assert result.output == b"boom\n"


def test_hook_exit_error_carries_code():
    error = HookExitError(2)
    assert error.exit_code == 2
    assert str(error) == "exit status 2"
    with pytest.raises(HookExitError) as info:
        raise error
    assert info.value.exit_code == 2