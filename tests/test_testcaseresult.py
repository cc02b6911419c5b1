import io

import pytest

from xprin.status import Status
from xprin.steps import AssertionResult, HookExitError, HookResult
from xprin.testcaseresult import Outputs, TestCaseResult

RENDER = b"""apiVersion: v1
kind: Pod
metadata:
  name: first
---
apiVersion: v1
kind: Service
metadata:
  name: second
"""


def _printed(result):
    buf = io.StringIO()
    result.print(buf)
    return buf.getvalue()


def test_new_result_defaults():
    result = TestCaseResult("case", "case-id")
    assert result.status is Status.PASS
    assert result.error is None
    assert result.outputs == Outputs()
    assert result.outputs.rendered == {}


def test_fail_sets_error_and_returns_self():
    result = TestCaseResult("case")
    err = RuntimeError("boom")
    returned = result.fail(err)
    assert returned is result
    assert result.status is Status.FAIL
    assert result.error is err
    assert result.duration >= 0


def test_skip():
    result = TestCaseResult("case")
    result.skip()
    assert result.status is Status.SKIP


def test_fail_render_formats_raw_output():
    result = TestCaseResult("case")
    result.raw_render_output = b"line1\nline2\n"
    result.fail_render()
    assert result.status is Status.FAIL
    assert result.error is None
    lines = result.formatted_render_output.splitlines()
    assert lines[0] == "    Render:"
    assert lines[1] == "        [!] line1"
    assert lines[2] == "             line2"


def test_process_render_output_builds_tree():
    result = TestCaseResult("case", verbose=True, show_render=True)
    result.process_render_output(RENDER)
    assert [r["kind"] for r in result.rendered_resources] == ["Pod", "Service"]
    lines = result.formatted_render_output.splitlines()
    assert lines == ["    Render:", "        ├── Pod/first", "        └── Service/second"]


def test_process_render_output_hidden_when_not_verbose():
    result = TestCaseResult("case", show_render=True)
    result.process_render_output(RENDER)
    assert len(result.rendered_resources) == 2
    assert result.formatted_render_output == ""


def test_process_render_output_rejects_missing_kind():
    result = TestCaseResult("case")
    with pytest.raises(ValueError):
        result.process_render_output(b"metadata:\n  name: x\n")


def test_process_render_output_rejects_bad_yaml():
    result = TestCaseResult("case")
    with pytest.raises(ValueError):
        result.process_render_output(b"a: b: :")


def test_validate_failure_filters_successes():
    result = TestCaseResult("case")
    result.raw_validate_output = b"[x] bad thing\n[\xe2\x9c\x93] ok validated successfully\n"
    err = result.mark_validate_failed()
    assert result.has_failed_validate
    assert "validated successfully" not in result.formatted_validate_output
    assert result.formatted_validate_output.startswith("    Validate:\n        [x] bad thing")
    assert str(err) == result.formatted_validate_output


def test_validate_shown_in_full_with_show_validate():
    result = TestCaseResult("case", verbose=True, show_validate=True)
    result.raw_validate_output = b"one\ntwo validated successfully"
    result.process_validate_output()
    assert "two validated successfully" in result.formatted_validate_output
    assert result.formatted_validate_output.count("\n        ") == 2


def test_pre_test_hook_exit_error_shown():
    result = TestCaseResult("case")
    result.pre_test_hooks_results = [
        HookResult("setup", "make setup", b"out1\nout2\n", HookExitError(3)),
        HookResult("", "true"),
    ]
    result.process_pre_test_hooks_output()
    assert result.has_failed_pre_test_hooks
    lines = result.formatted_pre_test_hooks_output.splitlines()
    assert lines[0] == "    Pre-test Hooks:"
    assert lines[1] == "        [x] setup [exit code: 3]"
    assert lines[2:] == ["            out1", "            out2"]


def test_post_test_hook_other_error_and_pass_in_verbose():
    result = TestCaseResult("case", verbose=True, show_hooks=True)
    result.post_test_hooks_results = [
        HookResult("", "echo hi"),
        HookResult("tmpl", "bad {{", b"", ValueError("boom")),
    ]
    result.process_post_test_hooks_output()
    assert result.has_failed_post_test_hooks
    assert result.has_pipeline_failure()
    text = result.formatted_post_test_hooks_output
    assert "        [✓] echo hi" in text
    assert "        [!] tmpl\n            error: boom" in text


def test_passing_hooks_hidden_when_not_verbose():
    result = TestCaseResult("case")
    result.post_test_hooks_results = [HookResult("", "true")]
    result.process_post_test_hooks_output()
    assert not result.has_failed_post_test_hooks
    assert result.formatted_post_test_hooks_output == ""


def test_assertions_failed_shows_only_failures():
    result = TestCaseResult("case")
    result.assertions_results = [
        AssertionResult("count", Status.PASS, "ok"),
        AssertionResult("exists", Status.FAIL, "missing"),
    ]
    result.process_assertions_output()
    assert result.has_failed_assertions
    assert "[✓] count - ok" in result.raw_assertions_output
    assert "count" not in result.formatted_assertions_output
    assert "        [x] exists - missing" in result.formatted_assertions_output
    err = result.mark_assertions_failed()
    assert str(err) == result.formatted_assertions_output


def test_assertions_total_line_counts():
    result = TestCaseResult("case")
    result.assertions_results = [
        AssertionResult("a", Status.PASS, "ok"),
        AssertionResult("b", Status.FAIL, "no"),
        AssertionResult("c", Status.ERROR, "oops"),
    ]
    result.process_assertions_output()
    assert result.raw_assertions_output.splitlines()[-1] == (
        "Total: 3 assertions, 1 successful, 1 failed, 1 error"
    )


def test_assertions_all_passing_hidden_and_multiline_raw():
    result = TestCaseResult("case")
    result.assertions_results = [AssertionResult("diff", Status.PASS, "l1\nl2")]
    result.process_assertions_output()
    assert not result.has_failed_assertions
    assert result.formatted_assertions_output == ""
    raw = result.raw_assertions_output.splitlines()
    assert raw[0] == "Assertions:"
    assert raw[1] == "[✓] diff"
    assert raw[2:4] == ["            l1", "            l2"]
    assert raw[-1].endswith("0 errors")


def test_print_quiet_for_passing_non_verbose():
    result = TestCaseResult("case").complete()
    assert _printed(result) == ""


def test_print_failure_with_error_block():
    result = TestCaseResult("case")
    result.fail(RuntimeError("first\nsecond"))
    text = _printed(result)
    assert text.startswith("--- FAIL: case (")
    assert "    [!] first\n    [!] second\n" in text


def test_print_verbose_run_line():
    result = TestCaseResult("case", verbose=True).complete()
    text = _printed(result)
    assert text.startswith("=== RUN   case\n--- PASS: case")


def test_print_failed_validate_does_not_duplicate():
    result = TestCaseResult("case")
    result.raw_validate_output = b"problem"
    result.fail(result.mark_validate_failed())
    text = _printed(result)
    assert text.count("Validate:") == 1
    assert "problem" in text