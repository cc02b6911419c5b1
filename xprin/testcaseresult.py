"""Result of a single test case and its display formatting."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, TextIO

import yaml

from xprin.status import Status
from xprin.steps import AssertionResult, HookExitError, HookResult

SPACES = "    "
MULTILINE_BODY_INDENT = SPACES * 3

_PRE_TEST = "pre-test"
_POST_TEST = "post-test"


def _indent_multiline_body(indent: str, body: str) -> str:
    trimmed = body.removesuffix("\n")
    if trimmed == "":
        return ""
    return indent + trimmed.replace("\n", "\n" + indent)


def _format_error_block(message: str) -> str:
    """Prefix each line of an error with the error marker, aligned with the sections."""
    if message == "":
        return ""
    if message.startswith(SPACES):
        return message
    lines = [
        f"{SPACES}{Status.ERROR.symbol} {line.strip()}"
        for line in message.removesuffix("\n").split("\n")
        if line.strip()
    ]
    return "\n".join(lines) + "\n"


def _pluralize(word: str, count: int) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _resource_kind(resource: dict[str, Any]) -> str:
    kind = resource.get("kind", "")
    return kind if isinstance(kind, str) else ""


def _resource_name(resource: dict[str, Any]) -> str:
    metadata = resource.get("metadata")
    if not isinstance(metadata, dict):
        return ""
    name = metadata.get("name", "")
    return name if isinstance(name, str) else ""


def _parse_render_output(output: bytes) -> list[dict[str, Any]]:
    try:
        documents = list(yaml.safe_load_all(output.decode("utf-8")))
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ValueError(f"failed to parse render output: {exc}") from exc

    resources = []
    for document in documents:
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ValueError("render output document is not a mapping")
        if not _resource_kind(document):
            raise ValueError("Object 'Kind' is missing in render output document")
        resources.append(document)
    return resources


@dataclass
class Outputs:
    """Paths and counts made available to post-test hooks."""

    render: str = ""
    xr: str = ""
    validate: str | None = None
    assertions: str | None = None
    render_count: int = 0
    rendered: dict[str, str] = field(default_factory=dict)


@dataclass
class TestCaseResult:
    """The outcome of one test case, with its formatted sections."""

    __test__ = False

    name: str
    id: str = ""
    verbose: bool = False
    show_render: bool = False
    show_validate: bool = False
    show_hooks: bool = False
    show_assertions: bool = False

    status: Status = Status.PASS
    error: BaseException | None = None
    duration: float = 0.0
    start_time: float = field(default_factory=time.monotonic)

    raw_render_output: bytes = b""
    raw_validate_output: bytes = b""
    raw_assertions_output: str = ""

    rendered_resources: list[dict[str, Any]] = field(default_factory=list)

    formatted_render_output: str = ""
    formatted_validate_output: str = ""
    formatted_pre_test_hooks_output: str = ""
    formatted_post_test_hooks_output: str = ""
    formatted_assertions_output: str = ""

    pre_test_hooks_results: list[HookResult] = field(default_factory=list)
    post_test_hooks_results: list[HookResult] = field(default_factory=list)
    assertions_results: list[AssertionResult] = field(default_factory=list)

    outputs: Outputs = field(default_factory=Outputs)

    has_failed_render: bool = False
    has_failed_validate: bool = False
    has_failed_assertions: bool = False
    has_failed_pre_test_hooks: bool = False
    has_failed_post_test_hooks: bool = False

    def fail(self, err: BaseException | None) -> TestCaseResult:
        """Mark the test case failed with err and complete it."""
        self.error = err
        self.status = Status.FAIL
        return self.complete()

    def skip(self) -> None:
        """Mark the test case skipped."""
        self.status = Status.SKIP

    def complete(self) -> TestCaseResult:
        """Record the elapsed time since the test case started."""
        self.duration = time.monotonic() - self.start_time
        return self

    def fail_render(self) -> TestCaseResult:
        """Mark the render step failed; the failure shows in the render section only."""
        self.has_failed_render = True
        self.formatted_render_output = self._format_render_output()
        return self.fail(None)

    def has_pipeline_failure(self) -> bool:
        """Whether validation, assertions or post-test hooks failed."""
        return self.has_failed_validate or self.has_failed_assertions or self.has_failed_post_test_hooks

    def mark_validate_failed(self) -> Exception:
        """Mark validation failed and return the error to fail the test case with."""
        self.has_failed_validate = True
        self.formatted_validate_output = self._format_validate_output()
        return Exception(self.formatted_validate_output)

    def mark_assertions_failed(self) -> Exception:
        """Mark assertions failed and return the error to fail the test case with."""
        self.has_failed_assertions = True
        return Exception(self.formatted_assertions_output)

    def print(self, out: TextIO) -> None:
        """Write the test case report to out; passing cases only in verbose mode."""
        if self.status is Status.PASS and not self.verbose:
            return
        if self.verbose:
            out.write(f"=== RUN   {self.name}\n")
        out.write(f"--- {self.status}: {self.name} ({self.duration:.2f}s)\n")
        out.write(self.formatted_pre_test_hooks_output)
        out.write(self.formatted_render_output)
        out.write(self.formatted_validate_output)
        out.write(self.formatted_assertions_output)
        out.write(self.formatted_post_test_hooks_output)
        if self.status is Status.FAIL and self.error is not None:
            out.write(_format_error_block(str(self.error)))

    def process_render_output(self, output: bytes) -> None:
        """Parse the render output into resources and format the render section.

        Raises ValueError if the output is not a stream of Kubernetes objects.
        """
        self.rendered_resources = _parse_render_output(output)
        self.formatted_render_output = self._format_render_output()

    def process_validate_output(self) -> None:
        """Format the validate section from the raw validate output."""
        self.formatted_validate_output = self._format_validate_output()

    def process_pre_test_hooks_output(self) -> None:
        """Record whether a pre-test hook failed and format that section."""
        if not self.pre_test_hooks_results:
            return
        if any(hook.error is not None for hook in self.pre_test_hooks_results):
            self.has_failed_pre_test_hooks = True
        self.formatted_pre_test_hooks_output = self._format_hooks_output(_PRE_TEST)

    def process_post_test_hooks_output(self) -> None:
        """Record whether a post-test hook failed and format that section."""
        if not self.post_test_hooks_results:
            return
        if any(hook.error is not None for hook in self.post_test_hooks_results):
            self.has_failed_post_test_hooks = True
        self.formatted_post_test_hooks_output = self._format_hooks_output(_POST_TEST)

    def process_assertions_output(self) -> None:
        """Record whether an assertion failed and build the raw and formatted text."""
        if not self.assertions_results:
            return
        if any(r.status in (Status.FAIL, Status.ERROR) for r in self.assertions_results):
            self.has_failed_assertions = True
        self.raw_assertions_output, self.formatted_assertions_output = self._format_assertions_output()

    def _format_render_output(self) -> str:
        header = "Render:"
        if not self.has_failed_render and (not self.verbose or not self.show_render):
            return ""

        if self.has_failed_render:
            text = self.raw_render_output.decode("utf-8", errors="replace").removesuffix("\n")
            first, *rest = text.split("\n")
            continuation = SPACES * 2 + " " * 5
            lines = [SPACES + header, f"{SPACES * 2}{Status.ERROR.symbol} {first}"]
            lines.extend(continuation + line for line in rest)
            return "\n".join(lines) + "\n"

        lines = [SPACES + header]
        lines.extend(
            f"{SPACES * 2}├── {_resource_kind(r)}/{_resource_name(r)}" for r in self.rendered_resources
        )
        lines[-1] = lines[-1].replace("├──", "└──", 1)
        return "\n".join(lines) + "\n"

    def _format_validate_output(self) -> str:
        header = "Validate:"
        if not self.has_failed_validate and (not self.verbose or not self.show_validate):
            return ""

        text = self.raw_validate_output.decode("utf-8", errors="replace").strip()
        if self.has_failed_validate and not self.show_validate:
            text = "\n".join(
                line for line in text.split("\n") if not line.endswith("validated successfully")
            )

        body = text.replace("\n", "\n" + SPACES * 2)
        return f"{SPACES}{header}\n{SPACES * 2}{body}\n"

    def _format_hooks_output(self, label: str) -> str:
        if label == _PRE_TEST:
            results, has_failed = self.pre_test_hooks_results, self.has_failed_pre_test_hooks
        elif label == _POST_TEST:
            results, has_failed = self.post_test_hooks_results, self.has_failed_post_test_hooks
        else:
            return ""

        if not results:
            return ""
        if not has_failed and (not self.verbose or not self.show_hooks):
            return ""

        show_all = not has_failed or (self.verbose and self.show_hooks)
        hooks = results if show_all else [hook for hook in results if hook.error is not None]
        if not hooks:
            return ""

        header = "Pre-test Hooks:" if label == _PRE_TEST else "Post-test Hooks:"
        out = [SPACES + header]
        for hook in hooks:
            title = hook.name or hook.command
            if hook.error is None:
                out.append(f"{SPACES * 2}{Status.PASS.symbol} {title}")
            elif isinstance(hook.error, HookExitError):
                out.append(f"{SPACES * 2}{Status.FAIL.symbol} {title} [exit code: {hook.error.exit_code}]")
            else:
                out.append(f"{SPACES * 2}{Status.ERROR.symbol} {title}")
                out.append(f"{SPACES * 3}error: {hook.error}")
            if hook.output:
                out.append(
                    _indent_multiline_body(
                        MULTILINE_BODY_INDENT, hook.output.decode("utf-8", errors="replace")
                    )
                )
        return "\n".join(out) + "\n"

    def _format_assertions_output(self) -> tuple[str, str]:
        header = "Assertions:"
        results = self.assertions_results
        if not results:
            return "", ""

        passed = sum(1 for r in results if r.status is Status.PASS)
        failed = sum(1 for r in results if r.status is Status.FAIL)
        errored = sum(1 for r in results if r.status not in (Status.PASS, Status.FAIL, Status.SKIP))
        total_line = (
            f"Total: {len(results)} assertions, {passed} successful, {failed} failed, "
            f"{_pluralize('error', errored)}"
        )

        show_section = self.has_failed_assertions or (self.verbose and self.show_assertions)
        include_all = self.verbose and self.show_assertions

        raw_lines = [header]
        formatted_lines: list[str] = []
        for r in results:
            multiline = "\n" in r.message
            if multiline:
                raw_lines.append(f"{r.status.symbol} {r.name}")
                raw_lines.append(_indent_multiline_body(MULTILINE_BODY_INDENT, r.message))
            else:
                raw_lines.append(f"{r.status.symbol} {r.name} - {r.message}")

            if show_section and (include_all or r.status is not Status.PASS):
                if multiline:
                    formatted_lines.append(f"{SPACES * 2}{r.status.symbol} {r.name}")
                    formatted_lines.append(_indent_multiline_body(MULTILINE_BODY_INDENT, r.message))
                else:
                    formatted_lines.append(f"{SPACES * 2}{r.status.symbol} {r.name} - {r.message}")

        raw_lines.append(total_line)
        raw = "\n".join(raw_lines) + "\n"

        formatted = ""
        if show_section and formatted_lines:
            formatted = "\n".join([SPACES + header, *formatted_lines, SPACES * 2 + total_line]) + "\n"
        return raw, formatted