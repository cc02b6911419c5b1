# xprin

Building blocks for a test runner for Crossplane compositions. The package
does two things:

- it loads and checks the runner's configuration file;
- it collects the results of test cases and test suites, and prints them in a
  format like that of `go test`.

## Installation

```
pip install xprin
```

## Configuration (`xprin.config`)

A configuration file is YAML and its name must end in `.yaml`:

```yaml
dependencies:
  crossplane: /usr/local/bin/crossplane
subcommands:
  render: "render --include-full-xr"
  validate: "beta validate --error-on-missing-schemas"
repositories:
  my-repo: ~/src/my-repo
```

```python
from xprin.config import ConfigError, fallback, load

try:
    cfg = load("~/.config/xprin.yaml")
except FileNotFoundError:
    cfg = fallback()  # uses the `crossplane` executable found on PATH

cfg.check_dependencies()
cfg.check_subcommands()
cfg.check_repositories()
```

- `load(config_path)` expands `~`, reads and parses the file, and returns a
  `Config`. If the file does not exist it raises `FileNotFoundError`. It raises
  `ConfigError` for any other problem: a name without `.yaml`, a file that
  cannot be read, invalid YAML, or a section of the wrong shape. A missing
  `subcommands.render` or `subcommands.validate` is set to the default
  (`DEFAULT_RENDER_CMD`, `DEFAULT_VALIDATE_CMD`). Values such as `${HOME}` are
  kept as written.
- `fallback()` returns a `Config` whose only dependency is `crossplane`,
  resolved on `PATH`, together with the default subcommands. If `crossplane`
  is not on `PATH` it raises `ConfigError`.
- `Config.check_dependencies()` requires a `crossplane` entry and checks each
  dependency with `check_dependency`.
- `Config.check_subcommands()` requires `render` to start with `render` or
  `beta render`, and `validate` to start with `validate` or `beta validate`.
  Every word after that must be a flag.
- `Config.check_repositories()` requires each repository path to exist and to
  be a git checkout with an `origin` remote. The remote must be an HTTPS or
  `git@` SSH URL with no query string, and its repository name must match the
  configured name. The git metadata is read straight from the files in the
  checkout.
- `check_dependency(dep)` raises `ConfigError` unless the first word of `dep`
  is an executable absolute path or a command found on `PATH`.
- `format_dependency_value(value, from_config)` returns a dependency value for
  display. A value that was resolved from `PATH` gets the suffix `(from PATH)`.

Each `check_*` method lists every problem it finds in one `ConfigError`.

## Results

```python
import sys

from xprin.status import Status
from xprin.steps import AssertionResult
from xprin.testcaseresult import TestCaseResult
from xprin.testsuiteresult import TestSuiteResult

suite = TestSuiteResult("tests/example_xprin.yaml", verbose=True)

case = TestCaseResult("creates bucket", "bucket", verbose=True, show_assertions=True)
case.assertions_results = [
    AssertionResult("bucket count", Status.PASS, "found 1 bucket"),
]
case.process_assertions_output()
case.complete()
suite.add_result(case)

suite.complete()
for result in suite.results:
    result.print(sys.stdout)
suite.print(sys.stdout)
```

- `xprin.status.Status` has the members `PASS`, `FAIL`, `SKIP` and `ERROR`.
  `str()` of a member gives its name, and `.symbol` gives its marker
  (`[✓]`, `[x]`, `[s]`, `[!]`).
- `xprin.steps` holds `AssertionResult` and `HookResult`. `HookExitError`
  records a hook command that ended with a non-zero exit code. A hook that
  fails with this error is shown with its exit code. A hook that fails with
  any other error is shown as an error, together with the error message.
- `xprin.testcaseresult.TestCaseResult` holds the raw output of the render,
  validate, hook and assertion steps and turns it into report sections:
  - `process_render_output(output)` parses a multi-document YAML render output
    into a tree of `Kind/name` entries. It raises `ValueError` if the output
    cannot be parsed.
  - The other step outputs are turned into sections by
    `process_validate_output()`, `process_pre_test_hooks_output()`,
    `process_post_test_hooks_output()` and `process_assertions_output()`.
  - The result is changed with `fail(err)`, `fail_render()`, `skip()`,
    `complete()`, `mark_validate_failed()` and `mark_assertions_failed()`.
  - `print(out)` writes the report. Passing cases are written only when
    `verbose` is set.
  - `Outputs` holds the paths and counts that a runner offers to post-test
    hooks.
- `xprin.testsuiteresult.TestSuiteResult` gathers the case results of one
  file:
  - `add_result(result)` adds a result. A failed case fails the whole suite.
  - `has_failures()` tells whether the suite failed.
  - `completed_tests()` maps each case ID to its result.
  - `print(out)` writes the `ok` or `FAIL` summary line. A path below the
    working directory is shown relative to it.

## What this package does not do

It does not run tests. It has no command-line program. It never starts
`crossplane` or any other program to render, validate or run hooks. It only
holds and formats the results that a runner gives it, and it only checks the
configuration that such a runner would use.