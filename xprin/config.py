"""Loading and checking of the xprin configuration file."""

from __future__ import annotations

import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CROSSPLANE_CMD = "crossplane"

RENDER_SUBCOMMAND = "render"
RENDER_FLAGS = "--include-full-xr"
DEFAULT_RENDER_CMD = f"{RENDER_SUBCOMMAND} {RENDER_FLAGS}"

VALIDATE_SUBCOMMAND = "beta validate"
VALIDATE_FLAGS = "--error-on-missing-schemas"
DEFAULT_VALIDATE_CMD = f"{VALIDATE_SUBCOMMAND} {VALIDATE_FLAGS}"

MANDATORY_DEPENDENCIES = (CROSSPLANE_CMD,)

_FROM_PATH = " (from PATH)"

_SECTION_RE = re.compile(r'^\[\s*([^\s"\]]+)(?:\s+"((?:[^"\\]|\\.)*)")?\s*\]')


class ConfigError(Exception):
    """Raised when the configuration is missing pieces or is invalid."""


@dataclass
class Subcommands:
    """The crossplane subcommands used to render and validate."""

    render: str = ""
    validate: str = ""


@dataclass
class Config:
    """The xprin configuration."""

    dependencies: dict[str, str] = field(default_factory=dict)
    subcommands: Subcommands | None = None
    repositories: dict[str, str] = field(default_factory=dict)

    def check_dependencies(self) -> None:
        """Raise ConfigError if a mandatory dependency is missing or any is invalid."""
        missing = [dep for dep in MANDATORY_DEPENDENCIES if dep not in self.dependencies]
        invalid = []
        for dep, value in self.dependencies.items():
            try:
                check_dependency(value)
            except ConfigError as exc:
                invalid.append(f"{dep}: {exc}")

        if not missing and not invalid:
            return

        message = ""
        if missing:
            message += "missing mandatory dependencies: " + ", ".join(missing) + "\n"
        if invalid:
            message += "invalid dependencies:\n" + "\n".join(invalid)
        raise ConfigError(message)

    def check_subcommands(self) -> None:
        """Raise ConfigError if the render or validate subcommand is malformed."""
        if self.subcommands is None:
            return

        errors: list[str] = []
        errors.extend(_subcommand_errors(self.subcommands.render, "render"))
        errors.extend(_subcommand_errors(self.subcommands.validate, "validate"))
        if errors:
            raise ConfigError("invalid commands section:\n" + "\n".join(errors))

    def check_repositories(self) -> None:
        """Raise ConfigError if any configured repository is not a usable git checkout."""
        invalid = []
        for name, path in self.repositories.items():
            problem = _repository_problem(name, path)
            if problem:
                invalid.append(f"{name}: {problem}")
        if invalid:
            raise ConfigError("invalid repositories:\n" + "\n".join(invalid))


def _expand_tilde_abs(path: str) -> str:
    return os.path.abspath(os.path.expanduser(path))


def _is_executable(path: str) -> bool:
    try:
        mode = os.stat(path).st_mode
    except OSError:
        return False
    return bool(mode & 0o111)


def check_dependency(dep: str) -> None:
    """Raise ConfigError unless dep names an executable command."""
    trimmed = dep.strip()
    if not trimmed:
        raise ConfigError("empty command")
    if trimmed != dep:
        raise ConfigError(f"{dep} not found in PATH")

    command = dep.split()[0]
    if os.path.isabs(command):
        if not _is_executable(command):
            raise ConfigError(f"path {command} is not executable")
        return

    resolved = shutil.which(command)
    if resolved is None:
        raise ConfigError(f"{command} not found in PATH")
    if not _is_executable(resolved):
        raise ConfigError(f"{command} is not executable")


def format_dependency_value(value: str, from_config: bool) -> str:
    """Return a dependency value for display, marking values resolved from PATH."""
    if not from_config:
        return value + _FROM_PATH

    parts = value.split()
    if not parts:
        return value

    first = parts[0]
    if os.path.isabs(first):
        return first

    resolved = shutil.which(first)
    if resolved is None:
        return value
    return resolved + _FROM_PATH


def _subcommand_errors(command: str, key: str) -> list[str]:
    if command == "":
        return []

    parts = command.split()
    if not parts:
        return [f"subcommands.{key} is empty"]

    if parts[0] == "beta" and len(parts) > 1 and parts[1] == key:
        start = 2
    elif parts[0] == key:
        start = 1
    else:
        return [f"subcommands.{key} must start with '{key}' or 'beta {key}'"]

    return [
        f"subcommands.{key}: argument {position} ('{arg}') must be a flag (start with '-' or '--')"
        for position, arg in enumerate(parts[start:], start=start)
        if not arg.startswith("-")
    ]


def _git_dir(path: Path) -> Path | None:
    dot_git = path / ".git"
    if dot_git.is_dir():
        git_dir = dot_git
    elif dot_git.is_file():
        content = dot_git.read_text(encoding="utf-8").strip()
        if not content.startswith("gitdir:"):
            return None
        git_dir = Path(content[len("gitdir:"):].strip())
        if not git_dir.is_absolute():
            git_dir = path / git_dir
    else:
        git_dir = path

    if not (git_dir / "HEAD").is_file():
        return None
    return git_dir


def _config_file(git_dir: Path) -> Path:
    common = git_dir / "commondir"
    if common.is_file():
        common_dir = Path(common.read_text(encoding="utf-8").strip())
        if not common_dir.is_absolute():
            common_dir = git_dir / common_dir
        return common_dir / "config"
    return git_dir / "config"


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def _parse_value(text: str) -> str:
    out = []
    quoted = False
    chars = iter(text.strip())
    for ch in chars:
        if ch == "\\":
            escaped = next(chars, "")
            out.append({"n": "\n", "t": "\t"}.get(escaped, escaped))
        elif ch == '"':
            quoted = not quoted
        elif ch in "#;" and not quoted:
            break
        else:
            out.append(ch)
    return "".join(out).strip()


def _read_remotes(config_path: Path) -> dict[str, list[str]]:
    remotes: dict[str, list[str]] = {}
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return remotes

    current: list[str] | None = None
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#;":
            continue
        match = _SECTION_RE.match(line)
        if match:
            section, subsection = match.groups()
            if section.lower() == "remote" and subsection is not None:
                current = remotes.setdefault(_unescape(subsection), [])
            else:
                current = None
            continue
        if current is None:
            continue
        key, sep, value = line.partition("=")
        if sep and key.strip().lower() == "url":
            url = _parse_value(value)
            if url:
                current.append(url)
    return remotes


def _base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _repository_problem(name: str, path: str) -> str | None:
    expanded = Path(_expand_tilde_abs(path))
    if not expanded.exists():
        return "directory does not exist"

    try:
        git_dir = _git_dir(expanded)
    except (OSError, UnicodeDecodeError):
        git_dir = None
    if git_dir is None:
        return "not a valid git repository"

    try:
        remotes = _read_remotes(_config_file(git_dir))
    except (OSError, UnicodeDecodeError):
        return "failed to get repository remotes"
    if not remotes:
        return "failed to get origin remote"

    urls = remotes.get("origin", [])
    origin_url = urls[0] if urls else ""

    if origin_url == "":
        return "failed to get origin remote"
    if "?" in origin_url:
        return "invalid remote URL format: query parameters are not allowed"
    if not origin_url.startswith(("https://", "git@")):
        return f"invalid remote URL format: must be HTTPS or SSH. Got: {origin_url}"

    repo_name = ""
    if origin_url.startswith("git@"):
        parts = origin_url.split(":")
        if len(parts) == 2:
            repo_name = _base(parts[1]).removesuffix(".git")
    else:
        repo_name = _base(origin_url).removesuffix(".git")

    if repo_name and repo_name != name:
        return "repository name mismatch"
    return None


def _yaml_key(key: object) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def _string_map(value: object, section: str, config_path: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"failed to parse config file {config_path}: {section} must be a mapping")
    result = {}
    for key, item in value.items():
        if item is None:
            item = ""
        elif not isinstance(item, str):
            raise ConfigError(
                f"failed to parse config file {config_path}: {section}.{key} must be a string"
            )
        result[_yaml_key(key)] = item
    return result


def _subcommands(value: object, config_path: str) -> Subcommands:
    if value is None:
        return Subcommands()
    if not isinstance(value, dict):
        raise ConfigError(f"failed to parse config file {config_path}: subcommands must be a mapping")
    fields = {}
    for key in ("render", "validate"):
        item = value.get(key)
        if item is None:
            item = ""
        elif not isinstance(item, str):
            raise ConfigError(
                f"failed to parse config file {config_path}: subcommands.{key} must be a string"
            )
        fields[key] = item
    return Subcommands(**fields)


def load(config_path: str | os.PathLike[str]) -> Config:
    """Load an xprin configuration file, filling in default subcommands.

    Raises FileNotFoundError if the file does not exist and ConfigError for
    any other problem.
    """
    config_path = os.fspath(config_path)
    if not config_path.endswith(".yaml"):
        raise ConfigError("Config file must have .yaml extension")

    expanded = _expand_tilde_abs(config_path)
    try:
        data = Path(expanded).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc

    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in config file {config_path}: {exc}") from exc

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigError(f"failed to parse config file {config_path}: top level must be a mapping")

    cfg = Config(
        dependencies=_string_map(document.get("dependencies"), "dependencies", config_path),
        subcommands=_subcommands(document.get("subcommands"), config_path),
        repositories=_string_map(document.get("repositories"), "repositories", config_path),
    )
    if not cfg.subcommands.render:
        cfg.subcommands.render = DEFAULT_RENDER_CMD
    if not cfg.subcommands.validate:
        cfg.subcommands.validate = DEFAULT_VALIDATE_CMD
    return cfg


def fallback() -> Config:
    """Return a configuration that uses only commands found on PATH."""
    found: dict[str, str] = {}
    missing = []
    for dep in MANDATORY_DEPENDENCIES:
        resolved = shutil.which(dep)
        if resolved is None:
            missing.append(dep)
        else:
            found[dep] = resolved

    if missing:
        raise ConfigError(f"missing required dependencies from PATH ({', '.join(missing)})")

    return Config(
        dependencies=found,
        subcommands=Subcommands(render=DEFAULT_RENDER_CMD, validate=DEFAULT_VALIDATE_CMD),
        repositories={},
    )