"""
config.py

Responsibility: Hold the build configuration and load optional overrides from a YAML file.

Precedence is: command-line flags > config file > module defaults.
Once built, a `BuildConfig` is immutable; every step reads paths from it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from wheelbuilder.host import HostDescriptor

DEFAULT_ENV_DIR = "./venv/"
DEFAULT_SOURCE_DIR = "./gwm/"
DEFAULT_WHEELS_DIR = "./wheels/"
DEFAULT_REPOSITORY = "git://git.osuosl.org/gitolite/ganeti/ganeti_webmgr"
DEFAULT_BUILD_LOG = "./pip.log"

CONFIG_ENV_VAR = "WHEELBUILDER_CONFIG"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ToolPaths:
    """Absolute locations of the external executables the build relies on."""

    rm: str = "/bin/rm"
    virtualenv: str = "/usr/bin/virtualenv"
    git: str = "/usr/bin/git"
    lsb_release: str = "/usr/bin/lsb_release"

    def required(self) -> list[str]:
        # Order matters: the first missing one is reported.
        return [self.rm, self.virtualenv, self.git]


@dataclass(frozen=True)
class BuildConfig:
    """Paths and addresses used by a single build run."""

    env_dir: str = DEFAULT_ENV_DIR
    source_dir: str = DEFAULT_SOURCE_DIR
    wheels_dir: str = DEFAULT_WHEELS_DIR
    repository: str = DEFAULT_REPOSITORY
    build_log: str = DEFAULT_BUILD_LOG
    tools: ToolPaths = field(default_factory=ToolPaths)

    @property
    def pip(self) -> str:
        return os.path.join(self.env_dir, "bin", "pip")

    def wheel_path(self, host: HostDescriptor) -> str:
        return os.path.join(self.wheels_dir, host.distribution, host.version, host.architecture)

    def with_overrides(self, **overrides: Any) -> BuildConfig:
        """
        Return a copy with the given fields replaced. `None` values are ignored
        so unset CLI flags fall through to the current value.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return replace(self, **changes)


_PATH_KEYS = ("env_dir", "source_dir", "wheels_dir", "repository", "build_log")
_TOOL_KEYS = tuple(f.name for f in fields(ToolPaths))


def _parse_tools(raw: Any) -> ToolPaths:
    if raw is None:
        return ToolPaths()
    if not isinstance(raw, dict):
        raise ConfigError("`tools` must be an object/mapping when provided.")
    unknown = set(raw) - set(_TOOL_KEYS)
    if unknown:
        raise ConfigError(f"Unknown keys in `tools`: {', '.join(sorted(map(str, unknown)))}")
    return ToolPaths(**{k: str(v).strip() for k, v in raw.items() if v is not None})


def load_config(config_path: str | Path | None = None) -> BuildConfig:
    """
    Load a `BuildConfig` from a YAML file.

    Without an explicit path, `$WHEELBUILDER_CONFIG` is consulted; with neither,
    the defaults are returned.

    Recognized keys:
    - env_dir, source_dir, wheels_dir: str
    - repository: str (git address cloned when source_dir is missing)
    - build_log: str (pip log file)
    - tools: mapping with rm, virtualenv, git, lsb_release
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR) or None
    if config_path is None:
        return BuildConfig()

    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file does not exist: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping/object at the top level.")

    unknown = set(data) - set(_PATH_KEYS) - {"tools"}
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(map(str, unknown)))}")

    values = {k: str(data[k]).strip() for k in _PATH_KEYS if data.get(k) is not None}
    return BuildConfig(tools=_parse_tools(data.get("tools")), **values)
