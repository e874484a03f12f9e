"""
orchestrator.py

Responsibility: Run the wheel build as a fixed sequence of external commands.

High-level flow (`run_build`):
1) Check required tools exist (rm, virtualenv, git)
2) Remove any previous virtualenv (absence is fine)
3) Create a fresh virtualenv
4) Upgrade setuptools, pip and wheel inside it
5) Clone the application repository unless the checkout dir already exists
6) `pip wheel` the checkout into <wheels>/<distribution>/<version>/<architecture>
7) Remove the virtualenv

Every failure is fatal and raised as a `BuildStepError` subclass carrying its
process exit code. Only the CLI turns those into an exit status.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable

from wheelbuilder.config import BuildConfig
from wheelbuilder.console import ConsoleUI
from wheelbuilder.host import HostDescriptor

logger = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class BuildStepError(RuntimeError):
    exit_code = 1

    def __init__(self, message: str, *, resource: str) -> None:
        super().__init__(message)
        self.resource = resource


class ToolMissing(BuildStepError):
    exit_code = 1


class EnvCreateFailed(BuildStepError):
    exit_code = 3


class UpgradeFailed(BuildStepError):
    exit_code = 4


class CloneFailed(BuildStepError):
    exit_code = 5


class BuildFailed(BuildStepError):
    exit_code = 6


def run_command(cmd: list[str], *, capture: bool = False, quiet: bool = False) -> subprocess.CompletedProcess[str]:
    """
    Run a command to completion and return the result without raising on a
    non-zero exit. Output goes to the terminal unless `capture` is set;
    `quiet` discards stderr.
    """
    logger.debug("running: %s", " ".join(cmd))
    return subprocess.run(
        cmd,
        check=False,
        stdout=subprocess.PIPE if capture else None,
        stderr=subprocess.DEVNULL if quiet else None,
        text=True,
    )


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _missing_tool_message(path: str) -> str:
    return f"Cannot find {path}! It's necessary to complete installation."


def check_required_tools(config: BuildConfig) -> None:
    for tool in config.tools.required():
        if not _is_executable(tool):
            raise ToolMissing(_missing_tool_message(tool), resource=tool)


def _remove_command(config: BuildConfig) -> list[str]:
    # -f: never prompt on write-protected files.
    return [config.tools.rm, "-r", "-f", config.env_dir]


def reset_environment(config: BuildConfig, runner: Runner = run_command) -> None:
    """Remove a leftover virtualenv. A missing directory is not an error."""
    try:
        proc = runner(_remove_command(config), quiet=True)
    except OSError as e:
        logger.warning("could not remove %s: %s", config.env_dir, e)
        return
    logger.debug("initial removal of %s exited with %s", config.env_dir, proc.returncode)


def create_environment(config: BuildConfig, runner: Runner = run_command) -> None:
    # virtualenv excludes global site-packages unless --system-site-packages is given.
    cmd = [config.tools.virtualenv, "--setuptools", "bundle", config.env_dir]
    message = f"Something went wrong. Could not create virtual environment\nin this path:\n  {config.env_dir}"
    try:
        proc = runner(cmd)
    except OSError as e:
        raise EnvCreateFailed(message, resource=config.env_dir) from e
    if proc.returncode != 0:
        raise EnvCreateFailed(message, resource=config.env_dir)


def upgrade_tooling(config: BuildConfig, runner: Runner = run_command) -> None:
    message = (
        "Something went wrong. Could not install setuptools, pip or wheel\n"
        f"in this virtual environment:\n  {config.env_dir}"
    )
    if not _is_executable(config.pip):
        raise UpgradeFailed(f"{_missing_tool_message(config.pip)}\n{message}", resource=config.env_dir)

    cmd = [config.pip, "install", "--upgrade", "setuptools", "pip", "wheel"]
    try:
        proc = runner(cmd)
    except OSError as e:
        raise UpgradeFailed(message, resource=config.env_dir) from e
    if proc.returncode != 0:
        raise UpgradeFailed(message, resource=config.env_dir)


def _check_existing_checkout(config: BuildConfig, ui: ConsoleUI, runner: Runner) -> None:
    """
    Warn when a reused checkout does not look like a clone of the configured
    repository. Read-only; never fails the run.
    """
    source = Path(config.source_dir)
    if not (source / ".git").exists():
        ui.show_warning(f"{config.source_dir} is not a git checkout; building it as is.")
        return
    try:
        proc = runner([config.tools.git, "-C", config.source_dir, "remote", "get-url", "origin"], capture=True, quiet=True)
    except OSError as e:
        logger.warning("could not inspect %s: %s", config.source_dir, e)
        return
    origin = (proc.stdout or "").strip()
    if proc.returncode != 0 or origin != config.repository:
        ui.show_warning(
            f"{config.source_dir} has origin {origin or '<none>'}, expected {config.repository}; "
            "building the existing checkout without updating it."
        )


def acquire_source(config: BuildConfig, ui: ConsoleUI, runner: Runner = run_command) -> bool:
    """
    Clone the repository into `source_dir` unless that directory exists.

    Returns True when a clone was made.
    """
    if os.path.isdir(config.source_dir):
        logger.info("reusing existing checkout %s", config.source_dir)
        ui.show_info(f"Using existing checkout in {config.source_dir}")
        _check_existing_checkout(config, ui, runner)
        return False

    message = (
        "Something went wrong. Could not clone GWM repository.\n"
        f"Check if repository address is correct:\n  {config.repository}"
    )
    cmd = [config.tools.git, "clone", config.repository, config.source_dir]
    try:
        proc = runner(cmd)
    except OSError as e:
        raise CloneFailed(message, resource=config.repository) from e
    if proc.returncode != 0:
        raise CloneFailed(message, resource=config.repository)
    return True


def _wheel_snapshot(out_dir: Path) -> dict[Path, int]:
    if not out_dir.is_dir():
        return {}
    return {p: p.stat().st_mtime_ns for p in out_dir.glob("*.whl")}


def build_wheels(config: BuildConfig, host: HostDescriptor, runner: Runner = run_command) -> list[Path]:
    """
    Build wheels for the checkout and return the wheel files written by this
    build (new, or rewritten since the build started).
    """
    wheel_path = config.wheel_path(host)
    out_dir = Path(wheel_path)
    before = _wheel_snapshot(out_dir)
    message = f"Something went wrong. Could not create wheel packages.\nCheck out pip log to see more:\n  {config.build_log}"
    cmd = [config.pip, "wheel", f"--log={config.build_log}", f"--wheel-dir={wheel_path}", config.source_dir]
    try:
        proc = runner(cmd)
    except OSError as e:
        raise BuildFailed(message, resource=config.build_log) from e
    if proc.returncode != 0:
        raise BuildFailed(message, resource=config.build_log)

    after = _wheel_snapshot(out_dir)
    return sorted(p for p, mtime in after.items() if before.get(p) != mtime)


def cleanup_environment(config: BuildConfig, runner: Runner = run_command) -> int:
    return runner(_remove_command(config)).returncode


def run_build(
    config: BuildConfig,
    host: HostDescriptor,
    *,
    runner: Runner = run_command,
    ui: ConsoleUI | None = None,
) -> int:
    """
    Execute every step in order and return the exit code of the final cleanup.

    Raises a `BuildStepError` subclass on the first failing step; nothing that
    already ran is rolled back.
    """
    ui = ui or ConsoleUI()

    check_required_tools(config)

    logger.info("resetting virtualenv %s", config.env_dir)
    reset_environment(config, runner)

    logger.info("creating virtualenv %s", config.env_dir)
    create_environment(config, runner)

    logger.info("upgrading setuptools, pip and wheel in %s", config.env_dir)
    upgrade_tooling(config, runner)

    if acquire_source(config, ui, runner):
        logger.info("cloned %s into %s", config.repository, config.source_dir)

    logger.info("building wheels from %s", config.source_dir)
    wheels = build_wheels(config, host, runner)
    ui.show_success(f"Built {len(wheels)} new wheel package(s) in {config.wheel_path(host)}")

    logger.info("removing virtualenv %s", config.env_dir)
    return cleanup_environment(config, runner)
