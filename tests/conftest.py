"""Shared fixtures: fake tool binaries and a runner that simulates their effects."""

from __future__ import annotations

import io
import os
import shutil
import subprocess
from pathlib import Path

import pytest

from wheelbuilder.config import BuildConfig, ToolPaths
from wheelbuilder.console import ConsoleUI
from wheelbuilder.host import HostDescriptor

REPOSITORY = "git://example.invalid/app"


def make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    path.chmod(0o755)
    return path


class FakeRunner:
    """
    Stand-in for `run_command`.

    Commands are classified into steps (rm, virtualenv, upgrade, clone, remote,
    wheel); a non-zero code in `returncodes` makes that step fail without side
    effects. Successful steps mimic the real tool on the filesystem.
    """

    def __init__(self, returncodes: dict[str, int] | None = None, origin: str = REPOSITORY) -> None:
        self.returncodes = returncodes or {}
        self.origin = origin
        self.calls: list[list[str]] = []

    def steps(self) -> list[str]:
        return [self._classify(cmd) for cmd in self.calls]

    def _classify(self, cmd: list[str]) -> str:
        tool = os.path.basename(cmd[0])
        if tool == "rm":
            return "rm"
        if tool == "virtualenv":
            return "virtualenv"
        if tool == "pip":
            return "upgrade" if cmd[1] == "install" else "wheel"
        if tool == "git":
            return "clone" if cmd[1] == "clone" else "remote"
        raise AssertionError(f"unexpected command: {cmd}")

    def __call__(self, cmd: list[str], *, capture: bool = False, quiet: bool = False) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(cmd))
        step = self._classify(cmd)
        rc = self.returncodes.get(step, 0)
        stdout = None
        if rc == 0:
            rc, stdout = self._simulate(step, cmd)
        return subprocess.CompletedProcess(cmd, rc, stdout=stdout if capture else None)

    def _simulate(self, step: str, cmd: list[str]) -> tuple[int, str | None]:
        if step == "rm":
            target = Path(cmd[-1])
            if not target.exists():
                return (0 if "-f" in cmd else 1), None
            shutil.rmtree(target)
        elif step == "virtualenv":
            make_executable(Path(cmd[-1]) / "bin" / "pip")
        elif step == "clone":
            dest = Path(cmd[-1])
            (dest / ".git").mkdir(parents=True)
            (dest / "setup.py").write_text("", encoding="utf-8")
        elif step == "remote":
            return 0, self.origin + "\n"
        elif step == "wheel":
            wheel_dir = Path(next(a for a in cmd if a.startswith("--wheel-dir=")).split("=", 1)[1])
            wheel_dir.mkdir(parents=True, exist_ok=True)
            (wheel_dir / "app-1.0-py3-none-any.whl").write_bytes(b"")
        return 0, None


@pytest.fixture
def tools(tmp_path: Path) -> ToolPaths:
    bin_dir = tmp_path / "bin"
    return ToolPaths(
        rm=str(make_executable(bin_dir / "rm")),
        virtualenv=str(make_executable(bin_dir / "virtualenv")),
        git=str(make_executable(bin_dir / "git")),
        lsb_release=str(bin_dir / "lsb_release"),
    )


@pytest.fixture
def config(tmp_path: Path, tools: ToolPaths) -> BuildConfig:
    return BuildConfig(
        env_dir=str(tmp_path / "venv"),
        source_dir=str(tmp_path / "src"),
        wheels_dir=str(tmp_path / "wheels"),
        repository=REPOSITORY,
        build_log=str(tmp_path / "pip.log"),
        tools=tools,
    )


@pytest.fixture
def host() -> HostDescriptor:
    return HostDescriptor(distribution="debian", version="bookworm", architecture="x86_64")


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def ui(output: io.StringIO) -> ConsoleUI:
    return ConsoleUI(stream=output)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()
