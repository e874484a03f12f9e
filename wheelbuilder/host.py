"""
host.py

Responsibility: Describe the build host as (distribution, version, architecture).

The distribution/version pair comes from the first available probe:
1) `lsb_release`, when the tool is installed
2) `/etc/redhat-release`, when readable (RHEL / CentOS)
3) an explicit "unknown" fallback

The result only keys the wheel output directory; nothing else depends on it.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
REDHAT_RELEASE_FILE = "/etc/redhat-release"


class HostDetectionError(RuntimeError):
    pass


@dataclass(frozen=True)
class HostDescriptor:
    distribution: str = UNKNOWN
    version: str = UNKNOWN
    architecture: str = UNKNOWN


class ReleaseProbe:
    """Base strategy: report whether it applies, then produce (distribution, version)."""

    name = "base"

    def available(self) -> bool:
        raise NotImplementedError

    def probe(self) -> tuple[str, str]:
        raise NotImplementedError


class LsbReleaseProbe(ReleaseProbe):
    name = "lsb_release"

    def __init__(self, tool: str = "/usr/bin/lsb_release") -> None:
        self._tool = tool

    def available(self) -> bool:
        return os.path.isfile(self._tool) and os.access(self._tool, os.X_OK)

    def _query(self, flag: str) -> str:
        cmd = [self._tool, "-s", flag]
        try:
            proc = subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise HostDetectionError(f"Command failed: {' '.join(cmd)}") from e
        return proc.stdout.strip()

    def probe(self) -> tuple[str, str]:
        distribution = self._query("-i").lower()
        if distribution == "centos":
            # CentOS codenames are not meaningful; use the major release number.
            version = self._query("-r").split(".", 1)[0]
        else:
            version = self._query("-c").lower()
        return distribution or UNKNOWN, version or UNKNOWN


class RedhatReleaseProbe(ReleaseProbe):
    name = "redhat-release"

    _VERSION_RE = re.compile(r"release (\S+)")

    def __init__(self, path: str = REDHAT_RELEASE_FILE) -> None:
        self._path = Path(path)

    def available(self) -> bool:
        return self._path.is_file() and os.access(self._path, os.R_OK)

    def probe(self) -> tuple[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise HostDetectionError(f"Cannot read {self._path}") from e
        # e.g. "CentOS release 6.4 (Final)" -> "6.4"
        m = self._VERSION_RE.search(text)
        return "centos", m.group(1) if m else UNKNOWN


class UnknownProbe(ReleaseProbe):
    name = "unknown"

    def available(self) -> bool:
        return True

    def probe(self) -> tuple[str, str]:
        return UNKNOWN, UNKNOWN


def default_probes(lsb_release: str = "/usr/bin/lsb_release") -> list[ReleaseProbe]:
    return [LsbReleaseProbe(lsb_release), RedhatReleaseProbe(), UnknownProbe()]


def detect_architecture() -> str:
    return platform.machine() or UNKNOWN


def detect_host(probes: list[ReleaseProbe] | None = None) -> HostDescriptor:
    """
    Run the probes in priority order and return the first answer.

    A probe that is available but fails is logged and skipped.
    """
    if probes is None:
        probes = default_probes()

    distribution, version = UNKNOWN, UNKNOWN
    for probe in probes:
        if not probe.available():
            continue
        try:
            distribution, version = probe.probe()
        except HostDetectionError as e:
            logger.warning("host probe %s failed: %s", probe.name, e)
            continue
        logger.debug("host probe %s -> %s/%s", probe.name, distribution, version)
        break

    return HostDescriptor(distribution=distribution, version=version, architecture=detect_architecture())
