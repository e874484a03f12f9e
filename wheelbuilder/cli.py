"""
cli.py

Responsibility: CLI entrypoint for wheelbuilder.

High-level flow:
1) Parse flags (`-h` prints usage and exits before anything else)
2) Resolve the `BuildConfig` (flags > YAML config file > defaults)
3) Detect the host distribution / version / architecture
4) Run the build steps in `orchestrator.py`
5) Map a failed step to its process exit code

Exit codes: 0 success, 1 missing tool, 2 bad command line or config,
3 virtualenv creation, 4 tooling upgrade, 5 clone, 6 wheel build.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, Sequence

from wheelbuilder.config import (
    CONFIG_ENV_VAR,
    DEFAULT_ENV_DIR,
    DEFAULT_SOURCE_DIR,
    DEFAULT_WHEELS_DIR,
    ConfigError,
    load_config,
)
from wheelbuilder.console import ConsoleUI, render_usage
from wheelbuilder.host import default_probes, detect_host
from wheelbuilder.logging import configure_logging
from wheelbuilder.orchestrator import BuildStepError, run_build

logger = logging.getLogger(__name__)

EXIT_USAGE = 2


class _UsageAction(argparse.Action):
    """Print the full usage screen and exit 0."""

    def __init__(self, option_strings: Sequence[str], dest: str = argparse.SUPPRESS, **kwargs: Any) -> None:
        super().__init__(option_strings, dest=dest, default=argparse.SUPPRESS, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:  # type: ignore[no-untyped-def]
        ConsoleUI().show_text(
            render_usage(
                {
                    "prog": parser.prog,
                    "env_dir": DEFAULT_ENV_DIR,
                    "source_dir": DEFAULT_SOURCE_DIR,
                    "wheels_dir": DEFAULT_WHEELS_DIR,
                    "config_env_var": CONFIG_ENV_VAR,
                }
            )
        )
        parser.exit(0)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="wheelbuilder",
        description="Build application dependencies as wheel packages inside a throwaway virtualenv",
        add_help=False,
    )
    p.add_argument("-h", action=_UsageAction, help="Show usage and exit")
    p.add_argument("-e", dest="env_dir", metavar="DIR", default=None, help="Virtualenv path (erased on every run)")
    p.add_argument("-g", dest="source_dir", metavar="DIR", default=None, help="Application checkout path")
    p.add_argument("-w", dest="wheels_dir", metavar="DIR", default=None, help="Wheel output root")
    p.add_argument("-c", dest="config", metavar="FILE", default=None, help=f"YAML config file (or set {CONFIG_ENV_VAR})")
    p.add_argument("-v", dest="verbose", action="store_true", help="Verbose logging")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))
    ui = ConsoleUI()

    try:
        config = load_config(args.config).with_overrides(
            env_dir=args.env_dir,
            source_dir=args.source_dir,
            wheels_dir=args.wheels_dir,
        )
    except ConfigError as e:
        ui.show_error(str(e))
        return EXIT_USAGE

    host = detect_host(default_probes(config.tools.lsb_release))
    logger.info("host: %s/%s/%s", host.distribution, host.version, host.architecture)

    try:
        return run_build(config, host, ui=ui)
    except BuildStepError as e:
        logger.debug("build step failed", exc_info=True)
        ui.show_error(str(e))
        return e.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
