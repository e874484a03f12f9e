from __future__ import annotations

import io

import pytest
from jinja2 import UndefinedError

from wheelbuilder.console import ConsoleUI, render_usage


def _context(**overrides: str) -> dict[str, str]:
    ctx = {
        "prog": "build-wheels",
        "env_dir": "/e/",
        "source_dir": "/g/",
        "wheels_dir": "/w",
        "config_env_var": "WHEELBUILDER_CONFIG",
    }
    ctx.update(overrides)
    return ctx


def test_usage_interpolates_defaults() -> None:
    text = render_usage(_context())
    assert "build-wheels [-h]" in text
    assert "Default virtual environment path:   /e/" in text
    assert "Default GWM clone path:             /g/" in text
    assert "/w/{distribution}/{version}/{architecture}/" in text
    assert "$WHEELBUILDER_CONFIG" in text
    assert text.endswith("\n")


def test_usage_requires_every_variable() -> None:
    ctx = _context()
    del ctx["source_dir"]
    with pytest.raises(UndefinedError):
        render_usage(ctx)


def test_messages_are_printed_literally() -> None:
    stream = io.StringIO()
    ui = ConsoleUI(stream=stream)

    ui.show_error("Cannot find [bold]/usr/bin/git[/bold]!")
    ui.show_success("done")

    assert stream.getvalue() == "Cannot find [bold]/usr/bin/git[/bold]!\ndone\n"
