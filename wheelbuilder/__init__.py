"""
wheelbuilder package

Builds wheel packages for an application's dependencies inside a throwaway
virtual environment, keyed by host distribution, version and architecture.

Key responsibilities are split across modules:
- `config.py`: default paths, tool locations and optional YAML config file
- `host.py`: host distribution / version / architecture detection
- `orchestrator.py`: the build steps and their error taxonomy
- `console.py`: colored terminal output and the usage text
- `cli.py`: CLI entrypoint (parse -> detect -> build -> exit code)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
