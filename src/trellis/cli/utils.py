"""
Trellis CLI Utilities.

Shared utility functions used across CLI modules.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

import typer

from trellis._version import __version__
from trellis.core.errors import TrellisError
from trellis.core.manifest import ProjectManifest, load_manifest

LOG_LEVEL_ENV = "TRELLIS_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"Trellis {__version__}")
        typer.echo(f"Python  {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(verbose: bool = False) -> None:
    """
    Configure root logging for a CLI invocation.

    WARNING by default, DEBUG with ``--verbose``; ``TRELLIS_LOG_LEVEL``
    overrides both.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    override = os.environ.get(LOG_LEVEL_ENV)
    if override:
        level = logging.getLevelName(override.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def resolve_root(root: str) -> Path:
    path = Path(root).resolve()
    if path.exists() and not path.is_dir():
        typer.echo(f"Error: {path} is not a directory", err=True)
        raise typer.Exit(code=1)
    return path


def load_project_manifest(root: Path) -> ProjectManifest:
    """Load ``trellis.toml``, exiting with code 1 when it is invalid."""
    try:
        return load_manifest(root)
    except TrellisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
