"""
Trellis CLI Package.

- scaffold.py: init and status commands
- interview.py: interactive interview command
- utils.py: Shared utilities
"""

from __future__ import annotations

import typer

from trellis._version import __version__
from trellis.cli.interview import interview_command
from trellis.cli.scaffold import init_command, status_command
from trellis.cli.utils import configure_logging, version_callback

app = typer.Typer(
    help="""Trellis - incremental application scaffolding

Commands:
  • init: add concepts, orchestrators, projections and routes to a tree
  • interview: describe the application interactively, then scaffold it
  • status: show what the last run recorded
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Trellis CLI main callback for global options."""
    configure_logging(verbose)


app.command(name="init")(init_command)
app.command(name="interview")(interview_command)
app.command(name="status")(status_command)


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


__all__ = [
    "__version__",
    "app",
    "main",
]
