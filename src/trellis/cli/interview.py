"""
CLI command for the interactive interview.

The collected graph is written for inspection, then applied through the
same flag parser and engine as ``trellis init``.
"""

from __future__ import annotations

import sys

import typer

from trellis.cli.scaffold import apply_flags, console
from trellis.cli.utils import load_project_manifest, resolve_root
from trellis.core.errors import TrellisError
from trellis.core.flags import ScaffoldFlags
from trellis.engine import ScaffoldOptions
from trellis.interview import INTERVIEW_SOURCE, run_interview, write_graph


def interview_command(
    root: str = typer.Option(".", "--root", "-r", help="Directory of the generated tree"),
    module: str | None = typer.Option(None, "--module", "-m", help="Package name of the app"),
    threshold: float | None = typer.Option(
        None, "--threshold", "-t", min=0.0, max=1.0, help="Similarity that triggers a duplicate question"
    ),
    out: str | None = typer.Option(
        None, "--out", "-o", help="Base path (without extension) of the graph files, relative to --root"
    ),
    apply: bool = typer.Option(True, "--apply/--no-apply", help="Scaffold the collected graph"),
) -> None:
    """
    Describe the application interactively, one question at a time.

    Answer 'done' to finish any list; end of input finishes the interview.
    """
    root_path = resolve_root(root)
    manifest = load_project_manifest(root_path)

    interview = run_interview(
        sys.stdin,
        console,
        threshold=manifest.interview.threshold if threshold is None else threshold,
    )
    graph = interview.graph()
    args = interview.scaffold_args()

    out_base = root_path / (out or manifest.interview.output)
    try:
        json_path, dot_path = write_graph(graph, args, out_base)
    except TrellisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    console.print(f"Graph written to {json_path} and {dot_path.name}", highlight=False)

    if not apply:
        return
    if graph.is_empty():
        console.print("Nothing to scaffold.")
        return

    try:
        flags = ScaffoldFlags.from_args(args)
    except TrellisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    options = ScaffoldOptions(
        root=root_path,
        module=module or manifest.scaffold.module,
        generate_tests=manifest.scaffold.generate_tests,
        test_type=manifest.scaffold.test_type,
        state_dir=manifest.scaffold.state_dir,
        source=INTERVIEW_SOURCE,
    )
    code = apply_flags(flags, options)
    if code:
        raise typer.Exit(code=code)

