"""
CLI commands for scaffolding runs.

Commands:
- init: Reconcile the flag description with the tree and write artifacts
- status: Show the persisted snapshot
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from trellis.cli.utils import load_project_manifest, resolve_root
from trellis.core.errors import TrellisError
from trellis.core.flags import ScaffoldFlags
from trellis.core.state import get_state_file_path, load_state
from trellis.engine import ScaffoldEngine, ScaffoldOptions, ScaffoldReport

console = Console()


def print_report(report: ScaffoldReport) -> None:
    """Print the outcome of a run: plan, file counts, one line per skip."""
    result = report.result
    console.print("[bold]Plan[/bold]")
    console.print(report.plan.summary(), markup=False, highlight=False)
    console.print(
        f"Created {len(result.files_created)} file(s), updated {len(result.files_updated)}",
        highlight=False,
    )
    for skip in result.skipped:
        console.print(f"[yellow]Skipped[/yellow] {skip.path}: {skip.reason}", highlight=False)
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}", highlight=False)
    if report.fatal:
        typer.echo(f"Error: {report.fatal}", err=True)
    elif report.state_file:
        console.print(f"State saved to {report.state_file}", highlight=False)


def apply_flags(flags: ScaffoldFlags, options: ScaffoldOptions) -> int:
    """
    Run one scaffolding pass and print its report.

    Returns:
        Process exit code
    """
    try:
        desired = flags.to_graph()
        report = ScaffoldEngine(options).run(desired)
    except TrellisError as e:
        typer.echo(f"Error: {e}", err=True)
        return 1
    print_report(report)
    return report.exit_code


def init_command(
    concept: list[str] = typer.Option([], "--concept", help="Concept NAME"),
    field: list[str] = typer.Option([], "--field", help="Concept field OWNER:NAME:TYPE"),
    method: list[str] = typer.Option([], "--method", help="Concept method OWNER:NAME"),
    orchestrator: list[str] = typer.Option([], "--orchestrator", help="Orchestrator NAME"),
    param: list[str] = typer.Option([], "--param", help="Orchestrator input OWNER:NAME:TYPE"),
    projection: list[str] = typer.Option([], "--projection", help="Projection NAME"),
    query: list[str] = typer.Option([], "--query", help="Projection query OWNER:NAME:TYPE"),
    result: list[str] = typer.Option([], "--result", help="Projection result OWNER:NAME:TYPE"),
    route: list[str] = typer.Option([], "--route", help="Route METHOD:PATH:TARGET"),
    concept_doc: list[str] = typer.Option([], "--concept-doc", help="CONCEPT:TEXT"),
    field_doc: list[str] = typer.Option([], "--field-doc", help="CONCEPT:FIELD:TEXT"),
    method_doc: list[str] = typer.Option([], "--method-doc", help="CONCEPT:METHOD:TEXT"),
    pre: list[str] = typer.Option([], "--pre", help="Pre-condition CONCEPT:METHOD:TEXT"),
    post: list[str] = typer.Option([], "--post", help="Post-condition CONCEPT:METHOD:TEXT"),
    invariant: list[str] = typer.Option([], "--invariant", help="Invariant CONCEPT:METHOD:TEXT"),
    orchestrator_doc: list[str] = typer.Option([], "--orchestrator-doc", help="ORCH:TEXT"),
    param_doc: list[str] = typer.Option([], "--param-doc", help="ORCH:PARAM:TEXT"),
    projection_doc: list[str] = typer.Option([], "--projection-doc", help="PROJ:TEXT"),
    query_doc: list[str] = typer.Option([], "--query-doc", help="PROJ:QUERY:TEXT"),
    result_doc: list[str] = typer.Option([], "--result-doc", help="PROJ:RESULT:TEXT"),
    root: str = typer.Option(".", "--root", "-r", help="Directory of the generated tree"),
    module: str | None = typer.Option(None, "--module", "-m", help="Package name of the app"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Regenerate route wiring and templates"
    ),
    generate_tests: bool | None = typer.Option(
        None, "--generate-tests/--no-generate-tests", help="Emit route test stubs"
    ),
    test_type: str | None = typer.Option(
        None, "--test-type", help="Test stub flavour: http, e2e or both"
    ),
) -> None:
    """
    Reconcile the described application with the tree under --root.

    Only missing artifacts and members are added; existing code is merged
    into, never overwritten (except route wiring and templates with --force).
    """
    root_path = resolve_root(root)
    manifest = load_project_manifest(root_path)
    flags = ScaffoldFlags(
        concept=concept,
        field=field,
        method=method,
        orchestrator=orchestrator,
        param=param,
        projection=projection,
        query=query,
        result=result,
        route=route,
        concept_doc=concept_doc,
        field_doc=field_doc,
        method_doc=method_doc,
        pre=pre,
        post=post,
        invariant=invariant,
        orchestrator_doc=orchestrator_doc,
        param_doc=param_doc,
        projection_doc=projection_doc,
        query_doc=query_doc,
        result_doc=result_doc,
    )
    options = ScaffoldOptions(
        root=root_path,
        module=module or manifest.scaffold.module,
        force=force,
        generate_tests=(
            manifest.scaffold.generate_tests if generate_tests is None else generate_tests
        ),
        test_type=test_type or manifest.scaffold.test_type,
        state_dir=manifest.scaffold.state_dir,
    )
    code = apply_flags(flags, options)
    if code:
        raise typer.Exit(code=code)


def status_command(
    root: str = typer.Option(".", "--root", "-r", help="Directory of the generated tree"),
) -> None:
    """Show the persisted snapshot of the last completed run."""
    root_path = resolve_root(root)
    manifest = load_project_manifest(root_path)
    try:
        state = load_state(root_path, manifest.scaffold.state_dir)
    except TrellisError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if state is None:
        console.print("[yellow]No scaffold state found[/yellow]")
        console.print("Run 'trellis init' to create one.")
        return

    state_file = get_state_file_path(root_path, manifest.scaffold.state_dir)
    console.print(f"State: {state_file}", highlight=False)
    console.print(f"Generated: {state.generated_at:%Y-%m-%d %H:%M} ({state.source})", highlight=False)
    console.print()

    table = Table(title="Entities")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("Members")
    for concept in state.concepts:
        members = [f"{f.name}:{f.type}" for f in concept.fields]
        members += [f"{m.name}()" for m in concept.methods]
        table.add_row("concept", concept.name, ", ".join(members) or "-")
    for orch in state.orchestrators:
        members = [f"{p.name}:{p.type}" for p in orch.params]
        table.add_row("orchestrator", orch.name, ", ".join(members) or "-")
    for proj in state.projections:
        members = [f"?{q.name}:{q.type}" for q in proj.query]
        members += [f"{r.name}:{r.type}" for r in proj.result]
        table.add_row("projection", proj.name, ", ".join(members) or "-")
    console.print(table)

    if state.routes:
        console.print()
        routes = Table(title="Routes")
        routes.add_column("Method", style="cyan")
        routes.add_column("Path")
        routes.add_column("Target")
        for r in state.routes:
            routes.add_row(r.method.value, r.path, r.target)
        console.print(routes)
