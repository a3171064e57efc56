"""
Scaffolding engine: reconcile, synthesize, persist.

Execution flow:
1. Load the persisted snapshot
2. Reconcile (validation happens here, before any write)
3. Run generators in fixed order: concepts, orchestrators and projections,
   routes, migrations, tests
4. Write the snapshot last
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .core.errors import ArtifactIOError
from .core.ir import DesiredGraph
from .core.layout import FileProbe, TreeLayout
from .core.reconciler import EditPlan, reconcile, settle_graph
from .core.state import DEFAULT_STATE_DIR, get_state_file_path, load_state, save_state
from .migrations import MigrationGenerator
from .stubs import TestStubGenerator, resolve_test_types
from .synth import (
    ConceptGenerator,
    Generator,
    GeneratorResult,
    RouteGenerator,
    TemplateRenderer,
    UseCaseGenerator,
)

logger = logging.getLogger(__name__)


@dataclass
class ScaffoldOptions:
    """
    Options for one scaffolding run.

    Attributes:
        root: Directory the tree is generated into
        module: Dotted package name of the generated application
        force: Regenerate route wiring and templates from the merged graph
        generate_tests: Emit route test stubs
        test_type: "http", "e2e" or "both"
        state_dir: Directory (relative to root) holding the snapshot
        source: Provenance tag recorded in the snapshot
    """

    root: Path
    module: str = "app"
    force: bool = False
    generate_tests: bool = False
    test_type: str = "http"
    state_dir: str = DEFAULT_STATE_DIR
    source: str = "flags"


@dataclass
class ScaffoldReport:
    """Outcome of a run."""

    plan: EditPlan
    result: GeneratorResult = field(default_factory=GeneratorResult)
    state_file: Path | None = None
    fatal: ArtifactIOError | None = None

    @property
    def exit_code(self) -> int:
        """Non-zero only for fatal errors; skipped artifacts still exit 0."""
        return 1 if self.fatal else 0


class ScaffoldEngine:
    """Runs one reconciliation against a tree."""

    def __init__(self, options: ScaffoldOptions):
        self.options = options
        self.layout = TreeLayout(root=options.root, module=options.module)
        self.probe = FileProbe(self.layout)

    def plan(self, desired: DesiredGraph) -> EditPlan:
        """
        Compute the edit plan without writing anything.

        Raises:
            InputError: If the test type is unknown
            ValidationError: If the merged graph has invalid routes
            StateError: If the snapshot cannot be read
        """
        test_types = resolve_test_types(self.options.test_type)
        persisted = load_state(self.options.root, self.options.state_dir)
        return reconcile(
            desired,
            persisted.to_graph() if persisted else None,
            self.probe,
            force=self.options.force,
            generate_tests=self.options.generate_tests,
            test_types=test_types,
        )

    def run(self, desired: DesiredGraph) -> ScaffoldReport:
        """
        Apply ``desired`` to the tree.

        InputError, ValidationError and StateError propagate before any file
        is written. An ArtifactIOError stops the run and is returned on the
        report; files already written stay, and the snapshot is not updated.
        """
        plan = self.plan(desired)
        if plan.is_empty():
            logger.info("Tree under %s is up to date", self.options.root)
        report = ScaffoldReport(plan=plan)
        renderer = TemplateRenderer(self.layout)

        generators: list[type[Generator]] = [
            ConceptGenerator,
            UseCaseGenerator,
            RouteGenerator,
            MigrationGenerator,
            TestStubGenerator,
        ]
        try:
            for generator_cls in generators:
                generator = generator_cls(plan, self.layout, renderer)
                report.result.merge(generator.generate())
        except ArtifactIOError as e:
            logger.error("Aborting run: %s", e)
            report.fatal = e
            return report

        graph = settle_graph(plan, report.result.failed_owners)
        state_file = get_state_file_path(self.options.root, self.options.state_dir)
        if graph != plan.persisted or not state_file.exists():
            report.state_file = save_state(
                self.options.root, graph, source=self.options.source, state_dir=self.options.state_dir
            )
        return report


def run_scaffold(desired: DesiredGraph, options: ScaffoldOptions) -> ScaffoldReport:
    """Convenience wrapper: ``ScaffoldEngine(options).run(desired)``."""
    return ScaffoldEngine(options).run(desired)
