"""
State reconciliation: desired graph vs persisted snapshot vs files on disk.

Classification is by name and member-set difference against the persisted
snapshot. Generated sources are never re-read to decide what changed; the
probe is only asked whether an artifact file exists at all, so deleted
artifacts get restored.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum

from .errors import ValidationError
from .ir import (
    ConceptSpec,
    DesiredGraph,
    GraphBuilder,
    HttpMethod,
    OrchestratorSpec,
    ProjectionSpec,
    RouteSpec,
    member_names,
    name_key,
)
from .layout import FileProbe

logger = logging.getLogger(__name__)


class EditKind(StrEnum):
    CREATE = "create"  # render every artifact that is absent, merge the rest
    EXTEND = "extend"  # merge only the new members
    RECREATE = "recreate"  # regenerate from the merged graph (route wiring & templates only)


# Member groups per entity kind
MEMBER_GROUPS: dict[str, tuple[str, ...]] = {
    "concept": ("fields", "methods"),
    "orchestrator": ("params",),
    "projection": ("query", "result"),
}


@dataclass
class Edit:
    """
    A structural edit for one entity.

    ``entity`` is the merged definition (everything persisted plus everything
    newly requested); ``new_members`` maps a member group to the members
    absent from the persisted snapshot.
    """

    kind: EditKind
    entity_kind: str
    entity: ConceptSpec | OrchestratorSpec | ProjectionSpec
    new_members: dict[str, list] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.entity.name

    @property
    def owner_key(self) -> tuple[str, str]:
        return (self.entity_kind, self.entity.name)

    def members(self, group: str) -> list:
        return self.new_members.get(group, [])


@dataclass
class RouteEdit:
    """An edit for one route: its wiring entry, template and test stubs."""

    kind: EditKind
    route: RouteSpec
    target: OrchestratorSpec | ProjectionSpec
    new_members: dict[str, list] = field(default_factory=dict)

    @property
    def owner_key(self) -> tuple[str, str]:
        return ("route", str(self.route))

    @property
    def is_view(self) -> bool:
        return self.route.method is HttpMethod.GET

    def members(self, group: str) -> list:
        return self.new_members.get(group, [])


@dataclass
class EditPlan:
    """
    Everything a run has to do.

    Attributes:
        graph: Merged graph (persisted ∪ desired); the next snapshot
        persisted: Graph of the previous snapshot (empty on a first run)
        concepts: Concept edits in graph order
        orchestrators: Orchestrator edits in graph order
        projections: Projection edits in graph order
        routes: Route edits in route order
        force: Whether route wiring and templates are regenerated
        test_routes: Routes that need test stubs
        test_types: Which stub flavours to emit ("http", "e2e")
    """

    graph: DesiredGraph
    persisted: DesiredGraph
    concepts: list[Edit] = field(default_factory=list)
    orchestrators: list[Edit] = field(default_factory=list)
    projections: list[Edit] = field(default_factory=list)
    routes: list[RouteEdit] = field(default_factory=list)
    force: bool = False
    test_routes: list[RouteSpec] = field(default_factory=list)
    test_types: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (
            self.concepts or self.orchestrators or self.projections or self.routes or self.test_routes
        )

    @property
    def graph_changed(self) -> bool:
        return self.graph != self.persisted

    def summary(self) -> str:
        """Human-readable summary of planned edits."""
        lines = []
        for label, edits in (
            ("Concepts", self.concepts),
            ("Orchestrators", self.orchestrators),
            ("Projections", self.projections),
        ):
            for kind, symbol in ((EditKind.CREATE, "+"), (EditKind.EXTEND, "~")):
                names = [e.name for e in edits if e.kind is kind]
                if names:
                    lines.append(f"  {label}: {symbol}{len(names)} ({', '.join(names)})")
        for kind, symbol in (
            (EditKind.CREATE, "+"),
            (EditKind.EXTEND, "~"),
            (EditKind.RECREATE, "!"),
        ):
            routes = [str(e.route) for e in self.routes if e.kind is kind]
            if routes:
                lines.append(f"  Routes: {symbol}{len(routes)} ({', '.join(routes)})")
        if self.test_routes:
            lines.append(f"  Test stubs: {len(self.test_routes)} route(s)")
        return "\n".join(lines) if lines else "  No changes"


# =============================================================================
# Validation
# =============================================================================


def validate_graph(graph: DesiredGraph) -> None:
    """
    Check route bindings of a merged graph.

    Raises:
        ValidationError: On the first dangling or mismatched route
    """
    for route in graph.routes:
        if route.method is HttpMethod.GET:
            if graph.get_projection(route.target) is None:
                if graph.get_orchestrator(route.target) is not None:
                    raise ValidationError(
                        f"Route {route}: GET routes must target a projection, "
                        f"but {route.target} is an orchestrator"
                    )
                raise ValidationError(f"Route {route}: unknown projection {route.target!r}")
        else:
            if graph.get_orchestrator(route.target) is None:
                if graph.get_projection(route.target) is not None:
                    raise ValidationError(
                        f"Route {route}: {route.method.value} routes must target an orchestrator, "
                        f"but {route.target} is a projection"
                    )
                raise ValidationError(f"Route {route}: unknown orchestrator {route.target!r}")

    targets = Counter(_target_key(r) for r in graph.routes)
    for route in graph.routes:
        if targets[_target_key(route)] > 1:
            raise ValidationError(f"{route.target} is bound to more than one route")

    bindings: dict[tuple[str, str], str] = {}
    for route in graph.routes:
        endpoint = (route.method.value, route.path)
        bound = bindings.setdefault(endpoint, route.target)
        if name_key(bound) != name_key(route.target):
            raise ValidationError(
                f"{route.method.value} {route.path} is bound to both {bound} and {route.target}"
            )

    # Handler names drop path separators, so distinct routes can collide
    handlers: dict[str, RouteSpec] = {}
    for route in graph.routes:
        other = handlers.setdefault(route.handler_name, route)
        if other.key != route.key:
            raise ValidationError(
                f"Routes {other} and {route} both derive the handler name {route.handler_name}"
            )


def _target_key(route: RouteSpec) -> tuple[str, str]:
    # A projection and an orchestrator may share a name
    kind = "projection" if route.method is HttpMethod.GET else "orchestrator"
    return (kind, name_key(route.target))


# =============================================================================
# Reconciliation
# =============================================================================


def reconcile(
    desired: DesiredGraph,
    persisted: DesiredGraph | None,
    probe: FileProbe,
    *,
    force: bool = False,
    generate_tests: bool = False,
    test_types: tuple[str, ...] = ("http",),
) -> EditPlan:
    """
    Diff ``desired`` against ``persisted`` and the tree, producing an EditPlan.

    Validation runs on the merged graph before anything else, so an invalid
    request never results in an edit.

    Raises:
        ValidationError: If a route is dangling or bound to the wrong kind
    """
    previous = persisted or DesiredGraph()
    merged = previous.merged_with(desired)
    validate_graph(merged)

    layout = probe.layout
    plan = EditPlan(
        graph=merged,
        persisted=previous,
        force=force,
        test_types=test_types if generate_tests else (),
    )

    for concept in merged.concepts.values():
        artifacts = [
            layout.domain_model(concept),
            layout.store_interface(concept),
            layout.sqlite_store(concept),
        ]
        edit = _classify(
            "concept", concept, previous.get_concept(concept.name), artifacts, probe
        )
        if edit:
            plan.concepts.append(edit)

    for orch in merged.orchestrators.values():
        edit = _classify(
            "orchestrator",
            orch,
            previous.get_orchestrator(orch.name),
            [layout.orchestrator(orch)],
            probe,
        )
        if edit:
            plan.orchestrators.append(edit)

    for proj in merged.projections.values():
        edit = _classify(
            "projection",
            proj,
            previous.get_projection(proj.name),
            [layout.projection(proj)],
            probe,
        )
        if edit:
            plan.projections.append(edit)

    entity_edits = {e.owner_key: e for e in plan.orchestrators + plan.projections}
    previous_routes = {r.key for r in previous.routes}
    routes_missing = not probe.exists(layout.routes_file)
    for route in merged.routes:
        if route.method is HttpMethod.GET:
            target = merged.get_projection(route.target)
            template = layout.view_template(target)
            target_edit = entity_edits.get(("projection", target.name))
        else:
            target = merged.get_orchestrator(route.target)
            template = layout.form_template(target)
            target_edit = entity_edits.get(("orchestrator", target.name))

        if route.key not in previous_routes:
            kind = EditKind.CREATE
        elif force:
            kind = EditKind.RECREATE
        elif routes_missing or not probe.exists(template):
            kind = EditKind.CREATE
        elif target_edit is not None and target_edit.new_members:
            kind = EditKind.EXTEND
        else:
            continue
        new_members = target_edit.new_members if target_edit else {}
        plan.routes.append(RouteEdit(kind=kind, route=route, target=target, new_members=new_members))

    if generate_tests:
        if probe.exists(layout.tests_file):
            plan.test_routes = [r for r in merged.routes if r.key not in previous_routes]
        else:
            plan.test_routes = list(merged.routes)

    logger.debug("Edit plan:\n%s", plan.summary())
    return plan


def _classify(entity_kind, entity, previous, artifacts, probe: FileProbe) -> Edit | None:
    groups = MEMBER_GROUPS[entity_kind]
    if previous is None:
        return Edit(
            kind=EditKind.CREATE,
            entity_kind=entity_kind,
            entity=entity,
            new_members={g: list(getattr(entity, g)) for g in groups},
        )

    new_members = {}
    for group in groups:
        known = member_names(getattr(previous, group))
        added = [m for m in getattr(entity, group) if name_key(m.name) not in known]
        if added:
            new_members[group] = added
    if new_members:
        return Edit(kind=EditKind.EXTEND, entity_kind=entity_kind, entity=entity, new_members=new_members)

    if not all(probe.exists(path) for path in artifacts):
        logger.info("Restoring missing artifacts for %s %s", entity_kind, entity.name)
        return Edit(kind=EditKind.CREATE, entity_kind=entity_kind, entity=entity)
    return None


def settle_graph(plan: EditPlan, failed: set[tuple[str, str]]) -> DesiredGraph:
    """
    Graph to persist after a run in which some artifacts were skipped.

    Entities whose artifacts failed keep their previously persisted
    definition (or stay absent), so the next run plans the same edits again.
    """
    if not failed:
        return plan.graph

    merged = plan.graph
    keep = DesiredGraph(
        concepts={n: c for n, c in merged.concepts.items() if ("concept", n) not in failed},
        orchestrators={
            n: o for n, o in merged.orchestrators.items() if ("orchestrator", n) not in failed
        },
        projections={n: p for n, p in merged.projections.items() if ("projection", n) not in failed},
    )
    builder = GraphBuilder.from_graph(plan.persisted)
    builder.update(keep)
    for route in merged.routes:
        if ("route", str(route)) in failed:
            continue
        exists = (
            builder.has_projection(route.target)
            if route.method is HttpMethod.GET
            else builder.has_orchestrator(route.target)
        )
        if exists:
            builder.add_route(route.method, route.path, route.target)
    return builder.build()
