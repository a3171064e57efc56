"""
The desired graph: every concept, orchestrator, projection and route
collected for one invocation.

DesiredGraph is immutable. GraphBuilder is the only way to assemble one, so
name normalization, member de-duplication and route binding happen in a
single place no matter whether the input came from flags, an interview or a
persisted snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from ..errors import InputError
from ..strings import is_identifier, symbolify, to_snake_case
from .entities import (
    ConceptSpec,
    FieldSpec,
    HttpMethod,
    MethodSpec,
    OrchestratorSpec,
    ProjectionSpec,
    RouteSpec,
    name_key,
)
from .fields import FieldType

logger = logging.getLogger(__name__)


class DesiredGraph(BaseModel):
    """
    Complete declarative description of an application's shape.

    Entities are keyed by their symbolified name. Routes keep insertion
    order, which only affects the order of emitted wiring.
    """

    concepts: dict[str, ConceptSpec] = {}
    orchestrators: dict[str, OrchestratorSpec] = {}
    projections: dict[str, ProjectionSpec] = {}
    routes: list[RouteSpec] = []

    model_config = ConfigDict(frozen=True)

    def is_empty(self) -> bool:
        return not (self.concepts or self.orchestrators or self.projections or self.routes)

    def get_concept(self, name: str) -> ConceptSpec | None:
        return _lookup(self.concepts, name)

    def get_orchestrator(self, name: str) -> OrchestratorSpec | None:
        return _lookup(self.orchestrators, name)

    def get_projection(self, name: str) -> ProjectionSpec | None:
        return _lookup(self.projections, name)

    def merged_with(self, other: DesiredGraph) -> DesiredGraph:
        """
        Union of this graph and ``other``.

        Members already present here keep their definitions; ``other`` can
        only add entities, members, routes and missing documentation.
        """
        builder = GraphBuilder.from_graph(self)
        builder.update(other)
        return builder.build()


def _lookup(entities: dict, name: str):
    key = name_key(symbolify(name))
    for existing, spec in entities.items():
        if name_key(existing) == key:
            return spec
    return None


# =============================================================================
# Builder
# =============================================================================


@dataclass
class _Members:
    """Ordered, case-insensitive member collection."""

    items: dict[str, FieldSpec | MethodSpec] = field(default_factory=dict)

    def add(self, member: FieldSpec | MethodSpec, owner: str) -> bool:
        key = name_key(member.name)
        current = self.items.get(key)
        if current is None:
            self.items[key] = member
            return True
        if isinstance(member, FieldSpec) and isinstance(current, FieldSpec):
            if member.type != current.type:
                logger.warning(
                    "Keeping %s.%s as %s (ignored new type %s)",
                    owner,
                    current.name,
                    current.type,
                    member.type,
                )
        # Fill in documentation that was not recorded before
        updates = {
            k: v
            for k, v in member.model_dump(exclude={"name", "type"}).items()
            if v and not getattr(current, k)
        }
        if updates:
            self.items[key] = current.model_copy(update=updates)
        return False

    def get(self, name: str) -> FieldSpec | MethodSpec | None:
        return self.items.get(name_key(name))

    def values(self) -> list:
        return list(self.items.values())


@dataclass
class _Draft:
    name: str
    doc: str | None = None
    groups: dict[str, _Members] = field(default_factory=dict)

    def group(self, name: str) -> _Members:
        return self.groups.setdefault(name, _Members())


class GraphBuilder:
    """
    Mutable accumulator for a DesiredGraph.

    Names are symbolified on entry. Re-adding an entity or member that is
    already present is a no-op, so builders can be fed overlapping input.
    """

    def __init__(self) -> None:
        self._concepts: dict[str, _Draft] = {}
        self._orchestrators: dict[str, _Draft] = {}
        self._projections: dict[str, _Draft] = {}
        self._routes: dict[tuple[str, str, str], RouteSpec] = {}

    @classmethod
    def from_graph(cls, graph: DesiredGraph) -> GraphBuilder:
        builder = cls()
        builder.update(graph)
        return builder

    # -- entities -------------------------------------------------------------

    def add_concept(self, name: str, doc: str | None = None) -> str:
        return self._add_entity(self._concepts, name, doc)

    def add_orchestrator(self, name: str, doc: str | None = None) -> str:
        return self._add_entity(self._orchestrators, name, doc)

    def add_projection(self, name: str, doc: str | None = None) -> str:
        return self._add_entity(self._projections, name, doc)

    def has_orchestrator(self, name: str) -> bool:
        return name_key(symbolify(name)) in self._orchestrators

    def has_projection(self, name: str) -> bool:
        return name_key(symbolify(name)) in self._projections

    def concept_names(self) -> list[str]:
        return [d.name for d in self._concepts.values()]

    def orchestrator_names(self) -> list[str]:
        return [d.name for d in self._orchestrators.values()]

    def projection_names(self) -> list[str]:
        return [d.name for d in self._projections.values()]

    # -- members --------------------------------------------------------------

    def add_field(self, owner: str, name: str, type_: FieldType, doc: str | None = None) -> bool:
        """Add a concept field. The owner is declared implicitly if missing."""
        draft = self._draft(self._concepts, owner)
        symbol = _member_symbol(name)
        if name_key(symbol) == "id":
            logger.debug("Ignoring explicit id field on %s", draft.name)
            return False
        return draft.group("fields").add(FieldSpec(name=symbol, type=type_, doc=doc), draft.name)

    def add_method(self, owner: str, name: str, **docs: str | None) -> bool:
        draft = self._draft(self._concepts, owner)
        method = MethodSpec(
            name=_member_symbol(name),
            description=docs.get("description"),
            pre_condition=docs.get("pre_condition"),
            post_condition=docs.get("post_condition"),
            invariant=docs.get("invariant"),
        )
        return draft.group("methods").add(method, draft.name)

    def add_param(self, owner: str, name: str, type_: FieldType, doc: str | None = None) -> bool:
        draft = self._draft(self._orchestrators, owner)
        return draft.group("params").add(
            FieldSpec(name=_member_symbol(name), type=type_, doc=doc), draft.name
        )

    def add_query(self, owner: str, name: str, type_: FieldType, doc: str | None = None) -> bool:
        draft = self._draft(self._projections, owner)
        return draft.group("query").add(
            FieldSpec(name=_member_symbol(name), type=type_, doc=doc), draft.name
        )

    def add_result(self, owner: str, name: str, type_: FieldType, doc: str | None = None) -> bool:
        draft = self._draft(self._projections, owner)
        return draft.group("result").add(
            FieldSpec(name=_member_symbol(name), type=type_, doc=doc), draft.name
        )

    def add_route(self, method: HttpMethod | str, path: str, target: str) -> RouteSpec:
        """
        Record a route. Target resolution is left to validation, which sees
        the persisted graph as well.
        """
        try:
            http_method = HttpMethod(str(method).strip().upper())
        except ValueError as e:
            raise InputError(f"Unknown HTTP method {method!r}") from e
        path = path.strip()
        if not path.startswith("/"):
            raise InputError(f"Route path must start with '/': {path!r}")
        if any(ch.isspace() for ch in path):
            raise InputError(f"Route path cannot contain spaces: {path!r}")
        route = RouteSpec(method=http_method, path=path, target=_entity_symbol(target))
        self._routes.setdefault(route.key, route)
        return self._routes[route.key]

    # -- documentation ----------------------------------------------------------

    def set_entity_doc(self, kind: str, name: str, doc: str) -> None:
        table = self._table(kind)
        draft = table.get(name_key(_entity_symbol(name)))
        if draft is None:
            raise InputError(f"Documentation for unknown {kind} {name!r}")
        draft.doc = doc

    def set_member_doc(self, kind: str, owner: str, group: str, name: str, **docs: str) -> None:
        table = self._table(kind)
        draft = table.get(name_key(_entity_symbol(owner)))
        member = draft.group(group).get(_member_symbol(name)) if draft else None
        if draft is None or member is None:
            raise InputError(f"Documentation for unknown member {owner}.{name}")
        draft.group(group).items[name_key(member.name)] = member.model_copy(update=docs)

    # -- assembly -------------------------------------------------------------

    def update(self, graph: DesiredGraph) -> None:
        """Feed every entity, member and route of ``graph`` into this builder."""
        for concept in graph.concepts.values():
            self.add_concept(concept.name, concept.doc)
            for f in concept.fields:
                self.add_field(concept.name, f.name, f.type, f.doc)
            for m in concept.methods:
                self.add_method(concept.name, m.name, **m.model_dump(exclude={"name"}))
        for orch in graph.orchestrators.values():
            self.add_orchestrator(orch.name, orch.doc)
            for p in orch.params:
                self.add_param(orch.name, p.name, p.type, p.doc)
        for proj in graph.projections.values():
            self.add_projection(proj.name, proj.doc)
            for q in proj.query:
                self.add_query(proj.name, q.name, q.type, q.doc)
            for r in proj.result:
                self.add_result(proj.name, r.name, r.type, r.doc)
        for route in graph.routes:
            self.add_route(route.method, route.path, route.target)

    def build(self) -> DesiredGraph:
        routes = list(self._routes.values())
        concepts = {
            d.name: ConceptSpec(
                name=d.name,
                doc=d.doc,
                fields=d.group("fields").values(),
                methods=d.group("methods").values(),
            )
            for d in self._concepts.values()
        }
        orchestrators = {
            d.name: OrchestratorSpec(
                name=d.name,
                doc=d.doc,
                params=d.group("params").values(),
                route=_first_route(routes, d.name, get=False),
            )
            for d in self._orchestrators.values()
        }
        projections = {
            d.name: ProjectionSpec(
                name=d.name,
                doc=d.doc,
                query=d.group("query").values(),
                result=d.group("result").values(),
                route=_first_route(routes, d.name, get=True),
            )
            for d in self._projections.values()
        }
        return DesiredGraph(
            concepts=concepts,
            orchestrators=orchestrators,
            projections=projections,
            routes=routes,
        )

    # -- internals ------------------------------------------------------------

    def _add_entity(self, table: dict[str, _Draft], name: str, doc: str | None) -> str:
        symbol = _entity_symbol(name)
        draft = table.setdefault(name_key(symbol), _Draft(name=symbol))
        if doc and not draft.doc:
            draft.doc = doc
        return draft.name

    def _draft(self, table: dict[str, _Draft], owner: str) -> _Draft:
        symbol = _entity_symbol(owner)
        return table.setdefault(name_key(symbol), _Draft(name=symbol))

    def _table(self, kind: str) -> dict[str, _Draft]:
        return {
            "concept": self._concepts,
            "orchestrator": self._orchestrators,
            "projection": self._projections,
        }[kind]


def _first_route(routes: list[RouteSpec], target: str, get: bool) -> RouteSpec | None:
    for route in routes:
        if name_key(route.target) == name_key(target) and (route.method is HttpMethod.GET) == get:
            return route
    return None


def _entity_symbol(name: str) -> str:
    symbol = symbolify(name)
    if not symbol or not is_identifier(symbol) or not is_identifier(to_snake_case(symbol)):
        raise InputError(f"{name!r} is not a usable entity name")
    return symbol


def _member_symbol(name: str) -> str:
    symbol = symbolify(name)
    if not symbol or not is_identifier(to_snake_case(symbol)):
        raise InputError(f"{name!r} is not a usable member name")
    return symbol
