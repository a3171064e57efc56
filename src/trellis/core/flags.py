"""
Repeatable flag values as the input channel of a scaffolding run.

ScaffoldFlags holds the raw ``OWNER:NAME:TYPE`` style strings exactly as
they were given; ``to_graph`` turns them into a DesiredGraph and rejects
malformed values before anything touches the filesystem.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .errors import InputError
from .ir import DesiredGraph, FieldType, GraphBuilder

# flag name -> ScaffoldFlags attribute
FLAG_ATTRS: dict[str, str] = {
    "--concept": "concept",
    "--field": "field",
    "--method": "method",
    "--orchestrator": "orchestrator",
    "--param": "param",
    "--projection": "projection",
    "--query": "query",
    "--result": "result",
    "--route": "route",
    "--concept-doc": "concept_doc",
    "--field-doc": "field_doc",
    "--method-doc": "method_doc",
    "--pre": "pre",
    "--post": "post",
    "--invariant": "invariant",
    "--orchestrator-doc": "orchestrator_doc",
    "--param-doc": "param_doc",
    "--projection-doc": "projection_doc",
    "--query-doc": "query_doc",
    "--result-doc": "result_doc",
}


class ScaffoldFlags(BaseModel):
    """Raw values of every repeatable scaffolding flag."""

    concept: list[str] = []
    field: list[str] = []
    method: list[str] = []
    orchestrator: list[str] = []
    param: list[str] = []
    projection: list[str] = []
    query: list[str] = []
    result: list[str] = []
    route: list[str] = []
    concept_doc: list[str] = []
    field_doc: list[str] = []
    method_doc: list[str] = []
    pre: list[str] = []
    post: list[str] = []
    invariant: list[str] = []
    orchestrator_doc: list[str] = []
    param_doc: list[str] = []
    projection_doc: list[str] = []
    query_doc: list[str] = []
    result_doc: list[str] = []

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_args(cls, args: list[str]) -> ScaffoldFlags:
        """
        Parse a flat argument list such as the one an interview produces.

        Accepts both ``--flag value`` and ``--flag=value``.

        Raises:
            InputError: On an unknown flag or a flag without a value
        """
        values: dict[str, list[str]] = {}
        i = 0
        while i < len(args):
            token = args[i]
            flag, eq, inline = token.partition("=")
            attr = FLAG_ATTRS.get(flag)
            if attr is None:
                raise InputError(f"Unknown scaffold flag {token!r}")
            if eq:
                value = inline
                i += 1
            elif i + 1 < len(args):
                value = args[i + 1]
                i += 2
            else:
                raise InputError(f"Flag {flag} expects a value")
            values.setdefault(attr, []).append(value)
        return cls(**values)

    def is_empty(self) -> bool:
        return not any(getattr(self, attr) for attr in FLAG_ATTRS.values())

    def to_graph(self) -> DesiredGraph:
        """
        Build the desired graph from the flag values.

        Raises:
            InputError: On wrong colon-arity, unknown types or methods,
                unusable names, or documentation for unknown members
        """
        builder = GraphBuilder()

        for name in self.concept:
            builder.add_concept(_require(name, "--concept"))
        for value in self.field:
            owner, name, type_ = _split(value, 3, "--field", "OWNER:NAME:TYPE")
            builder.add_field(owner, name, FieldType.parse(type_))
        for value in self.method:
            owner, name = _split(value, 2, "--method", "OWNER:NAME")
            builder.add_method(owner, name)

        for name in self.orchestrator:
            builder.add_orchestrator(_require(name, "--orchestrator"))
        for value in self.param:
            owner, name, type_ = _split(value, 3, "--param", "OWNER:NAME:TYPE")
            builder.add_param(owner, name, FieldType.parse(type_))

        for name in self.projection:
            builder.add_projection(_require(name, "--projection"))
        for value in self.query:
            owner, name, type_ = _split(value, 3, "--query", "OWNER:NAME:TYPE")
            builder.add_query(owner, name, FieldType.parse(type_))
        for value in self.result:
            owner, name, type_ = _split(value, 3, "--result", "OWNER:NAME:TYPE")
            builder.add_result(owner, name, FieldType.parse(type_))

        for value in self.route:
            method, path, target = _split_route(value)
            builder.add_route(method, path, target)

        self._apply_docs(builder)
        return builder.build()

    def _apply_docs(self, builder: GraphBuilder) -> None:
        for value in self.concept_doc:
            name, text = _split(value, 2, "--concept-doc", "CONCEPT:TEXT")
            builder.set_entity_doc("concept", name, text)
        for value in self.orchestrator_doc:
            name, text = _split(value, 2, "--orchestrator-doc", "ORCHESTRATOR:TEXT")
            builder.set_entity_doc("orchestrator", name, text)
        for value in self.projection_doc:
            name, text = _split(value, 2, "--projection-doc", "PROJECTION:TEXT")
            builder.set_entity_doc("projection", name, text)

        member_docs = [
            (self.field_doc, "--field-doc", "concept", "fields", "doc"),
            (self.method_doc, "--method-doc", "concept", "methods", "description"),
            (self.pre, "--pre", "concept", "methods", "pre_condition"),
            (self.post, "--post", "concept", "methods", "post_condition"),
            (self.invariant, "--invariant", "concept", "methods", "invariant"),
            (self.param_doc, "--param-doc", "orchestrator", "params", "doc"),
            (self.query_doc, "--query-doc", "projection", "query", "doc"),
            (self.result_doc, "--result-doc", "projection", "result", "doc"),
        ]
        for values, flag, kind, group, attr in member_docs:
            for value in values:
                owner, name, text = _split(value, 3, flag, "OWNER:NAME:TEXT")
                builder.set_member_doc(kind, owner, group, name, **{attr: text})


def _require(value: str, flag: str) -> str:
    if not value.strip():
        raise InputError(f"{flag} expects a non-empty name")
    return value.strip()


def _split(value: str, arity: int, flag: str, shape: str) -> list[str]:
    """Split on the first ``arity - 1`` colons; the last part keeps any further colons."""
    parts = [p.strip() for p in value.split(":", arity - 1)]
    if len(parts) != arity or not all(parts):
        raise InputError(f"{flag} expects {shape}, got {value!r}")
    return parts


def _split_route(value: str) -> tuple[str, str, str]:
    method, sep, rest = value.partition(":")
    path, sep2, target = rest.rpartition(":")
    if not (sep and sep2 and method.strip() and path.strip() and target.strip()):
        raise InputError(f"--route expects METHOD:PATH:TARGET, got {value!r}")
    return method.strip(), path.strip(), target.strip()


def graph_to_args(graph: DesiredGraph) -> list[str]:
    """
    Flatten a graph into flag arguments, one group per entity.

    Order: each concept with its fields and methods, each orchestrator with
    its params and route, each projection with its query, result and route.
    """
    args: list[str] = []
    for concept in graph.concepts.values():
        args += ["--concept", concept.name]
        for f in concept.fields:
            args += ["--field", f"{concept.name}:{f.name}:{f.type}"]
        for m in concept.methods:
            args += ["--method", f"{concept.name}:{m.name}"]
    for orch in graph.orchestrators.values():
        args += ["--orchestrator", orch.name]
        for p in orch.params:
            args += ["--param", f"{orch.name}:{p.name}:{p.type}"]
        if orch.route:
            args += ["--route", str(orch.route)]
    for proj in graph.projections.values():
        args += ["--projection", proj.name]
        for q in proj.query:
            args += ["--query", f"{proj.name}:{q.name}:{q.type}"]
        for r in proj.result:
            args += ["--result", f"{proj.name}:{r.name}:{r.type}"]
        if proj.route:
            args += ["--route", str(proj.route)]
    return args
