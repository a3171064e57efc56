"""
Entity models of the desired graph.

Concepts are domain entities, orchestrators are state-changing use cases and
projections are read models. Routes bind an HTTP method and path to an
orchestrator (non-GET) or a projection (GET).
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..strings import handler_name, to_snake_case
from .fields import FieldKind, FieldType


class _Spec(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


def name_key(name: str) -> str:
    """Lookup key for a symbolified name; lookups are case-insensitive."""
    return name.casefold()


class HttpMethod(StrEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class FieldSpec(_Spec):
    """
    A typed member of a concept, orchestrator input, or projection query/result.

    Attributes:
        name: Symbolified field name (e.g., 'UnitPrice')
        type: Semantic field type
        doc: Optional documentation
    """

    name: str
    type: FieldType
    doc: str | None = None

    @property
    def attr(self) -> str:
        """Python attribute and column name."""
        return to_snake_case(self.name)

    @property
    def column_type(self) -> str:
        return self.type.column_type


ID_FIELD = FieldSpec(name="ID", type=FieldType(kind=FieldKind.STRING))


class MethodSpec(_Spec):
    """
    A behavior stub on a concept. Methods never carry generated logic.

    Attributes:
        name: Symbolified method name
        description: What the method does
        pre_condition: Condition that must hold before the call
        post_condition: Condition that holds after the call
        invariant: Invariant the method preserves
    """

    name: str
    description: str | None = None
    pre_condition: str | None = None
    post_condition: str | None = None
    invariant: str | None = None

    @property
    def attr(self) -> str:
        return to_snake_case(self.name)


class RouteSpec(_Spec):
    """An HTTP route bound to an orchestrator or projection."""

    method: HttpMethod
    path: str
    target: str

    @property
    def handler_name(self) -> str:
        return handler_name(self.method.value, self.path, self.target)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.method.value, self.path, name_key(self.target))

    def __str__(self) -> str:
        return f"{self.method.value}:{self.path}:{self.target}"


class ConceptSpec(_Spec):
    """
    A domain entity: one dataclass, one store, one table.

    The identifier field is implicit: it is not listed in ``fields`` but is
    always the first member and the first column.
    """

    name: str
    doc: str | None = None
    fields: list[FieldSpec] = []
    methods: list[MethodSpec] = []

    @property
    def module_name(self) -> str:
        return to_snake_case(self.name)

    @property
    def table_name(self) -> str:
        return to_snake_case(self.name)

    @property
    def all_fields(self) -> list[FieldSpec]:
        return [ID_FIELD, *self.fields]


class OrchestratorSpec(_Spec):
    """A state-changing use case with typed input parameters."""

    name: str
    doc: str | None = None
    params: list[FieldSpec] = []
    route: RouteSpec | None = None

    @property
    def module_name(self) -> str:
        return to_snake_case(self.name)


class ProjectionSpec(_Spec):
    """A read model with a query shape and a result shape."""

    name: str
    doc: str | None = None
    query: list[FieldSpec] = []
    result: list[FieldSpec] = []
    route: RouteSpec | None = None

    @property
    def module_name(self) -> str:
        return to_snake_case(self.name)


def member_names(members: list[FieldSpec] | list[MethodSpec]) -> set[str]:
    """Case-insensitive name set of a member list."""
    return {name_key(m.name) for m in members}
