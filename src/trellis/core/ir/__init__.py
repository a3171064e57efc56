"""
Internal representation of the desired application shape.
"""

from .entities import (
    ID_FIELD,
    ConceptSpec,
    FieldSpec,
    HttpMethod,
    MethodSpec,
    OrchestratorSpec,
    ProjectionSpec,
    RouteSpec,
    member_names,
    name_key,
)
from .fields import FieldKind, FieldType
from .graph import DesiredGraph, GraphBuilder

__all__ = [
    "ConceptSpec",
    "DesiredGraph",
    "FieldKind",
    "FieldSpec",
    "FieldType",
    "GraphBuilder",
    "HttpMethod",
    "ID_FIELD",
    "MethodSpec",
    "OrchestratorSpec",
    "ProjectionSpec",
    "RouteSpec",
    "member_names",
    "name_key",
]
