"""
Field types for the desired graph.

A field type is a closed set of kinds plus one escape hatch (``custom``)
that carries an opaque tag. Every per-kind mapping (schema column, Python
annotation, default literal, HTML input) is a table keyed by FieldKind.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

from ..errors import InputError


class FieldKind(StrEnum):
    """Semantic field kinds."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    FLOAT = "float"
    TIME = "time"  # ISO-8601 text
    CUSTOM = "custom"


_ALIASES: dict[str, FieldKind] = {
    "string": FieldKind.STRING,
    "str": FieldKind.STRING,
    "text": FieldKind.STRING,
    "int": FieldKind.INT,
    "integer": FieldKind.INT,
    "int64": FieldKind.INT,
    "bool": FieldKind.BOOL,
    "boolean": FieldKind.BOOL,
    "float": FieldKind.FLOAT,
    "float64": FieldKind.FLOAT,
    "double": FieldKind.FLOAT,
    "time": FieldKind.TIME,
    "datetime": FieldKind.TIME,
    "timestamp": FieldKind.TIME,
}

COLUMN_TYPES: dict[FieldKind, str] = {
    FieldKind.STRING: "TEXT",
    FieldKind.INT: "INTEGER",
    FieldKind.BOOL: "BOOLEAN",
    FieldKind.FLOAT: "DOUBLE PRECISION",
    FieldKind.TIME: "TEXT",
    FieldKind.CUSTOM: "TEXT",
}

PYTHON_TYPES: dict[FieldKind, str] = {
    FieldKind.STRING: "str",
    FieldKind.INT: "int",
    FieldKind.BOOL: "bool",
    FieldKind.FLOAT: "float",
    FieldKind.TIME: "str",
    FieldKind.CUSTOM: "object",
}

DEFAULT_LITERALS: dict[FieldKind, str] = {
    FieldKind.STRING: '""',
    FieldKind.INT: "0",
    FieldKind.BOOL: "False",
    FieldKind.FLOAT: "0.0",
    FieldKind.TIME: '""',
    FieldKind.CUSTOM: "None",
}

INPUT_ATTRS: dict[FieldKind, str] = {
    FieldKind.STRING: 'type="text"',
    FieldKind.INT: 'type="number"',
    FieldKind.BOOL: 'type="checkbox" value="true"',
    FieldKind.FLOAT: 'type="number" step="any"',
    FieldKind.TIME: 'type="datetime-local"',
    FieldKind.CUSTOM: 'type="text"',
}


class FieldType(BaseModel):
    """
    A field's semantic type.

    Serialized as a single token: ``int``, ``custom`` or ``custom:Money``.
    """

    kind: FieldKind
    tag: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, token: str) -> FieldType:
        """
        Parse a type token from a flag or an interview answer.

        Raises:
            InputError: If the token names no known kind
        """
        raw = token.strip()
        head, _, tag = raw.partition(":")
        if head.lower() == "custom":
            return cls(kind=FieldKind.CUSTOM, tag=tag.strip() or None)
        if tag:
            raise InputError(f"Only custom types take a tag: {token!r}")
        kind = _ALIASES.get(raw.lower())
        if kind is None:
            known = ", ".join(k.value for k in FieldKind)
            raise InputError(f"Unknown field type {token!r} (expected one of {known}, or custom:Tag)")
        return cls(kind=kind, tag=None)

    @model_validator(mode="before")
    @classmethod
    def _from_token(cls, data: Any) -> Any:
        if isinstance(data, str):
            try:
                parsed = cls.parse(data)
            except InputError as e:
                raise ValueError(e.message) from e
            return {"kind": parsed.kind, "tag": parsed.tag}
        return data

    @model_serializer
    def _to_token(self) -> str:
        return str(self)

    def __str__(self) -> str:
        if self.kind is FieldKind.CUSTOM and self.tag:
            return f"custom:{self.tag}"
        return self.kind.value

    @property
    def column_type(self) -> str:
        return COLUMN_TYPES[self.kind]

    @property
    def python_type(self) -> str:
        return PYTHON_TYPES[self.kind]

    @property
    def default_literal(self) -> str:
        return DEFAULT_LITERALS[self.kind]

    @property
    def input_attrs(self) -> str:
        return INPUT_ATTRS[self.kind]
