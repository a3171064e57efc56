"""
Schema migrations derived from concept field sets.

Forward-only: a concept without a create migration gets one with every
current field; a concept that has one gets an add-column migration per
field whose column no migration on disk defines yet. Existing migration
files are never edited.

Not supported (requires a hand-written migration):
- Remove columns
- Change column types
- Rename columns
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from ..core.ir import ConceptSpec, FieldSpec
from ..core.layout import FileProbe, format_migration_name
from ..core.reconciler import Edit
from ..synth.generator import Generator, GeneratorResult

logger = logging.getLogger(__name__)


# =============================================================================
# Migration Types
# =============================================================================


class MigrationAction(str, Enum):
    """Types of migration actions."""

    CREATE_TABLE = "create_table"
    ADD_COLUMN = "add_column"


@dataclass
class MigrationStep:
    """A single migration file to write."""

    action: MigrationAction
    table: str
    filename: str
    sql: str
    columns: list[str] = field(default_factory=list)


@dataclass
class MigrationPlan:
    """All migration files a run will write, in numbering order."""

    steps: list[MigrationStep] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return len(self.steps) == 0


# =============================================================================
# SQL
# =============================================================================


def column_definition(f: FieldSpec) -> str:
    return f"{f.attr} {f.column_type}"


def create_table_sql(concept: ConceptSpec) -> str:
    """
    CREATE TABLE statement: the identifier first, then every field ordered
    by column name.
    """
    columns = ["id TEXT PRIMARY KEY"]
    columns += [column_definition(f) for f in sorted(concept.fields, key=lambda f: f.attr)]
    body = ",\n".join(f"    {c}" for c in columns)
    return (
        f"-- {concept.name}: new table\n"
        f'CREATE TABLE IF NOT EXISTS "{concept.table_name}" (\n{body}\n);\n'
    )


def add_column_sql(concept: ConceptSpec, f: FieldSpec) -> str:
    return (
        f"-- {concept.name}: add {f.attr}\n"
        f'ALTER TABLE "{concept.table_name}" ADD COLUMN {column_definition(f)};\n'
    )


# =============================================================================
# Migration Planning
# =============================================================================


class MigrationPlanner:
    """Plans migrations by comparing concepts to the migration files on disk."""

    def __init__(self, probe: FileProbe):
        self.probe = probe

    def plan_migrations(self, edits: list[Edit]) -> MigrationPlan:
        """
        Create a migration plan for the given concept edits.

        Args:
            edits: Concept edits, in graph order

        Returns:
            Migration plan; file numbers continue from the highest on disk
        """
        plan = MigrationPlan()
        number = self.probe.next_migration_number()
        for edit in edits:
            concept: ConceptSpec = edit.entity
            table = concept.table_name

            if self.probe.create_migration(table) is None:
                plan.steps.append(
                    MigrationStep(
                        action=MigrationAction.CREATE_TABLE,
                        table=table,
                        filename=format_migration_name(number, f"create_{table}"),
                        sql=create_table_sql(concept),
                        columns=["id", *sorted(f.attr for f in concept.fields)],
                    )
                )
                number += 1
                continue

            known = self.probe.migrated_columns(table)
            wanted = {f.attr for f in concept.fields} | {"id"}
            for f in sorted(concept.fields, key=lambda f: f.attr):
                if f.attr in known or self.probe.alter_migration(table, f.attr):
                    continue
                plan.steps.append(
                    MigrationStep(
                        action=MigrationAction.ADD_COLUMN,
                        table=table,
                        filename=format_migration_name(number, f"alter_{table}_add_{f.attr}"),
                        sql=add_column_sql(concept, f),
                        columns=[f.attr],
                    )
                )
                number += 1
            for column in sorted(known - wanted):
                plan.warnings.append(
                    f"Column '{column}' in table '{table}' is not a field of {concept.name}; "
                    "migrations are forward-only, drop it by hand if it is no longer needed."
                )
        return plan


class MigrationGenerator(Generator):
    """Write the files of a migration plan."""

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        plan = MigrationPlanner(self.probe).plan_migrations(self.plan.concepts)
        for step in plan.steps:
            path = self.layout.migrations_dir / step.filename
            self._write_new_file(path, step.sql, result)
            logger.debug("Migration %s (%s %s)", step.filename, step.action.value, step.table)
        for warning in plan.warnings:
            logger.warning(warning)
            result.add_warning(warning)
        return result
