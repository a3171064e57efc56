"""Forward-only schema migrations derived from concept fields."""

from .deriver import (
    MigrationAction,
    MigrationGenerator,
    MigrationPlan,
    MigrationPlanner,
    MigrationStep,
    add_column_sql,
    create_table_sql,
)

__all__ = [
    "MigrationAction",
    "MigrationGenerator",
    "MigrationPlan",
    "MigrationPlanner",
    "MigrationStep",
    "add_column_sql",
    "create_table_sql",
]
