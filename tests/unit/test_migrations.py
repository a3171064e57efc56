"""
Unit tests for migration derivation.

Tests forward-only migrations:
- Create-table SQL with sorted columns
- Add-column migrations for new fields only
- Numbering continues from the files on disk
- Generated SQL runs on sqlite
"""

import sqlite3

import pytest

from trellis.core.flags import ScaffoldFlags
from trellis.core.layout import FileProbe
from trellis.core.reconciler import reconcile
from trellis.migrations import MigrationAction, MigrationPlanner, create_table_sql


def concept_edits(probe: FileProbe, *fields: str, persisted=None):
    graph = ScaffoldFlags(field=list(fields)).to_graph()
    return reconcile(graph, persisted, probe).concepts


def write_steps(probe: FileProbe, plan) -> None:
    directory = probe.layout.migrations_dir
    directory.mkdir(parents=True, exist_ok=True)
    for step in plan.steps:
        (directory / step.filename).write_text(step.sql)


# =============================================================================
# SQL
# =============================================================================


class TestCreateTableSql:
    def test_columns_sorted_by_name(self):
        graph = ScaffoldFlags(
            field=["Widget:Rating:float", "Widget:Count:int", "Widget:Name:string"]
        ).to_graph()
        sql = create_table_sql(graph.concepts["Widget"])

        assert sql == (
            "-- Widget: new table\n"
            'CREATE TABLE IF NOT EXISTS "widget" (\n'
            "    id TEXT PRIMARY KEY,\n"
            "    count INTEGER,\n"
            "    name TEXT,\n"
            "    rating DOUBLE PRECISION\n"
            ");\n"
        )

    def test_sql_runs_on_sqlite(self):
        graph = ScaffoldFlags(
            field=["Widget:Name:string", "Widget:Price:int", "Widget:Active:bool", "Widget:Seen:time"]
        ).to_graph()
        conn = sqlite3.connect(":memory:")
        conn.executescript(create_table_sql(graph.concepts["Widget"]))

        columns = {row[1]: row[2] for row in conn.execute('PRAGMA table_info("widget")')}
        assert columns == {
            "id": "TEXT",
            "active": "BOOLEAN",
            "name": "TEXT",
            "price": "INTEGER",
            "seen": "TEXT",
        }


# =============================================================================
# Planning
# =============================================================================


class TestMigrationPlanner:
    """Tests for MigrationPlanner.plan_migrations."""

    def test_first_run_creates_table(self, probe: FileProbe):
        plan = MigrationPlanner(probe).plan_migrations(
            concept_edits(probe, "Widget:Name:string", "Widget:Price:int")
        )

        assert len(plan.steps) == 1
        step = plan.steps[0]
        assert step.action is MigrationAction.CREATE_TABLE
        assert step.filename == "0001_create_widget.sql"
        assert step.columns == ["id", "name", "price"]

    def test_new_field_adds_column_once(self, probe: FileProbe):
        first = ScaffoldFlags(field=["Widget:Name:string", "Widget:Price:int"]).to_graph()
        write_steps(probe, MigrationPlanner(probe).plan_migrations(reconcile(first, None, probe).concepts))

        edits = concept_edits(probe, "Widget:Stock:int", persisted=first)
        plan = MigrationPlanner(probe).plan_migrations(edits)

        assert [s.filename for s in plan.steps] == ["0002_alter_widget_add_stock.sql"]
        assert plan.steps[0].sql.endswith('ALTER TABLE "widget" ADD COLUMN stock INTEGER;\n')

        write_steps(probe, plan)
        assert MigrationPlanner(probe).plan_migrations(edits).is_empty

    def test_numbering_follows_disk(self, probe: FileProbe):
        directory = probe.layout.migrations_dir
        directory.mkdir(parents=True)
        (directory / "0007_hand_written.sql").write_text("-- custom\n")

        plan = MigrationPlanner(probe).plan_migrations(
            concept_edits(probe, "Widget:Name:string", "Gadget:Size:int")
        )

        assert [s.filename for s in plan.steps] == [
            "0008_create_widget.sql",
            "0009_create_gadget.sql",
        ]

    def test_unknown_column_warns(self, probe: FileProbe):
        first = ScaffoldFlags(field=["Widget:Name:string", "Widget:Legacy:int"]).to_graph()
        write_steps(probe, MigrationPlanner(probe).plan_migrations(reconcile(first, None, probe).concepts))

        # A snapshot that no longer knows about Legacy
        persisted = ScaffoldFlags(field=["Widget:Name:string"]).to_graph()
        plan = MigrationPlanner(probe).plan_migrations(
            concept_edits(probe, "Widget:Stock:int", persisted=persisted)
        )

        assert [s.columns for s in plan.steps] == [["stock"]]
        assert any("legacy" in w for w in plan.warnings)


@pytest.mark.parametrize("field_type,column", [("float", "DOUBLE PRECISION"), ("custom:Money", "TEXT")])
def test_column_types(probe: FileProbe, field_type, column):
    plan = MigrationPlanner(probe).plan_migrations(concept_edits(probe, f"Invoice:Amount:{field_type}"))
    assert f"amount {column}" in plan.steps[0].sql
