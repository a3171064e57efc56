"""
Unit tests for the persisted state module.

Tests the snapshot written after every run:
- JSON document shape
- Round trip back to a DesiredGraph
- Error handling for unreadable snapshots
- Dependency diagram
"""

import json
from pathlib import Path

import pytest

from trellis.core.errors import StateError
from trellis.core.flags import ScaffoldFlags
from trellis.core.ir import DesiredGraph
from trellis.core.state import (
    PersistedState,
    clear_state,
    get_state_file_path,
    load_state,
    render_dot,
    save_state,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def graph() -> DesiredGraph:
    return ScaffoldFlags(
        field=["Order:Total:int", "Order:Note:custom:Markdown"],
        method=["Order:Cancel"],
        pre=["Order:Cancel:order is open"],
        param=["PlaceOrder:Total:int"],
        query=["OrderSummary:Customer:string"],
        result=["OrderSummary:Total:int"],
        route=["POST:/orders:PlaceOrder", "GET:/orders/summary:OrderSummary"],
    ).to_graph()


# =============================================================================
# Snapshot Tests
# =============================================================================


class TestPersistedState:
    """Tests for the snapshot document."""

    def test_document_uses_camel_case(self, graph: DesiredGraph):
        doc = PersistedState.from_graph(graph, source="flags").to_document()

        assert set(doc) == {"generatedAt", "source", "concepts", "orchestrators", "projections", "routes"}
        cancel = doc["concepts"][0]["methods"][0]
        assert cancel == {"name": "Cancel", "preCondition": "order is open"}
        assert doc["concepts"][0]["fields"][1] == {"name": "Note", "type": "custom:Markdown"}

    def test_routes_stored_once(self, graph: DesiredGraph):
        doc = PersistedState.from_graph(graph).to_document()

        assert "route" not in doc["orchestrators"][0]
        assert doc["routes"] == [
            {"method": "POST", "path": "/orders", "target": "PlaceOrder"},
            {"method": "GET", "path": "/orders/summary", "target": "OrderSummary"},
        ]

    def test_round_trip(self, tmp_path: Path, graph: DesiredGraph):
        save_state(tmp_path, graph, source="Interactive")

        state = load_state(tmp_path)

        assert state is not None
        assert state.source == "Interactive"
        assert state.to_graph() == graph
        assert state.to_graph().orchestrators["PlaceOrder"].route.path == "/orders"


class TestStateFiles:
    """Tests for reading and writing snapshot files."""

    def test_missing_state_is_none(self, tmp_path: Path):
        assert load_state(tmp_path) is None

    def test_files_written(self, tmp_path: Path, graph: DesiredGraph):
        state_file = save_state(tmp_path, graph)

        assert state_file == get_state_file_path(tmp_path)
        assert state_file == tmp_path / ".scaffold" / "state.json"
        assert (tmp_path / ".scaffold" / "state.dot").exists()
        assert json.loads(state_file.read_text())["source"] == "flags"
        assert not list(state_file.parent.glob("*.tmp"))

    def test_custom_state_dir(self, tmp_path: Path, graph: DesiredGraph):
        save_state(tmp_path, graph, state_dir="build/state")
        assert (tmp_path / "build" / "state" / "state.json").exists()
        assert load_state(tmp_path, "build/state") is not None

    def test_corrupt_state_raises(self, tmp_path: Path):
        state_file = get_state_file_path(tmp_path)
        state_file.parent.mkdir(parents=True)
        state_file.write_text("{not json")

        with pytest.raises(StateError, match="Failed to load state"):
            load_state(tmp_path)

    def test_invalid_document_raises(self, tmp_path: Path):
        state_file = get_state_file_path(tmp_path)
        state_file.parent.mkdir(parents=True)
        state_file.write_text(json.dumps({"concepts": [{"name": "X", "fields": [{"name": "A", "type": "blob"}]}]}))

        with pytest.raises(StateError):
            load_state(tmp_path)

    def test_clear_state(self, tmp_path: Path, graph: DesiredGraph):
        save_state(tmp_path, graph)
        clear_state(tmp_path)
        assert load_state(tmp_path) is None
        assert not (tmp_path / ".scaffold" / "state.dot").exists()


class TestRenderDot:
    """Tests for the dependency diagram."""

    def test_nodes_and_edges(self, graph: DesiredGraph):
        dot = render_dot(graph)

        assert dot.startswith("digraph Scaffold {\n  rankdir=LR;\n")
        assert '  "Order" [shape=box];' in dot
        assert '  "PlaceOrder" [shape=ellipse];' in dot
        assert '  "OrderSummary" [shape=diamond];' in dot
        assert '  "POST /orders" [shape=note];' in dot
        assert '  "POST /orders" -> "PlaceOrder";' in dot
        assert '  "GET /orders/summary" -> "OrderSummary";' in dot
        assert dot.endswith("}\n")
