"""
Unit tests for the state reconciler.

Tests edit classification and route validation:
- CREATE on a first run, EXTEND for new members, nothing when unchanged
- Restoration of deleted artifacts
- Route/target binding rules
- Graph settling after skipped artifacts
"""

import pytest

from trellis.core.errors import ValidationError
from trellis.core.flags import ScaffoldFlags
from trellis.core.ir import DesiredGraph
from trellis.core.layout import FileProbe
from trellis.core.reconciler import EditKind, reconcile, settle_graph, validate_graph


def graph_of(**flags) -> DesiredGraph:
    return ScaffoldFlags(**flags).to_graph()


def touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")


# =============================================================================
# Validation
# =============================================================================


class TestValidateGraph:
    """Tests for route binding validation."""

    def test_get_route_to_orchestrator(self):
        graph = graph_of(orchestrator=["SomeOrchestrator"], route=["GET:/x:SomeOrchestrator"])
        with pytest.raises(ValidationError, match="GET routes must target a projection"):
            validate_graph(graph)

    def test_post_route_to_projection(self):
        graph = graph_of(projection=["Report"], route=["POST:/report:Report"])
        with pytest.raises(ValidationError, match="must target an orchestrator"):
            validate_graph(graph)

    def test_dangling_target(self):
        with pytest.raises(ValidationError, match="unknown projection"):
            validate_graph(graph_of(route=["GET:/x:Nowhere"]))

    def test_second_route_for_target(self):
        graph = graph_of(
            orchestrator=["PlaceOrder"],
            route=["POST:/orders:PlaceOrder", "PUT:/orders:PlaceOrder"],
        )
        with pytest.raises(ValidationError, match="more than one route"):
            validate_graph(graph)

    def test_endpoint_bound_twice(self):
        graph = graph_of(
            orchestrator=["PlaceOrder", "CancelOrder"],
            route=["POST:/orders:PlaceOrder", "POST:/orders:CancelOrder"],
        )
        with pytest.raises(ValidationError):
            validate_graph(graph)

    def test_same_name_across_kinds(self):
        validate_graph(
            graph_of(
                orchestrator=["Report"],
                projection=["Report"],
                route=["POST:/reports:Report", "GET:/reports:Report"],
            )
        )

    def test_handler_name_collision(self):
        graph = graph_of(projection=["BC", "C"], route=["GET:/a:BC", "GET:/aB:C"])
        with pytest.raises(ValidationError, match="handleGetABC"):
            validate_graph(graph)

    def test_valid_graph(self):
        validate_graph(
            graph_of(
                orchestrator=["PlaceOrder"],
                projection=["OrderSummary"],
                route=["POST:/orders:PlaceOrder", "GET:/orders:OrderSummary"],
            )
        )

    def test_target_resolved_against_persisted(self, probe: FileProbe):
        """A route may target an entity that only the snapshot knows about."""
        persisted = graph_of(orchestrator=["PlaceOrder"])
        plan = reconcile(graph_of(route=["POST:/orders:PlaceOrder"]), persisted, probe)
        assert [str(e.route) for e in plan.routes] == ["POST:/orders:PlaceOrder"]


# =============================================================================
# Classification
# =============================================================================


class TestReconcile:
    """Tests for edit classification."""

    def test_first_run_creates_everything(self, probe: FileProbe):
        desired = graph_of(
            field=["Widget:Name:string"],
            param=["CreateWidget:Name:string"],
            route=["POST:/widgets:CreateWidget"],
        )
        plan = reconcile(desired, None, probe)

        assert [(e.kind, e.name) for e in plan.concepts] == [(EditKind.CREATE, "Widget")]
        assert [(e.kind, e.name) for e in plan.orchestrators] == [(EditKind.CREATE, "CreateWidget")]
        assert [e.kind for e in plan.routes] == [EditKind.CREATE]
        assert plan.concepts[0].members("fields")[0].name == "Name"

    def test_new_member_extends(self, probe: FileProbe, layout):
        persisted = graph_of(field=["Widget:Name:string"])
        for path in (
            layout.domain_model(persisted.concepts["Widget"]),
            layout.store_interface(persisted.concepts["Widget"]),
            layout.sqlite_store(persisted.concepts["Widget"]),
        ):
            touch(path)

        plan = reconcile(graph_of(field=["Widget:Stock:int"]), persisted, probe)

        edit = plan.concepts[0]
        assert edit.kind is EditKind.EXTEND
        assert [f.name for f in edit.members("fields")] == ["Stock"]
        assert [f.name for f in edit.entity.fields] == ["Name", "Stock"]

    def test_unchanged_is_empty(self, probe: FileProbe, layout):
        persisted = graph_of(field=["Widget:Name:string"])
        widget = persisted.concepts["Widget"]
        for path in (layout.domain_model(widget), layout.store_interface(widget), layout.sqlite_store(widget)):
            touch(path)

        plan = reconcile(graph_of(field=["widget:name:string"]), persisted, probe)

        assert plan.is_empty()
        assert not plan.graph_changed

    def test_missing_artifact_restored(self, probe: FileProbe, layout):
        persisted = graph_of(field=["Widget:Name:string"])
        touch(layout.domain_model(persisted.concepts["Widget"]))

        plan = reconcile(graph_of(concept=["Widget"]), persisted, probe)

        assert [(e.kind, e.new_members) for e in plan.concepts] == [(EditKind.CREATE, {})]

    def test_force_recreates_routes(self, probe: FileProbe, layout):
        persisted = graph_of(orchestrator=["PlaceOrder"], route=["POST:/orders:PlaceOrder"])
        touch(layout.orchestrator(persisted.orchestrators["PlaceOrder"]))
        touch(layout.routes_file)
        touch(layout.form_template(persisted.orchestrators["PlaceOrder"]))

        assert reconcile(persisted, persisted, probe).routes == []
        plan = reconcile(persisted, persisted, probe, force=True)
        assert [e.kind for e in plan.routes] == [EditKind.RECREATE]

    def test_route_extends_with_target(self, probe: FileProbe, layout):
        persisted = graph_of(param=["PlaceOrder:Total:int"], route=["POST:/orders:PlaceOrder"])
        touch(layout.orchestrator(persisted.orchestrators["PlaceOrder"]))
        touch(layout.routes_file)
        touch(layout.form_template(persisted.orchestrators["PlaceOrder"]))

        plan = reconcile(graph_of(param=["PlaceOrder:Note:string"]), persisted, probe)

        assert [e.kind for e in plan.routes] == [EditKind.EXTEND]
        assert [f.name for f in plan.routes[0].members("params")] == ["Note"]

    def test_validation_precedes_planning(self, probe: FileProbe):
        with pytest.raises(ValidationError):
            reconcile(graph_of(orchestrator=["Pay"], route=["GET:/pay:Pay"]), None, probe)

    def test_test_routes(self, probe: FileProbe, layout):
        persisted = graph_of(orchestrator=["PlaceOrder"], route=["POST:/orders:PlaceOrder"])
        desired = graph_of(projection=["Report"], route=["GET:/report:Report"])

        plan = reconcile(desired, persisted, probe, generate_tests=True)
        assert len(plan.test_routes) == 2  # no tests file yet

        touch(layout.tests_file)
        plan = reconcile(desired, persisted, probe, generate_tests=True)
        assert [str(r) for r in plan.test_routes] == ["GET:/report:Report"]

    def test_summary(self, probe: FileProbe):
        plan = reconcile(graph_of(concept=["Widget"]), None, probe)
        assert "Concepts: +1 (Widget)" in plan.summary()


class TestSettleGraph:
    """Tests for settle_graph."""

    def test_failed_entity_keeps_persisted_definition(self, probe: FileProbe):
        persisted = graph_of(field=["Widget:Name:string"])
        plan = reconcile(graph_of(field=["Widget:Stock:int", "Gadget:Size:int"]), persisted, probe)

        settled = settle_graph(plan, {("concept", "Widget")})

        assert [f.name for f in settled.concepts["Widget"].fields] == ["Name"]
        assert "Gadget" in settled.concepts

    def test_new_failed_entity_dropped_with_route(self, probe: FileProbe):
        plan = reconcile(
            graph_of(orchestrator=["PlaceOrder"], route=["POST:/orders:PlaceOrder"]), None, probe
        )
        settled = settle_graph(plan, {("orchestrator", "PlaceOrder")})
        assert settled.orchestrators == {}
        assert settled.routes == []

    def test_no_failures(self, probe: FileProbe):
        plan = reconcile(graph_of(concept=["Widget"]), None, probe)
        assert settle_graph(plan, set()) is plan.graph
