"""Tests for route test stub generation."""

import ast

import pytest

from trellis.core.errors import InputError
from trellis.core.flags import ScaffoldFlags
from trellis.stubs import resolve_test_types, stub_functions

ROUTES = ScaffoldFlags(
    orchestrator=["PlaceOrder"],
    projection=["OrderSummary"],
    route=["POST:/orders:PlaceOrder", "GET:/orders/summary:OrderSummary"],
).to_graph().routes


class TestResolveTestTypes:
    @pytest.mark.parametrize(
        "value,expected",
        [("http", ("http",)), ("e2e", ("e2e",)), ("Both", ("http", "e2e"))],
    )
    def test_known(self, value, expected):
        assert resolve_test_types(value) == expected

    def test_unknown(self):
        with pytest.raises(InputError, match="Unknown test type"):
            resolve_test_types("unit")


class TestStubFunctions:
    def test_http_names(self):
        names = [name for name, _ in stub_functions(ROUTES, ("http",))]
        assert names == ["test_post_place_order", "test_get_order_summary"]

    def test_both_flavours(self):
        names = [name for name, _ in stub_functions(ROUTES, ("http", "e2e"))]
        assert names == [
            "test_post_place_order",
            "test_e2e_place_order",
            "test_get_order_summary",
            "test_e2e_order_summary",
        ]

    def test_blocks_are_valid_python(self):
        for name, block in stub_functions(ROUTES, ("http", "e2e")):
            tree = ast.parse(block)
            assert tree.body[0].name == name
            assert "pytest.skip" in block
