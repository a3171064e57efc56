"""
Unit tests for structural merges into Python sources.

Hand-written code around the insertion points must survive every merge
byte for byte.
"""

from pathlib import Path
from textwrap import dedent

import pytest

from trellis.core.errors import MergeTargetNotFound, ParseError
from trellis.synth.python_merge import PythonSource

PATH = Path("app/domain/order/model.py")


def source(text: str) -> PythonSource:
    return PythonSource(dedent(text).lstrip("\n"), PATH)


# =============================================================================
# Class Members
# =============================================================================


class TestAddClassFields:
    """Tests for PythonSource.add_class_fields."""

    def test_after_last_field(self):
        src = source(
            '''
            @dataclass
            class Order:
                """Order entity."""

                id: str = ""
                total: int = 0

                def cancel(self) -> None:
                    # my own logic
                    self.total = 0
            '''
        )
        added = src.add_class_fields("Order", [("note", 'note: str = ""')])

        assert added == ["note"]
        assert src.text == dedent(
            '''\
            @dataclass
            class Order:
                """Order entity."""

                id: str = ""
                total: int = 0
                note: str = ""

                def cancel(self) -> None:
                    # my own logic
                    self.total = 0
            '''
        )

    def test_existing_field_skipped(self):
        src = source(
            """
            class Order:
                total: int = 0
            """
        )
        before = src.text
        assert src.add_class_fields("Order", [("total", "total: float = 0.0")]) == []
        assert src.text == before

    def test_after_docstring_only(self):
        src = source(
            '''
            class PlaceOrderInput:
                """Input for PlaceOrder."""


            def place_order(data): ...
            '''
        )
        src.add_class_fields("PlaceOrderInput", [("total", "total: int = 0")])

        assert src.text.startswith(
            'class PlaceOrderInput:\n    """Input for PlaceOrder."""\n\n    total: int = 0\n\n\n'
        )

    def test_missing_class(self):
        with pytest.raises(MergeTargetNotFound, match="class Invoice not found"):
            source("class Order:\n    pass\n").add_class_fields("Invoice", [("a", "a: int = 0")])

    def test_empty_list_is_noop(self):
        src = source("x = 1\n")
        assert src.add_class_fields("Missing", []) == []


class TestAddMethods:
    """Tests for PythonSource.add_methods."""

    def test_appends_to_class_end(self):
        src = source(
            """
            class Order:
                total: int = 0

                def custom(self):
                    return "hand written"


            HELPER = 1
            """
        )
        block = 'def cancel(self) -> None:\n    """Cancel."""\n    raise NotImplementedError("Order.cancel")'
        assert src.add_methods("Order", [("cancel", block)]) == ["cancel"]

        assert '    def custom(self):\n        return "hand written"\n\n    def cancel(self) -> None:\n' in src.text
        assert src.text.endswith("\n\nHELPER = 1\n")

    def test_existing_method_skipped(self):
        src = source("class Order:\n    def cancel(self):\n        pass\n")
        assert src.add_methods("Order", [("cancel", "def cancel(self):\n    pass")]) == []


# =============================================================================
# Module Level
# =============================================================================


ROUTES = '''
def handleGetIndexHome(values):
    """hand tuned"""
    return "home.html", {}


ROUTES: list[RouteEntry] = [
    RouteEntry("GET", "/", handleGetIndexHome, "home.html"),
]
'''


class TestRoutesMerge:
    """Tests for handler and ROUTES list merges."""

    def test_handler_and_entry_added(self):
        src = source(ROUTES)
        handler = "def handlePostOrdersPlaceOrder(values):\n    return None"
        entry = 'RouteEntry("POST", "/orders", handlePostOrdersPlaceOrder, "form_place_order.html")'

        src.add_functions_before("ROUTES", [("handlePostOrdersPlaceOrder", handler)])
        src.add_list_entries("ROUTES", [("handlePostOrdersPlaceOrder", entry)])

        assert '"""hand tuned"""' in src.text
        assert src.text.index("def handlePostOrdersPlaceOrder") < src.text.index("ROUTES:")
        assert src.text.endswith(
            '    RouteEntry("GET", "/", handleGetIndexHome, "home.html"),\n'
            f"    {entry},\n"
            "]\n"
        )

    def test_entries_not_duplicated(self):
        src = source(ROUTES)
        entry = 'RouteEntry("GET", "/", handleGetIndexHome, "home.html")'
        assert src.add_list_entries("ROUTES", [("handleGetIndexHome", entry)]) == []
        assert src.add_functions_before("ROUTES", [("handleGetIndexHome", "def handleGetIndexHome(v): ...")]) == []

    def test_missing_trailing_comma_added(self):
        src = source("ROUTES = [\n    a\n]\n")
        src.add_list_entries("ROUTES", [("b", "b")])
        assert src.text == "ROUTES = [\n    a,\n    b,\n]\n"

    def test_single_line_list_expanded(self):
        src = source("ROUTES: list = []\n")
        src.add_list_entries("ROUTES", [("a", "a"), ("b", "b")])
        assert src.text == "ROUTES: list = [\n    a,\n    b,\n]\n"

    def test_missing_anchor(self):
        with pytest.raises(MergeTargetNotFound):
            source("x = 1\n").add_list_entries("ROUTES", [("a", "a")])

    def test_anchor_not_a_list(self):
        with pytest.raises(MergeTargetNotFound, match="not a list literal"):
            source("ROUTES = build_routes()\n").add_list_entries("ROUTES", [("a", "a")])


class TestAppendFunctions:
    def test_appends_once(self):
        src = source('"""Tests."""\n\nimport pytest\n')
        block = "def test_post_place_order():\n    pytest.skip()"

        src.append_functions([("test_post_place_order", block)])
        src.append_functions([("test_post_place_order", block)])

        assert src.text == f'"""Tests."""\n\nimport pytest\n\n\n{block}\n'


class TestParseErrors:
    def test_invalid_source(self):
        with pytest.raises(ParseError) as exc_info:
            PythonSource("class Order(:\n", PATH)
        assert str(PATH) in str(exc_info.value)
        assert not exc_info.value.fatal
