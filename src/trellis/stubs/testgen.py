"""
Test stub generation for routes.

One test function per route and test flavour, named from the HTTP method
and target. The test file is parsed before appending so a stub is only
ever written once, and edited stubs are left as they are.
"""

from __future__ import annotations

from ..core.errors import InputError
from ..core.ir import RouteSpec
from ..core.strings import e2e_test_name, http_test_name
from ..synth.generator import Generator, GeneratorResult
from ..synth.python_merge import PythonSource
from ..synth.snippets import e2e_test_block, http_test_block

TEST_TYPES: dict[str, tuple[str, ...]] = {
    "http": ("http",),
    "e2e": ("e2e",),
    "both": ("http", "e2e"),
}


def resolve_test_types(test_type: str) -> tuple[str, ...]:
    """
    Map a ``--test-type`` value to the stub flavours it enables.

    Raises:
        InputError: If the value is not http, e2e or both
    """
    try:
        return TEST_TYPES[test_type.strip().lower()]
    except KeyError:
        raise InputError(f"Unknown test type {test_type!r} (expected http, e2e or both)") from None


def stub_functions(routes: list[RouteSpec], test_types: tuple[str, ...]) -> list[tuple[str, str]]:
    """``(function name, block)`` for every route and enabled flavour."""
    functions = []
    for route in routes:
        if "http" in test_types:
            functions.append((http_test_name(route.method.value, route.target), http_test_block(route)))
        if "e2e" in test_types:
            functions.append((e2e_test_name(route.target), e2e_test_block(route)))
    return functions


class TestStubGenerator(Generator):
    """Append missing route test stubs to the tests module."""

    __test__ = False  # not a pytest test class

    def generate(self) -> GeneratorResult:
        result = GeneratorResult()
        if not self.plan.test_routes or not self.plan.test_types:
            return result

        path = self.layout.tests_file
        functions = stub_functions(self.plan.test_routes, self.plan.test_types)
        owners = [("route", str(r)) for r in self.plan.test_routes]

        if not path.exists():
            source = PythonSource(self.renderer.render("tests.py.j2"), path)
            source.append_functions(functions)
            self._write_file(path, source.text, result)
            return result

        self._merge_python(path, lambda src: src.append_functions(functions), result, owners)
        return result
