"""Route test stubs."""

from .testgen import TEST_TYPES, TestStubGenerator, resolve_test_types, stub_functions

__all__ = ["TEST_TYPES", "TestStubGenerator", "resolve_test_types", "stub_functions"]
