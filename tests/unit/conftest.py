"""Shared fixtures for Trellis unit tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from trellis.core.flags import ScaffoldFlags
from trellis.core.layout import FileProbe, TreeLayout
from trellis.engine import ScaffoldEngine, ScaffoldOptions, ScaffoldReport


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Empty target tree."""
    path = tmp_path / "shop"
    path.mkdir()
    return path


@pytest.fixture
def layout(root: Path) -> TreeLayout:
    return TreeLayout(root=root, module="app")


@pytest.fixture
def probe(layout: TreeLayout) -> FileProbe:
    return FileProbe(layout)


@pytest.fixture
def scaffold(root: Path) -> Callable[..., ScaffoldReport]:
    """Run the engine with flag arguments against ``root``."""

    def _run(*args: str, **options) -> ScaffoldReport:
        graph = ScaffoldFlags.from_args(list(args)).to_graph()
        return ScaffoldEngine(ScaffoldOptions(root=root, **options)).run(graph)

    return _run


@pytest.fixture
def read_tree() -> Callable[[Path], dict[str, bytes]]:
    """Every file under a directory keyed by its relative path."""

    def _read(path: Path) -> dict[str, bytes]:
        return {
            str(p.relative_to(path)): p.read_bytes()
            for p in sorted(path.rglob("*"))
            if p.is_file()
        }

    return _read
