"""
Persisted state management for incremental scaffolding.

The last applied desired graph is stored as a JSON snapshot next to the
generated tree. The reconciler diffs against it to tell "already applied"
from "newly requested" without re-reading generated sources.

The snapshot is written last in a run and atomically, so an interrupted run
never leaves a half-updated snapshot behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import StateError
from .ir import ConceptSpec, DesiredGraph, GraphBuilder, OrchestratorSpec, ProjectionSpec, RouteSpec

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = ".scaffold"
STATE_FILE = "state.json"
DIAGRAM_FILE = "state.dot"


class PersistedState(BaseModel):
    """
    Snapshot of an applied desired graph.

    Entities are stored as lists in graph order; routes are stored once and
    re-bound to their targets when the graph is rebuilt.
    """

    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source: str = "flags"
    concepts: list[ConceptSpec] = []
    orchestrators: list[OrchestratorSpec] = []
    projections: list[ProjectionSpec] = []
    routes: list[RouteSpec] = []

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    @classmethod
    def from_graph(cls, graph: DesiredGraph, source: str = "flags") -> PersistedState:
        return cls(
            source=source,
            concepts=list(graph.concepts.values()),
            orchestrators=list(graph.orchestrators.values()),
            projections=list(graph.projections.values()),
            routes=list(graph.routes),
        )

    def to_graph(self) -> DesiredGraph:
        builder = GraphBuilder()
        builder.update(
            DesiredGraph(
                concepts={c.name: c for c in self.concepts},
                orchestrators={o.name: o for o in self.orchestrators},
                projections={p.name: p for p in self.projections},
                routes=self.routes,
            )
        )
        return builder.build()

    def to_document(self) -> dict:
        """JSON-serializable document with camelCase keys."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={
                "orchestrators": {"__all__": {"route"}},
                "projections": {"__all__": {"route"}},
            },
        )


def get_state_dir(root: Path, state_dir: str = DEFAULT_STATE_DIR) -> Path:
    return root / state_dir


def get_state_file_path(root: Path, state_dir: str = DEFAULT_STATE_DIR) -> Path:
    """Path of the snapshot file for a tree rooted at ``root``."""
    return get_state_dir(root, state_dir) / STATE_FILE


def load_state(root: Path, state_dir: str = DEFAULT_STATE_DIR) -> PersistedState | None:
    """
    Load the persisted snapshot.

    Returns:
        The snapshot, or None if no run has completed yet

    Raises:
        StateError: If the snapshot exists but cannot be read or parsed
    """
    state_file = get_state_file_path(root, state_dir)
    if not state_file.exists():
        return None

    try:
        data = json.loads(state_file.read_text(encoding="utf-8"))
        return PersistedState.model_validate(data)
    except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
        raise StateError(f"Failed to load state from {state_file}: {e}") from e


def save_state(
    root: Path,
    graph: DesiredGraph,
    source: str = "flags",
    state_dir: str = DEFAULT_STATE_DIR,
) -> Path:
    """
    Write the snapshot atomically, followed by its dependency diagram.

    Returns:
        Path of the written snapshot

    Raises:
        StateError: If the snapshot cannot be written
    """
    state = PersistedState.from_graph(graph, source=source)
    state_file = get_state_file_path(root, state_dir)
    content = json.dumps(state.to_document(), indent=2) + "\n"
    try:
        atomic_write(state_file, content)
        atomic_write(state_file.with_name(DIAGRAM_FILE), render_dot(graph))
    except OSError as e:
        raise StateError(f"Failed to save state to {state_file}: {e}") from e

    logger.debug("Saved state to %s", state_file)
    return state_file


def clear_state(root: Path, state_dir: str = DEFAULT_STATE_DIR) -> None:
    """Remove the snapshot and diagram, forcing a full run next time."""
    state_file = get_state_file_path(root, state_dir)
    for path in (state_file, state_file.with_name(DIAGRAM_FILE)):
        if path.exists():
            try:
                path.unlink()
            except OSError as e:
                raise StateError(f"Failed to clear state at {path}: {e}") from e


def atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to a temp file beside ``path``, then replace ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def render_dot(graph: DesiredGraph) -> str:
    """
    Render the graph as Graphviz text for visualization.

    Concepts are boxes, orchestrators ellipses, projections diamonds, and
    every route is a note node pointing at its target.
    """
    lines = ["digraph Scaffold {", "  rankdir=LR;", "  node [shape=box];"]
    for name in graph.concepts:
        lines.append(f'  "{name}" [shape=box];')
    for name in graph.orchestrators:
        lines.append(f'  "{name}" [shape=ellipse];')
    for name in graph.projections:
        lines.append(f'  "{name}" [shape=diamond];')
    for route in graph.routes:
        node = f"{route.method.value} {route.path}"
        lines.append(f'  "{node}" [shape=note];')
        lines.append(f'  "{node}" -> "{route.target}";')
    lines.append("}")
    return "\n".join(lines) + "\n"
