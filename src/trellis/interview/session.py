"""
Interactive driver for the interview state machine.

Reads one line per prompt, feeds it to ``Interview.answer`` and prints the
feedback. End of input ends the interview with whatever was collected.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TextIO

from rich.console import Console

from ..core.errors import ArtifactIOError
from ..core.ir import DesiredGraph
from ..core.state import PersistedState, atomic_write, render_dot
from .machine import Interview

logger = logging.getLogger(__name__)

INTERVIEW_SOURCE = "Interactive"


def run_interview(
    stream: TextIO,
    console: Console,
    threshold: float = 0.8,
) -> Interview:
    """
    Run an interview to completion against ``stream``.

    Returns:
        The finished interview; its graph may be empty
    """
    interview = Interview(threshold=threshold)
    console.print("Describe the application. Answer 'done' to finish a list.", highlight=False)
    while not interview.is_done:
        console.print(interview.prompt, end=" ", markup=False, highlight=False)
        line = stream.readline()
        if not line:
            console.print()
            interview.finish()
            break
        for message in interview.answer(line):
            console.print(message, style="yellow", markup=False, highlight=False)

    logger.debug("Interview finished in state %s", interview.state)
    return interview


def write_graph(graph: DesiredGraph, args: list[str], out: Path) -> tuple[Path, Path]:
    """
    Write the collected graph as ``<out>.json`` and ``<out>.dot``.

    The JSON document is the persisted-state shape plus the equivalent
    ``scaffoldArgs`` list.

    Raises:
        ArtifactIOError: If either file cannot be written
    """
    json_path = out.with_name(out.name + ".json")
    dot_path = out.with_name(out.name + ".dot")
    document = PersistedState.from_graph(graph, source=INTERVIEW_SOURCE).to_document()
    document["scaffoldArgs"] = args
    try:
        atomic_write(json_path, json.dumps(document, indent=2) + "\n")
        atomic_write(dot_path, render_dot(graph))
    except OSError as e:
        raise ArtifactIOError(f"Failed to write interview graph to {json_path}: {e}") from e
    return json_path, dot_path
