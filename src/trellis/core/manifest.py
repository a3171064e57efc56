"""
Project configuration loaded from ``trellis.toml``.

Every key is optional; CLI options override what the file says.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import InputError

MANIFEST_FILE = "trellis.toml"

TEST_TYPES = ("http", "e2e", "both")


@dataclass
class ScaffoldConfig:
    """Settings for ``trellis init``."""

    module: str = "app"
    state_dir: str = ".scaffold"
    generate_tests: bool = False
    test_type: str = "http"  # "http" | "e2e" | "both"


@dataclass
class InterviewConfig:
    """Settings for ``trellis interview``."""

    threshold: float = 0.8
    output: str = ".scaffold/interview/graph"


@dataclass
class ProjectManifest:
    scaffold: ScaffoldConfig = field(default_factory=ScaffoldConfig)
    interview: InterviewConfig = field(default_factory=InterviewConfig)
    path: Path | None = None


def load_manifest(root: Path) -> ProjectManifest:
    """
    Load ``trellis.toml`` from ``root``.

    Returns defaults when the file does not exist.

    Raises:
        InputError: If the file is not valid TOML or holds invalid values
    """
    path = root / MANIFEST_FILE
    if not path.exists():
        return ProjectManifest()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise InputError(f"Cannot read {path}: {e}") from e

    scaffold_data = _table(data, "scaffold", path)
    interview_data = _table(data, "interview", path)

    scaffold = ScaffoldConfig(
        module=scaffold_data.get("module", "app"),
        state_dir=scaffold_data.get("state_dir", ".scaffold"),
        generate_tests=bool(scaffold_data.get("generate_tests", False)),
        test_type=scaffold_data.get("test_type", "http"),
    )
    if scaffold.test_type not in TEST_TYPES:
        raise InputError(f"{path}: test_type must be one of {', '.join(TEST_TYPES)}")

    threshold = interview_data.get("threshold", 0.8)
    if not isinstance(threshold, int | float) or not 0 <= threshold <= 1:
        raise InputError(f"{path}: interview.threshold must be a number between 0 and 1")
    interview = InterviewConfig(
        threshold=float(threshold),
        output=interview_data.get("output", ".scaffold/interview/graph"),
    )

    return ProjectManifest(scaffold=scaffold, interview=interview, path=path)


def _table(data: dict, name: str, path: Path) -> dict:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise InputError(f"{path}: [{name}] must be a table, got {type(section).__name__}")
    return section
