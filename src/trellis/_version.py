"""
Package version.

An installed distribution reports its own metadata. A source checkout that
was never installed falls back to the ``[project]`` table of pyproject.toml.
"""

import tomllib
from importlib import metadata
from pathlib import Path

DISTRIBUTION = "trellis-scaffold"


def _checkout_version() -> str | None:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    try:
        project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return None
    return project.get("version")


try:
    __version__ = metadata.version(DISTRIBUTION)
except metadata.PackageNotFoundError:
    __version__ = _checkout_version() or "0.0.0+unknown"
