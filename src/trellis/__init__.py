"""
Trellis: declarative scaffolding with incremental reconciliation.

Describe concepts, orchestrators, projections and routes; Trellis creates or
patches a layered Python application tree to match, preserving hand edits.
"""

from trellis._version import __version__

__all__ = ["__version__"]
