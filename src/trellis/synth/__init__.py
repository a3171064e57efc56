"""
Source synthesis: fresh renders from templates and structural merges into
existing files.
"""

from .concepts import ConceptGenerator
from .generator import Generator, GeneratorResult, Skip
from .renderer import TemplateRenderer
from .routes import RouteGenerator
from .usecases import UseCaseGenerator

__all__ = [
    "ConceptGenerator",
    "Generator",
    "GeneratorResult",
    "RouteGenerator",
    "Skip",
    "TemplateRenderer",
    "UseCaseGenerator",
]
