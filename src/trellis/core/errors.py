"""
Error types for Trellis scaffolding runs.

Fatal errors (InputError, ValidationError, ArtifactIOError, StateError) abort
the run. ParseError and MergeTargetNotFound are caught per artifact and
reported as skips.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class TrellisError(Exception):
    """Base exception for all Trellis errors."""

    fatal = True

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class InputError(TrellisError):
    """
    Raised when the declarative description is malformed.

    Examples:
    - Wrong colon-arity in a flag value
    - Unknown field type
    - Name that cannot become an identifier
    """

    pass


class ValidationError(TrellisError):
    """
    Raised when the desired graph is structurally invalid.

    Examples:
    - Route targeting an unknown entity
    - GET route bound to an orchestrator
    - Non-GET route bound to a projection
    """

    pass


class ParseError(TrellisError):
    """Raised when an existing artifact is not valid source."""

    fatal = False


class MergeTargetNotFound(TrellisError):
    """Raised when a valid artifact lacks the declaration or marker to merge into."""

    fatal = False


class ArtifactIOError(TrellisError):
    """Raised when an artifact cannot be read or written."""

    pass


class StateError(TrellisError):
    """Raised when the persisted snapshot cannot be read or written."""

    pass


@dataclass
class ErrorContext:
    """
    Location of an error inside a generated artifact.

    Attributes:
        file: Path to the artifact
        line: Line number (1-indexed), 0 when unknown
        column: Column number (1-indexed), 0 when unknown
    """

    file: Path
    line: int = 0
    column: int = 0

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "app/domain/order/model.py:10:5"
        """
        if self.line:
            return f"{self.file}:{self.line}:{self.column}"
        return str(self.file)


def make_parse_error(message: str, file: Path, line: int = 0, column: int = 0) -> ParseError:
    """Create a ParseError with location context."""
    return ParseError(message, ErrorContext(file=file, line=line, column=column))


def make_merge_error(message: str, file: Path) -> MergeTargetNotFound:
    """Create a MergeTargetNotFound naming the artifact."""
    return MergeTargetNotFound(message, ErrorContext(file=file))
