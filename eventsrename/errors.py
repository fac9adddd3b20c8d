"""Error types for eventsrename.

The rename engine itself never raises on a well-formed project: unknown
metadata, unparseable expressions and misaligned parameters all degrade to
"nothing renamed here". These exceptions are raised by the outer surfaces
(project and metadata loading, configuration, strict parsing) and carry an
actionable suggestion for the CLI to display.
"""

from typing import Optional


class EventsRenameError(Exception):
    """Base class for all eventsrename errors."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        """Human-readable error representation."""
        parts = [self.message]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " | ".join(parts)


class ProjectFormatError(EventsRenameError):
    """The project file is not valid JSON or misses required fields."""


class MetadataError(EventsRenameError):
    """Metadata declarations could not be loaded or validated."""


class ConfigError(EventsRenameError):
    """The configuration file could not be read or written."""


class ExpressionSyntaxError(EventsRenameError):
    """An expression could not be parsed.

    Attributes:
        position: Offset in the expression text where parsing failed, if known
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        suggestion: Optional[str] = None,
    ):
        super().__init__(message, suggestion)
        self.position = position
