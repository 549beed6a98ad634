"""
Exception hierarchy for tapeplace.

Errors carry an optional context dict and suggestion list which are folded
into the message, so a CLI can print ``str(exc)`` and be done.

Geometric trouble is never raised: the router degrades to weaker routing
strategies and rule problems come back from the DRC engine as data.
"""

from typing import Any, Dict, List, Optional


class TapePlaceError(Exception):
    """
    Base exception for all tapeplace errors.

    Attributes:
        context: Dictionary of contextual information (file, type, index...)
        suggestions: List of actionable suggestions for fixing the error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]

        if self.context:
            parts.append("\n\nContext:")
            for key, value in self.context.items():
                parts.append(f"\n  {key}: {value}")

        if self.suggestions:
            parts.append("\n\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"\n  - {suggestion}")

        return "".join(parts)

    def __str__(self) -> str:
        return self._format_message()


class CatalogError(TapePlaceError):
    """A footprint, pinout or pattern file is missing or malformed."""


class UnknownComponentError(CatalogError):
    """Strict catalog lookup of a type that is not defined."""

    def __init__(self, component_type: str, available: Optional[List[str]] = None):
        self.component_type = component_type
        suggestions = []
        if available:
            close = [name for name in available if component_type.split("_")[0] in name]
            if close:
                suggestions.append(f"Similar types: {', '.join(close[:5])}")
        super().__init__(
            f"Unknown component type '{component_type}'",
            context={"type": component_type},
            suggestions=suggestions,
        )


class ConnectionValidationError(TapePlaceError):
    """
    One or more connections reference components or pads that do not exist.

    Attributes:
        problems: One human readable line per bad connection
    """

    def __init__(self, problems: List[str], context: Optional[Dict[str, Any]] = None):
        self.problems = list(problems)
        count = len(self.problems)
        message = f"{count} invalid connection{'s' if count != 1 else ''}"
        if self.problems:
            message += ":\n  " + "\n  ".join(self.problems)
        super().__init__(message, context=context)


class ProjectFileError(TapePlaceError):
    """A project or design file could not be read or has the wrong shape."""
