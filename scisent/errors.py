"""
Exception hierarchy for SciSent.

Extraction, rendering and translation fail independently, so each
concern gets its own error type under a common base.
"""

from __future__ import annotations


class ScisentError(Exception):
    """Base class for all SciSent errors."""


class DocumentParseError(ScisentError):
    """The document could not be read or one of its pages failed to parse."""

    def __init__(self, message: str, page: int | None = None):
        super().__init__(message)
        self.page = page


class ExtractionCancelled(ScisentError):
    """Sentence extraction was cancelled before all pages were joined."""


class TranslationError(ScisentError):
    """The translation endpoint failed (network, auth, or malformed response)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RenderError(ScisentError):
    """The document could not be opened for rendering."""
