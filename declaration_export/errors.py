"""
errors.py - Export failure types.

Every failure the pipeline can surface derives from ExportError, so the
orchestrator can catch them in one place.
"""

from typing import Iterable


class ExportError(Exception):
    """Base class for export failures."""


class ContentUnavailable(ExportError):
    """The document markup to render was missing or empty."""


class ValidationIncomplete(ExportError):
    """One or more required fields are unset."""

    def __init__(self, missing: Iterable[str]):
        self.missing = tuple(missing)
        super().__init__(f"Missing required fields: {', '.join(self.missing)}")


class EncodingFailed(ExportError):
    """The encoder returned no data on every attempt."""


class RenderTargetBusy(ExportError):
    """A second rasterization was started while one was still running."""
