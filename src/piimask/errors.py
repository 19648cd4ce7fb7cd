"""Error taxonomy for detection and redaction.

Every error carries the ``operation`` that failed and, for document work, the
zero-based ``page`` index so callers can log a meaningful record.
"""

from __future__ import annotations

from typing import Optional


class PiimaskError(Exception):
    """Base class for all piimask failures."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        page: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.page = page

    def __str__(self) -> str:
        parts = []
        if self.operation:
            parts.append(self.operation)
        if self.page is not None:
            parts.append(f"page {self.page}")
        if parts:
            return f"[{', '.join(parts)}] {self.message}"
        return self.message


class ModelLoadError(PiimaskError):
    """Model, config or tokenizer assets could not be loaded at startup."""


class ModelInferenceError(PiimaskError):
    """Tokenizer or model failure while serving a request."""


class DocumentParseError(PiimaskError):
    """The submitted document is not a readable PDF."""


class SpanConflictError(PiimaskError):
    """Two entity spans overlap or fall outside the text."""


class DocumentWriteError(PiimaskError):
    """A page could not be rewritten or the document could not be serialized."""


__all__ = [
    "PiimaskError",
    "ModelLoadError",
    "ModelInferenceError",
    "DocumentParseError",
    "SpanConflictError",
    "DocumentWriteError",
]
