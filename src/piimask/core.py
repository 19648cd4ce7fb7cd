"""Public entry points: detect, redact text, redact a PDF.

The building blocks live in ``piimask.pipeline``; this module exposes the
three caller-facing operations on top of them.
"""

from __future__ import annotations

from typing import List, Optional

from .gateway import InferenceGateway
from .pipeline import (
    PageResult,
    RunConfig,
    detect_entities,
    process_path,
    redact_document,
    redact_pdf_bytes,
)
from .redact import apply_redactions
from .types import Entity, PIIReplacementResponse


def detect_and_redact_text(text: str, gateway: InferenceGateway) -> PIIReplacementResponse:
    """Detect entities in ``text`` and return it with every span replaced."""
    entities: List[Entity] = detect_entities(text, gateway)
    return PIIReplacementResponse(
        sanitized_text=apply_redactions(text, entities), entities=entities
    )


def detect_and_redact_document(
    document_bytes: bytes,
    gateway: InferenceGateway,
    cfg: Optional[RunConfig] = None,
) -> bytes:
    """Redact every page of a PDF and return the serialized result."""
    out, _pages = redact_pdf_bytes(document_bytes, gateway, cfg)
    return out


__all__ = [
    "RunConfig",
    "PageResult",
    "detect_entities",
    "detect_and_redact_text",
    "detect_and_redact_document",
    "process_path",
    "redact_document",
]
