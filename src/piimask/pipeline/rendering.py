"""Rendering helpers for applying redactions and building page payloads."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Sequence

from piimask.document import PdfDocument
from piimask.errors import PiimaskError
from piimask.redact import placeholder
from piimask.types import Entity

from .config import RunConfig, PageResult


@dataclass
class RenderResult:
    page: PageResult
    redact_duration: float


def replace_entities(
    document: PdfDocument, page_index: int, entities: Sequence[Entity]
) -> int:
    """Substitute each entity's literal word on a page, last entity first."""

    replaced = 0
    for entity in reversed(entities):
        replaced += document.replace_text(
            page_index, entity.word, placeholder(entity.entity)
        )
    return replaced


def render_page(
    document: PdfDocument,
    page_index: int,
    page_text: str,
    entities: List[Entity],
    cfg: RunConfig,
) -> RenderResult:
    """Redact one page in place and produce its metadata."""

    redact_start = time.perf_counter()
    try:
        replaced = replace_entities(document, page_index, entities)
    except PiimaskError as exc:
        exc.page = page_index
        raise
    redact_duration = time.perf_counter() - redact_start

    page_payload = PageResult(
        page_index=page_index,
        text=page_text,
        entities=entities if cfg.track_entities else [],
        replacements=replaced,
        timings=None,
    )
    return RenderResult(page=page_payload, redact_duration=redact_duration)


__all__ = ["RenderResult", "render_page", "replace_entities"]
