"""Configuration primitives for the piimask pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Dict

from pydantic import BaseModel, Field

from piimask.types import Entity


@dataclass
class RunConfig:
    """Runtime configuration for document detection and redaction."""

    workers: int = 1  # page-level detection threads
    instrument: bool = True
    track_entities: bool = True
    write_audit: bool = True


class PageResult(BaseModel):
    """Per-page output payload."""

    page_index: int
    text: str
    entities: List[Entity] = Field(default_factory=list)
    replacements: int = 0
    timings: Optional[Dict[str, float]] = None


__all__ = ["RunConfig", "PageResult"]
