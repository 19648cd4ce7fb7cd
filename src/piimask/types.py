"""Value types shared by the gateway, merger, redactors and API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class TokenPrediction:
    """Arg-max label prediction for one token of one input text."""

    token_text: str
    offset_start: int
    offset_end: int
    label_id: int
    score: float
    is_special_token: bool = False


class Entity(BaseModel):
    """A merged, labeled character span."""

    word: str
    entity: str
    score: float
    start: int
    end: int
    index: int


class InputText(BaseModel):
    text: str


class PIIResponse(BaseModel):
    entities: List[Entity] = Field(default_factory=list)


class PIIReplacementResponse(BaseModel):
    sanitized_text: str
    entities: List[Entity] = Field(default_factory=list)


__all__ = [
    "TokenPrediction",
    "Entity",
    "InputText",
    "PIIResponse",
    "PIIReplacementResponse",
]
