"""Merge token-level predictions into entity spans.

Tokens are merged purely on character adjacency and label equality; there is
no BIO prefix handling. Scores are combined with a running mean, so a third
merged token is averaged against the already-averaged score of the first two.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .labels import NO_ENTITY, LabelTable
from .types import Entity, TokenPrediction


def token_candidates(
    tokens: Iterable[TokenPrediction], labels: LabelTable
) -> List[Entity]:
    """Return one single-token entity per content token with a real label.

    Token position (``index``) counts every token, special ones included.
    """
    candidates: List[Entity] = []
    for index, tok in enumerate(tokens):
        if tok.is_special_token:
            continue
        label = labels.name(tok.label_id)
        if label == NO_ENTITY:
            continue
        candidates.append(
            Entity(
                word=tok.token_text,
                entity=label,
                score=tok.score,
                start=tok.offset_start,
                end=tok.offset_end,
                index=index,
            )
        )
    return candidates


def merge_entities(candidates: Sequence[Entity]) -> List[Entity]:
    """Merge character-adjacent candidates that share a label."""

    merged: List[Entity] = []
    i = 0
    while i < len(candidates):
        current = candidates[i].model_copy()
        j = i + 1
        while (
            j < len(candidates)
            and candidates[j].start == current.end
            and candidates[j].entity == current.entity
        ):
            nxt = candidates[j]
            current.word += nxt.word
            current.end = nxt.end
            current.score = (current.score + nxt.score) / 2.0
            j += 1
        merged.append(current)
        i = j
    return merged


def merge(tokens: Sequence[TokenPrediction], labels: LabelTable) -> List[Entity]:
    """Turn ordered token predictions into ordered, non-overlapping entities."""

    return merge_entities(token_candidates(tokens, labels))


__all__ = ["merge", "merge_entities", "token_candidates"]
