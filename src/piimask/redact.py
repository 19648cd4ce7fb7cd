"""Redaction routines.

Provides utilities to replace detected PII spans in a text buffer with
bracketed label placeholders while keeping unprocessed offsets valid.
"""

from typing import List, Sequence

from .errors import SpanConflictError
from .types import Entity


def placeholder(label: str) -> str:
    """Return the redaction placeholder for a label, e.g. ``[EMAIL]``."""
    return f"[{label}]"


def _check_spans(text: str, ordered: Sequence[Entity]) -> None:
    """Raise if any span is empty, out of range, or overlaps its neighbour.

    ``ordered`` must be sorted by descending ``start``.
    """
    size = len(text)
    limit = size
    for ent in ordered:
        if ent.start < 0 or ent.end > size or ent.start >= ent.end:
            raise SpanConflictError(
                f"span [{ent.start},{ent.end}) of {ent.entity!r} is outside "
                f"text of length {size}",
                operation="apply_redactions",
            )
        if ent.end > limit:
            raise SpanConflictError(
                f"span [{ent.start},{ent.end}) of {ent.entity!r} overlaps a later span",
                operation="apply_redactions",
            )
        limit = ent.start


def apply_redactions(text: str, entities: Sequence[Entity]) -> str:
    """Replace every entity span with its label placeholder.

    Parameters
    ----------
    text:
        Source text the entity offsets refer to.
    entities:
        Entities in any order; they are applied right to left.

    Returns
    -------
    str
        Sanitized copy of ``text``.

    Raises
    ------
    SpanConflictError
        If two spans overlap or a span lies outside ``text``.
    """
    ordered: List[Entity] = sorted(entities, key=lambda e: e.start, reverse=True)
    _check_spans(text, ordered)
    result = text
    for ent in ordered:
        result = result[: ent.start] + placeholder(ent.entity) + result[ent.end :]
    return result


class TextRedactor:
    """Stateless wrapper exposing :func:`apply_redactions` as ``apply``."""

    def apply(self, text: str, entities: Sequence[Entity]) -> str:
        return apply_redactions(text, entities)


__all__ = ["TextRedactor", "apply_redactions", "placeholder"]
