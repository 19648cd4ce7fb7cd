"""Label table mapping dense model label ids to category names."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence, Tuple

NO_ENTITY = "O"


class LabelTable:
    """Immutable ``label_id -> name`` lookup with ``"O"`` as the no-entity sentinel."""

    __slots__ = ("_names",)

    def __init__(self, names: Sequence[str]) -> None:
        self._names: Tuple[str, ...] = tuple(names)

    @classmethod
    def from_id2label(cls, id2label: Mapping[Any, str]) -> "LabelTable":
        """Build from a model config ``id2label`` mapping.

        Keys may be ints or numeric strings (as in ``config.json``). Ids with
        no entry in the mapping resolve to the sentinel.
        """
        parsed = {int(k): str(v) for k, v in id2label.items()}
        size = max(len(parsed), max(parsed, default=-1) + 1)
        names = [NO_ENTITY] * size
        for idx, name in parsed.items():
            if idx < 0:
                raise ValueError(f"negative label id in id2label: {idx}")
            names[idx] = name
        return cls(names)

    def name(self, label_id: int) -> str:
        try:
            return self._names[label_id]
        except IndexError:
            raise KeyError(f"label id {label_id} outside table of {len(self)}") from None

    def is_entity(self, label_id: int) -> bool:
        return self.name(label_id) != NO_ENTITY

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        return f"LabelTable({list(self._names)!r})"


__all__ = ["LabelTable", "NO_ENTITY"]
