"""Detection stage: gateway predictions merged into entities."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from piimask.errors import PiimaskError
from piimask.gateway import InferenceGateway
from piimask.merge import merge
from piimask.types import Entity


def detect_entities(text: str, gateway: InferenceGateway) -> List[Entity]:
    """Run token classification on ``text`` and merge the predictions."""

    return merge(gateway.detect(text), gateway.labels)


def _detect_page(page_index: int, text: str, gateway: InferenceGateway) -> List[Entity]:
    try:
        return detect_entities(text, gateway)
    except PiimaskError as exc:
        exc.page = page_index
        raise


def detect_pages(
    texts: Sequence[str], gateway: InferenceGateway, workers: int = 1
) -> List[List[Entity]]:
    """Detect entities for each page text, returned in page order.

    Each page is an independent task. With ``workers > 1`` tasks are submitted
    to a thread pool and joined back by index; inference itself stays
    serialized by the gateway. The first failing page aborts the whole run.
    """
    if workers <= 1 or len(texts) <= 1:
        return [_detect_page(i, text, gateway) for i, text in enumerate(texts)]
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futs = [ex.submit(_detect_page, i, text, gateway) for i, text in enumerate(texts)]
        return [f.result() for f in futs]


__all__ = ["detect_entities", "detect_pages"]
