"""High-level orchestration for document redaction runs."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from piimask.audit import write_audit
from piimask.document import PdfDocument
from piimask.gateway import InferenceGateway
from piimask.logging import get_logger

from .config import PageResult, RunConfig
from .detection import detect_pages
from .rendering import RenderResult, render_page

logger = get_logger("piimask")


def redact_document(
    document: PdfDocument, gateway: InferenceGateway, cfg: Optional[RunConfig] = None
) -> List[PageResult]:
    """Detect and redact PII on every page of ``document`` in place.

    Page texts are read up front, detection runs as one task per page, and
    replacements are applied page by page in document order. Any failure
    propagates with its page index and leaves no output behind.
    """
    cfg = cfg or RunConfig()
    t0 = time.perf_counter()
    texts = [document.page_text(idx) for idx in document.pages()]
    t_read = time.perf_counter()
    page_entities = detect_pages(texts, gateway, workers=cfg.workers)
    t_detect = time.perf_counter()

    results: List[PageResult] = []
    for idx, (text, entities) in enumerate(zip(texts, page_entities)):
        render_result: RenderResult = render_page(document, idx, text, entities, cfg)
        page = render_result.page
        if cfg.instrument:
            page.timings = {"redact": render_result.redact_duration}
        logger.info(
            "Page redacted",
            extra={
                "page_index": idx,
                "entities": len(entities),
                "replacements": page.replacements,
            },
        )
        results.append(page)

    if cfg.instrument:
        logger.info(
            "Document redacted",
            extra={
                "pages": len(results),
                "read_s": round(t_read - t0, 4),
                "detect_s": round(t_detect - t_read, 4),
                "total_s": round(time.perf_counter() - t0, 4),
            },
        )
    return results


def redact_pdf_bytes(
    data: bytes, gateway: InferenceGateway, cfg: Optional[RunConfig] = None
) -> tuple[bytes, List[PageResult]]:
    """Parse, redact and serialize a PDF; returns bytes and page results."""
    with PdfDocument.parse(data) as document:
        pages = redact_document(document, gateway, cfg)
        return document.serialize(), pages


def process_path(
    input_path: str,
    output_path: str,
    gateway: InferenceGateway,
    cfg: Optional[RunConfig] = None,
    model_ref: Optional[str] = None,
) -> Dict[str, Any]:
    """Redact a PDF on disk into ``output_path`` and optionally write an audit."""
    cfg = cfg or RunConfig()
    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    out_bytes, pages = redact_pdf_bytes(path.read_bytes(), gateway, cfg)
    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(out_bytes)

    result: Dict[str, Any] = {
        "pages": [page.model_dump() for page in pages],
        "out": str(out_path),
    }
    if cfg.write_audit:
        audit_path = write_audit(str(path), str(out_path), result, model_ref=model_ref)
        result["audit"] = str(audit_path)
    return result


__all__ = ["redact_document", "redact_pdf_bytes", "process_path"]
