"""Composable building blocks for the piimask redaction pipeline."""

from .config import RunConfig, PageResult
from .detection import detect_entities, detect_pages
from .rendering import render_page, replace_entities
from .orchestration import process_path, redact_document, redact_pdf_bytes

__all__ = [
    "RunConfig",
    "PageResult",
    "detect_entities",
    "detect_pages",
    "render_page",
    "replace_entities",
    "process_path",
    "redact_document",
    "redact_pdf_bytes",
]
