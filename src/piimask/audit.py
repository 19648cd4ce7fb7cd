"""Audit logging for piimask runs.

Produces an audit JSON alongside the output PDF including hashes, version,
model reference, per-page entity counts, and an optional HMAC signature when
`PIIMASK_HMAC_KEY` is present. Entity text is never written to the audit.
"""

from __future__ import annotations

from typing import Dict, Any, List, Optional
from pathlib import Path
import hashlib
import hmac
import os
import time
import orjson


def _sha256_file(path: str | Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def summarize_pages(pages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce page results to counts by label."""
    summaries = []
    for p in pages:
        by_label: Dict[str, int] = {}
        for ent in p.get("entities", []):
            label = ent.get("entity", "OTHER")
            by_label[label] = by_label.get(label, 0) + 1
        summaries.append(
            {
                "page_index": p.get("page_index"),
                "replacements": int(p.get("replacements", 0)),
                "by_label": by_label,
            }
        )
    return summaries


def write_audit(
    input_path: str,
    output_path: str,
    result: Dict[str, Any],
    model_ref: Optional[str] = None,
    errors: Optional[List[str]] = None,
) -> Path:
    """Write an audit JSON next to the output PDF and return its path."""
    out_pdf = Path(output_path)
    inp = Path(input_path)
    audit_path = out_pdf.with_suffix(".audit.json")
    from piimask import __version__ as version

    pages = result.get("pages", [])
    page_summaries = summarize_pages(pages)
    record = {
        "version": version,
        "timestamp": int(time.time()),
        "model": model_ref,
        "input": {
            "path": str(inp),
            "sha256": _sha256_file(inp),
        },
        "output": {
            "path": str(out_pdf),
            "sha256": _sha256_file(out_pdf) if out_pdf.exists() else None,
        },
        "result": {
            "summary": {
                "pages": len(pages),
                "replacements": sum(s["replacements"] for s in page_summaries),
            },
            "pages": page_summaries,
        },
        "errors": errors or [],
    }

    # Optional HMAC signature for tamper detection
    key = os.environ.get("PIIMASK_HMAC_KEY")
    data_bytes = orjson.dumps(record)
    if key:
        sig = hmac.new(key.encode("utf-8"), data_bytes, hashlib.sha256).hexdigest()
        record["hmac"] = {"alg": "HMAC-SHA256", "key_hint": "env:PIIMASK_HMAC_KEY", "value": sig}

    audit_path.write_bytes(orjson.dumps(record, option=orjson.OPT_INDENT_2))
    return audit_path
