"""Batch runner over many PDFs.

Processes a directory or glob of inputs and writes redacted PDFs to an output
directory, preserving base filenames. Files run one after another; the model
is serialized by the gateway, so a process pool would only add model copies.
"""

from __future__ import annotations

from typing import List, Optional, Tuple
from pathlib import Path

from tqdm import tqdm

from .errors import PiimaskError
from .gateway import InferenceGateway
from .logging import get_logger
from .pipeline import RunConfig, process_path

logger = get_logger(__name__)


def run_batch(
    inputs: List[str],
    output_dir: str,
    gateway: InferenceGateway,
    cfg: Optional[RunConfig] = None,
    model_ref: Optional[str] = None,
) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str]]]:
    """Redact every input into ``output_dir``.

    Returns ``(done, failed)`` where ``done`` holds ``(input, output)`` pairs
    and ``failed`` holds ``(input, error)`` pairs.
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    done: List[Tuple[str, str]] = []
    failed: List[Tuple[str, str]] = []
    for inp in tqdm(inputs, desc="Detect+Redact"):
        out_path = str(Path(output_dir) / f"{Path(inp).stem}.redacted.pdf")
        try:
            res = process_path(inp, out_path, gateway, cfg, model_ref=model_ref)
        except (PiimaskError, OSError) as exc:
            logger.error("Batch item failed", extra={"input": inp, "error": str(exc)})
            failed.append((inp, str(exc)))
            continue
        done.append((inp, res["out"]))
    return done, failed
