"""Serialized access to the token-classification model and its tokenizer.

The gateway owns exactly one model and one tokenizer for the lifetime of the
process. Inference is not re-entrant, so every call runs under a single lock;
concurrent callers wait their turn.
"""

from __future__ import annotations

import threading
import time
from typing import Any, List, Sequence, Tuple

import torch
from huggingface_hub import hf_hub_download
from tokenizers import Tokenizer
from transformers import AutoModelForTokenClassification

from .errors import ModelInferenceError, ModelLoadError
from .labels import LabelTable
from .logging import get_logger
from .settings import ServiceSettings
from .types import TokenPrediction

logger = get_logger(__name__)


def resolve_device(name: str) -> torch.device:
    """Map ``auto`` to CUDA when available, otherwise pass the name through."""
    if (name or "auto").strip().lower() == "auto":
        return torch.device("cuda:0" if torch.cuda.is_available() else "cpu")
    return torch.device(name)


class InferenceGateway:
    """Tokenize, run the model and emit one :class:`TokenPrediction` per token."""

    def __init__(
        self,
        model: Any,
        tokenizer: Any,
        labels: LabelTable,
        device: torch.device | str = "cpu",
        pad_id: int = 0,
    ) -> None:
        self._model = model
        self._tokenizer = tokenizer
        self._lock = threading.Lock()
        self.labels = labels
        self.device = torch.device(device) if isinstance(device, str) else device
        self.pad_id = pad_id

    @classmethod
    def from_pretrained(cls, settings: ServiceSettings) -> "InferenceGateway":
        """Load tokenizer, weights and label table from the Hugging Face Hub.

        The tokenizer asset is fetched from ``settings.tokenizer_repo``; weights
        and ``id2label`` come from ``settings.model_repo``.

        Raises
        ------
        ModelLoadError
            If any asset cannot be resolved or loaded.
        """
        t0 = time.perf_counter()
        try:
            device = resolve_device(settings.device)
            tokenizer_file = hf_hub_download(
                repo_id=settings.tokenizer_repo,
                filename="tokenizer.json",
                revision=settings.tokenizer_revision,
            )
            logger.info("Loading tokenizer", extra={"path": str(tokenizer_file)})
            tokenizer = Tokenizer.from_file(tokenizer_file)

            model = AutoModelForTokenClassification.from_pretrained(
                settings.model_repo, revision=settings.model_revision
            )
            model.to(device)
            model.eval()
            id2label = getattr(model.config, "id2label", None)
            if not id2label:
                raise ValueError("id2label not found in model config")
            labels = LabelTable.from_id2label(id2label)
            pad_id = getattr(model.config, "pad_token_id", None) or 0
        except Exception as exc:
            raise ModelLoadError(
                f"could not load {settings.model_repo}@{settings.model_revision} "
                f"with tokenizer {settings.tokenizer_repo}: {exc}",
                operation="load_model",
            ) from exc

        logger.info(
            "Model loaded",
            extra={
                "model_repo": settings.model_repo,
                "device": str(device),
                "labels": list(labels),
                "seconds": round(time.perf_counter() - t0, 3),
            },
        )
        return cls(model, tokenizer, labels, device=device, pad_id=pad_id)

    def _tensors(self, encodings: Sequence[Any]) -> Tuple[torch.Tensor, torch.Tensor]:
        width = max((len(enc.ids) for enc in encodings), default=0)
        ids: List[List[int]] = []
        mask: List[List[int]] = []
        for enc in encodings:
            pad = width - len(enc.ids)
            ids.append(list(enc.ids) + [self.pad_id] * pad)
            mask.append(list(enc.attention_mask) + [0] * pad)
        return (
            torch.tensor(ids, dtype=torch.long, device=self.device),
            torch.tensor(mask, dtype=torch.long, device=self.device),
        )

    @staticmethod
    def _predictions(
        encoding: Any, label_ids: Sequence[int], scores: Sequence[float]
    ) -> List[TokenPrediction]:
        out: List[TokenPrediction] = []
        special = encoding.special_tokens_mask
        for pos, token in enumerate(encoding.tokens):
            start, end = encoding.offsets[pos]
            out.append(
                TokenPrediction(
                    token_text=token,
                    offset_start=int(start),
                    offset_end=int(end),
                    label_id=int(label_ids[pos]),
                    score=float(scores[pos]),
                    is_special_token=bool(special[pos]),
                )
            )
        return out

    def detect_batch(self, texts: Sequence[str]) -> List[List[TokenPrediction]]:
        """Run one forward pass over ``texts``; one prediction list per text."""
        if not texts:
            return []
        with self._lock:
            try:
                encodings = self._tokenizer.encode_batch(
                    list(texts), add_special_tokens=True
                )
                input_ids, attention_mask = self._tensors(encodings)
                with torch.inference_mode():
                    output = self._model(
                        input_ids=input_ids, attention_mask=attention_mask
                    )
                logits = output.logits if hasattr(output, "logits") else output
                probs = torch.softmax(logits.float(), dim=-1)
                max_scores, max_ids = probs.max(dim=-1)
                max_scores = max_scores.cpu().tolist()
                max_ids = max_ids.cpu().tolist()
            except Exception as exc:
                raise ModelInferenceError(
                    f"token classification failed: {exc}", operation="detect"
                ) from exc
        return [
            self._predictions(enc, max_ids[row], max_scores[row])
            for row, enc in enumerate(encodings)
        ]

    def detect(self, text: str) -> List[TokenPrediction]:
        """Token predictions for a single text, as a batch of one."""
        return self.detect_batch([text])[0]


__all__ = ["InferenceGateway", "resolve_device"]
