import re
import threading
import time
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Dict, List, Tuple

import pytest
import torch

from piimask.gateway import InferenceGateway
from piimask.labels import LabelTable

LABELS = ["O", "GIVENNAME", "SURNAME", "CITY", "TELEPHONENUM"]
_TOKEN_RE = re.compile(r"\w+|[^\w\s]")


@dataclass
class FakeEncoding:
    ids: List[int]
    attention_mask: List[int]
    special_tokens_mask: List[int]
    offsets: List[Tuple[int, int]]
    tokens: List[str]


@dataclass
class FakeTokenizer:
    """Word/punctuation splitter with [CLS]/[SEP] markers and a growing vocab."""

    vocab: Dict[str, int] = field(
        default_factory=lambda: {"[PAD]": 0, "[CLS]": 1, "[SEP]": 2}
    )

    def _id(self, token: str) -> int:
        if token not in self.vocab:
            self.vocab[token] = len(self.vocab)
        return self.vocab[token]

    def id_to_token(self, token_id: int) -> str:
        for tok, idx in self.vocab.items():
            if idx == token_id:
                return tok
        raise KeyError(token_id)

    def encode(self, text: str) -> FakeEncoding:
        tokens = ["[CLS]"]
        offsets = [(0, 0)]
        special = [1]
        for m in _TOKEN_RE.finditer(text):
            tokens.append(m.group())
            offsets.append((m.start(), m.end()))
            special.append(0)
        tokens.append("[SEP]")
        offsets.append((0, 0))
        special.append(1)
        ids = [self._id(t) for t in tokens]
        return FakeEncoding(ids, [1] * len(ids), special, offsets, tokens)

    def encode_batch(self, texts, add_special_tokens=True):
        return [self.encode(t) for t in texts]


class FakeModel:
    """Labels tokens by exact string; everything else gets ``O``."""

    def __init__(self, tokenizer, rules, special_label=0, fail=False, delay=0.0):
        self.tokenizer = tokenizer
        self.rules = rules
        self.special_label = special_label
        self.fail = fail
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = 0
        self._guard = threading.Lock()

    def __call__(self, input_ids, attention_mask):
        with self._guard:
            self.active += 1
            self.calls += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail:
                raise RuntimeError("CUDA out of memory")
            rows = []
            for row in input_ids.tolist():
                logits = []
                for token_id in row:
                    token = self.tokenizer.id_to_token(token_id)
                    if token in ("[CLS]", "[SEP]"):
                        label = self.special_label
                    else:
                        label = LABELS.index(self.rules.get(token, "O"))
                    vec = [0.0] * len(LABELS)
                    vec[label] = 10.0
                    logits.append(vec)
                rows.append(logits)
            return SimpleNamespace(logits=torch.tensor(rows))
        finally:
            with self._guard:
                self.active -= 1


DEFAULT_RULES = {
    "Alice": "GIVENNAME",
    "Robert": "GIVENNAME",
    "Smith": "SURNAME",
    "O": "SURNAME",
    "'": "SURNAME",
    "Connor": "SURNAME",
    "Paris": "CITY",
}


def make_gateway(rules=None, **model_kwargs) -> InferenceGateway:
    tokenizer = FakeTokenizer()
    model = FakeModel(tokenizer, DEFAULT_RULES if rules is None else rules, **model_kwargs)
    return InferenceGateway(model, tokenizer, LabelTable(LABELS), device="cpu")


@pytest.fixture
def labels() -> LabelTable:
    return LabelTable(LABELS)


@pytest.fixture
def gateway() -> InferenceGateway:
    return make_gateway()


@pytest.fixture
def gateway_factory():
    return make_gateway
