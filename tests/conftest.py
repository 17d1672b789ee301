"""Shared fixtures: a deterministic fake BERT model and services around it."""

from typing import Dict, Mapping, Sequence

import numpy as np
import pytest
import torch

from ranking import (
    CLS_TOKEN,
    SEP_TOKEN,
    EntailmentClassifier,
    MaskedLanguageModel,
    ReplacedTokenDiscriminator,
    SequenceClassifier,
    SpanScorer,
    TokenLabeler,
)
from serving import BertService


class FakeBert(
    SpanScorer,
    TokenLabeler,
    ReplacedTokenDiscriminator,
    MaskedLanguageModel,
    SequenceClassifier,
    EntailmentClassifier,
):
    """Scores words by lookup tables, so every capability has a known answer."""

    START_SCORES: Dict[str, float] = {"Paris": 4.0, "France": 1.0}
    END_SCORES: Dict[str, float] = {"Paris": 4.0, "France": 3.0}
    LABELS_BY_WORD: Dict[str, str] = {"Paris": "LOC", "France": "LOC", "Marie": "PER"}
    REPLACED_WORDS = {"ate"}

    labels = ("O", "LOC", "PER")
    vocabulary = ("London", "Paris", "Rome")
    classes = ("negative", "positive")
    entailment_classes = ("contradiction", "neutral", "entailment")

    def span_logits(self, tokens: Sequence[str]):
        start = torch.tensor([self.START_SCORES.get(t, 0.0) for t in tokens])
        end = torch.tensor([self.END_SCORES.get(t, 0.0) for t in tokens])
        return start, end

    def token_logits(self, tokens: Sequence[str]):
        rows = []
        for t in tokens:
            row = [0.0, 0.0, 0.0]
            row[self.labels.index(self.LABELS_BY_WORD.get(t, "O"))] = 5.0
            rows.append(row)
        return torch.tensor(rows)

    def discriminator_logits(self, tokens: Sequence[str]):
        return [2.0 if t in self.REPLACED_WORDS else -2.0 for t in tokens]

    def masked_logits(self, tokens: Sequence[str], positions: Sequence[int]) -> Mapping[int, np.ndarray]:
        return {p: np.array([1.0, 3.0, 0.5]) for p in positions}

    def class_logits(self, tokens: Sequence[str]):
        return [0.0, 2.0] if "good" in tokens else [2.0, 0.0]

    def entailment_logits(self, tokens: Sequence[str]):
        assert tokens[0] == CLS_TOKEN and tokens[-1] == SEP_TOKEN
        separator = tokens.index(SEP_TOKEN)
        premise = set(tokens[1:separator])
        hypothesis = set(tokens[separator + 1:-1])
        if hypothesis <= premise:
            return [0.0, 0.0, 3.0]
        return [0.0, 3.0, 0.0]


class AnswerOnlyBert(SpanScorer):
    """Implements question answering only."""

    def span_logits(self, tokens: Sequence[str]):
        return FakeBert().span_logits(tokens)


class FailingBert(SpanScorer):
    """Every inference call fails."""

    def span_logits(self, tokens: Sequence[str]):
        raise RuntimeError("model exploded")


@pytest.fixture
def fake_model() -> FakeBert:
    return FakeBert()


@pytest.fixture
def service(fake_model: FakeBert) -> BertService:
    return BertService(fake_model)


@pytest.fixture
def answer_only_service() -> BertService:
    return BertService(AnswerOnlyBert())


@pytest.fixture
def failing_service() -> BertService:
    return BertService(FailingBert())
