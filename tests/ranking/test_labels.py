"""Tests for token and class label assembly."""

import numpy as np
import pytest
import torch

from ranking import (
    FAKE_LABEL,
    PREDICTED_LABEL,
    REAL_LABEL,
    RegexTokenizer,
    Token,
    assign_labels,
    discriminate_tokens,
    predict_masked,
    rank_classes,
)

TOKENS = RegexTokenizer().tokenize("Marie lives in Paris")


class TestAssignLabels:
    def test_best_label_per_word(self) -> None:
        # [CLS] Marie lives in Paris [SEP]
        logits = torch.tensor([
            [9.0, 0.0, 0.0],
            [0.0, 0.0, 2.0],
            [1.0, 0.0, 0.0],
            [1.0, 0.5, 0.0],
            [0.0, 3.0, 1.0],
            [9.0, 0.0, 0.0],
        ])
        tokens = assign_labels(TOKENS, logits, ["O", "LOC", "PER"])

        assert tokens == [
            Token("Marie", 0, 5, "PER"),
            Token("lives", 6, 11, "O"),
            Token("in", 12, 14, "O"),
            Token("Paris", 15, 20, "LOC"),
        ]

    def test_tied_logits_pick_first_label(self) -> None:
        logits = [[1.0, 1.0]] * 6
        assert {t.label for t in assign_labels(TOKENS, logits, ["A", "B"])} == {"A"}

    def test_short_output_raises(self) -> None:
        with pytest.raises(ValueError):
            assign_labels(TOKENS, [[0.0, 1.0]] * 3, ["A", "B"])

    def test_label_count_mismatch_raises(self) -> None:
        with pytest.raises(ValueError):
            assign_labels(TOKENS, [[0.0, 1.0, 2.0]] * 6, ["A", "B"])

    def test_empty_labels_raise(self) -> None:
        with pytest.raises(ValueError, match="label"):
            assign_labels(TOKENS[:1], [[], []], [])


class TestDiscriminateTokens:
    def test_positive_logits_are_fake(self) -> None:
        logits = [-5.0, -1.0, 0.5, -2.0, 0.0, -5.0]
        labels = [t.label for t in discriminate_tokens(TOKENS, logits)]
        # Exactly the threshold stays REAL
        assert labels == [REAL_LABEL, FAKE_LABEL, REAL_LABEL, REAL_LABEL]

    def test_custom_threshold(self) -> None:
        logits = np.array([0.0, 0.4, 0.6, 0.2, 0.9, 0.0])
        labels = [t.label for t in discriminate_tokens(TOKENS, logits, threshold=0.5)]
        assert labels == [REAL_LABEL, FAKE_LABEL, REAL_LABEL, FAKE_LABEL]

    def test_empty_text(self) -> None:
        assert discriminate_tokens([], [0.0, 0.0]) == []


class TestPredictMasked:
    def test_predictions_follow_text_order(self) -> None:
        tokens = RegexTokenizer().tokenize("[MASK] likes [MASK]")
        masked = {
            3: [0.0, 0.0, 1.0],
            1: torch.tensor([2.0, 0.0, 1.0]),
        }
        predictions = predict_masked(tokens, masked, ["Alice", "Bob", "tea"])

        assert predictions == [
            Token("Alice", 0, 6, PREDICTED_LABEL),
            Token("tea", 13, 19, PREDICTED_LABEL),
        ]

    def test_no_masks(self) -> None:
        assert predict_masked(TOKENS, {}, ["a"]) == []

    def test_position_outside_text_raises(self) -> None:
        with pytest.raises(ValueError):
            predict_masked(TOKENS, {0: [1.0]}, ["a"])


class TestRankClasses:
    def test_distribution_is_sorted(self) -> None:
        label, confidence, distribution = rank_classes([0.0, 2.0, 1.0], ["a", "b", "c"])

        assert label == "b"
        assert confidence == distribution[0].confidence
        assert [c.label for c in distribution] == ["b", "c", "a"]
        assert sum(c.confidence for c in distribution) == pytest.approx(1.0)

    def test_tensor_with_batch_dimension(self) -> None:
        label, _, _ = rank_classes(torch.tensor([[3.0, -1.0]]), ["yes", "no"])
        assert label == "yes"

    def test_class_count_mismatch_raises(self) -> None:
        with pytest.raises(ValueError):
            rank_classes([1.0], ["a", "b"])
