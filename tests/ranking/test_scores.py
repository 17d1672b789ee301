"""Tests for score extraction and top-k selection."""

import random

import numpy as np
import pytest
import torch

from ranking import best_indices, extract_scores, softmax


class TestExtractScores:
    def test_extract_from_tensor(self) -> None:
        """A 1-D tensor should become a list of floats in the same order."""
        assert extract_scores(torch.tensor([0.5, -1.0, 2.0])) == [0.5, -1.0, 2.0]

    def test_extract_from_batched_tensor(self) -> None:
        """A leading batch dimension of size 1 should be dropped."""
        assert extract_scores(torch.tensor([[1.0, 2.0]])) == [1.0, 2.0]

    def test_extract_from_scalar_nodes(self) -> None:
        """Scalar tensors, numpy scalars and numbers may be mixed."""
        nodes = [torch.tensor(1.5), np.float32(0.25), 3]
        assert extract_scores(nodes) == [1.5, 0.25, 3.0]

    def test_extract_from_numpy(self) -> None:
        assert extract_scores(np.array([0.1, 0.2])) == pytest.approx([0.1, 0.2])

    def test_extract_preserves_length_and_order(self) -> None:
        values = [random.Random(7).uniform(-5, 5) for _ in range(50)]
        assert extract_scores(values) == values

    def test_extract_rejects_matrix(self) -> None:
        with pytest.raises(ValueError):
            extract_scores(torch.zeros(2, 3))

    def test_extract_tracks_no_gradients(self) -> None:
        logits = torch.tensor([1.0, 2.0], requires_grad=True) * 2
        assert extract_scores(logits) == [2.0, 4.0]


class TestBestIndices:
    def test_best_indices_scenario(self) -> None:
        """scores=[0.2, 0.9, 0.5], k=2 → [1, 2]."""
        assert best_indices([0.2, 0.9, 0.5], 2) == [1, 2]

    def test_k_larger_than_n_truncates(self) -> None:
        assert best_indices([0.2, 0.9, 0.5], 10) == [1, 2, 0]

    def test_k_zero_and_empty_scores(self) -> None:
        assert best_indices([0.2, 0.9], 0) == []
        assert best_indices([], 3) == []

    def test_negative_k_raises(self) -> None:
        with pytest.raises(ValueError):
            best_indices([1.0], -1)

    def test_ties_break_by_ascending_index(self) -> None:
        """Equal scores keep their original order."""
        assert best_indices([1.0, 3.0, 1.0, 3.0, 1.0], 5) == [1, 3, 0, 2, 4]

    @pytest.mark.parametrize("seed", range(20))
    def test_random_scores_property(self, seed: int) -> None:
        """min(k, n) valid indices, scores non-increasing, no duplicates."""
        rng = random.Random(seed)
        n = rng.randint(0, 30)
        k = rng.randint(0, 40)
        scores = [rng.choice([rng.uniform(-3, 3), 1.0]) for _ in range(n)]

        result = best_indices(scores, k)

        assert len(result) == min(k, n)
        assert len(set(result)) == len(result)
        assert all(0 <= i < n for i in result)
        picked = [scores[i] for i in result]
        assert picked == sorted(picked, reverse=True)
        if result:
            assert picked[0] == max(scores)

    def test_input_not_mutated(self) -> None:
        scores = [0.3, 0.1, 0.2]
        best_indices(scores, 2)
        assert scores == [0.3, 0.1, 0.2]


class TestSoftmax:
    def test_softmax_sums_to_one(self) -> None:
        probabilities = softmax([1.0, 2.0, 3.0])
        assert sum(probabilities) == pytest.approx(1.0)
        assert probabilities == sorted(probabilities)

    def test_softmax_large_logits_are_stable(self) -> None:
        assert softmax([1000.0, 1000.0]) == pytest.approx([0.5, 0.5])

    def test_softmax_empty(self) -> None:
        assert softmax([]) == []
