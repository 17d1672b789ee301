"""
Score extraction and top-k selection over raw model logits.

This module contains pure functions used by every capability of the service:
- extract_scores: Model output (tensor, array or scalar nodes) → plain floats
- best_indices: Indices of the k highest scores, best first
- softmax: Numerically stable normalization of a score vector

All functions preserve candidate order on input and never mutate their arguments.
"""

from typing import Any, List, Sequence

import numpy as np
import torch


def extract_scores(logits: Any) -> List[float]:
    """
    Convert raw model output into plain floats, index-aligned with the input.

    Args:
        logits: One of
            - 1-D torch.Tensor (a leading batch dimension of size 1 is allowed)
            - numpy array of the same shape
            - sequence of scalar nodes (0-d tensors, numpy scalars, numbers)

    Returns:
        List of n floats where output[i] is the score of candidate i.
    """
    if isinstance(logits, torch.Tensor):
        return _tensor_scores(logits)
    if isinstance(logits, np.ndarray):
        return _tensor_scores(torch.from_numpy(logits))
    return [_scalar_value(node) for node in logits]


def _tensor_scores(tensor: torch.Tensor) -> List[float]:
    tensor = tensor.detach().cpu()
    if tensor.dim() == 2 and tensor.shape[0] == 1:
        tensor = tensor.squeeze(0)
    if tensor.dim() != 1:
        raise ValueError(f"Expected a 1-D score vector, got shape {tuple(tensor.shape)}")
    return [float(v) for v in tensor.tolist()]


def _scalar_value(node: Any) -> float:
    if isinstance(node, torch.Tensor):
        return float(node.detach().cpu().item())
    return float(node)


def best_indices(scores: Sequence[float], k: int) -> List[int]:
    """
    Return the indices of the k highest scores in descending score order.

    Ties are broken by ascending original index, so the result is fully
    deterministic for a given input.

    Args:
        scores: Candidate scores
        k: Number of indices to return (k > len(scores) is not an error)

    Returns:
        List of min(k, len(scores)) indices, best first.

    Raises:
        ValueError: If k is negative
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    if k == 0 or len(scores) == 0:
        return []

    values = np.asarray(scores, dtype=np.float64)
    # Stable sort on negated scores keeps equal scores in index order
    order = np.argsort(-values, kind="stable")
    return [int(i) for i in order[:k]]


def softmax(scores: Sequence[float]) -> List[float]:
    """
    Normalize scores into probabilities that sum to 1.

    Args:
        scores: Raw scores (logits)

    Returns:
        List of probabilities, same length and order as scores.
    """
    if len(scores) == 0:
        return []
    values = np.asarray(scores, dtype=np.float64)
    exp = np.exp(values - values.max())
    return [float(p) for p in exp / exp.sum()]
