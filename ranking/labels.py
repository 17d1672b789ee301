"""
Label assembly for the token-level and sequence-level capabilities.

Token-level helpers receive logits aligned with the padded model input, where
word i of the text sits at position offset + i (offset=1 skips the start
sentinel). Sequence-level helpers receive one logit per class.
"""

from typing import Any, List, Mapping, Sequence, Tuple

from .records import FAKE_LABEL, PREDICTED_LABEL, REAL_LABEL, ClassConfidence, Token
from .scores import best_indices, extract_scores, softmax
from .tokens import WordToken


def _check_coverage(tokens: Sequence[WordToken], length: int, offset: int) -> None:
    if offset + len(tokens) > length:
        raise ValueError(
            f"Model output of length {length} does not cover {len(tokens)} tokens at offset {offset}"
        )


def assign_labels(
    tokens: Sequence[WordToken],
    token_logits: Sequence[Any],
    labels: Sequence[str],
    offset: int = 1,
) -> List[Token]:
    """
    Label every word with its highest scoring label.

    Args:
        tokens: Words of the text
        token_logits: Per input position, one logit per label
        labels: Label names, index-aligned with each logit row
        offset: Input position of the first word

    Returns:
        One Token per word, in text order.
    """
    if not labels:
        raise ValueError("At least one label is required")
    _check_coverage(tokens, len(token_logits), offset)

    result = []
    for i, word in enumerate(tokens):
        scores = extract_scores(token_logits[offset + i])
        if len(scores) != len(labels):
            raise ValueError(f"Expected {len(labels)} label logits, got {len(scores)}")
        best = best_indices(scores, 1)[0]
        result.append(Token(text=word.text, start=word.start, end=word.end, label=labels[best]))
    return result


def discriminate_tokens(
    tokens: Sequence[WordToken],
    logits: Any,
    threshold: float = 0.0,
    offset: int = 1,
) -> List[Token]:
    """
    Mark each word as original (REAL) or replaced (FAKE).

    Args:
        tokens: Words of the text
        logits: One replaced-token logit per input position
        threshold: Logits above this value mark the word as FAKE
        offset: Input position of the first word

    Returns:
        One Token per word, in text order.
    """
    scores = extract_scores(logits)
    _check_coverage(tokens, len(scores), offset)

    return [
        Token(
            text=word.text,
            start=word.start,
            end=word.end,
            label=FAKE_LABEL if scores[offset + i] > threshold else REAL_LABEL,
        )
        for i, word in enumerate(tokens)
    ]


def predict_masked(
    tokens: Sequence[WordToken],
    masked_logits: Mapping[int, Any],
    vocabulary: Sequence[str],
    offset: int = 1,
) -> List[Token]:
    """
    Fill each masked position with its best vocabulary entry.

    Args:
        tokens: Words of the text
        masked_logits: Input position → vocabulary logits, for masked positions only
        vocabulary: Vocabulary entries, index-aligned with the logits
        offset: Input position of the first word

    Returns:
        One PREDICTED Token per masked position, in text order, carrying the
        offsets of the mask it replaces.
    """
    result = []
    for position in sorted(masked_logits):
        index = position - offset
        if not 0 <= index < len(tokens):
            raise ValueError(f"Masked position {position} is outside the text")
        best = best_indices(extract_scores(masked_logits[position]), 1)
        if not best:
            continue
        word = tokens[index]
        result.append(
            Token(text=vocabulary[best[0]], start=word.start, end=word.end, label=PREDICTED_LABEL)
        )
    return result


def rank_classes(
    logits: Any,
    classes: Sequence[str],
) -> Tuple[str, float, List[ClassConfidence]]:
    """
    Turn class logits into a ranked probability distribution.

    Args:
        logits: One logit per class
        classes: Class names, index-aligned with the logits

    Returns:
        Tuple of (best class, its probability, full distribution best first)
    """
    scores = extract_scores(logits)
    if len(scores) != len(classes) or not scores:
        raise ValueError(f"Expected {len(classes)} class logits, got {len(scores)}")

    probabilities = softmax(scores)
    distribution = [
        ClassConfidence(label=classes[i], confidence=probabilities[i])
        for i in best_indices(probabilities, len(probabilities))
    ]
    return distribution[0].label, distribution[0].confidence, distribution
