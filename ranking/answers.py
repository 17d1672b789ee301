"""
Answer span assembly for extractive question answering.

The model scores every position of the padded input twice: once as the start
of the answer and once as its end. AnswerAssembler turns both score vectors into
a short, ranked list of answers:

    start logits ──► best_indices(k) ──┐
                                       ├──► cross product ──► span filters
    end logits   ──► best_indices(k) ──┘           │
                                                   ▼
                        softmax over surviving (start + end) logits
                                                   │
                                                   ▼
                 drop < min_confidence ──► sort desc ──► keep max_answers

Only positions covering the passage are candidates; the question and the
sentinel tokens can never start or end an answer.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from .config import RankingConfig
from .records import Answer, AnswerList
from .scores import best_indices, extract_scores, softmax
from .tokens import WordToken

logger = logging.getLogger(__name__)


class AnswerAssembler:
    """
    Build ranked answers from start/end span logits.

    The assembler is stateless; one instance can be shared across threads.

    Example:
        >>> assembler = AnswerAssembler(RankingConfig(max_answers=1))
        >>> answers = assembler.assemble(passage, passage_tokens, start_logits, end_logits, offset=5)
        >>> answers[0].text
        'Paris'
    """

    def __init__(self, config: Optional[RankingConfig] = None):
        self.config = config or RankingConfig()

    def assemble(
        self,
        passage: str,
        passage_tokens: Sequence[WordToken],
        start_logits: Any,
        end_logits: Any,
        offset: int = 0,
    ) -> AnswerList:
        """
        Select, filter and rank answer spans.

        Args:
            passage: Passage text the tokens were taken from
            passage_tokens: Word tokens of the passage
            start_logits: Start-of-answer logits for every input position
            end_logits: End-of-answer logits for every input position
            offset: Input position of the first passage token

        Returns:
            AnswerList sorted by descending confidence, holding at most
            config.max_answers answers, each with confidence >= config.min_confidence
            and spanning at most config.max_answer_length tokens.

        Raises:
            ValueError: If the logits do not cover the passage positions
        """
        start_scores = extract_scores(start_logits)
        end_scores = extract_scores(end_logits)
        if len(start_scores) != len(end_scores):
            raise ValueError(
                f"Start and end logits differ in length: {len(start_scores)} != {len(end_scores)}"
            )

        window = slice(offset, offset + len(passage_tokens))
        if offset < 0 or window.stop > len(start_scores):
            raise ValueError(
                f"Logits of length {len(start_scores)} do not cover passage positions "
                f"{window.start}..{window.stop - 1}"
            )
        passage_start_scores = start_scores[window]
        passage_end_scores = end_scores[window]

        spans = self._candidate_spans(passage_start_scores, passage_end_scores)
        probabilities = softmax([score for _, _, score in spans])

        answers = AnswerList()
        for (first, last, _), confidence in zip(spans, probabilities):
            if confidence < self.config.min_confidence:
                continue
            start = passage_tokens[first].start
            end = passage_tokens[last].end
            answers.append(
                Answer(text=passage[start:end], start=start, end=end, confidence=confidence)
            )

        answers.sort_by_confidence()
        logger.debug(
            f"Assembled {len(answers)} answers from {len(spans)} candidate spans "
            f"(keeping {self.config.max_answers})"
        )
        return AnswerList(answers[: self.config.max_answers])

    def _candidate_spans(
        self,
        start_scores: List[float],
        end_scores: List[float],
    ) -> List[Tuple[int, int, float]]:
        """Cross product of the best start/end positions that form a valid span."""
        k = self.config.max_candidate_logits
        best_ends = best_indices(end_scores, k)
        spans = []
        for first in best_indices(start_scores, k):
            for last in best_ends:
                if last < first:
                    continue
                if last - first + 1 > self.config.max_answer_length:
                    continue
                spans.append((first, last, start_scores[first] + end_scores[last]))
        return spans
