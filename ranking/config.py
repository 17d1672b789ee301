"""
Configuration for answer ranking and span assembly.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class RankingConfig:
    """
    Thresholds applied when turning span logits into ranked answers.

    Attributes:
        max_answer_length: Longest answer span, counted in word tokens (default: 20)
        min_confidence: Answers scoring below this are dropped (default: 0.1)
        max_candidate_logits: Best start/end positions considered per side (default: 3)
            The cross product of both sides yields at most this value squared
            candidate spans.
        max_answers: Maximum number of answers returned (default: 3)
    """

    max_answer_length: int = 20
    min_confidence: float = 0.1
    max_candidate_logits: int = 3
    max_answers: int = 3

    def __post_init__(self):
        """Validate configuration."""
        if self.max_answer_length < 1:
            raise ValueError(
                f"max_answer_length must be at least 1, got {self.max_answer_length}"
            )
        if self.max_candidate_logits < 0:
            raise ValueError(
                f"max_candidate_logits must be non-negative, got {self.max_candidate_logits}"
            )
        if self.max_answers < 0:
            raise ValueError(f"max_answers must be non-negative, got {self.max_answers}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (for logging and /info)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "RankingConfig":
        """
        Create config from a dictionary, ignoring unknown keys.

        Args:
            config_dict: Mapping of field names to values

        Returns:
            RankingConfig instance
        """
        known = {k: v for k, v in config_dict.items() if k in cls.__dataclass_fields__}
        return cls(**known)
