"""Tests for RankingConfig defaults and validation."""

import pytest

from ranking import RankingConfig


class TestRankingConfig:
    def test_defaults(self) -> None:
        config = RankingConfig()

        assert config.max_answer_length == 20
        assert config.min_confidence == 0.1
        assert config.max_candidate_logits == 3
        assert config.max_answers == 3

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_answer_length": 0},
            {"max_candidate_logits": -1},
            {"max_answers": -1},
        ],
    )
    def test_invalid_values_raise(self, overrides) -> None:
        with pytest.raises(ValueError):
            RankingConfig(**overrides)

    def test_from_dict_ignores_unknown_keys(self) -> None:
        config = RankingConfig.from_dict({"max_answers": 1, "unrelated": True})
        assert config == RankingConfig(max_answers=1)

    def test_to_dict(self) -> None:
        assert RankingConfig(min_confidence=0.5).to_dict() == {
            "max_answer_length": 20,
            "min_confidence": 0.5,
            "max_candidate_logits": 3,
            "max_answers": 3,
        }

    def test_is_immutable(self) -> None:
        config = RankingConfig()
        with pytest.raises(AttributeError):
            config.max_answers = 10
