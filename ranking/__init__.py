"""
Ranking pipeline for BERT serving.

Turns raw model scores into bounded, ranked response records:
- pad: Wrap a token sequence with the [CLS] / [SEP] sentinels
- extract_scores / best_indices: Plain scores and deterministic top-k selection
- AnswerAssembler: Span selection for question answering
- assign_labels / discriminate_tokens / predict_masked / rank_classes: Label assembly
- Response records with JSON encoding (dump)
"""

from .answers import AnswerAssembler
from .config import RankingConfig
from .errors import SerializationError
from .labels import assign_labels, discriminate_tokens, predict_masked, rank_classes
from .model import (
    Capability,
    EntailmentClassifier,
    MaskedLanguageModel,
    ReplacedTokenDiscriminator,
    SequenceClassifier,
    SpanScorer,
    TokenLabeler,
    capabilities_of,
)
from .records import (
    FAKE_LABEL,
    PREDICTED_LABEL,
    REAL_LABEL,
    Answer,
    AnswerList,
    ClassConfidence,
    ClassificationResponse,
    LabelingResponse,
    QuestionAnsweringResponse,
    Token,
    dump_json,
)
from .scores import best_indices, extract_scores, softmax
from .tokens import CLS_TOKEN, MASK_TOKEN, SEP_TOKEN, RegexTokenizer, Tokenizer, WordToken, pad

__version__ = "1.0.0"

__all__ = [
    # Pipeline
    "pad",
    "extract_scores",
    "best_indices",
    "softmax",
    "AnswerAssembler",
    "assign_labels",
    "discriminate_tokens",
    "predict_masked",
    "rank_classes",
    "RankingConfig",
    # Records
    "Answer",
    "AnswerList",
    "QuestionAnsweringResponse",
    "Token",
    "LabelingResponse",
    "ClassConfidence",
    "ClassificationResponse",
    "dump_json",
    "SerializationError",
    "REAL_LABEL",
    "FAKE_LABEL",
    "PREDICTED_LABEL",
    # Tokens
    "WordToken",
    "Tokenizer",
    "RegexTokenizer",
    "CLS_TOKEN",
    "SEP_TOKEN",
    "MASK_TOKEN",
    # Model interfaces
    "Capability",
    "SpanScorer",
    "TokenLabeler",
    "ReplacedTokenDiscriminator",
    "MaskedLanguageModel",
    "SequenceClassifier",
    "EntailmentClassifier",
    "capabilities_of",
]
