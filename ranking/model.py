"""
Scoring model interfaces.

The neural network is supplied by the caller; this module only defines what the
service needs from it. Each capability is its own interface, and a model
supports exactly the capabilities whose interfaces it implements:

    Capability.ANSWER              → SpanScorer
    Capability.TAG                 → TokenLabeler
    Capability.DISCRIMINATE        → ReplacedTokenDiscriminator
    Capability.PREDICT             → MaskedLanguageModel
    Capability.CLASSIFY            → SequenceClassifier
    Capability.TEXTUAL_ENTAILMENT  → EntailmentClassifier

Every method receives the padded word sequence (see ranking.tokens.pad) and
returns logits aligned with it, position for position. Logits may be torch
tensors, numpy arrays or sequences of scalars (see ranking.scores.extract_scores).

Contract for concurrent use:
    Methods are called from several threads at once. Implementations must keep
    all intermediate computation state local to the call (e.g. a plain forward
    pass of a torch module in eval mode). Models that cannot guarantee this must
    be served with serialize_inference=True.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Sequence, Tuple, Type


class Capability(Enum):
    """Operations the service can expose, keyed by their HTTP path."""

    DISCRIMINATE = "discriminate"
    PREDICT = "predict"
    ANSWER = "answer"
    TAG = "tag"
    CLASSIFY = "classify"
    TEXTUAL_ENTAILMENT = "te"


class SpanScorer(ABC):
    """Extractive question answering head."""

    @abstractmethod
    def span_logits(self, tokens: Sequence[str]) -> Tuple[Any, Any]:
        """Return (start_logits, end_logits), one logit per input position."""
        pass


class TokenLabeler(ABC):
    """Token classification head (e.g. named entity recognition)."""

    @property
    @abstractmethod
    def labels(self) -> Sequence[str]:
        """Label names, index-aligned with each row of token_logits."""
        pass

    @abstractmethod
    def token_logits(self, tokens: Sequence[str]) -> Sequence[Any]:
        """Return one row of label logits per input position."""
        pass


class ReplacedTokenDiscriminator(ABC):
    """ELECTRA-style discriminator: was each token replaced?"""

    @abstractmethod
    def discriminator_logits(self, tokens: Sequence[str]) -> Any:
        """Return one logit per input position; positive means replaced."""
        pass


class MaskedLanguageModel(ABC):
    """Masked token prediction head."""

    @property
    @abstractmethod
    def vocabulary(self) -> Sequence[str]:
        """Vocabulary entries, index-aligned with the prediction logits."""
        pass

    @abstractmethod
    def masked_logits(self, tokens: Sequence[str], positions: Sequence[int]) -> Mapping[int, Any]:
        """Return vocabulary logits for each of the given masked positions."""
        pass


class SequenceClassifier(ABC):
    """Sequence classification head."""

    @property
    @abstractmethod
    def classes(self) -> Sequence[str]:
        pass

    @abstractmethod
    def class_logits(self, tokens: Sequence[str]) -> Any:
        """Return one logit per class for the whole sequence."""
        pass


class EntailmentClassifier(ABC):
    """Premise/hypothesis pair classification head."""

    @property
    @abstractmethod
    def entailment_classes(self) -> Sequence[str]:
        pass

    @abstractmethod
    def entailment_logits(self, tokens: Sequence[str]) -> Any:
        """Return one logit per entailment class for [CLS] premise [SEP] hypothesis [SEP]."""
        pass


CAPABILITY_INTERFACES: Dict[Capability, Type[ABC]] = {
    Capability.DISCRIMINATE: ReplacedTokenDiscriminator,
    Capability.PREDICT: MaskedLanguageModel,
    Capability.ANSWER: SpanScorer,
    Capability.TAG: TokenLabeler,
    Capability.CLASSIFY: SequenceClassifier,
    Capability.TEXTUAL_ENTAILMENT: EntailmentClassifier,
}


def capabilities_of(model: Any) -> FrozenSet[Capability]:
    """Return the capabilities whose interfaces the model implements."""
    return frozenset(
        capability
        for capability, interface in CAPABILITY_INTERFACES.items()
        if isinstance(model, interface)
    )
