"""
BERT service: one operation per model capability.

This module provides the BertService class, the protocol-agnostic facade that
both transports (serving.api over HTTP, serving.grpc_service over gRPC) call.
Routing every transport through the same instance guarantees identical results
for identical inputs.

Architecture:
    Request text
        ↓
    Tokenizer.tokenize(text)              (external, RegexTokenizer by default)
        ↓
    pad(words) → [CLS] ... [SEP]
        ↓
    model.<capability>_logits(words)      (external, shared by all requests)
        ↓
    AnswerAssembler / label assembly      (ranking package)
        ↓
    Response record (dump → JSON)

Design Decisions:
- The model is owned by the caller: the service never loads or releases it
- Capabilities are discovered from the interfaces the model implements;
  anything else raises UnsupportedCapabilityError
- Requests are stateless; nothing is cached between calls
- Inference runs under torch.inference_mode() so no autograd state is shared
  between concurrent calls. serialize_inference=True additionally serializes
  model calls behind a lock, for models that keep state between forward passes
"""

import logging
import threading
import time
from contextlib import contextmanager, nullcontext
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

import torch

from ranking import (
    MASK_TOKEN,
    SEP_TOKEN,
    AnswerAssembler,
    Capability,
    ClassificationResponse,
    LabelingResponse,
    QuestionAnsweringResponse,
    RankingConfig,
    RegexTokenizer,
    Tokenizer,
    WordToken,
    assign_labels,
    capabilities_of,
    discriminate_tokens,
    pad,
    predict_masked,
    rank_classes,
)

from .errors import InvalidRequestError, UnsupportedCapabilityError

logger = logging.getLogger(__name__)


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


def _words(tokens: List[WordToken]) -> List[str]:
    return [token.text for token in tokens]


class BertService:
    """
    Protocol-agnostic facade over an externally supplied scoring model.

    Usage:
        # The caller builds (and later disposes of) the model
        model = load_my_bert()
        service = BertService(model)

        response = service.answer(
            question="Where is the Eiffel Tower?",
            passage="The Eiffel Tower is in Paris.",
        )
        print(response.dump(pretty=True))

    Configuration:
        tokenizer: Splits text into words (default: RegexTokenizer)
        ranking_config: Thresholds for answer assembly (default: RankingConfig())
        serialize_inference: Serialize model calls behind a lock (default: False)
    """

    def __init__(
        self,
        model: Any,
        tokenizer: Optional[Tokenizer] = None,
        ranking_config: Optional[RankingConfig] = None,
        serialize_inference: bool = False,
    ):
        self.model = model
        self.tokenizer = tokenizer or RegexTokenizer()
        self.ranking_config = ranking_config or RankingConfig()
        self.assembler = AnswerAssembler(self.ranking_config)
        self.capabilities = capabilities_of(model)
        self.serialize_inference = serialize_inference
        self._inference_lock = threading.Lock() if serialize_inference else None

        supported = sorted(c.value for c in self.capabilities)
        logger.info(
            f"BertService ready: model={type(model).__name__}, "
            f"capabilities={supported}, serialize_inference={serialize_inference}"
        )

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def _require(self, capability: Capability) -> None:
        if capability not in self.capabilities:
            raise UnsupportedCapabilityError(capability)

    @contextmanager
    def _inference(self) -> Iterator[None]:
        """Scope of a single model call."""
        lock = self._inference_lock if self._inference_lock is not None else nullcontext()
        with lock, torch.inference_mode():
            yield

    def discriminate(self, text: str) -> LabelingResponse:
        """Label each word of text REAL (original) or FAKE (replaced)."""
        self._require(Capability.DISCRIMINATE)
        start_time = time.time()

        tokens = self.tokenizer.tokenize(text)
        with self._inference():
            logits = self.model.discriminator_logits(pad(_words(tokens)))

        return LabelingResponse(
            tokens=discriminate_tokens(tokens, logits),
            took=_elapsed_ms(start_time),
        )

    def predict(self, text: str) -> LabelingResponse:
        """Predict the word behind every [MASK] in text."""
        self._require(Capability.PREDICT)
        start_time = time.time()

        tokens = self.tokenizer.tokenize(text)
        # +1 for the [CLS] sentinel
        positions = [i + 1 for i, token in enumerate(tokens) if token.text == MASK_TOKEN]
        predictions = []
        if positions:
            with self._inference():
                masked_logits = self.model.masked_logits(pad(_words(tokens)), positions)
            predictions = predict_masked(tokens, masked_logits, self.model.vocabulary)

        return LabelingResponse(tokens=predictions, took=_elapsed_ms(start_time))

    def answer(self, question: str, passage: str) -> QuestionAnsweringResponse:
        """
        Extract ranked answers to question from passage.

        The model input is [CLS] question [SEP] passage [SEP]; only passage
        positions can start or end an answer.
        """
        self._require(Capability.ANSWER)
        start_time = time.time()

        question_tokens = self.tokenizer.tokenize(question)
        passage_tokens = self.tokenizer.tokenize(passage)
        words = pad(_words(question_tokens)) + _words(passage_tokens) + [SEP_TOKEN]
        with self._inference():
            start_logits, end_logits = self.model.span_logits(words)

        answers = self.assembler.assemble(
            passage,
            passage_tokens,
            start_logits,
            end_logits,
            offset=len(question_tokens) + 2,
        )
        return QuestionAnsweringResponse(answers=answers, took=_elapsed_ms(start_time))

    def tag(self, text: str) -> LabelingResponse:
        """Label each word of text with the model's best token label."""
        self._require(Capability.TAG)
        start_time = time.time()

        tokens = self.tokenizer.tokenize(text)
        with self._inference():
            logits = self.model.token_logits(pad(_words(tokens)))

        return LabelingResponse(
            tokens=assign_labels(tokens, logits, self.model.labels),
            took=_elapsed_ms(start_time),
        )

    def classify(self, text: str) -> ClassificationResponse:
        """Classify the whole text."""
        self._require(Capability.CLASSIFY)
        start_time = time.time()

        tokens = self.tokenizer.tokenize(text)
        with self._inference():
            logits = self.model.class_logits(pad(_words(tokens)))

        label, confidence, distribution = rank_classes(logits, self.model.classes)
        return ClassificationResponse(
            label=label,
            confidence=confidence,
            distribution=distribution,
            took=_elapsed_ms(start_time),
        )

    def textual_entailment(self, text: str) -> ClassificationResponse:
        """
        Classify the relation between a premise and a hypothesis.

        Args:
            text: Premise and hypothesis separated by the first newline

        Raises:
            InvalidRequestError: If either part is missing
        """
        self._require(Capability.TEXTUAL_ENTAILMENT)
        start_time = time.time()

        premise, hypothesis = _split_pair(text)
        premise_tokens = self.tokenizer.tokenize(premise)
        hypothesis_tokens = self.tokenizer.tokenize(hypothesis)
        words = pad(_words(premise_tokens)) + _words(hypothesis_tokens) + [SEP_TOKEN]
        with self._inference():
            logits = self.model.entailment_logits(words)

        label, confidence, distribution = rank_classes(logits, self.model.entailment_classes)
        return ClassificationResponse(
            label=label,
            confidence=confidence,
            distribution=distribution,
            took=_elapsed_ms(start_time),
        )

    # ------------------------------------------------------------------
    # Transport entry point
    # ------------------------------------------------------------------

    def dispatch(self, capability: Capability, request: Mapping[str, Any]):
        """
        Run a capability on a decoded request body.

        Args:
            capability: Operation to run
            request: {"text": ...} or, for ANSWER, {"question": ..., "passage": ...}

        Returns:
            The response record of the capability.

        Raises:
            InvalidRequestError: If a required field is missing or not a string
            UnsupportedCapabilityError: If the model lacks the capability
        """
        if capability is Capability.ANSWER:
            return self.answer(
                question=_text_field(request, "question"),
                passage=_text_field(request, "passage"),
            )
        handlers: Dict[Capability, Callable[[str], Any]] = {
            Capability.DISCRIMINATE: self.discriminate,
            Capability.PREDICT: self.predict,
            Capability.TAG: self.tag,
            Capability.CLASSIFY: self.classify,
            Capability.TEXTUAL_ENTAILMENT: self.textual_entailment,
        }
        return handlers[capability](_text_field(request, "text"))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def health_check(self) -> Dict[str, Any]:
        """
        Check the service can accept traffic.

        Returns:
            Dictionary with overall status and per-component checks
        """
        checks = {
            "model": "healthy" if self.model is not None else "missing",
            "capabilities": "healthy" if self.capabilities else "none supported",
        }
        status = "healthy" if all(v == "healthy" for v in checks.values()) else "unhealthy"
        return {"status": status, "checks": checks}

    def get_service_info(self) -> Dict[str, Any]:
        """Return the loaded model, its capabilities and the ranking configuration."""
        return {
            "model": type(self.model).__name__,
            "tokenizer": type(self.tokenizer).__name__,
            "capabilities": sorted(c.value for c in self.capabilities),
            "ranking": self.ranking_config.to_dict(),
            "serialize_inference": self.serialize_inference,
        }


def _split_pair(text: str) -> Tuple[str, str]:
    premise, newline, hypothesis = text.partition("\n")
    if not newline or not premise.strip() or not hypothesis.strip():
        raise InvalidRequestError(
            "Textual entailment expects a premise and a hypothesis separated by a newline"
        )
    return premise, hypothesis


def _text_field(request: Mapping[str, Any], name: str) -> str:
    value = request.get(name)
    if not isinstance(value, str):
        raise InvalidRequestError(f"Field '{name}' is required and must be a string")
    return value
