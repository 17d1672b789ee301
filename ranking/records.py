"""
Response records and their JSON encoding.

Every capability of the service answers with one of these records. Records are
built per request, never mutated after assembly (except the explicit ranking
sort of an AnswerList) and discarded once serialized.

JSON layout:
    QuestionAnsweringResponse  {"answers": [Answer...], "took": ms}
    Answer                     {"text", "start", "end", "confidence"}
    LabelingResponse           {"tokens": [Token...], "took": ms}
    Token                      {"text", "start", "end", "label"}
    ClassificationResponse     {"class", "confidence", "distribution": [...], "took": ms}
    ClassConfidence            {"class", "confidence"}

Encoding rules (dump_json):
- HTML-significant characters are always escaped as \\u003c, \\u003e, \\u0026
- pretty=True indents nested structures with 4 spaces, otherwise the output is
  compact with no whitespace between tokens
- NaN, infinities and non-JSON values raise SerializationError
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import SerializationError

REAL_LABEL = "REAL"
FAKE_LABEL = "FAKE"
PREDICTED_LABEL = "PREDICTED"

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def dump_json(payload: Any, pretty: bool = False) -> str:
    """
    Encode a JSON-compatible payload.

    Args:
        payload: Dicts, lists, strings, numbers, booleans and None
        pretty: Indent nested structures with 4 spaces

    Returns:
        JSON text with HTML-significant characters escaped.

    Raises:
        SerializationError: If the payload holds a value JSON cannot represent
    """
    try:
        if pretty:
            text = json.dumps(payload, indent=4, ensure_ascii=False, allow_nan=False)
        else:
            text = json.dumps(
                payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False
            )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to encode response: {e}") from e

    # These characters can only occur inside JSON strings, so a plain
    # substitution yields an equivalent document.
    for char, escaped in _ESCAPES.items():
        text = text.replace(char, escaped)
    return text


class _Record(ABC):
    """Shared encoding for response records."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON layout of the record."""
        pass

    def dump(self, pretty: bool = False) -> str:
        """Encode this record as JSON text (see dump_json)."""
        return dump_json(self.to_dict(), pretty=pretty)


@dataclass(frozen=True)
class Answer(_Record):
    """
    A candidate answer extracted from the passage.

    Attributes:
        text: Passage substring covered by the answer
        start: Character offset where the answer starts
        end: Character offset where the answer ends (exclusive)
        confidence: Ranking score of the answer (higher is better)
    """

    text: str
    start: int
    end: int
    confidence: float

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Answer start ({self.start}) is after its end ({self.end})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "confidence": float(self.confidence),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Answer":
        return cls(
            text=data["text"],
            start=int(data["start"]),
            end=int(data["end"]),
            confidence=float(data["confidence"]),
        )


class AnswerList(List[Answer]):
    """Answers in ranking order. Sorting is the only mutation performed on it."""

    def sort_by_confidence(self) -> "AnswerList":
        """Sort in place by descending confidence (stable) and return self."""
        self.sort(key=lambda answer: answer.confidence, reverse=True)
        return self


@dataclass
class QuestionAnsweringResponse(_Record):
    """
    Response of the question answering capability.

    Attributes:
        answers: Ranked answers, best first
        took: Milliseconds spent serving the request
    """

    answers: AnswerList = field(default_factory=AnswerList)
    took: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answers": [answer.to_dict() for answer in self.answers],
            "took": self.took,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionAnsweringResponse":
        return cls(
            answers=AnswerList(Answer.from_dict(a) for a in data.get("answers", [])),
            took=int(data.get("took", 0)),
        )


@dataclass(frozen=True)
class Token(_Record):
    """A word of the input text with the label assigned to it."""

    text: str
    start: int
    end: int
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        return cls(
            text=data["text"],
            start=int(data["start"]),
            end=int(data["end"]),
            label=data["label"],
        )


@dataclass
class LabelingResponse(_Record):
    """
    Response of the token-level capabilities (tag, discriminate, predict).

    Attributes:
        tokens: Labelled tokens in text order
        took: Milliseconds spent serving the request
    """

    tokens: List[Token] = field(default_factory=list)
    took: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokens": [token.to_dict() for token in self.tokens],
            "took": self.took,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LabelingResponse":
        return cls(
            tokens=[Token.from_dict(t) for t in data.get("tokens", [])],
            took=int(data.get("took", 0)),
        )


@dataclass(frozen=True)
class ClassConfidence(_Record):
    """Probability assigned to one class."""

    label: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"class": self.label, "confidence": float(self.confidence)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassConfidence":
        return cls(label=data["class"], confidence=float(data["confidence"]))


@dataclass
class ClassificationResponse(_Record):
    """
    Response of the sequence-level capabilities (classify, textual entailment).

    Attributes:
        label: Best class
        confidence: Probability of the best class
        distribution: All classes, most probable first
        took: Milliseconds spent serving the request
    """

    label: str
    confidence: float
    distribution: List[ClassConfidence] = field(default_factory=list)
    took: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class": self.label,
            "confidence": float(self.confidence),
            "distribution": [c.to_dict() for c in self.distribution],
            "took": self.took,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationResponse":
        return cls(
            label=data["class"],
            confidence=float(data["confidence"]),
            distribution=[ClassConfidence.from_dict(c) for c in data.get("distribution", [])],
            took=int(data.get("took", 0)),
        )
