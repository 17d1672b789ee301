"""
Word tokens, sentinel padding and the tokenizer interface.

The tokenization algorithm itself belongs to the model; this module only fixes
the shape of its output (WordToken, with character offsets into the source text)
and wraps token sequences with the sentinels the model expects.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

CLS_TOKEN = "[CLS]"
SEP_TOKEN = "[SEP]"
MASK_TOKEN = "[MASK]"


@dataclass(frozen=True)
class WordToken:
    """
    A word of the input text.

    Attributes:
        text: The word as it appears in the source text
        start: Character offset of the first character
        end: Character offset one past the last character
    """

    text: str
    start: int
    end: int


def pad(
    words: Sequence[str],
    start: str = CLS_TOKEN,
    separator: str = SEP_TOKEN,
) -> List[str]:
    """
    Wrap a token sequence with the start and separator sentinels.

    Args:
        words: Tokens to wrap (left untouched)
        start: Sentinel prepended to the sequence
        separator: Sentinel appended to the sequence

    Returns:
        New list [start, *words, separator]

    Example:
        >>> pad(["a", "b"])
        ['[CLS]', 'a', 'b', '[SEP]']
    """
    return [start, *words, separator]


class Tokenizer(ABC):
    """Splits text into WordTokens with character offsets."""

    @abstractmethod
    def tokenize(self, text: str) -> List[WordToken]:
        """Return the word tokens of text in order of appearance."""
        pass


class RegexTokenizer(Tokenizer):
    """
    Minimal tokenizer: mask sentinels, runs of word characters, single punctuation.

    Used when the model does not ship its own tokenizer.
    """

    _PATTERN = re.compile(re.escape(MASK_TOKEN) + r"|\w+|[^\w\s]")

    def tokenize(self, text: str) -> List[WordToken]:
        return [
            WordToken(text=m.group(), start=m.start(), end=m.end())
            for m in self._PATTERN.finditer(text)
        ]
