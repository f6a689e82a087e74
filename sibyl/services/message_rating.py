"""Message rating based on lexicon sentiment.

Positive messages pull a Psycho-Pass down and negative ones push it up, so
the rating has the opposite sign of the sentiment. Word valences come from
the VADER lexicon; the aggregation is the AFINN style sum/comparative pair:

- score: sum of valences of all tokens
- comparative: score divided by the number of tokens
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Final

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

STRIP_PATTERN: Final[re.Pattern[str]] = re.compile(r"[.,/#!$%^&*;:{}=_`\"~()]")
"""Punctuation removed before tokenizing."""


@dataclass(frozen=True)
class SentimentResult:
    """Lexicon sentiment of one message."""

    score: float
    comparative: float
    token_count: int


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation and split on whitespace."""
    return STRIP_PATTERN.sub("", text.lower()).split()


class MessageRater:
    """Callable rating function: message text -> rating."""

    def __init__(self, lexicon: Mapping[str, float] | None = None) -> None:
        """Initialize with a word -> valence lexicon.

        Args:
            lexicon: Custom lexicon. Defaults to the VADER lexicon.
        """
        if lexicon is None:
            lexicon = SentimentIntensityAnalyzer().lexicon
        self._lexicon = lexicon

    def analyze(self, text: str) -> SentimentResult:
        tokens = tokenize(text)
        if not tokens:
            return SentimentResult(score=0.0, comparative=0.0, token_count=0)
        score = float(sum(self._lexicon.get(token, 0.0) for token in tokens))
        return SentimentResult(
            score=score, comparative=score / len(tokens), token_count=len(tokens)
        )

    def __call__(self, text: str) -> float:
        """Rate a message.

        Example:
            >>> rater = MessageRater({"great": 3.0, "awful": -3.0})
            >>> rater("great")
            -9.0
            >>> round(rater("awful"), 3)
            5.196
        """
        sentiment = self.analyze(text)
        if sentiment.score >= 0:
            return -sentiment.score * sentiment.comparative

        multiplier = -1.0
        # Very dense negativity gets amplified
        if sentiment.comparative < -1:
            multiplier = -math.sqrt(abs(sentiment.comparative))
        return sentiment.score * multiplier


@lru_cache(maxsize=1)
def _default_rater() -> MessageRater:
    return MessageRater()


def compute_message_rating(text: str) -> float:
    """Rate a message with the default VADER-lexicon rater."""
    return _default_rater()(text)
