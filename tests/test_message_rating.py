"""Tests for lexicon-based message rating."""

import math

import pytest

from sibyl.services.message_rating import (
    MessageRater,
    compute_message_rating,
    tokenize,
)

LEXICON = {"good": 2.0, "bad": -2.0, "terrible": -3.0}


@pytest.fixture
def rater() -> MessageRater:
    """Rater over a tiny fixed lexicon."""
    return MessageRater(LEXICON)


def test_tokenize_strips_punctuation() -> None:
    """Punctuation is removed and text lowercased."""
    assert tokenize("Good, day!\nBad (really).") == ["good", "day", "bad", "really"]


def test_positive_message_lowers_rating(rater: MessageRater) -> None:
    """Positive text yields -score * comparative."""
    assert rater("good") == -4.0
    assert rater("Good day!") == -2.0


def test_negative_message_raises_rating(rater: MessageRater) -> None:
    """Negative text yields -score when comparative is not below -1."""
    assert rater("bad day") == 2.0


def test_dense_negativity_is_amplified(rater: MessageRater) -> None:
    """Comparative below -1 scales by sqrt(|comparative|)."""
    assert rater("bad terrible") == pytest.approx(5.0 * math.sqrt(2.5))


def test_empty_and_neutral_messages(rater: MessageRater) -> None:
    """Text without lexicon words rates as neutral."""
    assert rater("") == 0.0
    assert rater("!!!") == 0.0
    assert rater("just a table") == 0.0


def test_analyze_reports_counts(rater: MessageRater) -> None:
    """analyze exposes the AFINN-style score pair."""
    result = rater.analyze("good good bad day")

    assert result.score == 2.0
    assert result.comparative == 0.5
    assert result.token_count == 4


def test_default_rater_uses_vader_lexicon() -> None:
    """The default rater has the expected sign for plain English."""
    assert compute_message_rating("I love this, it is wonderful") < 0
    assert compute_message_rating("I hate this, it is horrible") > 0
    assert compute_message_rating("the table is brown") == 0
