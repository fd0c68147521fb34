"""Word-set analysis across N labeled response texts."""

import re
from collections.abc import Sequence

from compare_agent.errors import ValidationError
from compare_agent.models import WordAnalysis

MIN_RESPONSES = 2

# Maximal runs of ASCII letters, at least 3 long
_WORD_RE = re.compile(r"[A-Za-z]{3,}")


def extract_words(text: str) -> set[str]:
    """Return the distinct lowercase words of length >= 3 found in text."""
    return {match.lower() for match in _WORD_RE.findall(text)}


def analyze(
    responses: Sequence[tuple[str, str]],
    min_count: int = MIN_RESPONSES,
) -> WordAnalysis:
    """Compute shared and per-label unique words.

    Args:
        responses: Ordered (label, text) pairs. Labels must be distinct.
        min_count: Minimum number of texts required, never below 2.

    Returns:
        WordAnalysis with sorted shared words and sorted unique words per label.

    Raises:
        ValidationError: If fewer than min_count texts or a duplicate label.
    """
    required = max(min_count, MIN_RESPONSES)
    if len(responses) < required:
        raise ValidationError(f"Need at least {required} responses to compare, got {len(responses)}")

    words_by_label: dict[str, set[str]] = {}
    for label, text in responses:
        if label in words_by_label:
            raise ValidationError(f"Duplicate response label: {label}")
        words_by_label[label] = extract_words(text)

    shared = set.intersection(*words_by_label.values())

    unique: dict[str, tuple[str, ...]] = {}
    for label, words in words_by_label.items():
        others: set[str] = set()
        for other_label, other_words in words_by_label.items():
            if other_label != label:
                others |= other_words
        unique[label] = tuple(sorted(words - others))

    return WordAnalysis(
        shared_words=tuple(sorted(shared)),
        unique_words_by_model=unique,
    )
