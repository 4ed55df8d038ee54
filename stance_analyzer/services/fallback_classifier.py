"""
Keyword Fallback Classifier

Deterministic stance heuristic used when the remote classifier is rate
limited, unreachable or returns garbage. It is deliberately coarse: the word
lists are short and matching is plain substring containment ("like" matches
inside "likely"), so expect noticeable misclassifications. That is accepted
degraded-mode behavior; this is never the primary classifier.
"""

from typing import Tuple

from stance_analyzer.domain.models import Sentiment

POSITIVE_WORDS: Tuple[str, ...] = (
    "good",
    "great",
    "awesome",
    "love",
    "like",
    "cool",
    "nice",
    "amazing",
    "fantastic",
    "excellent",
    "best",
    "beautiful",
    "wonderful",
    "perfect",
)

NEGATIVE_WORDS: Tuple[str, ...] = (
    "bad",
    "terrible",
    "hate",
    "dislike",
    "awful",
    "gross",
    "cringe",
    "disgusting",
    "horrible",
    "worst",
    "sucks",
    "stupid",
    "trash",
)


def _count_terms(text: str, terms: Tuple[str, ...]) -> int:
    # Each term counts once no matter how often it occurs.
    return sum(1 for term in terms if term in text)


def classify(text: str) -> Sentiment:
    """
    Classify a comment by counting positive and negative keywords

    Args:
        text: Comment text

    Returns:
        AGREE if positive terms outnumber negative ones, DISAGREE if the
        reverse, NEUTRAL on a tie (including no matches at all)
    """
    lowered = (text or "").lower()
    positive = _count_terms(lowered, POSITIVE_WORDS)
    negative = _count_terms(lowered, NEGATIVE_WORDS)

    if positive > negative:
        return Sentiment.AGREE
    if negative > positive:
        return Sentiment.DISAGREE
    return Sentiment.NEUTRAL
