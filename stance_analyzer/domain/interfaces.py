# stance_analyzer/domain/interfaces.py
"""
Domain-facing store and client interfaces (Protocols).

These reflect only what the analysis pipeline actually uses. Concrete
implementations satisfy them via duck typing; there is no inheritance
requirement.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from stance_analyzer.domain.models import ClassifiedComment, Comment, Sentiment


@runtime_checkable
class DeduplicationStore(Protocol):
    """
    Persisted mapping from comment id to its previously computed sentiment.

    lookup and save are independent operations. Two concurrent analyses of
    the same video may both miss and both save; that race is tolerated.
    """

    async def lookup(self, comment_id: str) -> Optional[ClassifiedComment]:
        """Return the stored classification, or None if never analyzed."""
        ...

    async def save(self, classified: ClassifiedComment) -> bool:
        """Persist a fresh classification. Returns False on failure, never raises."""
        ...


@runtime_checkable
class RemoteClassifier(Protocol):
    """
    External text classifier.

    Implementations raise ClassifierRetryableError for rate limiting and
    ClassifierNonRetryableError for everything else. They never retry.
    """

    async def classify_one(self, text: str) -> Sentiment: ...

    async def classify_batch(self, texts: Sequence[str]) -> List[Sentiment]:
        """Classify all texts in one request; result is in input order."""
        ...


@runtime_checkable
class CommentSource(Protocol):
    """Upstream comment provider (one page, most relevant first)."""

    async def get_video_comments(
        self, video_id: str, max_results: int = 100
    ) -> List[Comment]: ...
