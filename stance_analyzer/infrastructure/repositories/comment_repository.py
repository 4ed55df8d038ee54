# stance_analyzer/infrastructure/repositories/comment_repository.py
"""
Comment Repository
Deduplication store for classified comments
"""

from datetime import datetime, timezone
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from stance_analyzer.domain.models import (
    ClassificationSource,
    ClassifiedComment,
    Comment,
)
from stance_analyzer.infrastructure.database.models import StoredComment
from stance_analyzer.services.masking import mask_username

logger = logging.getLogger(__name__)


def _as_utc(timestamp: datetime) -> datetime:
    # SQLite drops tzinfo, so values are stored as UTC and read back as UTC.
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


class CommentRepository(BaseRepository[StoredComment]):
    """
    Repository for previously classified comments

    Implements the DeduplicationStore protocol: lookup before classifying,
    save after. The pair is not transactional.
    """

    def __init__(self, session: AsyncSession):
        """Initialize comment repository"""
        super().__init__(session, StoredComment)

    async def lookup(self, comment_id: str) -> Optional[ClassifiedComment]:
        """
        Find a stored classification

        Args:
            comment_id: Comment identifier

        Returns:
            ClassifiedComment with source CACHED, or None
        """
        stored = await self.find_one_by(comment_id=comment_id)
        if stored is None:
            return None

        comment = Comment(
            comment_id=stored.comment_id,
            text=stored.comment,
            author=stored.masked_username,
            published_at=_as_utc(stored.timestamp),
            video_id=stored.video_id,
        )
        return ClassifiedComment(comment, stored.sentiment, ClassificationSource.CACHED)

    async def save(self, classified: ClassifiedComment) -> bool:
        """
        Persist a fresh classification

        The author name is masked before it is written. Failures are logged
        and reported as False so the caller can keep its in-memory result.

        Returns:
            True if the record was written
        """
        comment = classified.comment
        try:
            await self.create(
                video_id=comment.video_id,
                comment_id=comment.comment_id,
                masked_username=mask_username(comment.author),
                comment=comment.text,
                sentiment=classified.sentiment,
                source=classified.source,
                timestamp=_as_utc(comment.published_at),
            )
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Could not store comment {comment.comment_id}: {e}")
            return False

        return True
