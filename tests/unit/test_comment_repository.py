"""
Unit Tests for CommentRepository
Runs against an in-memory SQLite database
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from stance_analyzer.domain.interfaces import DeduplicationStore
from stance_analyzer.domain.models import (
    ClassificationSource,
    ClassifiedComment,
    Comment,
    Sentiment,
)
from stance_analyzer.infrastructure.database import DatabaseManager
from stance_analyzer.infrastructure.repositories import CommentRepository


@pytest_asyncio.fixture
async def db_manager():
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def comment_repo(db_manager):
    async with db_manager.session() as session:
        yield CommentRepository(session)


def classified(comment_id="c1", sentiment=Sentiment.AGREE, published_at=None):
    comment = Comment(
        comment_id=comment_id,
        text="Great explanation",
        author="Alice",
        published_at=published_at or datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc),
        video_id="dQw4w9WgXcQ",
    )
    return ClassifiedComment(comment, sentiment, ClassificationSource.REMOTE)


class TestCommentRepository:
    """Deduplication store behaviour"""

    @pytest.mark.asyncio
    async def test_satisfies_store_protocol(self, comment_repo):
        assert isinstance(comment_repo, DeduplicationStore)

    @pytest.mark.asyncio
    async def test_lookup_miss(self, comment_repo):
        assert await comment_repo.lookup("unknown") is None

    @pytest.mark.asyncio
    async def test_save_then_lookup(self, comment_repo):
        assert await comment_repo.save(classified(sentiment=Sentiment.DISAGREE)) is True

        found = await comment_repo.lookup("c1")

        assert found is not None
        assert found.sentiment == Sentiment.DISAGREE
        assert found.source == ClassificationSource.CACHED
        assert found.comment.video_id == "dQw4w9WgXcQ"
        assert found.comment.text == "Great explanation"
        assert found.comment.published_at == datetime(
            2024, 3, 5, 10, 0, tzinfo=timezone.utc
        )

    @pytest.mark.asyncio
    async def test_author_is_masked_before_storage(self, comment_repo):
        await comment_repo.save(classified())

        found = await comment_repo.lookup("c1")

        assert found.comment.author == "A****"

    @pytest.mark.asyncio
    async def test_non_utc_timestamp_round_trips_as_same_instant(self, comment_repo):
        minus_five = timezone(timedelta(hours=-5))
        local = datetime(2024, 1, 31, 22, 0, tzinfo=minus_five)

        await comment_repo.save(classified(published_at=local))
        found = await comment_repo.lookup("c1")

        assert found.comment.published_at == local
        assert found.comment.published_at.month == 2

    @pytest.mark.asyncio
    async def test_duplicate_save_reports_failure(self, comment_repo):
        assert await comment_repo.save(classified()) is True
        assert await comment_repo.save(classified(sentiment=Sentiment.NEUTRAL)) is False

        # The first record is untouched and the session is still usable
        found = await comment_repo.lookup("c1")
        assert found.sentiment == Sentiment.AGREE

    @pytest.mark.asyncio
    async def test_comments_stored_independently(self, comment_repo):
        await comment_repo.save(classified("c1", sentiment=Sentiment.AGREE))
        await comment_repo.save(classified("c2", sentiment=Sentiment.NEUTRAL))

        assert (await comment_repo.lookup("c1")).sentiment == Sentiment.AGREE
        assert (await comment_repo.lookup("c2")).sentiment == Sentiment.NEUTRAL
