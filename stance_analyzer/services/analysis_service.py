"""
Comment Analysis Service
Pipeline: fetch -> deduplicate -> classify -> persist -> aggregate
"""

import logging
from typing import Dict, List, Optional, Sequence

from stance_analyzer.domain.interfaces import CommentSource, DeduplicationStore
from stance_analyzer.domain.models import AnalysisResult, ClassifiedComment, Comment
from stance_analyzer.infrastructure.clients.rate_limiter import BatchScheduler
from stance_analyzer.infrastructure.clients.youtube_api import extract_video_id
from stance_analyzer.services.aggregator import aggregate
from stance_analyzer.services.exceptions import UpstreamNotFoundError

logger = logging.getLogger(__name__)


class CommentAnalysisService:
    """
    Stance analysis for the comments of one video

    Handles:
    - Video reference validation
    - Deduplication against previously stored classifications
    - Rate-limited classification of new comments
    - Write-back of fresh classifications
    - Aggregation into percentages and a monthly histogram

    The comment source and the scheduler's classifier are process-scoped and
    passed in; the store is usually bound to a per-request session.
    """

    def __init__(
        self,
        comment_source: CommentSource,
        store: DeduplicationStore,
        scheduler: BatchScheduler,
        max_comments: int = 100,
    ):
        self.comment_source = comment_source
        self.store = store
        self.scheduler = scheduler
        self.max_comments = max_comments

    async def analyze(self, video_ref: str) -> AnalysisResult:
        """
        Analyze the most relevant comments of a video

        Args:
            video_ref: Video URL or id

        Returns:
            AnalysisResult

        Raises:
            InvalidInputError: no video id in video_ref
            UpstreamNotFoundError: the video has no comments
        """
        video_id = extract_video_id(video_ref)
        logger.info(f"🎬 Analyzing comments for video: {video_id}")

        comments = await self.comment_source.get_video_comments(
            video_id, max_results=self.max_comments
        )
        if not comments:
            raise UpstreamNotFoundError(video_id)

        return await self.analyze_comments(comments)

    async def analyze_comments(self, comments: Sequence[Comment]) -> AnalysisResult:
        """
        Resolve a sentiment for every comment and aggregate

        Comments already in the store are not sent to the classifier again.
        A comment id repeated within the list is classified once.
        """
        resolved: List[Optional[ClassifiedComment]] = [None] * len(comments)
        positions: Dict[str, List[int]] = {}
        new_comments: List[Comment] = []

        for index, comment in enumerate(comments):
            if comment.comment_id in positions:
                positions[comment.comment_id].append(index)
                continue

            cached = await self.store.lookup(comment.comment_id)
            if cached is not None:
                resolved[index] = cached
                continue

            positions[comment.comment_id] = [index]
            new_comments.append(comment)

        logger.info(
            f"📊 {len(comments) - len(new_comments)} known, "
            f"{len(new_comments)} new comments"
        )

        fresh = await self.scheduler.classify_all(new_comments) if new_comments else []

        for classified in fresh:
            for index in positions[classified.comment_id]:
                resolved[index] = classified

            if not await self.store.save(classified):
                logger.warning(
                    f"⚠️ Result for {classified.comment_id} not persisted; "
                    "using it for this response only"
                )

        return aggregate(item for item in resolved if item is not None)
