# stance_analyzer/infrastructure/clients/rate_limiter.py
"""
Rate-Limited Batch Scheduler for the Remote Classifier
Drives classification of many comments without tripping the service's rate limit.

Features:
- Fixed-size batches processed strictly one after another
- Fixed pause between batches (none after the last one)
- Concurrent per-comment calls inside a batch, or one batched prompt per batch
- Exponential backoff on rate-limit errors, keyword fallback on exhaustion
- Output always in input order
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Literal, Optional, Sequence, TypeVar

from stance_analyzer.app.config import SchedulerSettings
from stance_analyzer.domain.interfaces import RemoteClassifier
from stance_analyzer.domain.models import (
    ClassificationSource,
    ClassifiedComment,
    Comment,
    Sentiment,
)
from stance_analyzer.services import fallback_classifier
from stance_analyzer.services.exceptions import (
    ClassificationUnavailableError,
    ClassifierError,
    get_retry_delay,
    is_retryable_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClassifierMode = Literal["batched", "per_comment"]
SleepFunc = Callable[[float], Awaitable[None]]


def make_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """Split items into consecutive chunks of at most batch_size"""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(items[i : i + batch_size]) for i in range(0, len(items), batch_size)]


class BatchScheduler:
    """
    Classifies comments through a RemoteClassifier with rate-limit discipline

    Batch N+1 never starts before every call of batch N has resolved, either
    with a remote label or with the fallback. Classifier failures never abort
    the run.
    """

    def __init__(
        self,
        classifier: RemoteClassifier,
        mode: ClassifierMode = "per_comment",
        batch_size: int = 10,
        batch_delay: float = 2.0,
        max_attempts: int = 3,
        backoff_initial: float = 2.0,
        backoff_factor: float = 2.0,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize scheduler

        Args:
            classifier: Remote classifier client
            mode: "per_comment" (one call per comment) or "batched" (one call per batch)
            batch_size: Comments per batch
            batch_delay: Seconds to wait between batches
            max_attempts: Total attempts per remote call
            backoff_initial: Seconds before the first retry
            backoff_factor: Multiplier for each further retry
            sleep: Awaitable sleep (asyncio.sleep unless injected)
        """
        if mode not in ("batched", "per_comment"):
            raise ValueError(f"Unknown classifier mode: {mode}")
        if batch_size < 1 or max_attempts < 1:
            raise ValueError("batch_size and max_attempts must be at least 1")

        self.classifier = classifier
        self.mode = mode
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_attempts = max_attempts
        self.backoff_initial = backoff_initial
        self.backoff_factor = backoff_factor
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(
        cls,
        classifier: RemoteClassifier,
        settings: SchedulerSettings,
        mode: ClassifierMode = "per_comment",
        sleep: Optional[SleepFunc] = None,
    ) -> "BatchScheduler":
        return cls(
            classifier,
            mode=mode,
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay_seconds,
            max_attempts=settings.max_attempts,
            backoff_initial=settings.backoff_initial_seconds,
            backoff_factor=settings.backoff_factor,
            sleep=sleep,
        )

    # ========================================================================
    # Public API
    # ========================================================================

    async def classify_all(self, comments: Sequence[Comment]) -> List[ClassifiedComment]:
        """
        Classify every comment

        Args:
            comments: Comments to classify (none of them previously stored)

        Returns:
            One ClassifiedComment per input comment, in input order
        """
        batches = make_batches(comments, self.batch_size)
        results: List[ClassifiedComment] = []

        logger.info(
            f"🧮 Classifying {len(comments)} comments in {len(batches)} batches "
            f"(mode={self.mode}, size={self.batch_size})"
        )

        for index, batch in enumerate(batches):
            if self.mode == "batched":
                results.extend(await self._classify_batched(batch))
            else:
                results.extend(await self._classify_concurrently(batch))

            if index < len(batches) - 1:
                logger.debug(f"⏳ Batch {index + 1} done, pausing {self.batch_delay}s")
                await self._sleep(self.batch_delay)

        return results

    # ========================================================================
    # Batch Strategies
    # ========================================================================

    async def _classify_concurrently(
        self, batch: List[Comment]
    ) -> List[ClassifiedComment]:
        # gather preserves argument order regardless of completion order
        return list(await asyncio.gather(*(self._classify_one(c) for c in batch)))

    async def _classify_one(self, comment: Comment) -> ClassifiedComment:
        try:
            sentiment = await self._call_with_backoff(
                lambda: self.classifier.classify_one(comment.text)
            )
        except Exception as e:  # any classifier failure degrades to the fallback
            logger.warning(f"⚠️ Falling back for comment {comment.comment_id}: {e}")
            return self._fallback(comment)

        return ClassifiedComment(comment, sentiment, ClassificationSource.REMOTE)

    async def _classify_batched(self, batch: List[Comment]) -> List[ClassifiedComment]:
        texts = [comment.text for comment in batch]
        try:
            sentiments = await self._call_with_backoff(
                lambda: self.classifier.classify_batch(texts)
            )
        except Exception as e:
            logger.warning(f"⚠️ Falling back for a batch of {len(batch)}: {e}")
            return [self._fallback(comment) for comment in batch]

        if len(sentiments) != len(batch):
            logger.warning(
                f"⚠️ Batch answer has {len(sentiments)} labels for {len(batch)} "
                "comments, falling back"
            )
            return [self._fallback(comment) for comment in batch]

        return [
            ClassifiedComment(comment, sentiment, ClassificationSource.REMOTE)
            for comment, sentiment in zip(batch, sentiments)
        ]

    # ========================================================================
    # Retry / Fallback
    # ========================================================================

    async def _call_with_backoff(self, call: Callable[[], Awaitable[T]]) -> T:
        """
        Run call, retrying rate-limit errors with exponential backoff

        Raises:
            ClassifierError: non-retryable failure, or retries exhausted
        """
        attempt = 1
        while True:
            try:
                return await call()
            except ClassifierError as e:
                if not is_retryable_error(e) or attempt >= self.max_attempts:
                    raise

                delay = get_retry_delay(attempt, self.backoff_initial, self.backoff_factor)
                logger.warning(
                    f"⚠️ Rate limited, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_attempts})"
                )
                await self._sleep(delay)
                attempt += 1

    @staticmethod
    def _fallback(comment: Comment) -> ClassifiedComment:
        try:
            sentiment: Sentiment = fallback_classifier.classify(comment.text)
        except Exception as e:
            raise ClassificationUnavailableError(
                f"Fallback classifier failed for {comment.comment_id}: {e}"
            ) from e
        return ClassifiedComment(comment, sentiment, ClassificationSource.FALLBACK)
