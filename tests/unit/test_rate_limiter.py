"""
Unit Tests for the rate-limited batch scheduler
Tests batching, inter-batch delays, backoff and fallback
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from stance_analyzer.app.config import SchedulerSettings
from stance_analyzer.domain.models import ClassificationSource, Comment, Sentiment
from stance_analyzer.infrastructure.clients.rate_limiter import (
    BatchScheduler,
    make_batches,
)
from stance_analyzer.services.exceptions import (
    ClassificationUnavailableError,
    ClassifierNonRetryableError,
    ClassifierRetryableError,
    MalformedResponseError,
)


def make_comments(count, text="the video is 10 minutes long"):
    return [
        Comment(
            comment_id=f"c{i}",
            text=f"{text} #{i}",
            author=f"user{i}",
            published_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
            video_id="dQw4w9WgXcQ",
        )
        for i in range(count)
    ]


@pytest.fixture
def sleeps():
    """Records requested sleep durations instead of sleeping"""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def classifier():
    client = Mock()
    client.classify_one = AsyncMock(return_value=Sentiment.NEUTRAL)
    client.classify_batch = AsyncMock(
        side_effect=lambda texts: [Sentiment.NEUTRAL] * len(texts)
    )
    return client


# ============================================================================
# Batching
# ============================================================================


class TestMakeBatches:
    def test_twenty_five_into_three_batches(self):
        batches = make_batches(list(range(25)), 10)
        assert [len(b) for b in batches] == [10, 10, 5]

    def test_empty_input(self):
        assert make_batches([], 10) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            make_batches([1, 2], 0)


class TestBatchScheduling:
    """Batches run in sequence with a pause between them"""

    @pytest.mark.asyncio
    async def test_two_delays_for_three_batches(self, classifier, fake_sleep, sleeps):
        scheduler = BatchScheduler(classifier, batch_size=10, sleep=fake_sleep)

        results = await scheduler.classify_all(make_comments(25))

        assert len(results) == 25
        assert classifier.classify_one.call_count == 25
        assert sleeps == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_single_batch_has_no_delay(self, classifier, fake_sleep, sleeps):
        scheduler = BatchScheduler(classifier, batch_size=10, sleep=fake_sleep)

        await scheduler.classify_all(make_comments(10))

        assert sleeps == []

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_calls(self, classifier, fake_sleep, sleeps):
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        assert await scheduler.classify_all([]) == []
        classifier.classify_one.assert_not_called()
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_next_batch_waits_for_previous(self, classifier):
        events = []

        async def classify_one(text):
            events.append(("call", text))
            return Sentiment.AGREE

        async def record_sleep(seconds):
            events.append(("sleep", seconds))

        classifier.classify_one = AsyncMock(side_effect=classify_one)
        scheduler = BatchScheduler(classifier, batch_size=3, sleep=record_sleep)

        await scheduler.classify_all(make_comments(7))

        kinds = [kind for kind, _ in events]
        assert kinds == ["call"] * 3 + ["sleep"] + ["call"] * 3 + ["sleep"] + ["call"]

    @pytest.mark.asyncio
    async def test_order_preserved_when_calls_finish_out_of_order(self, classifier):
        comments = make_comments(5)
        labels = [
            Sentiment.AGREE,
            Sentiment.DISAGREE,
            Sentiment.NEUTRAL,
            Sentiment.AGREE,
            Sentiment.DISAGREE,
        ]
        by_text = {c.text: label for c, label in zip(comments, labels)}
        delays = {c.text: (5 - i) * 0.002 for i, c in enumerate(comments)}

        async def classify_one(text):
            await asyncio.sleep(delays[text])
            return by_text[text]

        classifier.classify_one = AsyncMock(side_effect=classify_one)
        scheduler = BatchScheduler(classifier, batch_size=5)

        results = await scheduler.classify_all(comments)

        assert [r.comment for r in results] == comments
        assert [r.sentiment for r in results] == labels

    def test_from_settings(self, classifier):
        settings = SchedulerSettings(
            batch_size=4, batch_delay_seconds=0.5, max_attempts=2
        )

        scheduler = BatchScheduler.from_settings(classifier, settings, mode="batched")

        assert scheduler.batch_size == 4
        assert scheduler.batch_delay == 0.5
        assert scheduler.max_attempts == 2
        assert scheduler.mode == "batched"

    def test_unknown_mode_rejected(self, classifier):
        with pytest.raises(ValueError):
            BatchScheduler(classifier, mode="streaming")


# ============================================================================
# Retry / Fallback
# ============================================================================


class TestBackoff:
    """Per-call retry policy"""

    @pytest.mark.asyncio
    async def test_success_on_third_attempt_uses_remote_label(
        self, classifier, fake_sleep, sleeps
    ):
        classifier.classify_one = AsyncMock(
            side_effect=[
                ClassifierRetryableError("429"),
                ClassifierRetryableError("429"),
                Sentiment.DISAGREE,
            ]
        )
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        # The fallback would say AGREE for this text
        [result] = await scheduler.classify_all(make_comments(1, text="I love this"))

        assert result.sentiment == Sentiment.DISAGREE
        assert result.source == ClassificationSource.REMOTE
        assert classifier.classify_one.call_count == 3
        assert sleeps == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_fall_back(self, classifier, fake_sleep, sleeps):
        classifier.classify_one = AsyncMock(side_effect=ClassifierRetryableError("429"))
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        [result] = await scheduler.classify_all(make_comments(1, text="I love this"))

        assert result.sentiment == Sentiment.AGREE
        assert result.source == ClassificationSource.FALLBACK
        assert classifier.classify_one.call_count == 3
        assert sleeps == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_non_retryable_falls_back_immediately(
        self, classifier, fake_sleep, sleeps
    ):
        classifier.classify_one = AsyncMock(
            side_effect=ClassifierNonRetryableError("HTTP 400")
        )
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        [result] = await scheduler.classify_all(
            make_comments(1, text="this is terrible")
        )

        assert result.sentiment == Sentiment.DISAGREE
        assert result.source == ClassificationSource.FALLBACK
        assert classifier.classify_one.call_count == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self, classifier, fake_sleep):
        classifier.classify_one = AsyncMock(side_effect=RuntimeError("boom"))
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        [result] = await scheduler.classify_all(make_comments(1))

        assert result.source == ClassificationSource.FALLBACK

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_siblings(self, classifier, fake_sleep):
        async def classify_one(text):
            if text.endswith("#1"):
                raise ClassifierNonRetryableError("bad request")
            return Sentiment.AGREE

        classifier.classify_one = AsyncMock(side_effect=classify_one)
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        results = await scheduler.classify_all(make_comments(3))

        assert [r.source for r in results] == [
            ClassificationSource.REMOTE,
            ClassificationSource.FALLBACK,
            ClassificationSource.REMOTE,
        ]

    @pytest.mark.asyncio
    async def test_custom_backoff_schedule(self, classifier, fake_sleep, sleeps):
        classifier.classify_one = AsyncMock(side_effect=ClassifierRetryableError("429"))
        scheduler = BatchScheduler(
            classifier,
            max_attempts=4,
            backoff_initial=0.5,
            backoff_factor=3.0,
            sleep=fake_sleep,
        )

        await scheduler.classify_all(make_comments(1))

        assert sleeps == [0.5, 1.5, 4.5]

    @pytest.mark.asyncio
    async def test_fallback_failure_is_classification_unavailable(
        self, classifier, fake_sleep, monkeypatch
    ):
        from stance_analyzer.services import fallback_classifier

        classifier.classify_one = AsyncMock(side_effect=ClassifierNonRetryableError("x"))
        monkeypatch.setattr(
            fallback_classifier, "classify", Mock(side_effect=RuntimeError("broken"))
        )
        scheduler = BatchScheduler(classifier, sleep=fake_sleep)

        with pytest.raises(ClassificationUnavailableError):
            await scheduler.classify_all(make_comments(1))


# ============================================================================
# Batched Mode
# ============================================================================


class TestBatchedMode:
    """One remote call per batch"""

    @pytest.mark.asyncio
    async def test_one_call_per_batch(self, classifier, fake_sleep, sleeps):
        scheduler = BatchScheduler(
            classifier, mode="batched", batch_size=10, sleep=fake_sleep
        )

        results = await scheduler.classify_all(make_comments(25))

        sizes = [len(call.args[0]) for call in classifier.classify_batch.call_args_list]
        assert sizes == [10, 10, 5]
        assert sleeps == [2.0, 2.0]
        assert all(r.source == ClassificationSource.REMOTE for r in results)
        classifier.classify_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_batch_falls_back_for_whole_batch(
        self, classifier, fake_sleep
    ):
        classifier.classify_batch = AsyncMock(
            side_effect=MalformedResponseError("not json")
        )
        scheduler = BatchScheduler(classifier, mode="batched", sleep=fake_sleep)
        comments = make_comments(3, text="I love this")

        results = await scheduler.classify_all(comments)

        assert classifier.classify_batch.call_count == 1
        assert [r.source for r in results] == [ClassificationSource.FALLBACK] * 3
        assert [r.sentiment for r in results] == [Sentiment.AGREE] * 3
        assert [r.comment for r in results] == comments

    @pytest.mark.asyncio
    async def test_batch_retries_on_rate_limit(self, classifier, fake_sleep, sleeps):
        classifier.classify_batch = AsyncMock(
            side_effect=[ClassifierRetryableError("429"), [Sentiment.DISAGREE] * 2]
        )
        scheduler = BatchScheduler(classifier, mode="batched", sleep=fake_sleep)

        results = await scheduler.classify_all(make_comments(2))

        assert [r.sentiment for r in results] == [Sentiment.DISAGREE] * 2
        assert sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_label_count_mismatch_falls_back(self, classifier, fake_sleep):
        classifier.classify_batch = AsyncMock(return_value=[Sentiment.AGREE])
        scheduler = BatchScheduler(classifier, mode="batched", sleep=fake_sleep)

        results = await scheduler.classify_all(make_comments(2))

        assert [r.source for r in results] == [ClassificationSource.FALLBACK] * 2
