# stance_analyzer/domain/models.py
"""
Domain entities and result DTOs.

Comments and their classifications are plain frozen dataclasses. The
AnalysisResult returned to callers is a Pydantic model so the API layer can
serialize it directly with the camelCase field names clients expect.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Fixed bucket order for the monthly histogram.
MONTHS: Tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


class Sentiment(str, enum.Enum):
    """Stance of a comment toward the video content"""

    AGREE = "agree"
    DISAGREE = "disagree"
    NEUTRAL = "neutral"


class ClassificationSource(str, enum.Enum):
    """Where a comment's sentiment came from"""

    REMOTE = "remote"
    FALLBACK = "fallback"
    CACHED = "cached"


@dataclass(frozen=True)
class Comment:
    """A top-level comment as fetched from the comment source"""

    comment_id: str
    text: str
    author: str
    published_at: datetime
    video_id: str


@dataclass(frozen=True)
class ClassifiedComment:
    """A comment paired with its resolved sentiment"""

    comment: Comment
    sentiment: Sentiment
    source: ClassificationSource

    @property
    def comment_id(self) -> str:
        return self.comment.comment_id


@dataclass
class SentimentTotals:
    """Per-request sentiment counts; never persisted"""

    agree: int = 0
    disagree: int = 0
    neutral: int = 0

    @property
    def total(self) -> int:
        return self.agree + self.disagree + self.neutral

    def add(self, sentiment: Sentiment) -> None:
        setattr(self, sentiment.value, getattr(self, sentiment.value) + 1)

    def percentages(self) -> Dict[str, float]:
        """
        Percentage of each sentiment, rounded to one decimal.

        Raises:
            ZeroDivisionError: when no comments were counted; callers use
                AnalysisResult.empty() for that case instead.
        """
        total = self.total
        return {
            s.value: round(getattr(self, s.value) / total * 100, 1)
            for s in Sentiment
        }


@dataclass
class MonthlyDistribution:
    """
    Comment counts per calendar month.

    The year is ignored: January 2023 and January 2024 land in the same
    bucket. Videos with comments spanning several years get merged months.
    """

    counts: Dict[str, int] = field(
        default_factory=lambda: {month: 0 for month in MONTHS}
    )

    def add(self, timestamp: datetime) -> None:
        self.counts[month_of(timestamp)] += 1

    def as_dict(self) -> Dict[str, int]:
        return {month: self.counts[month] for month in MONTHS}


def month_of(timestamp: datetime) -> str:
    """Three-letter month of a timestamp, evaluated in UTC (naive = UTC)"""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return MONTHS[timestamp.month - 1]


class SentimentPercentages(BaseModel):
    agree: float = 0.0
    disagree: float = 0.0
    neutral: float = 0.0


class AnalysisResult(BaseModel):
    """Summary returned by an analysis run"""

    model_config = ConfigDict(populate_by_name=True)

    sentiment_analysis: SentimentPercentages = Field(alias="sentimentAnalysis")
    total_comments: int = Field(alias="totalComments", ge=0)
    distribution: Dict[str, int]

    @classmethod
    def empty(cls) -> "AnalysisResult":
        """Defined result for a run with no comments"""
        return cls(
            sentiment_analysis=SentimentPercentages(),
            total_comments=0,
            distribution={month: 0 for month in MONTHS},
        )


__all__ = [
    "MONTHS",
    "Sentiment",
    "ClassificationSource",
    "Comment",
    "ClassifiedComment",
    "SentimentTotals",
    "MonthlyDistribution",
    "SentimentPercentages",
    "AnalysisResult",
    "month_of",
]
