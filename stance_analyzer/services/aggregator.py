"""
Sentiment Aggregator
Turns per-comment sentiments into percentages and a monthly histogram
"""

from typing import Iterable

from stance_analyzer.domain.models import (
    AnalysisResult,
    ClassifiedComment,
    MonthlyDistribution,
    SentimentPercentages,
    SentimentTotals,
)


def aggregate(classified: Iterable[ClassifiedComment]) -> AnalysisResult:
    """
    Aggregate resolved sentiments

    Months are bucketed by calendar month only; comments from different
    years share a bucket.

    Args:
        classified: Every comment of the run with its final sentiment,
            cached and fresh alike

    Returns:
        AnalysisResult, or AnalysisResult.empty() when there is nothing
        to count
    """
    totals = SentimentTotals()
    distribution = MonthlyDistribution()

    for item in classified:
        totals.add(item.sentiment)
        distribution.add(item.comment.published_at)

    if totals.total == 0:
        return AnalysisResult.empty()

    return AnalysisResult(
        sentiment_analysis=SentimentPercentages(**totals.percentages()),
        total_comments=totals.total,
        distribution=distribution.as_dict(),
    )
