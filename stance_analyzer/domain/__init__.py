# stance_analyzer/domain/__init__.py
"""
Domain layer: entities, result DTOs and the interfaces the pipeline depends on.
"""
from .interfaces import CommentSource, DeduplicationStore, RemoteClassifier
from .models import (
    MONTHS,
    AnalysisResult,
    ClassificationSource,
    ClassifiedComment,
    Comment,
    MonthlyDistribution,
    Sentiment,
    SentimentPercentages,
    SentimentTotals,
)

__all__ = [
    "CommentSource",
    "DeduplicationStore",
    "RemoteClassifier",
    "MONTHS",
    "AnalysisResult",
    "ClassificationSource",
    "ClassifiedComment",
    "Comment",
    "MonthlyDistribution",
    "Sentiment",
    "SentimentPercentages",
    "SentimentTotals",
]
