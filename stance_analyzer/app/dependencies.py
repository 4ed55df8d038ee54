"""
Service Dependency Injection
FastAPI dependency providers for the analysis pipeline
"""

from typing import AsyncGenerator
from functools import lru_cache

from stance_analyzer.app.config import get_config
from stance_analyzer.infrastructure.clients.gemini_client import (
    GeminiClassifierClient,
    create_classifier_client,
)
from stance_analyzer.infrastructure.clients.rate_limiter import BatchScheduler
from stance_analyzer.infrastructure.clients.youtube_api import (
    YouTubeAPIClient,
    create_youtube_client,
)
from stance_analyzer.infrastructure.database import DatabaseManager
from stance_analyzer.infrastructure.repositories import CommentRepository
from stance_analyzer.services.analysis_service import CommentAnalysisService


# ============================================================================
# Process-scoped Resources
# ============================================================================


@lru_cache()
def get_youtube_client() -> YouTubeAPIClient:
    """Get or create YouTube API client (Singleton)"""
    return create_youtube_client()


@lru_cache()
def get_classifier_client() -> GeminiClassifierClient:
    """Get or create remote classifier client (Singleton)"""
    return create_classifier_client()


@lru_cache()
def get_db_manager() -> DatabaseManager:
    """Get or create database manager (Singleton)"""
    return DatabaseManager()


# ============================================================================
# Service Factories
# ============================================================================


async def get_analysis_service() -> AsyncGenerator[CommentAnalysisService, None]:
    """
    Dependency provider for CommentAnalysisService

    Usage in FastAPI:
        @router.post("/api/analyze")
        async def analyze(
            request: AnalyzeRequest,
            service: CommentAnalysisService = Depends(get_analysis_service),
        ):
            return await service.analyze(request.url)

    Yields:
        CommentAnalysisService bound to a fresh database session
    """
    config = get_config()

    scheduler = BatchScheduler.from_settings(
        get_classifier_client(),
        config.scheduler,
        mode=config.classifier.mode,
    )

    async with get_db_manager().session() as session:
        yield CommentAnalysisService(
            comment_source=get_youtube_client(),
            store=CommentRepository(session),
            scheduler=scheduler,
            max_comments=config.youtube_api.max_results,
        )
