"""
Analysis API Router
REST endpoint for comment stance analysis
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from stance_analyzer.app.dependencies import get_analysis_service
from stance_analyzer.domain.models import AnalysisResult
from stance_analyzer.services.analysis_service import CommentAnalysisService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Analysis"])


# ============================================================================
# Request Models
# ============================================================================


class AnalyzeRequest(BaseModel):
    """Request to analyze a video's comments"""

    url: str = Field(..., description="YouTube video URL or id")


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    response_model_by_alias=True,
)
async def analyze_video(
    request: AnalyzeRequest,
    service: CommentAnalysisService = Depends(get_analysis_service),
) -> AnalysisResult:
    """
    Classify the most relevant comments of a video

    The body uses the camelCase field aliases of AnalysisResult
    (sentimentAnalysis, totalComments, distribution). Service errors are
    translated to HTTP responses by the application's ServiceError handler.
    """
    return await service.analyze(request.url)
