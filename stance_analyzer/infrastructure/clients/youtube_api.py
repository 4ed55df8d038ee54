# stance_analyzer/infrastructure/clients/youtube_api.py
"""
YouTube Data API v3 Comment Client
Fetches one page of top-level comment threads for a video.

Features:
- Async HTTP with connection pooling
- Type-safe response parsing with Pydantic
- Video reference parsing (watch URLs, short links, bare ids)
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stance_analyzer.app.config import YouTubeAPISettings, get_config
from stance_analyzer.domain.models import Comment
from stance_analyzer.services.exceptions import (
    InvalidInputError,
    UpstreamNotFoundError,
    YouTubeAPIError,
)

logger = logging.getLogger(__name__)

VIDEO_ID_PATTERN = re.compile(r"(?:v=|/)([a-zA-Z0-9_-]{11})")
BARE_VIDEO_ID = re.compile(r"^[a-zA-Z0-9_-]{11}$")


def extract_video_id(reference: str) -> str:
    """
    Derive a video id from a URL or a bare id

    Args:
        reference: e.g. https://www.youtube.com/watch?v=dQw4w9WgXcQ,
            https://youtu.be/dQw4w9WgXcQ or dQw4w9WgXcQ

    Raises:
        InvalidInputError: no 11-character id found
    """
    reference = (reference or "").strip()
    if BARE_VIDEO_ID.match(reference):
        return reference

    match = VIDEO_ID_PATTERN.search(reference)
    if not match:
        raise InvalidInputError(reference)
    return match.group(1)


# ============================================================================
# Response Models
# ============================================================================


class CommentSnippet(BaseModel):
    """Comment metadata"""

    model_config = ConfigDict(populate_by_name=True)

    text_display: str = Field(alias="textDisplay", default="")
    author_display_name: str = Field(alias="authorDisplayName", default="")
    like_count: int = Field(alias="likeCount", default=0)
    published_at: datetime = Field(alias="publishedAt")


class CommentResponse(BaseModel):
    """Top-level comment of a comment thread"""

    id: str
    snippet: CommentSnippet

    def to_domain(self, video_id: str) -> Comment:
        return Comment(
            comment_id=self.id,
            text=self.snippet.text_display,
            author=self.snippet.author_display_name,
            published_at=self.snippet.published_at,
            video_id=video_id,
        )


# ============================================================================
# Main API Client
# ============================================================================


class YouTubeAPIClient:
    """
    YouTube Data API v3 comment source

    Pagination is intentionally not followed: one page of the most relevant
    comments is analyzed per request.
    """

    def __init__(
        self,
        settings: Optional[YouTubeAPISettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize YouTube API client

        Args:
            settings: YouTube settings (global config if not provided)
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.settings = settings or get_config().youtube_api

        self.client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.request_timeout,
            limits=httpx.Limits(max_keepalive_connections=5),
            transport=transport,
        )

        logger.info("✅ YouTube API client initialized")

    async def _request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make API request

        Raises:
            UpstreamNotFoundError: video does not exist
            YouTubeAPIError: any other HTTP, network or decoding failure
        """
        params["key"] = self.settings.api_key

        try:
            response = await self.client.get(f"/{endpoint}", params=params)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise UpstreamNotFoundError(params.get("videoId", ""))

            logger.error(f"❌ API error {status}: {e.response.text[:200]}")
            raise YouTubeAPIError(f"YouTube API returned HTTP {status}", status)

        except httpx.RequestError as e:
            logger.error(f"❌ Network error: {e}")
            raise YouTubeAPIError(f"YouTube API request failed: {e}")

        except ValueError as e:
            logger.error(f"❌ Invalid JSON from YouTube API: {e}")
            raise YouTubeAPIError("YouTube API returned invalid JSON")

    async def get_video_comments(
        self, video_id: str, max_results: Optional[int] = None
    ) -> List[Comment]:
        """
        Fetch one page of top-level comments

        Args:
            video_id: YouTube video ID
            max_results: Comments to fetch (1-100, settings default)

        Returns:
            Comments in the order the API returned them
        """
        limit = max_results or self.settings.max_results
        params = {
            "part": "snippet",
            "videoId": video_id,
            "maxResults": min(100, limit),
            "order": self.settings.comment_order,
            "textFormat": "plainText",
        }

        response = await self._request("commentThreads", params)

        comments = []
        for item in response.get("items", []):
            try:
                thread_comment = CommentResponse(**item["snippet"]["topLevelComment"])
            except (KeyError, TypeError, ValidationError) as e:
                logger.error(f"❌ Unexpected comment thread shape: {e}")
                raise YouTubeAPIError(f"Malformed comment thread in response: {e}")
            comments.append(thread_comment.to_domain(video_id))

        logger.info(f"💬 Fetched {len(comments)} comments for {video_id}")
        return comments

    async def close(self) -> None:
        """Close HTTP client connection pool"""
        await self.client.aclose()
        logger.info("🔌 YouTube API client closed")


def create_youtube_client(
    settings: Optional[YouTubeAPISettings] = None,
) -> YouTubeAPIClient:
    """Factory function to create YouTube API client"""
    return YouTubeAPIClient(settings=settings)
