"""API Clients"""

from .gemini_client import GeminiClassifierClient, create_classifier_client
from .youtube_api import YouTubeAPIClient, create_youtube_client, extract_video_id
from .rate_limiter import BatchScheduler, make_batches

__all__ = [
    "GeminiClassifierClient",
    "create_classifier_client",
    "YouTubeAPIClient",
    "create_youtube_client",
    "extract_video_id",
    "BatchScheduler",
    "make_batches",
]
