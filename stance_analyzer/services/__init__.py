"""
Services Package
Business logic layer for the comment stance analyzer

CommentAnalysisService is imported from services.analysis_service directly;
this package only re-exports leaf modules so infrastructure code can import
the exceptions without a cycle.
"""

from .aggregator import aggregate
from .masking import mask_username
from .exceptions import (
    # Base
    ServiceError,

    # Validation / Resource Errors
    ValidationError,
    InvalidInputError,
    ResourceNotFoundError,
    UpstreamNotFoundError,

    # External Service Errors
    ExternalServiceError,
    YouTubeAPIError,
    ClassificationUnavailableError,
    ClassifierError,
    ClassifierRetryableError,
    ClassifierNonRetryableError,
    MalformedResponseError,

    # Utility Functions
    is_retryable_error,
    get_retry_delay,
    error_to_http_status,
)

__all__ = [
    "aggregate",
    "mask_username",
    "ServiceError",
    "ValidationError",
    "InvalidInputError",
    "ResourceNotFoundError",
    "UpstreamNotFoundError",
    "ExternalServiceError",
    "YouTubeAPIError",
    "ClassificationUnavailableError",
    "ClassifierError",
    "ClassifierRetryableError",
    "ClassifierNonRetryableError",
    "MalformedResponseError",
    "is_retryable_error",
    "get_retry_delay",
    "error_to_http_status",
]
