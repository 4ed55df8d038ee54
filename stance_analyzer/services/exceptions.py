"""
Service Exceptions
Error taxonomy for the comment analysis pipeline

Only InvalidInputError and UpstreamNotFoundError are meant to reach callers
in practice. Classifier errors are consumed by the batch scheduler, which
retries or falls back instead of propagating them.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for all service-layer errors"""

    error_code = "service_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Validation / Resource Errors
# ============================================================================


class ValidationError(ServiceError):
    error_code = "validation_error"


class InvalidInputError(ValidationError):
    """The caller-supplied video reference does not contain a video id"""

    error_code = "invalid_input"

    def __init__(self, reference: str):
        super().__init__("Invalid YouTube URL", {"reference": reference})
        self.reference = reference


class ResourceNotFoundError(ServiceError):
    error_code = "not_found"

    def __init__(self, resource_type: str, resource_id: str, message: str = ""):
        super().__init__(
            message or f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class UpstreamNotFoundError(ResourceNotFoundError):
    """The comment source returned no comments for the video"""

    error_code = "no_comments"

    def __init__(self, video_id: str):
        super().__init__("Comments", video_id, "No comments found")


# ============================================================================
# External Service Errors
# ============================================================================


class ExternalServiceError(ServiceError):
    error_code = "external_service_error"

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.service = service
        self.status_code = status_code


class YouTubeAPIError(ExternalServiceError):
    """Comment source failed for a reason other than 'no comments'"""

    error_code = "youtube_api_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("youtube", message, status_code)


class ClassificationUnavailableError(ExternalServiceError):
    """
    Neither the remote classifier nor the fallback produced a label.

    The keyword fallback cannot fail, so this is not expected in practice.
    """

    error_code = "classification_unavailable"

    def __init__(self, message: str = "Classification unavailable"):
        super().__init__("classifier", message)


class ClassifierError(ExternalServiceError):
    """Base for remote classifier failures"""

    error_code = "classifier_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("classifier", message, status_code)


class ClassifierRetryableError(ClassifierError):
    """Rate limited by the classifier; worth retrying after a backoff"""

    error_code = "classifier_rate_limited"


class ClassifierNonRetryableError(ClassifierError):
    """Any other classifier failure; go straight to the fallback"""

    error_code = "classifier_failed"


class MalformedResponseError(ClassifierNonRetryableError):
    """Classifier answered, but the answer could not be parsed into labels"""

    error_code = "classifier_malformed_response"


# ============================================================================
# Utility Functions
# ============================================================================


def is_retryable_error(error: BaseException) -> bool:
    """Whether a retry with backoff may succeed"""
    return isinstance(error, ClassifierRetryableError)


def get_retry_delay(attempt: int, base: float = 2.0, factor: float = 2.0) -> float:
    """
    Delay before the next attempt.

    Args:
        attempt: 1-based number of the attempt that just failed
        base: Delay after the first failure (seconds)
        factor: Multiplier applied per further failure

    Returns:
        Seconds to wait
    """
    return base * (factor ** (attempt - 1))


def error_to_http_status(error: BaseException) -> int:
    """Map a service error onto the HTTP status the API returns"""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ResourceNotFoundError):
        return 404
    if isinstance(error, ClassificationUnavailableError):
        return 503
    if isinstance(error, ExternalServiceError):
        return 502
    return 500
