"""
Domain exceptions for the Spark API.

Services raise these; a single handler in app.main renders them as
JSON responses with the mapped status code.
"""

from fastapi import status
from typing import Optional


class SparkError(Exception):
    """Base exception for all Spark errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationError(SparkError):
    """No authenticated actor, or the bearer token is invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class SelfLikeError(SparkError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Cannot like yourself"


class NotFoundError(SparkError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConversationAccessError(SparkError):
    """Actor is not a participant of the conversation's match."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized to access this conversation"


class LikeLimitExceeded(SparkError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Daily like limit reached. Try again tomorrow."


class InvalidMessageError(SparkError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Message text cannot be empty"


class InvalidPhotoError(SparkError):
    """Wrong file type, empty or oversized upload, or too many photos."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid photo"


class ServiceUnavailableError(SparkError):
    """An optional integration (storage, AI coach) is not configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service not configured"


class UpstreamError(SparkError):
    """A configured integration failed to answer."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service error"
