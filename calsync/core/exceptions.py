# calsync/core/exceptions.py
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BusinessException(Exception):
    """Base exception for business rule violations."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "business_error"

    def __init__(
        self, message: str, code: str = None, details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert this exception to an HTTPException"""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "error": self.code,
                "message": self.message,
                **({"details": self.details} if self.details else {}),
            },
        )


# Resource-related exceptions
class ResourceNotFoundException(BusinessException):
    """Exception raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "resource_not_found"


class ValidationException(BusinessException):
    """Exception raised when input validation fails."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "validation_error"


# Authentication and Authorization exceptions
class AuthenticationException(BusinessException):
    """Exception raised for authentication failures."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "authentication_error"


# Calendar connection state
class CalendarNotConnectedException(ResourceNotFoundException):
    """The user has no stored Google Calendar credentials."""

    error_code = "calendar_not_connected"


class SyncDisabledException(BusinessException):
    """Credentials exist but the user switched calendar sync off."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "calendar_sync_disabled"


# External Service exceptions
class ExternalServiceException(BusinessException):
    """Exception raised when an external service call fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "external_service_error"


class RemoteNotFoundException(ExternalServiceException):
    """The remote calendar or event no longer exists (404/410)."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "remote_not_found"


class CalendarAuthException(ExternalServiceException):
    """Google rejected the stored tokens and refreshing them did not help."""

    error_code = "calendar_auth_error"


class ServiceTimeoutException(ExternalServiceException):
    """Exception raised when an external service times out."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "service_timeout"


class RateLimitException(ExternalServiceException):
    """Exception raised when rate limits are hit."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "rate_limit_exceeded"
