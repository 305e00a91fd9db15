from typing import Optional


class DiaClientError(Exception):
    """Base exception for all client errors."""
    def __init__(self, message: str, details: Optional[dict] = None, status_code: Optional[int] = None):
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)


class NetworkError(DiaClientError):
    """Raised on transport failures, timeouts and 5xx responses."""
    pass


class AuthError(DiaClientError):
    """Raised when the request is not authenticated (missing or expired token)."""
    pass


class NotFoundError(DiaClientError):
    """Raised when the requested definition, step, document or run does not exist."""
    pass


class RateLimitError(DiaClientError):
    """Raised when the backend answers 429 Too Many Requests."""
    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, details, status_code)
        self.retry_after = retry_after


class ValidationError(DiaClientError):
    """Raised when a run configuration or request fails validation."""
    pass


class ApiError(DiaClientError):
    """Raised for any other unexpected non-success response."""
    pass


class InvalidResponseError(DiaClientError):
    """Raised when a successful response does not match the expected schema."""
    pass


class ConfigurationStateError(DiaClientError):
    """Raised when the run configuration is used in a way its current state does not allow."""
    pass
