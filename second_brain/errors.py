"""Domain exceptions shared by the API, chat pipeline and ingestion.

Errors raised before a chat stream starts are ChatError subclasses; the
API layer turns them into ``{"error": ..., "code": ...}`` JSON responses
carrying the mapped status code.
"""


class ChatError(Exception):
    """Base class for caller-facing chat failures.

    Attributes:
        message: Human readable explanation returned to the caller.
        code: Machine readable error code.
        status_code: HTTP status used in the error response.
    """

    code = "upstream_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UpstreamRateLimited(ChatError):
    """Backend answered 429. Retry and backoff belong to the caller."""

    code = "rate_limited"
    status_code = 429


class UpstreamQuotaExceeded(ChatError):
    """Backend answered 402."""

    code = "payment_required"
    status_code = 402


class UpstreamError(ChatError):
    """Any other backend failure, or the request could not be built."""


class ContentProcessingError(Exception):
    """Raised when a knowledge item's source cannot be read."""

    pass
