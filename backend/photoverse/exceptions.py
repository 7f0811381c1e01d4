"""
PhotoVerse Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for every failure a poem
       request can end in.
Why:   The orchestrator decides whether to fall back by looking at the
       exception's category field, and the HTTP layer maps each type to a
       status code. Generic Python exceptions would leak provider details.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.

Exception Hierarchy:
    PhotoVerseError (base)
    ├── ValidationError              → 400 Bad Request (client can fix)
    ├── RateLimitExceededError       → 429 Too Many Requests (wait and retry)
    ├── ProviderError                → 502 Bad Gateway (generic upstream failure)
    │   ├── ProviderAuthError        → triggers fallback
    │   ├── ProviderQuotaError       → triggers fallback
    │   ├── EmptyResponseError       → propagated as-is
    │   ├── MalformedJSONError       → propagated as-is
    │   └── ProviderTimeoutError     → 504 Gateway Timeout, propagated as-is
    └── BothProvidersFailedError     → 503 Service Unavailable (opaque)

Classification:
    Adapters populate `category` from status codes and the provider's own
    error signatures. The orchestrator compares that field; it never parses
    message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class PhotoVerseError(Exception):
    """
    Base exception for all PhotoVerse application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PhotoVerseError):
    """
    Raised when client input fails validation.

    When:    Unsupported image type, oversized upload, unknown style/mood/language.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class RateLimitExceededError(PhotoVerseError):
    """
    Raised when a caller asks for another poem before the cooldown elapsed.

    What:    The message is already localized by the orchestrator.
    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        message: str = "Please wait a moment before generating another poem.",
        retry_after: int = 1,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class ErrorCategory(str, Enum):
    """Failure classes a provider adapter can report."""

    AUTH = "auth"
    QUOTA = "quota"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_JSON = "malformed_json"
    TIMEOUT = "timeout"
    UPSTREAM = "upstream"


# Only availability problems are worth retrying on another provider.
FALLBACK_CATEGORIES = frozenset({ErrorCategory.AUTH, ErrorCategory.QUOTA})


class ProviderError(PhotoVerseError):
    """
    Raised when a poem provider fails.

    Attributes:
        provider:     Adapter name ("gemini", "claude")
        status_code:  Upstream HTTP status when known
        category:     ErrorCategory used for fallback decisions

    HTTP:    502 Bad Gateway (subclasses may override)
    """

    default_category = ErrorCategory.UPSTREAM

    def __init__(
        self,
        message: str = "The poem provider returned an error",
        provider: str = "unknown",
        status_code: Optional[int] = None,
        category: Optional[ErrorCategory] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["provider"] = provider
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message=message, context=ctx)
        self.provider = provider
        self.status_code = status_code
        self.category = category or self.default_category

    @property
    def qualifies_for_fallback(self) -> bool:
        return self.category in FALLBACK_CATEGORIES


class ProviderAuthError(ProviderError):
    """Invalid or missing credential (401/403, invalid API key)."""

    default_category = ErrorCategory.AUTH


class ProviderQuotaError(ProviderError):
    """Upstream rate limit or quota exhausted (429, RESOURCE_EXHAUSTED)."""

    default_category = ErrorCategory.QUOTA


class EmptyResponseError(ProviderError):
    """The provider answered but produced no usable text."""

    default_category = ErrorCategory.EMPTY_RESPONSE


class MalformedJSONError(ProviderError):
    """
    The response text is not JSON, or it is JSON without a non-empty
    `title` and `poem`.
    """

    default_category = ErrorCategory.MALFORMED_JSON


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within provider_timeout_seconds."""

    default_category = ErrorCategory.TIMEOUT


class BothProvidersFailedError(PhotoVerseError):
    """
    Raised when the primary failed with a fallback-eligible error and the
    fallback provider failed too.

    Why opaque:
        Neither provider's error reaches the client. The individual failures
        are logged server-side by the orchestrator; the message is localized.

    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Could not generate poem with any available service. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
