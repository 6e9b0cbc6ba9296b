"""Error taxonomy for the try-on pipeline.

Client-side errors (validation, fetch, timeout) are turned into short messages
by the orchestrator. Provider errors carry the HTTP status the API answers with.
"""

import enum

import httpx


class FitCheckrError(Exception):
    """Base class for all application errors."""


class ValidationError(FitCheckrError):
    """Bad file type, oversized file, missing image, malformed email."""


class FetchError(FitCheckrError):
    """A remote image URL was unreachable or did not point at an image."""


class StorageError(FitCheckrError):
    """The subscriber store could not be read or written."""


class CancelReason(str, enum.Enum):
    USER = "user"
    TIMEOUT = "timeout"
    CLOSED = "closed"


class OperationCancelled(FitCheckrError):
    """Raised when a cancellation token fires before the operation finished."""

    def __init__(self, reason: CancelReason):
        super().__init__(f"operation cancelled ({reason.value})")
        self.reason = reason


class TryOnTimeoutError(FitCheckrError, TimeoutError):
    """No try-on response arrived within the client timeout."""


class ProviderError(FitCheckrError):
    """Failure while calling the generative-AI provider."""

    status_code = 500
    user_message = "Failed to generate try-on image"

    def __init__(self, details: str = ""):
        super().__init__(details or self.user_message)
        self.details = details


class ProviderAuthError(ProviderError):
    status_code = 401
    user_message = "Authentication with the image generation service failed"


class ProviderQuotaError(ProviderError):
    status_code = 429
    user_message = "API quota exceeded. Please try again later"


class ProviderNetworkError(ProviderError):
    status_code = 503
    user_message = "Could not reach the image generation service"


class ProviderUnknownError(ProviderError):
    status_code = 500
    user_message = "Failed to generate try-on image"


_AUTH_MARKERS = ("api key", "api_key", "unauthenticated", "permission_denied", "unauthorized")
_QUOTA_MARKERS = ("quota", "resource_exhausted", "rate limit")
_NETWORK_MARKERS = ("fetch", "network", "econnrefused", "enotfound", "connection", "timed out")


def classify_provider_error(exc: BaseException) -> ProviderError:
    """Map an exception raised by the provider call onto a ProviderError."""
    if isinstance(exc, ProviderError):
        return exc

    details = str(exc)
    code = getattr(exc, "code", None)
    if not isinstance(code, int):
        code = getattr(exc, "status_code", None)

    if isinstance(exc, (httpx.TransportError, ConnectionError)):
        return ProviderNetworkError(details)
    if code in (401, 403):
        return ProviderAuthError(details)
    if code == 429:
        return ProviderQuotaError(details)

    lowered = details.lower()
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return ProviderAuthError(details)
    if any(marker in lowered for marker in _QUOTA_MARKERS):
        return ProviderQuotaError(details)
    if any(marker in lowered for marker in _NETWORK_MARKERS):
        return ProviderNetworkError(details)
    return ProviderUnknownError(details)
