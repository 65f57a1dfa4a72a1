"""Classification of transport failures into the typed API error taxonomy.

Matching is best-effort: the HTTP status is used when the failure carries
one, otherwise status codes and phrases are searched in the message text.
A provider changing its error wording can therefore be misclassified.
"""

import asyncio
import errno
import socket

import httpx

from switchboard.core.exceptions import (
    APITimeoutError,
    AuthenticationError,
    InternalServerError,
    NetworkError,
    ProviderAPIError,
    RateLimitError,
    ServiceUnavailableError,
    ValidationError,
)

_NETWORK_ERRNOS = {errno.ECONNREFUSED, errno.EHOSTUNREACH, errno.ENETUNREACH}


class UpstreamHTTPError(Exception):
    """Non-2xx response from the provider.

    Attributes:
        status_code: HTTP status code
        body: Response body text
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        body_preview = body[:200] if body else "(empty)"
        if len(body) > 200:
            body_preview += "..."
        super().__init__(f"HTTP {status_code}: {body_preview}")


def _is_timeout(error: BaseException) -> bool:
    return isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException, TimeoutError))


def _is_network_failure(error: BaseException) -> bool:
    if isinstance(error, (httpx.ConnectError, httpx.NetworkError, socket.gaierror)):
        return True
    if isinstance(error, OSError) and error.errno in _NETWORK_ERRNOS:
        return True
    cause = error.__cause__ or error.__context__
    return cause is not None and cause is not error and _is_network_failure(cause)


def classify_error(error: BaseException, provider_label: str = "provider") -> ProviderAPIError:
    """Map any failure to exactly one ProviderAPIError subclass.

    Order: already typed, timeout, network, 401, 429, 503, other 5xx, 400,
    generic. Network failures are checked before message matching so that
    digits in a host or port cannot pass for a status code.
    """
    if isinstance(error, ProviderAPIError):
        return error

    if _is_timeout(error):
        return APITimeoutError(f"{provider_label} request timed out")

    if _is_network_failure(error):
        return NetworkError(f"Cannot connect to {provider_label}")

    status = getattr(error, "status_code", None)
    message = str(error)
    lowered = message.lower()

    def matches(code: int, *phrases: str) -> bool:
        if status is not None:
            return status == code
        return str(code) in message or any(phrase in lowered for phrase in phrases)

    if matches(401, "unauthorized"):
        return AuthenticationError(f"Invalid {provider_label} API key", status_code=401)
    if matches(429, "rate limit"):
        return RateLimitError(f"{provider_label} rate limit exceeded", status_code=429)
    if matches(503, "service unavailable"):
        return ServiceUnavailableError(f"{provider_label} service unavailable", status_code=503)
    for code in (500, 502, 504):
        if matches(code):
            return InternalServerError(f"{provider_label} server error", status_code=code)
    if status is not None and status >= 500:
        return InternalServerError(f"{provider_label} server error", status_code=status)
    if matches(400, "bad request"):
        return ValidationError(f"Invalid request to {provider_label}", status_code=400)

    return ProviderAPIError(f"{provider_label} error: {message}", status_code=status)
