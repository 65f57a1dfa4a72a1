"""
Exception hierarchy for Provider Switchboard.

All exceptions inherit from SwitchboardError, allowing callers to
catch every library-specific error with a single except clause.

Registry errors are raised synchronously by ProviderConfigManager.
API errors are raised by ProviderClient after the underlying transport
error has been classified; raw httpx exceptions never leave the client.

Example:
    >>> try:
    ...     await client.send_message(messages)
    ... except RateLimitError:
    ...     await asyncio.sleep(5)
    ... except ProviderAPIError as e:
    ...     print(f"Provider call failed ({e.error_type.value}): {e}")
"""

from __future__ import annotations

from switchboard.core.error_types import ErrorType


class SwitchboardError(Exception):
    """Base exception for all switchboard errors."""

    pass


# =============================================================================
# Registry errors
# =============================================================================


class RegistryError(SwitchboardError):
    """Base class for provider registry failures."""

    pass


class NotFoundError(RegistryError):
    """Raised when a provider name is not present in the registry.

    Attributes:
        provider: The name that was looked up
    """

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Provider {provider} not found")


class DisabledProviderError(RegistryError):
    """Raised when an operation requires an enabled provider.

    A provider is disabled either explicitly or because it has no API key.

    Attributes:
        provider: The disabled provider's name
    """

    def __init__(self, provider: str, message: str | None = None) -> None:
        self.provider = provider
        super().__init__(message or f"Provider {provider} is not enabled")


class StorageError(RegistryError):
    """Raised when the registry file cannot be written.

    Example:
        >>> manager.save_configuration()
        >>> StorageError: Cannot write provider registry: Permission denied
    """

    pass


# =============================================================================
# API errors
# =============================================================================


class ProviderAPIError(SwitchboardError):
    """Generic provider API failure and base class of all typed API errors.

    Attributes:
        status_code: HTTP status code when known, None otherwise
        error_type: Category used for events and metrics
    """

    error_type: ErrorType = ErrorType.API_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, status_code={self.status_code!r})"
        )


class AuthenticationError(ProviderAPIError):
    """API key missing, or rejected by the provider (HTTP 401)."""

    error_type = ErrorType.AUTH_ERROR


class ValidationError(ProviderAPIError):
    """Malformed request (HTTP 400)."""

    error_type = ErrorType.BAD_REQUEST


class RateLimitError(ProviderAPIError):
    """Provider rate limit exceeded (HTTP 429)."""

    error_type = ErrorType.RATE_LIMIT


class APITimeoutError(ProviderAPIError):
    """Request deadline exceeded before the provider answered."""

    error_type = ErrorType.TIMEOUT


class NetworkError(ProviderAPIError):
    """Provider host unreachable (connection refused, DNS failure)."""

    error_type = ErrorType.NETWORK_ERROR


class CircuitOpenError(ProviderAPIError):
    """Call rejected because the client's circuit breaker is open.

    Attributes:
        circuit: Name of the circuit that rejected the call
    """

    error_type = ErrorType.CIRCUIT_OPEN

    def __init__(self, circuit: str) -> None:
        self.circuit = circuit
        super().__init__(f"Circuit breaker {circuit} is open")


class InternalServerError(ProviderAPIError):
    """Upstream server error (HTTP 5xx)."""

    error_type = ErrorType.SERVER_ERROR


class ServiceUnavailableError(InternalServerError):
    """Upstream temporarily unavailable (HTTP 503)."""

    error_type = ErrorType.SERVICE_UNAVAILABLE


__all__ = [
    "SwitchboardError",
    "RegistryError",
    "NotFoundError",
    "DisabledProviderError",
    "StorageError",
    "ProviderAPIError",
    "AuthenticationError",
    "ValidationError",
    "RateLimitError",
    "APITimeoutError",
    "NetworkError",
    "CircuitOpenError",
    "InternalServerError",
    "ServiceUnavailableError",
]
