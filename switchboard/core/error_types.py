"""Error type enumeration for Provider Switchboard.

Provides type-safe error categorization for client events and metrics.
"""

from enum import Enum


class ErrorType(str, Enum):
    """Error type categories for client errors and metrics.

    These error types are used throughout the codebase for:
    - ProviderAPIError.error_type
    - "error" events emitted by ProviderClient
    - ClientMetrics.error_counts aggregation
    """

    # Request lifecycle errors
    TIMEOUT = "timeout"  # Request deadline exceeded
    CIRCUIT_OPEN = "circuit_open"  # Rejected by an open circuit breaker

    # Transport errors
    NETWORK_ERROR = "network_error"  # Host unreachable or connection refused

    # HTTP/API errors
    API_ERROR = "api_error"  # Generic API error
    SERVER_ERROR = "server_error"  # Upstream 5xx
    SERVICE_UNAVAILABLE = "service_unavailable"  # Upstream 503

    # Authentication/rate limiting
    AUTH_ERROR = "auth_error"  # Missing or rejected API key
    RATE_LIMIT = "rate_limit"  # Rate limit exceeded
    BAD_REQUEST = "bad_request"  # Invalid request
