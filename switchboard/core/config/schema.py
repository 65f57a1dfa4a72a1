"""Declarative schema for environment variable configuration.

This module provides a single source of truth for the switchboard's
environment variables, including automatic type coercion and validation.

Per-provider credentials ({TYPE}_API_KEY, {TYPE}_API_URL, {TYPE}_MODEL) are
not listed here: they are read once by the default registry builder.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EnvVarSpec:
    """Specification for a single environment variable.

    Attributes:
        name: Environment variable name (e.g., "LOG_LEVEL")
        default: Default value if env var not set
        type_hint: Type for validation (int, str, float, bool)
        description: Human-readable description for docs
        validator: Optional custom validation function
        coerce: Optional function to convert string to target type
    """

    name: str
    default: Any
    type_hint: type
    description: str
    validator: Callable[[Any], bool] | None = None
    coerce: Callable[[str], Any] | None = None


class ConfigSchema:
    """Registry of all configuration environment variables."""

    # === Logging ===

    LOG_LEVEL = EnvVarSpec(
        name="LOG_LEVEL",
        default="INFO",
        type_hint=str,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validator=lambda x: x.split()[0].upper()
        in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )

    # === Registry ===

    SWITCHBOARD_HOME = EnvVarSpec(
        name="SWITCHBOARD_HOME",
        default=None,
        type_hint=str,
        description="Directory holding providers.json (defaults to ~/.switchboard)",
    )

    # === Client ===

    REQUEST_TIMEOUT = EnvVarSpec(
        name="REQUEST_TIMEOUT",
        default=60.0,
        type_hint=float,
        description="Request timeout in seconds for provider calls",
        validator=lambda x: x > 0,
    )

    HEALTH_CHECK_ENABLED = EnvVarSpec(
        name="HEALTH_CHECK_ENABLED",
        default=False,
        type_hint=bool,
        description="Start periodic health checks when a client is created",
    )

    HEALTH_CHECK_INTERVAL = EnvVarSpec(
        name="HEALTH_CHECK_INTERVAL",
        default=300.0,
        type_hint=float,
        description="Seconds between periodic health checks",
        validator=lambda x: x > 0,
    )

    CIRCUIT_BREAKER_THRESHOLD = EnvVarSpec(
        name="CIRCUIT_BREAKER_THRESHOLD",
        default=5,
        type_hint=int,
        description="Consecutive failures before the circuit opens",
        validator=lambda x: x >= 1,
    )

    CIRCUIT_BREAKER_TIMEOUT = EnvVarSpec(
        name="CIRCUIT_BREAKER_TIMEOUT",
        default=60.0,
        type_hint=float,
        description="Per-call deadline in seconds enforced by the circuit breaker",
        validator=lambda x: x > 0,
    )

    CIRCUIT_BREAKER_RESET_TIMEOUT = EnvVarSpec(
        name="CIRCUIT_BREAKER_RESET_TIMEOUT",
        default=300.0,
        type_hint=float,
        description="Seconds an open circuit waits before allowing a trial call",
        validator=lambda x: x > 0,
    )

    @classmethod
    def all_specs(cls) -> dict[str, EnvVarSpec]:
        """Return every EnvVarSpec defined on the schema, keyed by env var name."""
        return {
            value.name: value
            for value in vars(cls).values()
            if isinstance(value, EnvVarSpec)
        }
