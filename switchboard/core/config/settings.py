"""Settings groups loaded from environment variables.

Each settings class exposes a ``load()`` staticmethod returning a frozen
dataclass, so values are read once and can be injected into the registry
manager and clients.
"""

from dataclasses import dataclass
from pathlib import Path

from switchboard.core.config.schema import ConfigSchema
from switchboard.core.config.validation import load_env_var

REGISTRY_FILENAME = "providers.json"


@dataclass(frozen=True)
class RegistryConfig:
    """Where the provider registry lives on disk.

    Attributes:
        home_dir: Directory holding the registry file
    """

    home_dir: Path

    @property
    def registry_file(self) -> Path:
        return self.home_dir / REGISTRY_FILENAME


class RegistrySettings:
    """Loads registry location from SWITCHBOARD_HOME."""

    @staticmethod
    def load() -> RegistryConfig:
        home = load_env_var(ConfigSchema.SWITCHBOARD_HOME)
        if home:
            return RegistryConfig(home_dir=Path(home).expanduser())
        return RegistryConfig(home_dir=Path.home() / ".switchboard")


@dataclass(frozen=True)
class ClientSettingsConfig:
    """Client tuning defaults.

    Attributes:
        request_timeout: Request deadline in seconds
        health_check_enabled: Whether new clients start health checks
        health_check_interval: Seconds between health checks
        circuit_breaker_threshold: Failures before the circuit opens
        circuit_breaker_timeout: Per-call deadline inside the breaker
        circuit_breaker_reset_timeout: Seconds before an open circuit allows a trial
    """

    request_timeout: float
    health_check_enabled: bool
    health_check_interval: float
    circuit_breaker_threshold: int
    circuit_breaker_timeout: float
    circuit_breaker_reset_timeout: float


class ClientSettings:
    """Loads client defaults using schema-based validation."""

    @staticmethod
    def load() -> ClientSettingsConfig:
        """Load client settings.

        Raises:
            ConfigError: If any environment variable fails validation
        """
        return ClientSettingsConfig(
            request_timeout=load_env_var(ConfigSchema.REQUEST_TIMEOUT),
            health_check_enabled=load_env_var(ConfigSchema.HEALTH_CHECK_ENABLED),
            health_check_interval=load_env_var(ConfigSchema.HEALTH_CHECK_INTERVAL),
            circuit_breaker_threshold=load_env_var(ConfigSchema.CIRCUIT_BREAKER_THRESHOLD),
            circuit_breaker_timeout=load_env_var(ConfigSchema.CIRCUIT_BREAKER_TIMEOUT),
            circuit_breaker_reset_timeout=load_env_var(
                ConfigSchema.CIRCUIT_BREAKER_RESET_TIMEOUT
            ),
        )
