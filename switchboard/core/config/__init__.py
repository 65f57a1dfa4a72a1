"""Configuration package.

- schema: declarative EnvVarSpec definitions
- validation: coercion/validation helpers and ConfigError
- settings: RegistrySettings and ClientSettings loaders
"""

from switchboard.core.config.schema import ConfigSchema, EnvVarSpec
from switchboard.core.config.settings import (
    ClientSettings,
    ClientSettingsConfig,
    RegistryConfig,
    RegistrySettings,
)
from switchboard.core.config.validation import ConfigError, load_env_var, validate_all

__all__ = [
    "ConfigSchema",
    "EnvVarSpec",
    "ConfigError",
    "load_env_var",
    "validate_all",
    "RegistryConfig",
    "RegistrySettings",
    "ClientSettings",
    "ClientSettingsConfig",
]
