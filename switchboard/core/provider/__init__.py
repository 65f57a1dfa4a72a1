"""Provider registry package.

- ProviderConfig / LoadBalancingConfig / RegistryState: data model
- defaults: built-in registry seeded from environment variables
- RegistryFileStorage: JSON persistence
- LoadBalancer / LatencyTracker: selection strategies
- ProviderConfigManager: registry operations (the facade)
"""

from switchboard.core.provider.provider_config import (
    MASKED_API_KEY,
    LoadBalancingConfig,
    ProviderConfig,
    RegistryState,
)
from switchboard.core.provider.provider_registry import ProviderConfigManager, RegistryStatus
from switchboard.core.provider.selector import LatencyTracker, LoadBalancer
from switchboard.core.provider.storage import RegistryFileStorage

__all__ = [
    "MASKED_API_KEY",
    "ProviderConfig",
    "LoadBalancingConfig",
    "RegistryState",
    "RegistryFileStorage",
    "LatencyTracker",
    "LoadBalancer",
    "ProviderConfigManager",
    "RegistryStatus",
]
