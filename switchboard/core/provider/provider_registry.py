"""Provider registry manager: the source of truth for configured providers."""

import copy
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from switchboard.core.exceptions import (
    DisabledProviderError,
    NotFoundError,
    StorageError,
)
from switchboard.core.provider.defaults import build_default_registry
from switchboard.core.provider.provider_config import (
    LoadBalancingConfig,
    ProviderConfig,
    RegistryState,
)
from switchboard.core.provider.selector import LoadBalancer, select_highest_priority
from switchboard.core.provider.storage import RegistryFileStorage


@dataclass
class RegistryStatus:
    """Summary of the registry for status displays."""

    active_provider: str
    enabled_providers: list[str] = field(default_factory=list)
    total_providers: int = 0
    load_balancing: bool = False


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ProviderConfigManager:
    """Owns the persisted provider registry.

    Responsibilities:
    - Load the registry file layered over built-in defaults
    - Enforce the enabled-requires-key and valid-active-provider invariants
    - CRUD operations on providers, persisting after every mutation
    - Provider selection for load-balanced callers

    Returned ProviderConfig objects are copies; mutate the registry through
    the manager's methods.
    """

    def __init__(
        self,
        storage: RegistryFileStorage | None = None,
        *,
        home_dir: str | Path | None = None,
        load_balancer: LoadBalancer | None = None,
    ) -> None:
        self._storage = storage or RegistryFileStorage(home_dir)
        self._balancer = load_balancer or LoadBalancer()
        self._logger = logging.getLogger(__name__)
        self._state = build_default_registry()

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load and validate the registry. Falls back to defaults on any error."""
        try:
            self._state = self._load_configuration()
            self._validate_providers()
            self._logger.info(
                "Provider configuration initialized (active=%s, providers=%d)",
                self._state.active_provider or "none",
                len(self._state.providers),
            )
        except Exception as e:
            self._logger.error("Failed to initialize provider configuration: %s", e)
            self._state = build_default_registry()
            self._validate_providers()

    def _load_configuration(self) -> RegistryState:
        defaults = build_default_registry()
        try:
            loaded = self._storage.read()
        except StorageError as e:
            self._logger.warning("%s; using defaults", e)
            return defaults

        if loaded is None:
            self._logger.info("Provider configuration file not found, using defaults")
            return defaults

        merged = deep_merge(defaults.to_dict(), loaded)
        return self._state_from_document(merged, defaults)

    def _state_from_document(
        self, document: dict[str, Any], defaults: RegistryState
    ) -> RegistryState:
        """Build state from a merged document, skipping invalid entries."""
        providers: dict[str, ProviderConfig] = {}
        for name, entry in (document.get("providers") or {}).items():
            try:
                providers[name] = ProviderConfig.from_dict(entry, name=name)
            except (ValueError, TypeError) as e:
                self._logger.warning("Ignoring invalid provider entry '%s': %s", name, e)
                if name in defaults.providers:
                    providers[name] = defaults.providers[name]

        try:
            load_balancing = LoadBalancingConfig.from_dict(document.get("loadBalancing") or {})
        except (ValueError, TypeError, AttributeError) as e:
            self._logger.warning("Ignoring invalid load balancing settings: %s", e)
            load_balancing = defaults.load_balancing

        active_provider = document.get("activeProvider") or ""
        if not isinstance(active_provider, str):
            self._logger.warning("Ignoring invalid active provider: %r", active_provider)
            active_provider = ""

        fallback_order = document.get("fallbackOrder") or []
        if not isinstance(fallback_order, list):
            self._logger.warning("Ignoring invalid fallback order: %r", fallback_order)
            fallback_order = defaults.fallback_order

        return RegistryState(
            active_provider=active_provider,
            providers=providers,
            fallback_order=[name for name in fallback_order if isinstance(name, str)],
            load_balancing=load_balancing,
        )

    def save_configuration(self) -> None:
        """Persist the whole registry.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            self._storage.write(self._state.to_dict())
        except StorageError as e:
            self._logger.error("Failed to save provider configuration: %s", e)
            raise
        self._logger.info("Provider configuration saved to %s", self._storage.path)

    def _validate_providers(self) -> None:
        for name, provider in self._state.providers.items():
            if provider.enabled and not provider.api_key:
                self._logger.warning("Provider %s is enabled but has no API key", name)
                provider.enabled = False

        active = self._state.providers.get(self._state.active_provider)
        if active is None or not active.enabled:
            selected = select_highest_priority(self._state.providers)
            if selected:
                self._logger.info("Switched to provider: %s", selected)
            elif self._state.active_provider:
                self._logger.warning("No enabled providers found")
            self._state.active_provider = selected

    def _reselect_active(self, *, exclude: str | None = None) -> None:
        self._state.active_provider = select_highest_priority(
            self._state.providers, exclude=exclude
        )
        if self._state.active_provider:
            self._logger.info("Switched to provider: %s", self._state.active_provider)
        else:
            self._logger.warning("No enabled providers remain; active provider cleared")

    def _require(self, name: str) -> ProviderConfig:
        provider = self._state.providers.get(name)
        if provider is None:
            raise NotFoundError(name)
        return provider

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_provider_api_key(self, name: str, api_key: str) -> None:
        """Set a provider's key and enable it.

        Raises:
            NotFoundError: If the provider does not exist
            ValueError: If the key is empty
        """
        provider = self._require(name)
        if not api_key:
            raise ValueError(f"API key for provider {name} must not be empty")

        provider.api_key = api_key
        provider.enabled = True
        self.save_configuration()
        self._logger.info("API key set for provider: %s", name)

    def set_active_provider(self, name: str) -> None:
        """Make ``name`` the active provider.

        Raises:
            NotFoundError: If the provider does not exist
            DisabledProviderError: If the provider is not enabled
        """
        provider = self._require(name)
        if not provider.enabled:
            raise DisabledProviderError(name)

        self._state.active_provider = name
        self.save_configuration()
        self._logger.info("Active provider set to: %s", name)

    def add_provider(self, name: str, config: ProviderConfig) -> None:
        """Add or replace a provider entry."""
        if not name:
            raise ValueError("Provider key is required")

        self._state.providers[name] = copy.deepcopy(config)
        self._validate_providers()
        self.save_configuration()
        self._logger.info("Provider %s added/updated", name)

    def remove_provider(self, name: str) -> None:
        """Delete a provider, re-selecting the active one if needed.

        Raises:
            NotFoundError: If the provider does not exist
        """
        self._require(name)

        if self._state.active_provider == name:
            self._reselect_active(exclude=name)

        del self._state.providers[name]
        self._state.fallback_order = [n for n in self._state.fallback_order if n != name]
        self._state.load_balancing.weights.pop(name, None)
        self._balancer.latency.forget(name)
        self.save_configuration()
        self._logger.info("Provider %s removed", name)

    def toggle_provider(self, name: str, enabled: bool) -> None:
        """Enable or disable a provider.

        Raises:
            NotFoundError: If the provider does not exist
            DisabledProviderError: If enabling a provider that has no API key
        """
        provider = self._require(name)
        if enabled and not provider.api_key:
            raise DisabledProviderError(
                name, f"Provider {name} cannot be enabled without an API key"
            )

        provider.enabled = enabled
        if not enabled and self._state.active_provider == name:
            self._reselect_active()
        elif enabled and not self._state.active_provider:
            self._reselect_active()

        self.save_configuration()
        self._logger.info("Provider %s %s", name, "enabled" if enabled else "disabled")

    def import_configuration(self, registry: RegistryState | dict[str, Any]) -> None:
        """Replace the registry with ``registry``, validate and persist.

        Raises:
            ValueError: If a dict document contains invalid entries
        """
        if isinstance(registry, dict):
            state = RegistryState.from_dict(registry)
        else:
            state = registry.copy()

        self._state = state
        self._balancer.reset_rotation()
        self._validate_providers()
        self.save_configuration()
        self._logger.info("Provider configuration imported")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_active_provider(self) -> ProviderConfig | None:
        """Return the active provider if it is enabled, None otherwise."""
        provider = self._state.providers.get(self._state.active_provider)
        if provider is None or not provider.enabled:
            return None
        return copy.deepcopy(provider)

    @property
    def active_provider_name(self) -> str:
        return self._state.active_provider

    def get_provider(self, name: str) -> ProviderConfig:
        """Return one provider's config.

        Raises:
            NotFoundError: If the provider does not exist
        """
        return copy.deepcopy(self._require(name))

    def get_all_providers(self) -> dict[str, ProviderConfig]:
        return copy.deepcopy(self._state.providers)

    def get_enabled_providers(self) -> dict[str, ProviderConfig]:
        return {
            name: copy.deepcopy(provider)
            for name, provider in self._state.providers.items()
            if provider.enabled
        }

    def get_next_provider(self) -> ProviderConfig | None:
        """Pick a provider for the next call according to the load-balancing policy."""
        policy = self._state.load_balancing
        if not policy.enabled:
            return self.get_active_provider()

        provider = self._balancer.select(self._state.providers, policy)
        if provider is None:
            return None
        return copy.deepcopy(provider)

    def record_latency(self, name: str, response_time_ms: float) -> float:
        """Feed a measured response time into least-latency selection.

        Only successful calls should be recorded; a failed call says nothing
        about how fast the provider answers.

        Returns:
            The provider's updated average latency in milliseconds

        Raises:
            NotFoundError: If the provider does not exist
            ValueError: If the response time is negative or not finite
        """
        self._require(name)
        if not math.isfinite(response_time_ms) or response_time_ms < 0:
            raise ValueError(f"Invalid response time: {response_time_ms!r}")
        return self._balancer.latency.record(name, response_time_ms)

    def get_fallback_chain(self) -> list[ProviderConfig]:
        """Enabled providers in fallback order, then the rest by priority."""
        enabled = {n: p for n, p in self._state.providers.items() if p.enabled}
        chain = [enabled[n] for n in dict.fromkeys(self._state.fallback_order) if n in enabled]
        listed = set(self._state.fallback_order)
        rest = [p for n, p in enabled.items() if n not in listed]
        # sorted() is stable, so equal priorities keep insertion order
        chain.extend(sorted(rest, key=lambda p: p.priority, reverse=True))
        return copy.deepcopy(chain)

    def get_status(self) -> RegistryStatus:
        return RegistryStatus(
            active_provider=self._state.active_provider,
            enabled_providers=[n for n, p in self._state.providers.items() if p.enabled],
            total_providers=len(self._state.providers),
            load_balancing=self._state.load_balancing.enabled,
        )

    def export_configuration(self) -> RegistryState:
        """Return a deep copy of the full registry."""
        return self._state.copy()
