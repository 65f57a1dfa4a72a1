"""Provider registry data model.

The JSON file format uses camelCase keys (``apiKey``, ``maxTokens``), so
``to_dict``/``from_dict`` translate between them and the snake_case
attributes. Durations (``timeout``, ``retryDelay``) are milliseconds in the
file and seconds on the objects.
"""

import copy
import math
from dataclasses import dataclass, field, replace
from typing import Any

PROVIDER_TYPES = ("anthropic", "openai", "zai", "custom")
LOAD_BALANCING_STRATEGIES = ("round-robin", "weighted", "least-latency")
MASKED_API_KEY = "****...****"

# attribute name -> file key
_PROVIDER_FIELDS = {
    "name": "name",
    "type": "type",
    "api_key": "apiKey",
    "api_url": "apiUrl",
    "model": "model",
    "temperature": "temperature",
    "max_tokens": "maxTokens",
    "top_p": "topP",
    "top_k": "topK",
    "system_prompt": "systemPrompt",
    "timeout": "timeout",
    "retry_attempts": "retryAttempts",
    "retry_delay": "retryDelay",
    "enabled": "enabled",
    "priority": "priority",
    "capabilities": "capabilities",
    "metadata": "metadata",
}
_INTEGER_FIELDS = ("max_tokens", "top_k", "retry_attempts", "priority")
_NUMBER_FIELDS = ("temperature", "top_p", "timeout", "retry_delay")
_OPTIONAL_TEXT_FIELDS = ("api_url", "system_prompt")
_MILLISECOND_FIELDS = ("timeout", "retry_delay")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class ProviderConfig:
    """Configuration for one AI backend.

    ``timeout`` and ``retry_delay`` are in seconds. ``priority`` orders
    re-selection: higher wins.
    """

    name: str
    type: str
    api_key: str = ""
    api_url: str | None = None
    model: str = ""
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    top_k: int | None = None
    system_prompt: str | None = None
    timeout: float | None = None
    retry_attempts: int | None = None
    retry_delay: float | None = None
    enabled: bool = False
    priority: int = 0
    capabilities: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration after initialization

        Raises:
            ValueError: If any field has the wrong shape
        """
        if not self.name or not isinstance(self.name, str):
            raise ValueError("Provider name is required")
        if self.type not in PROVIDER_TYPES:
            raise ValueError(
                f"Invalid provider type '{self.type}' for provider '{self.name}'. "
                f"Must be one of: {', '.join(PROVIDER_TYPES)}"
            )
        for attr in ("api_key", "model"):
            if not isinstance(getattr(self, attr), str):
                raise self._field_error(attr, "must be a string")
        for attr in _OPTIONAL_TEXT_FIELDS:
            value = getattr(self, attr)
            if value is not None and not isinstance(value, str):
                raise self._field_error(attr, "must be a string")
        if not isinstance(self.enabled, bool):
            raise self._field_error("enabled", "must be true or false")

        for attr in _INTEGER_FIELDS + _NUMBER_FIELDS:
            value = getattr(self, attr)
            if value is None and attr != "priority":
                continue
            if not _is_number(value) or not math.isfinite(value):
                raise self._field_error(attr, "must be a number")
            if attr in _INTEGER_FIELDS:
                if not float(value).is_integer():
                    raise self._field_error(attr, "must be a whole number")
                setattr(self, attr, int(value))

        if not isinstance(self.capabilities, list) or not all(
            isinstance(c, str) for c in self.capabilities
        ):
            raise self._field_error("capabilities", "must be a list of strings")
        if not isinstance(self.metadata, dict):
            raise self._field_error("metadata", "must be an object")
        # Keep order, drop duplicates
        self.capabilities = list(dict.fromkeys(self.capabilities))

    def _field_error(self, attr: str, problem: str) -> ValueError:
        value = getattr(self, attr)
        return ValueError(
            f"Provider '{self.name}' field '{_PROVIDER_FIELDS[attr]}' {problem}, got {value!r}"
        )

    def masked(self) -> "ProviderConfig":
        """Return a copy whose API key is replaced by a fixed placeholder."""
        return replace(
            self,
            api_key=MASKED_API_KEY if self.api_key else "",
            capabilities=list(self.capabilities),
            metadata=copy.deepcopy(self.metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the file format, omitting unset optional fields."""
        data: dict[str, Any] = {}
        for attr, key in _PROVIDER_FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if attr in ("capabilities", "metadata"):
                value = copy.deepcopy(value)
            elif attr in _MILLISECOND_FIELDS:
                value = round(value * 1000)
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, name: str | None = None) -> "ProviderConfig":
        """Create from the file format.

        Args:
            data: Provider entry; unknown keys are ignored
            name: Display name to use when the entry has none

        Raises:
            ValueError: If the entry is not a mapping or a field is invalid
        """
        if not isinstance(data, dict):
            raise ValueError(f"Provider entry must be an object, got {type(data).__name__}")
        kwargs = {
            attr: copy.deepcopy(data[key]) for attr, key in _PROVIDER_FIELDS.items() if key in data
        }
        if not kwargs.get("name"):
            kwargs["name"] = name or ""
        kwargs.setdefault("type", "custom")
        if kwargs.get("api_key") is None:
            kwargs["api_key"] = ""
        if kwargs.get("enabled") is None:
            kwargs["enabled"] = False
        if kwargs.get("capabilities") is None:
            kwargs["capabilities"] = []
        if kwargs.get("metadata") is None:
            kwargs["metadata"] = {}
        for attr in _MILLISECOND_FIELDS:
            if _is_number(kwargs.get(attr)):
                kwargs[attr] = kwargs[attr] / 1000
        return cls(**kwargs)


@dataclass
class LoadBalancingConfig:
    """Load balancing policy for ``get_next_provider``."""

    enabled: bool = False
    strategy: str = "weighted"
    weights: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.strategy not in LOAD_BALANCING_STRATEGIES:
            raise ValueError(
                f"Invalid load balancing strategy '{self.strategy}'. "
                f"Must be one of: {', '.join(LOAD_BALANCING_STRATEGIES)}"
            )
        if not isinstance(self.weights, dict):
            raise ValueError("Load balancing weights must be an object")
        for name, weight in self.weights.items():
            if not _is_number(weight) or not math.isfinite(weight) or weight < 0:
                raise ValueError(f"Invalid load balancing weight for '{name}': {weight!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "strategy": self.strategy,
            "weights": dict(self.weights),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LoadBalancingConfig":
        return cls(
            enabled=bool(data.get("enabled", False)),
            strategy=data.get("strategy", "weighted"),
            weights=copy.deepcopy(data.get("weights") or {}),
        )


@dataclass
class RegistryState:
    """Full persisted registry: providers, active provider and policies."""

    active_provider: str = ""
    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    fallback_order: list[str] = field(default_factory=list)
    load_balancing: LoadBalancingConfig = field(default_factory=LoadBalancingConfig)

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeProvider": self.active_provider,
            "providers": {name: p.to_dict() for name, p in self.providers.items()},
            "fallbackOrder": list(self.fallback_order),
            "loadBalancing": self.load_balancing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RegistryState":
        """Strict conversion: any invalid provider entry raises ValueError."""
        providers_data = data.get("providers") or {}
        if not isinstance(providers_data, dict):
            raise ValueError("'providers' must be an object")
        return cls(
            active_provider=data.get("activeProvider") or "",
            providers={
                name: ProviderConfig.from_dict(entry, name=name)
                for name, entry in providers_data.items()
            },
            fallback_order=list(data.get("fallbackOrder") or []),
            load_balancing=LoadBalancingConfig.from_dict(data.get("loadBalancing") or {}),
        )

    def copy(self) -> "RegistryState":
        return copy.deepcopy(self)
