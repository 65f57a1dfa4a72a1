"""Built-in default provider registry.

Environment variables are read only here, when the defaults are built:
``{TYPE}_API_KEY`` enables a provider, ``{TYPE}_API_URL`` and
``{TYPE}_MODEL`` override its endpoint and model.
"""

import os
from typing import Any

from switchboard.core.provider.provider_config import (
    LoadBalancingConfig,
    ProviderConfig,
    RegistryState,
)

DEFAULT_ACTIVE_PROVIDER = "zai"
DEFAULT_FALLBACK_ORDER = ["zai", "anthropic", "openai"]
DEFAULT_WEIGHTS = {"zai": 50, "anthropic": 30, "openai": 20}

_BUILTIN_PROVIDERS: dict[str, dict[str, Any]] = {
    "anthropic": {
        "name": "Anthropic Claude",
        "api_url": "https://api.anthropic.com/v1/messages",
        "model": "claude-3-sonnet-20240229",
        "priority": 80,
        "capabilities": ["chat", "reasoning", "code", "analysis"],
    },
    "openai": {
        "name": "OpenAI GPT",
        "api_url": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-4",
        "priority": 70,
        "capabilities": ["chat", "reasoning", "code", "analysis"],
    },
    "zai": {
        "name": "Z.ai GLM",
        "api_url": "https://api.z.ai/v1/chat/completions",
        "model": "glm-4.5",
        "priority": 90,
        "capabilities": ["chat", "reasoning", "code", "analysis", "chinese"],
    },
}


def build_default_provider(provider_type: str) -> ProviderConfig:
    """Build the default entry for one well-known provider type."""
    builtin = _BUILTIN_PROVIDERS[provider_type]
    prefix = provider_type.upper()
    api_key = os.environ.get(f"{prefix}_API_KEY", "")

    return ProviderConfig(
        name=builtin["name"],
        type=provider_type,
        api_key=api_key,
        api_url=os.environ.get(f"{prefix}_API_URL") or builtin["api_url"],
        model=os.environ.get(f"{prefix}_MODEL") or builtin["model"],
        temperature=0.7,
        max_tokens=4096,
        enabled=bool(api_key),
        priority=builtin["priority"],
        capabilities=list(builtin["capabilities"]),
    )


def build_default_registry() -> RegistryState:
    """Return a fresh default registry with one entry per well-known type."""
    return RegistryState(
        active_provider=DEFAULT_ACTIVE_PROVIDER,
        providers={name: build_default_provider(name) for name in _BUILTIN_PROVIDERS},
        fallback_order=list(DEFAULT_FALLBACK_ORDER),
        load_balancing=LoadBalancingConfig(
            enabled=False,
            strategy="weighted",
            weights=dict(DEFAULT_WEIGHTS),
        ),
    )


def builtin_provider_types() -> list[str]:
    return list(_BUILTIN_PROVIDERS)
