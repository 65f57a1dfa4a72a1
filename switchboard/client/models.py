"""Client configuration and chat-completion wire models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from switchboard.core.config.settings import ClientSettings
from switchboard.core.provider.provider_config import ProviderConfig

DEFAULT_API_URL = "https://api.z.ai/v1/chat/completions"
DEFAULT_MODEL = "glm-4.5"
MESSAGE_ROLES = ("system", "user", "assistant")


@dataclass
class ClientConfig:
    """Configuration for a ProviderClient.

    Durations are in seconds. ``retry_attempts``, ``retry_delay`` and
    ``retry_jitter`` are informational for caller-level retries; a single
    send call never retries on its own.
    """

    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 4096
    top_p: float = 1.0
    system_prompt: str | None = None
    timeout: float = 60.0
    retry_attempts: int = 3
    retry_delay: float = 1.0
    retry_jitter: bool = True
    enable_health_check: bool = False
    health_check_interval: float = 300.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout: float = 60.0
    circuit_breaker_reset_timeout: float = 300.0

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ClientConfig":
        """Build a config from environment settings, then apply ``overrides``."""
        settings = ClientSettings.load()
        values: dict[str, Any] = {
            "timeout": settings.request_timeout,
            "enable_health_check": settings.health_check_enabled,
            "health_check_interval": settings.health_check_interval,
            "circuit_breaker_threshold": settings.circuit_breaker_threshold,
            "circuit_breaker_timeout": settings.circuit_breaker_timeout,
            "circuit_breaker_reset_timeout": settings.circuit_breaker_reset_timeout,
        }
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_provider(cls, provider: ProviderConfig, **overrides: Any) -> "ClientConfig":
        """Build a client config from a registry entry.

        Unset provider fields keep the settings defaults.
        """
        values: dict[str, Any] = {"api_key": provider.api_key}
        optional = {
            "api_url": provider.api_url,
            "model": provider.model,
            "temperature": provider.temperature,
            "max_tokens": provider.max_tokens,
            "top_p": provider.top_p,
            "system_prompt": provider.system_prompt,
            "timeout": provider.timeout,
            "retry_attempts": provider.retry_attempts,
            "retry_delay": provider.retry_delay,
        }
        values.update(
            {key: value for key, value in optional.items() if value is not None and value != ""}
        )
        values.update(overrides)
        return cls.from_settings(**values)


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TokenUsage":
        data = data or {}
        return cls(
            prompt_tokens=int(data.get("prompt_tokens") or 0),
            completion_tokens=int(data.get("completion_tokens") or 0),
            total_tokens=int(data.get("total_tokens") or 0),
        )


@dataclass
class ChatCompletion:
    """Parsed non-streaming chat completion.

    ``content`` and ``finish_reason`` come from the first choice; the full
    response body is kept in ``raw``.
    """

    id: str
    model: str
    created: int
    content: str
    finish_reason: str | None
    usage: TokenUsage
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatCompletion":
        choices = data.get("choices") or [{}]
        first = choices[0] or {}
        message = first.get("message") or {}
        return cls(
            id=data.get("id", ""),
            model=data.get("model", ""),
            created=int(data.get("created") or 0),
            content=message.get("content") or "",
            finish_reason=first.get("finish_reason"),
            usage=TokenUsage.from_dict(data.get("usage")),
            raw=data,
        )


@dataclass
class StreamChunk:
    """One ``chat.completion.chunk`` event of a streaming response."""

    id: str
    model: str
    created: int
    choices: list[dict[str, Any]]

    @property
    def content(self) -> str:
        """Content delta of the first choice ("" when absent)."""
        if not self.choices:
            return ""
        delta = self.choices[0].get("delta") or {}
        return delta.get("content") or ""

    @property
    def finish_reason(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].get("finish_reason")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StreamChunk":
        """Raises ValueError if ``data`` is not a chunk object."""
        if not isinstance(data, dict):
            raise ValueError(f"Stream chunk must be an object, got {type(data).__name__}")
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not all(isinstance(c, dict) for c in choices):
            raise ValueError("Stream chunk 'choices' must be a list of objects")
        created = data.get("created") or 0
        if isinstance(created, bool) or not isinstance(created, (int, float)):
            raise ValueError(f"Stream chunk 'created' must be a number, got {created!r}")
        return cls(
            id=str(data.get("id") or ""),
            model=str(data.get("model") or ""),
            created=int(created),
            choices=choices,
        )


@dataclass
class HealthCheckResult:
    """Outcome of one health check. ``response_time`` is in milliseconds."""

    healthy: bool
    response_time: float
    timestamp: datetime
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
