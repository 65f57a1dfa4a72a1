"""Chat-completion client package."""

from switchboard.client.chat_client import ProviderClient
from switchboard.client.events import ClientEvent
from switchboard.client.metrics import ClientMetrics
from switchboard.client.models import (
    ChatCompletion,
    ClientConfig,
    HealthCheckResult,
    StreamChunk,
    TokenUsage,
)

__all__ = [
    "ProviderClient",
    "ClientEvent",
    "ClientMetrics",
    "ClientConfig",
    "ChatCompletion",
    "StreamChunk",
    "TokenUsage",
    "HealthCheckResult",
]
