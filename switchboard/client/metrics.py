"""Request metrics collected from client events."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from switchboard.client.chat_client import ProviderClient
from switchboard.client.events import ClientEvent
from switchboard.client.models import ChatCompletion, HealthCheckResult
from switchboard.core.exceptions import ProviderAPIError

logger = logging.getLogger(__name__)


@dataclass
class ClientMetrics:
    """Accumulated metrics for one or more clients.

    Attach to a client with ``attach``; counters update as the client emits
    events.
    """

    total_requests: int = 0
    total_streaming_requests: int = 0
    total_errors: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    health_checks: int = 0
    failed_health_checks: int = 0
    last_health_check_ms: float | None = None
    error_counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def attach(self, client: ProviderClient) -> None:
        client.subscribe(ClientEvent.MESSAGE_SENT, self._on_message_sent)
        client.subscribe(ClientEvent.STREAMING_MESSAGE_SENT, self._on_streaming_message_sent)
        client.subscribe(ClientEvent.ERROR, self._on_error)
        client.subscribe(ClientEvent.HEALTH_CHECK, self._on_health_check)

    def detach(self, client: ProviderClient) -> None:
        client.unsubscribe(ClientEvent.MESSAGE_SENT, self._on_message_sent)
        client.unsubscribe(ClientEvent.STREAMING_MESSAGE_SENT, self._on_streaming_message_sent)
        client.unsubscribe(ClientEvent.ERROR, self._on_error)
        client.unsubscribe(ClientEvent.HEALTH_CHECK, self._on_health_check)

    def _on_message_sent(self, payload: dict[str, Any]) -> None:
        self.total_requests += 1
        completion: ChatCompletion = payload["response"]
        self.total_prompt_tokens += completion.usage.prompt_tokens
        self.total_completion_tokens += completion.usage.completion_tokens

    def _on_streaming_message_sent(self, payload: dict[str, Any]) -> None:
        self.total_requests += 1
        self.total_streaming_requests += 1

    def _on_error(self, error: ProviderAPIError) -> None:
        self.total_requests += 1
        self.total_errors += 1
        self.error_counts[error.error_type.value] += 1

    def _on_health_check(self, result: HealthCheckResult) -> None:
        self.health_checks += 1
        self.last_health_check_ms = result.response_time
        if not result.healthy:
            self.failed_health_checks += 1

    def log_summary(self) -> None:
        logger.info(
            f"📊 SUMMARY | Requests: {self.total_requests} | "
            f"Errors: {self.total_errors} | "
            f"Prompt Tokens: {self.total_prompt_tokens:,} | "
            f"Completion Tokens: {self.total_completion_tokens:,} | "
            f"Health Checks: {self.health_checks} ({self.failed_health_checks} failed)"
        )
        if self.error_counts:
            error_dist = " | ".join(f"{error}: {count}" for error, count in self.error_counts.items())
            logger.warning(f"📊 ERRORS | {error_dist}")
