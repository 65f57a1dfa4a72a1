"""Async client for OpenAI-compatible chat-completion endpoints.

One ProviderClient talks to one provider. Every call runs through the
client's own circuit breaker and deadline, and failures are re-raised as
typed ProviderAPIError subclasses.
"""

import asyncio
import dataclasses
import inspect
import json
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from typing import Any

import httpx

from switchboard import __version__
from switchboard.client.error_classifier import UpstreamHTTPError, classify_error
from switchboard.client.events import ClientEvent, ClientEvents, EventHandler
from switchboard.client.models import (
    MESSAGE_ROLES,
    ChatCompletion,
    ClientConfig,
    HealthCheckResult,
    StreamChunk,
)
from switchboard.core.circuit_breaker import CircuitBreaker
from switchboard.core.exceptions import AuthenticationError, ValidationError
from switchboard.core.provider.provider_config import MASKED_API_KEY, ProviderConfig

logger = logging.getLogger(__name__)

USER_AGENT = f"provider-switchboard/{__version__}"
HEALTH_CHECK_PROMPT = "Hello, this is a health check."
HEALTH_CHECK_MAX_TOKENS = 10

ChunkHandler = Callable[[StreamChunk], Awaitable[None] | None]

_BREAKER_FIELDS = (
    "circuit_breaker_threshold",
    "circuit_breaker_timeout",
    "circuit_breaker_reset_timeout",
)


class ProviderClient:
    """Client for a single provider's chat-completions endpoint.

    Example:
        >>> async with ProviderClient.from_provider(manager.get_active_provider()) as client:
        ...     completion = await client.send_message([{"role": "user", "content": "Hi"}])
        ...     print(completion.content)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        name: str = "provider",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration (environment defaults if None)
            name: Label used in logs, error messages and the circuit name
            http_client: Shared httpx client; the caller keeps ownership
        """
        self._config = config or ClientConfig.from_settings()
        self._name = name
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(self._config.timeout))
        self._events = ClientEvents()
        self._breaker = self._build_breaker()
        self._last_health_check: HealthCheckResult | None = None
        self._health_task: asyncio.Task[None] | None = None
        self._destroyed = False

        if self._config.enable_health_check:
            try:
                self.start_health_check()
            except RuntimeError:
                logger.warning(
                    "Health checks for %s need a running event loop; "
                    "call start_health_check() from async code",
                    self._name,
                )

    @classmethod
    def from_provider(
        cls,
        provider: ProviderConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        **overrides: Any,
    ) -> "ProviderClient":
        """Build a client for a registry entry."""
        return cls(
            ClientConfig.from_provider(provider, **overrides),
            name=provider.name,
            http_client=http_client,
        )

    async def __aenter__(self) -> "ProviderClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.destroy()

    @property
    def name(self) -> str:
        return self._name

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._breaker

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, event: ClientEvent | str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event``. Handlers may be sync or async."""
        self._events.subscribe(event, handler)

    def unsubscribe(self, event: ClientEvent | str, handler: EventHandler) -> None:
        self._events.unsubscribe(event, handler)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def send_message(
        self,
        messages: Sequence[dict[str, str]],
        options: dict[str, Any] | None = None,
    ) -> ChatCompletion:
        """Send a chat completion request.

        Args:
            messages: Conversation as ``{"role", "content"}`` dicts
            options: Payload fields overriding the defaults (e.g. max_tokens)

        Raises:
            AuthenticationError: If no API key is configured (no request is made)
            ProviderAPIError: Any other failure, already classified
        """
        self._ensure_usable()
        logger.debug(
            "Sending message to %s (messages=%d, model=%s)",
            self._name,
            len(messages),
            self._config.model,
        )
        self._require_api_key()
        payload = self._build_payload(messages, stream=False, options=options)

        async def call() -> ChatCompletion:
            data = await asyncio.wait_for(self._make_request(payload), self._config.timeout)
            return ChatCompletion.from_dict(data)

        try:
            completion = await self._breaker.execute(call)
        except Exception as e:
            raise await self._fail("Failed to send message", e) from e

        await self._events.emit(
            ClientEvent.MESSAGE_SENT, {"request": payload, "response": completion}
        )
        return completion

    async def send_streaming_message(
        self,
        messages: Sequence[dict[str, str]],
        on_chunk: ChunkHandler,
        options: dict[str, Any] | None = None,
    ) -> None:
        """Send a streaming request, calling ``on_chunk`` for every chunk.

        The stream ends at ``data: [DONE]`` or when the connection closes.
        Chunks that fail to parse are logged and skipped.

        Raises:
            AuthenticationError: If no API key is configured (no request is made)
            ProviderAPIError: Any other failure, already classified
        """
        self._ensure_usable()
        logger.debug(
            "Sending streaming message to %s (messages=%d, model=%s)",
            self._name,
            len(messages),
            self._config.model,
        )
        self._require_api_key()
        payload = self._build_payload(messages, stream=True, options=options)

        async def call() -> None:
            await asyncio.wait_for(
                self._make_streaming_request(payload, on_chunk), self._config.timeout
            )

        try:
            await self._breaker.execute(call)
        except Exception as e:
            raise await self._fail("Failed to send streaming message", e) from e

        await self._events.emit(ClientEvent.STREAMING_MESSAGE_SENT, {"request": payload})

    def _require_api_key(self) -> None:
        if not self._config.api_key:
            raise AuthenticationError(f"{self._name} API key is required")

    def _ensure_usable(self) -> None:
        if self._destroyed:
            raise RuntimeError(f"Client for {self._name} has been destroyed")

    def _build_payload(
        self,
        messages: Sequence[dict[str, str]],
        *,
        stream: bool,
        options: dict[str, Any] | None,
    ) -> dict[str, Any]:
        if not messages:
            raise ValidationError("At least one message is required")
        for message in messages:
            if message.get("role") not in MESSAGE_ROLES or not isinstance(
                message.get("content"), str
            ):
                raise ValidationError(f"Invalid message: {message!r}")

        conversation = [dict(m) for m in messages]
        if self._config.system_prompt and conversation[0]["role"] != "system":
            conversation.insert(0, {"role": "system", "content": self._config.system_prompt})

        payload: dict[str, Any] = {
            "model": self._config.model,
            "messages": conversation,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
            "top_p": self._config.top_p,
        }
        if options:
            payload.update(options)
        # The response handling depends on the method, so options cannot flip it
        payload["stream"] = stream
        return payload

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._config.api_key}",
            "User-Agent": USER_AGENT,
        }

    async def _make_request(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._http.post(
            self._config.api_url,
            json=payload,
            headers=self._headers(),
            timeout=self._config.timeout,
        )
        if response.is_error:
            raise UpstreamHTTPError(response.status_code, response.text)
        return response.json()

    async def _make_streaming_request(
        self, payload: dict[str, Any], on_chunk: ChunkHandler
    ) -> None:
        async with self._http.stream(
            "POST",
            self._config.api_url,
            json=payload,
            headers=self._headers(),
            timeout=self._config.timeout,
        ) as response:
            if response.is_error:
                body = await response.aread()
                raise UpstreamHTTPError(response.status_code, body.decode("utf-8", "replace"))

            async for line in response.aiter_lines():
                if not line.startswith("data: "):
                    continue
                data = line[6:].strip()
                if data == "[DONE]":
                    return

                try:
                    chunk = StreamChunk.from_dict(json.loads(data))
                except (ValueError, TypeError):
                    logger.warning("Failed to parse streaming chunk from %s: %s", self._name, data)
                    continue

                result = on_chunk(chunk)
                if inspect.isawaitable(result):
                    await result

    async def _fail(self, action: str, error: Exception) -> Exception:
        """Classify ``error``, log it and notify observers."""
        logger.error(
            "%s to %s (model=%s): %s",
            action,
            self._name,
            self._config.model,
            str(error) or type(error).__name__,
        )
        api_error = classify_error(error, self._name)
        await self._events.emit(ClientEvent.ERROR, api_error)
        return api_error

    # ------------------------------------------------------------------
    # Health checks
    # ------------------------------------------------------------------

    async def perform_health_check(self) -> HealthCheckResult:
        """Check the provider with a tiny request. Never raises."""
        start = time.perf_counter()
        error: str | None = None
        try:
            await self.send_message(
                [{"role": "user", "content": HEALTH_CHECK_PROMPT}],
                {"max_tokens": HEALTH_CHECK_MAX_TOKENS},
            )
        except Exception as e:
            error = str(e) or type(e).__name__

        result = HealthCheckResult(
            healthy=error is None,
            response_time=(time.perf_counter() - start) * 1000,
            timestamp=datetime.now(timezone.utc),
            error=error,
            details={"api_url": self._config.api_url, "model": self._config.model},
        )
        self._last_health_check = result
        await self._events.emit(ClientEvent.HEALTH_CHECK, result)
        return result

    def get_last_health_check(self) -> HealthCheckResult | None:
        return self._last_health_check

    def start_health_check(self) -> None:
        """Run a health check now and then every ``health_check_interval`` seconds.

        Replaces any running health-check task.

        Raises:
            RuntimeError: If called without a running event loop
        """
        loop = asyncio.get_running_loop()
        self.stop_health_check()
        self._health_task = loop.create_task(self._health_check_loop())

    def stop_health_check(self) -> None:
        if self._health_task is not None:
            self._health_task.cancel()
            self._health_task = None

    @property
    def health_check_running(self) -> bool:
        return self._health_task is not None and not self._health_task.done()

    async def _health_check_loop(self) -> None:
        while True:
            await self.perform_health_check()
            await asyncio.sleep(self._config.health_check_interval)

    # ------------------------------------------------------------------
    # Configuration and lifecycle
    # ------------------------------------------------------------------

    def update_config(self, **changes: Any) -> None:
        """Merge ``changes`` into the live configuration.

        Changing ``enable_health_check`` starts or stops the health-check
        task. Changing a circuit breaker setting replaces the breaker, which
        resets its state.

        Raises:
            ValueError: If a field name is unknown
            RuntimeError: If health checks are enabled without a running event
                loop; the configuration is left unchanged
        """
        known = {f.name for f in dataclasses.fields(ClientConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown client config fields: {', '.join(sorted(unknown))}")
        if changes.get("enable_health_check"):
            asyncio.get_running_loop()

        self._config = dataclasses.replace(self._config, **changes)

        if any(name in changes for name in _BREAKER_FIELDS):
            self._breaker = self._build_breaker()

        if "enable_health_check" in changes:
            if changes["enable_health_check"]:
                self.start_health_check()
            else:
                self.stop_health_check()

    def get_config(self) -> dict[str, Any]:
        """Return the configuration with the API key masked."""
        config = dataclasses.asdict(self._config)
        config["api_key"] = MASKED_API_KEY if self._config.api_key else None
        return config

    async def destroy(self) -> None:
        """Stop health checks, drop subscribers and close the HTTP client."""
        self.stop_health_check()
        self._events.clear()
        if self._owns_http:
            await self._http.aclose()
        self._destroyed = True

    def _build_breaker(self) -> CircuitBreaker:
        return CircuitBreaker(
            f"{self._name}-api",
            threshold=self._config.circuit_breaker_threshold,
            call_timeout=self._config.circuit_breaker_timeout,
            reset_timeout=self._config.circuit_breaker_reset_timeout,
        )
