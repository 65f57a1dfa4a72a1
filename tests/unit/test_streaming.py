"""Unit tests for ProviderClient.send_streaming_message SSE handling."""

import json
import logging

import httpx
import pytest

from switchboard.client.chat_client import ProviderClient
from switchboard.client.events import ClientEvent
from switchboard.core.exceptions import AuthenticationError, RateLimitError
from tests.config import CHAT_COMPLETIONS_PATH
from tests.fixtures.mock_http import create_streaming_response

MESSAGES = [{"role": "user", "content": "Stream please"}]


def chunk_line(content: str) -> bytes:
    body = {
        "id": "chatcmpl-9",
        "object": "chat.completion.chunk",
        "created": 1,
        "model": "glm-4.5",
        "choices": [{"index": 0, "delta": {"content": content}, "finish_reason": None}],
    }
    return f"data: {json.dumps(body)}\n\n".encode()


@pytest.mark.unit
@pytest.mark.asyncio
class TestStreaming:
    async def test_chunks_delivered_until_done(self, mock_zai_api, streaming_chunks, zai_provider):
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(
            return_value=create_streaming_response(streaming_chunks)
        )
        chunks = []

        async with ProviderClient.from_provider(zai_provider) as client:
            await client.send_streaming_message(MESSAGES, chunks.append)

        # Four data chunks; the [DONE] line never reaches the handler
        assert len(chunks) == 4
        assert "".join(c.content for c in chunks) == "Hello!"
        assert chunks[-1].finish_reason == "stop"
        assert chunks[0].model == "glm-4.5"

    async def test_request_asks_for_stream(self, mock_zai_api, streaming_chunks, zai_provider):
        route = mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(
            return_value=create_streaming_response(streaming_chunks)
        )

        async with ProviderClient.from_provider(zai_provider) as client:
            await client.send_streaming_message(MESSAGES, lambda chunk: None, {"stream": False})

        assert json.loads(route.calls.last.request.content)["stream"] is True

    async def test_lines_after_done_are_ignored(self, mock_zai_api, zai_provider):
        body = [chunk_line("one"), b"data: [DONE]\n\n", chunk_line("late")]
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(return_value=create_streaming_response(body))
        chunks = []

        async with ProviderClient.from_provider(zai_provider) as client:
            await client.send_streaming_message(MESSAGES, chunks.append)

        assert [c.content for c in chunks] == ["one"]

    async def test_stream_may_end_without_done(self, mock_zai_api, zai_provider):
        body = [chunk_line("a"), chunk_line("b")]
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(return_value=create_streaming_response(body))
        chunks = []

        async with ProviderClient.from_provider(zai_provider) as client:
            await client.send_streaming_message(MESSAGES, chunks.append)

        assert [c.content for c in chunks] == ["a", "b"]

    async def test_malformed_chunks_are_skipped(self, mock_zai_api, zai_provider, caplog):
        body = [
            chunk_line("good"),
            b"data: {not json\n\n",
            b"data: 42\n\n",
            chunk_line("still good"),
            b"data: [DONE]\n\n",
        ]
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(return_value=create_streaming_response(body))
        chunks = []

        with caplog.at_level(logging.WARNING, logger="switchboard.client.chat_client"):
            async with ProviderClient.from_provider(zai_provider) as client:
                await client.send_streaming_message(MESSAGES, chunks.append)

        assert [c.content for c in chunks] == ["good", "still good"]
        assert "Failed to parse streaming chunk" in caplog.text

    async def test_chunks_with_bad_field_shapes_are_skipped(
        self, mock_zai_api, zai_provider, caplog
    ):
        bad_created = {"id": "c", "created": [1], "choices": []}
        bad_choices = {"id": "c", "created": 1, "choices": ["text"]}
        body = [
            chunk_line("first"),
            f"data: {json.dumps(bad_created)}\n\n".encode(),
            f"data: {json.dumps(bad_choices)}\n\n".encode(),
            chunk_line("last"),
            b"data: [DONE]\n\n",
        ]
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(return_value=create_streaming_response(body))
        chunks = []

        with caplog.at_level(logging.WARNING, logger="switchboard.client.chat_client"):
            async with ProviderClient.from_provider(zai_provider) as client:
                await client.send_streaming_message(MESSAGES, chunks.append)

        assert [c.content for c in chunks] == ["first", "last"]
        assert caplog.text.count("Failed to parse streaming chunk") == 2

    async def test_non_data_lines_are_ignored(self, mock_zai_api, zai_provider):
        body = [b": keep-alive\n\n", b"event: ping\n\n", chunk_line("x"), b"data: [DONE]\n\n"]
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(return_value=create_streaming_response(body))
        chunks = []

        async with ProviderClient.from_provider(zai_provider) as client:
            await client.send_streaming_message(MESSAGES, chunks.append)

        assert [c.content for c in chunks] == ["x"]

    async def test_async_chunk_handler_is_awaited(self, mock_zai_api, streaming_chunks, zai_provider):
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(
            return_value=create_streaming_response(streaming_chunks)
        )
        seen = []

        async def on_chunk(chunk):
            seen.append(chunk.content)

        async with ProviderClient.from_provider(zai_provider) as client:
            await client.send_streaming_message(MESSAGES, on_chunk)

        assert seen == ["", "Hello", "!", ""]

    async def test_streaming_event_emitted(self, mock_zai_api, streaming_chunks, zai_provider):
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(
            return_value=create_streaming_response(streaming_chunks)
        )
        events = []

        async with ProviderClient.from_provider(zai_provider) as client:
            client.subscribe(ClientEvent.STREAMING_MESSAGE_SENT, events.append)
            await client.send_streaming_message(MESSAGES, lambda chunk: None)

        assert len(events) == 1
        assert events[0]["request"]["stream"] is True

    async def test_error_status_is_classified(self, mock_zai_api, zai_provider):
        mock_zai_api.post(CHAT_COMPLETIONS_PATH).mock(
            return_value=httpx.Response(429, json={"error": {"message": "slow down"}})
        )
        chunks = []

        async with ProviderClient.from_provider(zai_provider) as client:
            with pytest.raises(RateLimitError):
                await client.send_streaming_message(MESSAGES, chunks.append)

        assert chunks == []

    async def test_missing_api_key_fails_without_network(self, mock_zai_api, zai_provider):
        route = mock_zai_api.post(CHAT_COMPLETIONS_PATH)
        zai_provider.api_key = ""

        async with ProviderClient.from_provider(zai_provider) as client:
            with pytest.raises(AuthenticationError):
                await client.send_streaming_message(MESSAGES, lambda chunk: None)

        assert route.call_count == 0
