"""RESPX-based HTTP mocking fixtures for testing.

This module provides reusable fixtures for mocking OpenAI-compatible
chat-completion endpoints (Z.ai, OpenAI, custom) using RESPX.
"""

import httpx
import pytest
import respx

from tests.config import TEST_ENDPOINTS


# === Chat Completion Response Fixtures ===


@pytest.fixture
def chat_completion():
    """Standard chat completion response."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1677652288,
        "model": "glm-4.5",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": "Hello! How can I help you today?",
                },
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": 10,
            "completion_tokens": 15,
            "total_tokens": 25,
        },
    }


@pytest.fixture
def streaming_chunks():
    """Streaming response chunks ending with the [DONE] sentinel."""
    return [
        b'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","created":1677652288,"model":"glm-4.5","choices":[{"index":0,"delta":{"role":"assistant","content":""},"finish_reason":null}]}\n\n',
        b'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","created":1677652288,"model":"glm-4.5","choices":[{"index":0,"delta":{"content":"Hello"},"finish_reason":null}]}\n\n',
        b'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","created":1677652288,"model":"glm-4.5","choices":[{"index":0,"delta":{"content":"!"},"finish_reason":null}]}\n\n',
        b'data: {"id":"chatcmpl-123","object":"chat.completion.chunk","created":1677652288,"model":"glm-4.5","choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}\n\n',
        b"data: [DONE]\n\n",
    ]


# === RESPX Mock Fixtures ===


@pytest.fixture
def mock_zai_api():
    """Mock the Z.ai chat-completions endpoint with RESPX.

    Example:
        def test_chat(mock_zai_api, chat_completion):
            mock_zai_api.post("/v1/chat/completions").mock(
                return_value=httpx.Response(200, json=chat_completion)
            )
    """
    with respx.mock(base_url=TEST_ENDPOINTS["zai"], assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def mock_openai_api():
    """Mock the OpenAI chat-completions endpoint with RESPX."""
    with respx.mock(base_url=TEST_ENDPOINTS["openai"], assert_all_called=False) as respx_mock:
        yield respx_mock


# === Helper Functions ===


def create_openai_error(status_code: int, error_type: str, message: str) -> dict:
    """Create an OpenAI-formatted error response body.

    Args:
        status_code: HTTP status code
        error_type: Error type (e.g., "invalid_request_error", "rate_limit_error")
        message: Error message
    """
    return {
        "error": {
            "message": message,
            "type": error_type,
            "code": status_code,
        }
    }


def create_streaming_response(chunks: list[bytes]) -> httpx.Response:
    """Create a streaming HTTP response from chunks."""
    return httpx.Response(
        status_code=200,
        headers={"content-type": "text/event-stream"},
        content=b"".join(chunks),
    )
