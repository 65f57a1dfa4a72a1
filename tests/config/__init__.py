"""Test configuration constants for Provider Switchboard tests.

None of these keys are real; every HTTP call in the suite is mocked.
"""

TEST_API_KEYS = {
    "zai": "test-zai-key-mocked",
    "openai": "test-openai-key-mocked",
    "anthropic": "test-anthropic-key-mocked",
}

TEST_ENDPOINTS = {
    "zai": "https://api.z.ai",
    "openai": "https://api.openai.com",
}

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"

ZAI_CHAT_URL = TEST_ENDPOINTS["zai"] + CHAT_COMPLETIONS_PATH

# Environment variables a developer machine may carry that would leak into tests
PROVIDER_ENV_VARS = [
    f"{prefix}_{suffix}"
    for prefix in ("ZAI", "OPENAI", "ANTHROPIC")
    for suffix in ("API_KEY", "API_URL", "MODEL")
]

SETTINGS_ENV_VARS = [
    "LOG_LEVEL",
    "REQUEST_TIMEOUT",
    "HEALTH_CHECK_ENABLED",
    "HEALTH_CHECK_INTERVAL",
    "CIRCUIT_BREAKER_THRESHOLD",
    "CIRCUIT_BREAKER_TIMEOUT",
    "CIRCUIT_BREAKER_RESET_TIMEOUT",
]

__all__ = [
    "TEST_API_KEYS",
    "TEST_ENDPOINTS",
    "CHAT_COMPLETIONS_PATH",
    "ZAI_CHAT_URL",
    "PROVIDER_ENV_VARS",
    "SETTINGS_ENV_VARS",
]
