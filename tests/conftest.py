"""Shared pytest configuration and fixtures for Provider Switchboard tests."""

import pytest

from switchboard.core.provider.provider_config import ProviderConfig
from switchboard.core.provider.provider_registry import ProviderConfigManager
from switchboard.core.provider.storage import RegistryFileStorage

# Import HTTP mocking fixtures from fixtures module
pytest_plugins = ["tests.fixtures.mock_http"]

# Import test configuration constants
from tests.config import (  # noqa: E402
    PROVIDER_ENV_VARS,
    SETTINGS_ENV_VARS,
    TEST_API_KEYS,
    ZAI_CHAT_URL,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, no external deps)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires services)"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "tests/unit/" in path or "tests/cli/" in path:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="function", autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Give every test a clean environment and a private registry directory.

    Provider keys from the developer's shell or .env file would otherwise
    enable built-in providers and change which provider is active.
    """
    for name in PROVIDER_ENV_VARS + SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "switchboard-home"
    monkeypatch.setenv("SWITCHBOARD_HOME", str(home))
    yield home


@pytest.fixture
def registry_home(isolated_environment):
    """Directory holding providers.json for the current test."""
    return isolated_environment


@pytest.fixture
def storage(registry_home):
    return RegistryFileStorage(registry_home)


@pytest.fixture
def manager(storage):
    """Initialized manager over an empty registry directory (defaults only)."""
    manager = ProviderConfigManager(storage)
    manager.initialize()
    return manager


@pytest.fixture
def zai_provider():
    """Enabled Z.ai-style provider pointing at the mocked endpoint."""
    return ProviderConfig(
        name="Z.ai GLM",
        type="zai",
        api_key=TEST_API_KEYS["zai"],
        api_url=ZAI_CHAT_URL,
        model="glm-4.5",
        temperature=0.7,
        max_tokens=4096,
        enabled=True,
        priority=90,
        capabilities=["chat", "chinese"],
    )
