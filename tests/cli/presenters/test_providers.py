"""Tests for provider presenter."""

from datetime import datetime, timezone
from io import StringIO

import pytest
from rich.console import Console

from switchboard.cli.presenters.providers import ProviderPresenter
from switchboard.client.models import HealthCheckResult
from switchboard.core.provider.provider_config import ProviderConfig
from switchboard.core.provider.provider_registry import RegistryStatus


def make_console() -> Console:
    return Console(file=StringIO(), width=200)


@pytest.fixture
def providers():
    return {
        "zai": ProviderConfig(
            name="Z.ai GLM", type="zai", api_key="sk-secret", model="glm-4.5", enabled=True
        ),
        "openai": ProviderConfig(name="OpenAI GPT", type="openai", model="gpt-4"),
    }


@pytest.mark.unit
def test_list_marks_active_and_hides_keys(providers):
    console = make_console()

    ProviderPresenter(console=console).present_list(providers, "zai", verbose=True)

    output = console.file.getvalue()
    assert "👑" in output
    assert "Z.ai GLM" in output
    assert "sk-secret" not in output
    assert "****...****" in output
    assert "Not set" in output


@pytest.mark.unit
def test_list_without_active_provider(providers):
    console = make_console()

    ProviderPresenter(console=console).present_list(providers, None)

    output = console.file.getvalue()
    assert "👑" not in output
    assert "--verbose" in output


@pytest.mark.unit
def test_status_without_active_provider():
    console = make_console()
    status = RegistryStatus(active_provider="", enabled_providers=[], total_providers=3)

    ProviderPresenter(console=console).present_status(status, None)

    output = console.file.getvalue()
    assert "None" in output
    assert "Active Provider Details" not in output


@pytest.mark.unit
def test_health_check_failure(providers):
    console = make_console()
    result = HealthCheckResult(
        healthy=False,
        response_time=12.0,
        timestamp=datetime.now(timezone.utc),
        error="Invalid zai API key",
        details={"model": "glm-4.5"},
    )

    ProviderPresenter(console=console).present_health_check(providers["zai"], result)

    output = console.file.getvalue()
    assert "Provider test failed: Invalid zai API key" in output
    assert "Model: glm-4.5" in output
