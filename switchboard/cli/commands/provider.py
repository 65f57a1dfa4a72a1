"""Provider management commands for the switchboard CLI."""

import asyncio
import json
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.panel import Panel

from switchboard.cli.presenters.providers import ProviderPresenter
from switchboard.client.chat_client import ProviderClient
from switchboard.client.models import HealthCheckResult
from switchboard.core.exceptions import SwitchboardError
from switchboard.core.provider.defaults import builtin_provider_types
from switchboard.core.provider.provider_config import ProviderConfig
from switchboard.core.provider.provider_registry import ProviderConfigManager

app = typer.Typer(help="Manage AI providers and API keys", no_args_is_help=True)

# Types served by the OpenAI-compatible chat-completions client
TESTABLE_TYPES = ("zai", "openai", "custom")

QUICK_SETUP_LABELS = {
    "zai": "Z.ai",
    "anthropic": "Anthropic",
    "openai": "OpenAI",
}


def _load_manager(ctx: typer.Context) -> ProviderConfigManager:
    home = (ctx.obj or {}).get("home")
    manager = ProviderConfigManager(home_dir=home)
    manager.initialize()
    return manager


def _fail(message: str) -> NoReturn:
    Console(stderr=True).print(f"[red]❌ Provider command failed: {message}[/red]")
    raise typer.Exit(1)


async def _run_health_check(provider: ProviderConfig) -> HealthCheckResult:
    async with ProviderClient.from_provider(provider, enable_health_check=False) as client:
        return await client.perform_health_check()


def _test_active_provider(manager: ProviderConfigManager, console: Console) -> bool:
    """Health-check the active provider. Returns True when it is healthy."""
    provider = manager.get_active_provider()
    if provider is None:
        console.print("[red]❌ No active provider configured[/red]")
        return False

    if provider.type not in TESTABLE_TYPES:
        console.print(f"[red]❌ Testing not implemented for provider type: {provider.type}[/red]")
        return False

    console.print(f"🧪 Testing provider: {provider.name}...")
    result = asyncio.run(_run_health_check(provider))
    ProviderPresenter(console).present_health_check(provider, result)
    return result.healthy


def _quick_setup(ctx: typer.Context, provider_name: str, api_key: str) -> None:
    console = Console()
    label = QUICK_SETUP_LABELS.get(provider_name, provider_name)
    console.print(f"🔧 Setting up {label} provider...")
    try:
        manager = _load_manager(ctx)
        manager.set_provider_api_key(provider_name, api_key)
        manager.set_active_provider(provider_name)
    except (SwitchboardError, ValueError) as e:
        _fail(str(e))

    console.print(f"[green]✅ {label} provider configured successfully![/green]")
    console.print("🧪 Testing connection...")
    if not _test_active_provider(manager, console):
        console.print(
            "[yellow]Provider saved, but the connection test did not pass. "
            "Run 'switchboard provider test' to retry.[/yellow]"
        )


@app.command("list")
def list_providers(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed information"),
) -> None:
    """List all providers."""
    manager = _load_manager(ctx)
    active = manager.get_active_provider()
    ProviderPresenter().present_list(
        manager.get_all_providers(),
        manager.active_provider_name if active else None,
        verbose=verbose,
    )


@app.command()
def status(ctx: typer.Context) -> None:
    """Show provider status."""
    manager = _load_manager(ctx)
    ProviderPresenter().present_status(manager.get_status(), manager.get_active_provider())


@app.command("set")
def set_provider(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name (e.g., 'zai')"),
    key: str = typer.Option(None, "--key", "-k", help="API key to store before activating"),
) -> None:
    """Set the active provider, optionally storing its API key first."""
    console = Console()
    try:
        manager = _load_manager(ctx)
        if key:
            manager.set_provider_api_key(provider, key)
            manager.set_active_provider(provider)
            console.print(f"[green]✅ Provider {provider} configured and activated[/green]")
        else:
            manager.set_active_provider(provider)
            console.print(f"[green]✅ Active provider set to: {provider}[/green]")
    except (SwitchboardError, ValueError) as e:
        _fail(str(e))


@app.command()
def test(ctx: typer.Context) -> None:
    """Test the active provider connection."""
    manager = _load_manager(ctx)
    if not _test_active_provider(manager, Console()):
        raise typer.Exit(1)


@app.command()
def enable(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name"),
) -> None:
    """Enable a provider."""
    try:
        _load_manager(ctx).toggle_provider(provider, True)
    except SwitchboardError as e:
        _fail(str(e))
    Console().print(f"[green]✅ Provider {provider} enabled[/green]")


@app.command()
def disable(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name"),
) -> None:
    """Disable a provider."""
    try:
        _load_manager(ctx).toggle_provider(provider, False)
    except SwitchboardError as e:
        _fail(str(e))
    Console().print(f"[green]✅ Provider {provider} disabled[/green]")


@app.command()
def remove(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name"),
) -> None:
    """Remove a provider."""
    try:
        _load_manager(ctx).remove_provider(provider)
    except SwitchboardError as e:
        _fail(str(e))
    Console().print(f"[green]✅ Provider {provider} removed[/green]")


@app.command("export")
def export_configuration(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Destination JSON file"),
) -> None:
    """Export provider configuration (API keys included)."""
    state = _load_manager(ctx).export_configuration()
    try:
        file.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot write {file}: {e}")
    Console().print(f"[green]✅ Configuration exported to: {file}[/green]")


@app.command("import")
def import_configuration(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="JSON file produced by 'export'"),
) -> None:
    """Import provider configuration."""
    try:
        document = json.loads(file.read_text(encoding="utf-8"))
        if not isinstance(document, dict):
            raise ValueError("expected a JSON object")
        _load_manager(ctx).import_configuration(document)
    except (OSError, ValueError, SwitchboardError) as e:
        _fail(f"Cannot import {file}: {e}")
    Console().print(f"[green]✅ Configuration imported from: {file}[/green]")


@app.command()
def setup(ctx: typer.Context) -> None:
    """Interactive provider setup."""
    console = Console()
    console.print(Panel("Answer two questions to configure a provider.", title="🚀 Provider Setup"))

    choices = "/".join(builtin_provider_types())
    provider = typer.prompt(f"Which provider would you like to configure? ({choices})")
    provider = provider.strip().lower()
    if provider not in QUICK_SETUP_LABELS:
        _fail(f"Unknown provider. Supported: {', '.join(QUICK_SETUP_LABELS)}")

    api_key = typer.prompt("Enter your API key", hide_input=True)
    _quick_setup(ctx, provider, api_key.strip())


@app.command()
def zai(
    ctx: typer.Context,
    api_key: str = typer.Argument(..., help="Z.ai API key"),
) -> None:
    """Quick Z.ai setup."""
    _quick_setup(ctx, "zai", api_key)


@app.command()
def anthropic(
    ctx: typer.Context,
    api_key: str = typer.Argument(..., help="Anthropic API key"),
) -> None:
    """Quick Anthropic setup."""
    _quick_setup(ctx, "anthropic", api_key)


@app.command()
def openai(
    ctx: typer.Context,
    api_key: str = typer.Argument(..., help="OpenAI API key"),
) -> None:
    """Quick OpenAI setup."""
    _quick_setup(ctx, "openai", api_key)
