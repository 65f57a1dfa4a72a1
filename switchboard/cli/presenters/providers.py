"""Presenters for provider display in CLI."""

from rich.console import Console
from rich.table import Table

from switchboard.client.models import HealthCheckResult
from switchboard.core.provider.provider_config import ProviderConfig
from switchboard.core.provider.provider_registry import RegistryStatus

PROVIDER_COLORS = {
    "anthropic": "[green]",
    "openai": "[blue]",
    "zai": "[magenta]",
    "custom": "[cyan]",
}


class ProviderPresenter:
    """Converts registry data into Rich output. No business logic here."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def present_list(
        self,
        providers: dict[str, ProviderConfig],
        active_name: str | None,
        verbose: bool = False,
    ) -> None:
        """Show every provider; keys are masked before display."""
        table = Table(title="AI Providers")
        table.add_column("", width=2)
        table.add_column("Provider", style="cyan")
        table.add_column("Name")
        table.add_column("Enabled")
        if verbose:
            table.add_column("Type")
            table.add_column("Model")
            table.add_column("API Key")
            table.add_column("Priority", justify="right")
            table.add_column("Capabilities")
            table.add_column("API URL")

        for key, provider in providers.items():
            provider = provider.masked()
            color = PROVIDER_COLORS.get(provider.type, "")
            reset = "[/]" if color else ""
            row = [
                "👑" if key == active_name else "",
                f"{color}{key}{reset}",
                provider.name,
                "✅" if provider.enabled else "❌",
            ]
            if verbose:
                row.extend(
                    [
                        provider.type,
                        provider.model,
                        provider.api_key or "Not set",
                        str(provider.priority),
                        ", ".join(provider.capabilities),
                        provider.api_url or "",
                    ]
                )
            table.add_row(*row)

        self.console.print(table)
        if not verbose:
            self.console.print("\nUse [cyan]--verbose[/cyan] for detailed information")

    def present_status(self, status: RegistryStatus, active: ProviderConfig | None) -> None:
        table = Table(title="Provider Status", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Active Provider", status.active_provider or "None")
        table.add_row("Enabled Providers", ", ".join(status.enabled_providers) or "None")
        table.add_row("Total Providers", str(status.total_providers))
        table.add_row("Load Balancing", "Enabled" if status.load_balancing else "Disabled")
        self.console.print(table)

        if active:
            details = Table(title="Active Provider Details", show_header=False)
            details.add_column("Field", style="cyan")
            details.add_column("Value")
            details.add_row("Name", active.name)
            details.add_row("Type", active.type)
            details.add_row("Model", active.model)
            details.add_row("API Key", "✅ Set" if active.api_key else "❌ Not set")
            self.console.print(details)

    def present_health_check(self, provider: ProviderConfig, result: HealthCheckResult) -> None:
        if result.healthy:
            self.console.print("[green]✅ Provider test successful[/green]")
            self.console.print(f"   Response time: {result.response_time:.0f}ms")
        else:
            self.console.print(f"[red]❌ Provider test failed: {result.error}[/red]")
        self.console.print(f"   Model: {result.details.get('model', provider.model)}")
