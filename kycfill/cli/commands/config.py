"""Show the effective configuration."""
from __future__ import annotations

import click
from rich.panel import Panel
from rich.table import Table

from ..context import CliState, console, mask_value, pass_state


@click.command(name="config")
@pass_state
def config_command(state: CliState):
    """
    Show current configuration.

    Values come from environment variables (OPENAI_API_KEY, KYCFILL_*).
    """
    settings = state.settings

    console.print(Panel("[bold cyan]Current Configuration[/bold cyan]", border_style="cyan"))

    llm_table = Table(title="Language Model", border_style="blue")
    llm_table.add_column("Setting", style="cyan")
    llm_table.add_column("Value", style="yellow")
    llm_table.add_row("API Key", mask_value(settings.openai_api_key))
    llm_table.add_row("Base URL", settings.openai_base_url or "[dim]default[/dim]")
    llm_table.add_row("Model", settings.llm_model)
    llm_table.add_row("Temperature", str(settings.llm_temperature))
    llm_table.add_row("Timeout", f"{settings.llm_timeout_seconds}s")
    llm_table.add_row("Correct Phone Code", str(settings.correct_phone_code))
    console.print(llm_table)

    fill_table = Table(title="Autofill", border_style="green")
    fill_table.add_column("Setting", style="cyan")
    fill_table.add_column("Value", style="yellow")
    fill_table.add_row("Dropdown Attempts", str(settings.dropdown_max_attempts))
    fill_table.add_row("Dropdown Settle", f"{settings.dropdown_settle_ms}ms")
    fill_table.add_row("Dropdown Backoff", f"{settings.dropdown_backoff_ms}ms")
    fill_table.add_row("Fuzzy Threshold", str(settings.fuzzy_threshold))
    fill_table.add_row("Browser", settings.browser_type)
    fill_table.add_row("Headless Mode", str(settings.headless))
    console.print(fill_table)

    storage_table = Table(title="Storage", border_style="magenta")
    storage_table.add_column("Setting", style="cyan")
    storage_table.add_column("Value", style="yellow")
    storage_table.add_row("Database", settings.database_url or settings.sqlite_path)
    storage_table.add_row("Log Level", settings.log_level)
    console.print(storage_table)
