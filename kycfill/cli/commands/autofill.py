"""Run the autofill pipeline against a live page."""
from __future__ import annotations

import asyncio
from typing import List, Optional

import click
from rich.panel import Panel
from rich.table import Table

from ...browser.automation import BrowserAutomation, BrowserConfig
from ...page.dom import PlaywrightPage
from ...page.observer import PlaywrightMutationObserver
from ...pipeline import PageRunResult
from ..context import CliState, console, pass_state, run_async


@click.command(name="autofill")
@click.argument("url")
@click.option("--passphrase", prompt="Encryption passphrase", hide_input=True, envvar="KYCFILL_PASSPHRASE")
@click.option("--headless/--headed", default=None, help="Override KYCFILL_HEADLESS")
@click.option("--linger", type=float, default=30.0, show_default=True, help="Seconds to keep following page changes")
@pass_state
def autofill_command(state: CliState, url: str, passphrase: str, headless: Optional[bool], linger: float):
    """
    Open URL in a browser and fill it with your saved profile.

    URL: The page holding the identity form.
    """
    results = run_async(_autofill(state, url, passphrase, headless, linger))
    _display_results(results)


async def _autofill(
    state: CliState,
    url: str,
    passphrase: str,
    headless: Optional[bool],
    linger: float,
) -> List[PageRunResult]:
    service = state.service()
    # Decrypt before launching so a bad passphrase fails fast.
    profile = await service.prepare_profile(passphrase)

    config = BrowserConfig.from_settings(state.settings)
    if headless is not None:
        config.headless = headless

    async with BrowserAutomation(config) as automation:
        session = await automation.create_session()
        await session.goto(url)
        console.print(f"[green]✓[/green] Navigated to {url}")

        observer = PlaywrightMutationObserver(session.page)
        pipeline = service.build_pipeline(PlaywrightPage(session.page), observer=observer)
        await pipeline.start(profile)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + linger
        while pipeline.observing and loop.time() < deadline:
            await asyncio.sleep(0.5)
        await pipeline.stop()
        return list(pipeline.history)


def _display_results(results: List[PageRunResult]) -> None:
    if not results:
        console.print("[yellow]No autofill pass ran[/yellow]")
        return

    for number, result in enumerate(results, start=1):
        if result.empty:
            console.print(f"[dim]Pass {number}: no fillable fields[/dim]")
            continue
        table = Table(title=f"Pass {number}", header_style="bold cyan", border_style="cyan")
        table.add_column("#", justify="right")
        table.add_column("Slot", style="yellow")
        table.add_column("Widget")
        table.add_column("Result")
        for outcome in result.report.outcomes:
            status = "[green]filled[/green]" if outcome.success else f"[red]{outcome.message}[/red]"
            table.add_row(str(outcome.index), outcome.slot, outcome.kind.value, status)
        console.print(table)
        if result.next_action is not None and result.next_action.clicked:
            console.print(f"[green]✓[/green] Clicked [cyan]{result.next_action.text}[/cyan]")

    console.print(Panel(f"[bold]{len(results)}[/bold] autofill pass(es) completed", border_style="green"))
