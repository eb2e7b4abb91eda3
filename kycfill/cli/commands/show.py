"""Inspect the saved profile."""
from __future__ import annotations

from typing import List, Tuple

import click
from rich.table import Table

from ...profile import SLOT_KEYS, IdentityProfile
from ..context import CliState, console, pass_state, run_async


@click.command(name="show")
@click.option("--passphrase", prompt="Encryption passphrase", hide_input=True, envvar="KYCFILL_PASSPHRASE")
@click.option("--reveal", is_flag=True, help="Print values unmasked")
@pass_state
def show_command(state: CliState, passphrase: str, reveal: bool):
    """Decrypt and display the saved profile."""
    profile, stored = run_async(_load(state, passphrase))

    values = profile.to_payload() if reveal else profile.redacted()
    table = Table(title="Saved profile", border_style="blue")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="yellow")
    for slot in SLOT_KEYS:
        table.add_row(slot, values.get(slot) or "[dim]-[/dim]")
    console.print(table)

    if stored:
        files = Table(title="Stored documents", border_style="magenta")
        files.add_column("File reference", style="cyan")
        files.add_column("Filename")
        files.add_column("Type")
        files.add_column("Size", justify="right")
        for file_id, filename, mime_type, size in stored:
            files.add_row(file_id, filename, mime_type, str(size))
        console.print(files)


async def _load(state: CliState, passphrase: str) -> Tuple[IdentityProfile, List[Tuple[str, str, str, int]]]:
    service = state.service()
    profile = await service.load_profile(passphrase)
    stored = []
    for file_id in await service.vault.files.list_ids():
        reference = await service.vault.files.retrieve(file_id)
        stored.append((file_id, reference.filename, reference.mime_type, reference.size))
    return profile, stored
