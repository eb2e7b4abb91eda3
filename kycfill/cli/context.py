"""Shared CLI plumbing: settings override, service construction, error exit."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Optional, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler

from ..config import Settings, get_settings
from ..errors import KycFillError
from ..service import KycAutofillService, build_service

T = TypeVar("T")

console = Console()


@dataclasses.dataclass
class CliState:
    settings: Settings

    def service(self) -> KycAutofillService:
        return build_service(self.settings)


def make_state(db_path: Optional[Path]) -> CliState:
    settings = get_settings()
    if db_path is not None:
        settings = dataclasses.replace(settings, database_url=None, sqlite_path=str(db_path))
    return CliState(settings=settings)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def run_async(coro: Awaitable[T]) -> T:
    """Run ``coro`` and turn :class:`KycFillError` into a red message and exit 1."""

    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except KycFillError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


pass_state = click.make_pass_decorator(CliState)


def mask_value(value: Any) -> str:
    """Mask a secret for display."""

    text = "" if value is None else str(value)
    if not text:
        return "[dim]Not set[/dim]"
    if len(text) <= 8:
        return "****"
    return f"{text[:4]}...{text[-4:]}"
