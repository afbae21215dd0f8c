"""
Sign Spotlight — interactive console

Usage:
  python -m spotlight.main

Asks for an image path, applies the spotlight effect with Gemini and writes
the result next to the source as <name>_spotlight.png.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.rule import Rule

from .client import SpotlightClient
from .config import Settings
from .errors import ConfigError
from .session import Failed, Rejected, SpotlightSession, Succeeded
from .source import guess_media_type

console = Console()

QUIT_WORDS = {"q", "quit", "exit"}


def select_path(session: SpotlightSession, raw: str) -> bool:
    """Select a local file into the session. Returns True if it is now Ready."""
    path = Path(raw.strip().strip("'\"")).expanduser()
    if not path.is_file():
        console.print(f"[red]✗ Not a file:[/red] {path}")
        return False

    state = session.select(
        name=path.name,
        media_type=guess_media_type(path.name),
        size=path.stat().st_size,
        path=path,
    )
    if isinstance(state, Rejected):
        console.print(Panel(state.message, title="Invalid image", border_style="red"))
        return False

    size_kb = path.stat().st_size / 1024
    console.print(f"  [green]✓ {path.name}[/green] [dim]({state.source.media_type}, {size_kb:.0f} KB)[/dim]")
    return True


def result_path(state: Succeeded) -> Path:
    return state.source.path.with_name(state.download_name)


async def run_once(session: SpotlightSession) -> None:
    with console.status("[bold cyan]Gemini is analysing the image...[/bold cyan]"):
        state = await session.process()

    if isinstance(state, Failed):
        console.print(Panel(escape(state.message), title="Something went wrong", border_style="red"))
        return
    if not isinstance(state, Succeeded):
        return

    out_path = result_path(state)
    if out_path.exists() and not Confirm.ask(f"{out_path.name} already exists. Overwrite?", default=False):
        console.print(f"  [yellow]⚠ Kept the existing {out_path.name}[/yellow]")
        return
    try:
        out_path.write_bytes(state.result.data)
    except OSError as e:
        console.print(Panel(escape(f"Could not write {out_path}: {e}"), title="Something went wrong", border_style="red"))
        return
    console.print(f"  [green]✓ Spotlight applied[/green] → {out_path}")


async def interactive(session: SpotlightSession) -> None:
    console.print(Rule("[bold magenta]Sign Spotlight[/bold magenta]"))
    console.print(
        "Keeps the main sign in colour and turns the rest of the photo black and white.\n"
        "[dim]PNG, JPG, WEBP — max 4MB. Type q to quit.[/dim]\n"
    )

    while True:
        raw = Prompt.ask("[bold]Image path[/bold]")
        if raw.strip().lower() in QUIT_WORDS:
            break
        if not select_path(session, raw):
            continue
        if Confirm.ask("Apply spotlight effect?", default=True):
            await run_once(session)
        console.print()


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        format="%(asctime)s — %(levelname)s — %(name)s — %(message)s",
        level=logging.WARNING,
    )

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    session = SpotlightSession(SpotlightClient(api_key=settings.api_key, model=settings.model))
    try:
        asyncio.run(interactive(session))
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Bye.[/dim]")


if __name__ == "__main__":
    main()
