"""Click CLI: serve the API, run lifecycle ticks, inspect and vote on debates."""

import asyncio
import logging
import sys
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from colosseum.healthcheck import run_health_checks
from colosseum.output import (
    print_debate,
    print_debate_list,
    print_faction,
    print_tick_result,
    save_to_file,
)
from colosseum.providers import build_all_providers
from colosseum.providers.base import ProviderError
from colosseum.services import build_services
from colosseum.storage.base import DebateStore, StorageError
from colosseum.storage.supabase_store import SupabaseDebateStore
from colosseum.votes import DebateNotFoundError, InvalidVoteError, global_tally, submit_vote

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

T = TypeVar("T")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


async def _connect_store(config: AppConfig) -> DebateStore:
    return await SupabaseDebateStore.connect(config.storage)


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine, turning expected failures into a clean exit 1."""
    try:
        return asyncio.run(coro)
    except (StorageError, ProviderError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except DebateNotFoundError as exc:
        console.print(f"[bold red]Not found:[/bold red] {exc.debate_id}")
        sys.exit(1)
    except InvalidVoteError as exc:
        console.print(f"[bold red]Invalid vote:[/bold red] {exc}")
        sys.exit(2)


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True), default=None,
              help="Path to settings.yaml (default: config/settings.yaml)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Poker AI Colosseum -- GTO vs Exploit debates.

    \b
    Examples:
      colosseum serve --port 8000
      colosseum tick             # always advance the arena
      colosseum tick --auto      # dice-gated, for schedulers
      colosseum list
      colosseum vote <id> gto
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        ctx.obj = load_config(Path(config_path)) if config_path else load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


@main.command()
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", default=None, type=int, help="Port (default: from config)")
@click.pass_obj
def serve(config: AppConfig, host: str | None, port: int | None) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from colosseum.server import create_app

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
    )


@main.command()
@click.option("--auto", "auto", is_flag=True, help="Apply the posting dice roll, as a scheduler would")
@click.pass_obj
def tick(config: AppConfig, auto: bool) -> None:
    """Run one lifecycle step: continue the active debate or start a new one."""

    async def _tick():
        services = await build_services(config)
        if auto:
            return await services.controller.auto_tick()
        return await services.controller.tick()

    print_tick_result(_run(_tick()))


@main.command(name="list")
@click.option("--limit", default=None, type=int, help="Max debates (default: from config)")
@click.pass_obj
def list_debates(config: AppConfig, limit: int | None) -> None:
    """List the most recent debates, newest first."""

    async def _list():
        store = await _connect_store(config)
        return await store.list_debates(limit or config.arena.list_limit)

    print_debate_list(_run(_list()))


async def _fetch_debate(config: AppConfig, debate_id: str):
    store = await _connect_store(config)
    debate = await store.get_debate(debate_id)
    if debate is None:
        raise DebateNotFoundError(debate_id)
    return debate


@main.command()
@click.argument("debate_id")
@click.pass_obj
def show(config: AppConfig, debate_id: str) -> None:
    """Print a debate transcript."""
    print_debate(_run(_fetch_debate(config, debate_id)))


@main.command()
@click.argument("debate_id")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.pass_obj
def export(config: AppConfig, debate_id: str, output_path: str | None) -> None:
    """Save a debate transcript as markdown."""
    debate = _run(_fetch_debate(config, debate_id))
    saved = save_to_file(debate, Path(output_path) if output_path else config.export_dir)
    console.print(f"[dim]Saved to: {saved}[/dim]")


@main.command()
@click.argument("debate_id")
@click.argument("side", type=click.Choice(["gto", "exploit"], case_sensitive=False))
@click.pass_obj
def vote(config: AppConfig, debate_id: str, side: str) -> None:
    """Add one vote for SIDE on a debate."""

    async def _vote():
        store = await _connect_store(config)
        return await submit_vote(store, debate_id, side.lower())

    new_value = _run(_vote())
    console.print(f"[green]OK[/green] {side.lower()} now has {new_value} vote(s)")


@main.command()
@click.pass_obj
def faction(config: AppConfig) -> None:
    """Show global GTO vs Exploit vote shares."""

    async def _faction():
        store = await _connect_store(config)
        return await global_tally(store)

    print_faction(_run(_faction()))


@main.command(name="check-models")
@click.pass_obj
def check_models(config: AppConfig) -> None:
    """Ping every provider that has an API key."""
    providers = build_all_providers(config)
    if not providers:
        console.print("[bold red]Error:[/bold red] No providers available. Check API keys in .env.")
        sys.exit(1)

    console.print("\n[bold]Checking providers...[/bold]")
    results = asyncio.run(run_health_checks(providers))

    failed = 0
    for name in sorted(results):
        result = results[name]
        marker = " (generator)" if name == config.generator else ""
        if result.ok:
            console.print(f"  [green]OK  [/green] {name}{marker} [dim]{result.model}, {result.latency_sec:.1f}s[/dim]")
        else:
            short_err = result.error.splitlines()[0][:120] if result.error else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}{marker}: {short_err}")
            failed += 1

    if config.generator not in results:
        console.print(f"[yellow]Generator '{config.generator}' has no API key; ticks will fail.[/yellow]")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
