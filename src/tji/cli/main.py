"""Main CLI application."""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tji.cli.config_commands import config
from tji.core.config import ConfigManager
from tji.core.exceptions import ConfigurationError
from tji.core.log import LogBroadcaster, setup_logging
from tji.toggl.client import TogglClient
from tji.toggl.models import TogglEntry

console = Console()
error_console = Console(stderr=True)

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"]


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {escape(message)}")
    sys.exit(1)


def load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(ctx.obj.get("config_path"))
    except ConfigurationError as e:
        fail(str(e))


def get_client(ctx: click.Context) -> TogglClient:
    """Build a client from the configuration, sharing the CLI's log broadcaster."""
    try:
        return TogglClient.from_config(load_config(ctx), ctx.obj["broadcaster"])
    except ConfigurationError as e:
        fail(f"{e}. Set it with: tji config set toggl.api_token <token>")


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 0:
        return "running"
    seconds = int(seconds)

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


def format_tags(tags: Any) -> str:
    """Format the tags field, whatever shape Toggl sent it in."""
    if not tags:
        return ""
    if isinstance(tags, (list, tuple)):
        return ", ".join(str(t) for t in tags)
    return str(tags)


def format_datetime(dt: Optional[datetime]) -> str:
    """Format datetime for display."""
    if dt is None:
        return ""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "config_path", help="Custom config file", type=click.Path())
@click.option("-v", "--verbose", is_flag=True, help="Show log messages as they happen")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool, no_color: bool) -> None:
    """TJI - Toggl time entry client.

    Log in to Toggl and list your tracked time entries.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if no_color:
        console.no_color = True
        error_console.no_color = True

    broadcaster = LogBroadcaster()
    ctx.obj["broadcaster"] = broadcaster

    if verbose:
        broadcaster.subscribe(lambda message: error_console.print(f"[dim]{escape(message)}[/dim]"))
        setup_logging("DEBUG")
    elif ctx.invoked_subcommand != "config":
        cfg = load_config(ctx)
        log_file = cfg.get("logging.file")
        setup_logging(cfg.get("logging.level", "INFO"), Path(log_file).expanduser() if log_file else None)


cli.add_command(config)


@cli.command()
@click.pass_context
def login(ctx: click.Context) -> None:
    """Check the configured API token by logging in and out.

    Example:
        tji login
    """
    client = get_client(ctx)
    client.log_in()
    if not client.is_logged_in:
        fail("Could not log in to Toggl")

    console.print("[green]✓[/green] Logged in to Toggl")
    client.log_out()
    if client.encountered_error:
        error_console.print("[yellow]Warning:[/yellow] Log out from Toggl failed")


@cli.command()
@click.option("--from", "from_time", type=click.DateTime(DATE_FORMATS), help="Range start (default: today)")
@click.option("--to", "to_time", type=click.DateTime(DATE_FORMATS), help="Range end (default: now)")
@click.pass_context
def entries(ctx: click.Context, from_time: Optional[datetime], to_time: Optional[datetime]) -> None:
    """List Toggl time entries in a date range.

    Entries of 30 seconds or less are not shown.

    Example:
        tji entries
        tji entries --from 2024-03-01 --to 2024-03-08
    """
    now = datetime.now()
    if from_time is None:
        from_time = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if to_time is None:
        to_time = now

    client = get_client(ctx)
    errors: list[str] = []
    client.fetching_entries_failed.subscribe(errors.append)

    client.log_in()
    if not client.is_logged_in:
        fail("Could not log in to Toggl")

    try:
        result = client.get_entries(from_time, to_time)
    finally:
        client.log_out()

    if result is None:
        fail(f"Fetching entries failed: {errors[-1] if errors else 'unknown error'}")

    if not result:
        console.print("[yellow]No entries found[/yellow]")
        return

    print_entries(result)


def print_entries(result: list[TogglEntry]) -> None:
    table = Table(title=f"Toggl Entries (showing {len(result)})")
    table.add_column("ID", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("Duration", style="magenta")
    table.add_column("Description", style="bold")
    table.add_column("Tags", style="green")

    for entry in result:
        table.add_row(
            str(entry.id),
            format_datetime(entry.start),
            format_duration(entry.duration),
            escape(entry.description or ""),
            escape(format_tags(entry.tags)),
        )

    console.print(table)
    total = sum(entry.duration for entry in result)
    console.print(f"\nTotal: {format_duration(total)}")


if __name__ == "__main__":
    cli(obj={})
