"""CLI interface for TokenPulse."""

import asyncio
import logging
import time

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import CLAUDE_DIR, DASHBOARD_HOST, DASHBOARD_PORT, DEFAULT_DAYS, MAX_DAYS, resolve_paths
from .engine import UsageEngine
from .sessions import iter_today_session_files

console = Console()


@click.group()
@click.version_option(__version__)
@click.option(
    "--claude-dir",
    default=str(CLAUDE_DIR),
    show_default=True,
    type=click.Path(file_okay=False),
    help="Claude Code config directory",
)
@click.pass_context
def cli(ctx, claude_dir):
    """TokenPulse - Claude Code token usage, live from session logs."""
    ctx.obj = UsageEngine(resolve_paths(claude_dir))


@cli.command()
@click.option("--host", default=DASHBOARD_HOST, help="Dashboard host")
@click.option("--port", default=DASHBOARD_PORT, help="Dashboard port")
@click.option("--log-level", default="info", type=click.Choice(["debug", "info", "warning", "error"]))
@click.pass_obj
def serve(engine, host, port, log_level):
    """Start the dashboard API server."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    from .dashboard_app import create_dashboard_app

    console.print(f"[bold green]TokenPulse v{__version__}[/]")
    console.print(f"  Dashboard:  http://{host}:{port}")
    console.print(f"  Stats file: {engine.paths.stats_file}")
    console.print(f"  Projects:   {engine.paths.projects_dir}")
    console.print()

    uvicorn.run(create_dashboard_app(engine), host=host, port=port, log_level=log_level)


@cli.command()
@click.pass_obj
def stats(engine):
    """Show all-time totals with today's live usage."""
    metrics = asyncio.run(engine.get_dashboard_metrics())
    if metrics is None:
        console.print(f"[red]Claude Code stats file not found at {engine.paths.stats_file}[/]")
        console.print("[dim]Make sure Claude Code is installed and has been used at least once[/dim]")
        raise SystemExit(1)

    console.print("\n[bold]TokenPulse Stats[/]\n")
    console.print(f"  Sessions: {metrics.total_sessions:,}   Messages: {metrics.total_messages:,}")
    console.print(
        f"  Today:    {metrics.today_messages:,} messages, {metrics.today_tool_calls:,} tool calls, "
        f"{metrics.today_input_tokens:,} in / {metrics.today_output_tokens:,} out"
    )
    console.print()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Model", style="white")
    table.add_column("Input Tokens", justify="right")
    table.add_column("Output Tokens", justify="right")
    table.add_column("Cache Read", justify="right")
    table.add_column("Total", justify="right", style="yellow")

    for m in metrics.model_breakdown:
        table.add_row(
            m.model,
            f"{m.input_tokens:,}",
            f"{m.output_tokens:,}",
            f"{m.cache_read_tokens:,}",
            f"{m.total_tokens:,}",
        )

    table.add_section()
    table.add_row(
        "[bold]TOTAL[/]",
        f"[bold]{metrics.total_input_tokens:,}[/]",
        f"[bold]{metrics.total_output_tokens:,}[/]",
        f"[bold]{metrics.total_cache_read_tokens:,}[/]",
        f"[bold yellow]{metrics.total_input_tokens + metrics.total_output_tokens:,}[/]",
    )
    console.print(table)
    console.print()


@cli.command()
@click.option("--files", is_flag=True, help="List the session files counted today")
@click.pass_obj
def today(engine, files):
    """Show today's usage parsed live from session logs."""
    live = asyncio.run(engine.get_live_usage())

    table = Table(show_header=True, header_style="bold cyan", title="Today (live)")
    table.add_column("Messages", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Cache Write", justify="right")
    table.add_column("Cache Read", justify="right")
    table.add_row(
        f"{live.message_count:,}",
        f"{live.input_tokens:,}",
        f"{live.output_tokens:,}",
        f"{live.cache_creation_tokens:,}",
        f"{live.cache_read_tokens:,}",
    )
    console.print(table)

    if files:
        for path in iter_today_session_files(engine.paths.projects_dir):
            console.print(f"[dim]{path}[/dim]", soft_wrap=True)


@cli.command()
@click.option("--days", "-d", default=DEFAULT_DAYS, type=click.IntRange(1, MAX_DAYS), help="Days to show")
@click.pass_obj
def daily(engine, days):
    """Show daily activity from the stats snapshot."""
    activity = asyncio.run(engine.get_daily_activity(days))
    if not activity:
        console.print("[yellow]No daily activity recorded[/]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date", style="dim")
    table.add_column("Messages", justify="right")
    table.add_column("Sessions", justify="right")
    table.add_column("Tool Calls", justify="right")
    for a in activity:
        table.add_row(
            a.date.isoformat(),
            f"{a.message_count:,}",
            f"{a.session_count:,}",
            f"{a.tool_call_count:,}",
        )
    console.print(table)


@cli.command()
@click.pass_obj
def info(engine):
    """Show where the stats snapshot lives and how fresh it is."""
    fi = asyncio.run(engine.get_file_info())
    if not fi.exists:
        console.print(f"[red]Stats file not found:[/] {fi.path}")
        return
    console.print(f"[green]Stats file:[/] {fi.path}")
    console.print(f"  Size:          {fi.size:,} bytes")
    console.print(f"  Last modified: {fi.last_modified.isoformat(timespec='seconds')}")
    computed = fi.last_computed_date.isoformat() if fi.last_computed_date else "-"
    console.print(f"  Computed for:  {computed}")


@cli.command()
@click.pass_obj
def watch(engine):
    """Print a summary every time the stats snapshot changes."""

    def on_change(snapshot):
        stamp = time.strftime("%H:%M:%S")
        if snapshot is None:
            console.print(f"[dim]{stamp}[/] [yellow]stats file unreadable[/]")
            return
        console.print(
            f"[dim]{stamp}[/] sessions={snapshot.total_sessions:,} "
            f"messages={snapshot.total_messages:,} computed={snapshot.last_computed_date}"
        )

    if not engine.reader.exists():
        console.print(f"[red]Cannot watch non-existent file: {engine.paths.stats_file}[/]")
        raise SystemExit(1)

    unsubscribe = engine.watch(on_change)
    console.print(f"[green]Watching {engine.paths.stats_file}[/] (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        unsubscribe()


@cli.command()
@click.option("--port", default=DASHBOARD_PORT, help="Dashboard port")
def status(port):
    """Check if the TokenPulse dashboard is running."""
    import httpx

    try:
        resp = httpx.get(f"http://localhost:{port}/health", timeout=3)
        if resp.status_code == 200:
            console.print(f"[green]TokenPulse dashboard is running on port {port}[/]")
        else:
            console.print(f"[yellow]Dashboard responded with status {resp.status_code}[/]")
    except httpx.HTTPError:
        console.print(f"[red]TokenPulse dashboard is not running on port {port}[/]")
