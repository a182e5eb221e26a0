"""Log subcommand: stats, show."""

from __future__ import annotations

import json

import typer

from wagerpool.storage.db import get_connection, init_schema
from wagerpool.storage.event_log import list_bet_events, log_stats

app = typer.Typer(help="Bet event log inspection")


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show event log statistics (counts, time range, by operation)."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        s = log_stats(conn)
        typer.echo(f"Total events: {s['total_events']}")
        typer.echo(f"Bets: {s['bet_count']}")
        typer.echo(f"Min ts: {s.get('min_ts')}")
        typer.echo(f"Max ts: {s.get('max_ts')}")
        if s.get("by_op"):
            typer.echo("By operation:")
            for row in s["by_op"]:
                typer.echo(f"  {row['op']}  {row['count']}")
    finally:
        conn.close()


@app.command("show")
def show(ctx: typer.Context, bet_id: str = typer.Argument(..., help="Bet ID")) -> None:
    """Print the operation log of one bet (also after close)."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        events = list_bet_events(conn, bet_id)
        if not events:
            typer.echo(f"No events for bet: {bet_id}")
            raise typer.Exit(1)
        for e in events:
            amount = "" if e["amount"] is None else f" {e['amount']}"
            typer.echo(f"{e['id']:>5}  {e['ts']}  {e['op']:<8} {e['actor']}{amount}  {json.dumps(e['payload'])}")
    finally:
        conn.close()
