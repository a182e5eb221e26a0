"""Shared CLI helpers: service lifecycle and error reporting."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from wagerpool.errors import WagerError
from wagerpool.models.bet import BetSnapshot
from wagerpool.service import BetService
from wagerpool.storage.db import get_connection, init_schema


@contextmanager
def open_service(ctx: typer.Context) -> Iterator[BetService]:
    """Open the configured database, yield a BetService, report WagerError as exit code 1."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        yield BetService.from_settings(conn, settings)
    except WagerError as e:
        typer.echo(f"Error [{e.code}]: {e.message}", err=True)
        raise typer.Exit(1)
    finally:
        conn.close()


def echo_bet(bet: BetSnapshot) -> None:
    typer.echo(f"Bet: {bet.bet_id}  Phase: {bet.phase.value}  Winner: {bet.winner.value}")
    typer.echo(f"Owner: {bet.owner}  Custody: {bet.custody}")
    typer.echo(f"Odds: {bet.odds}/{bet.odds_denominator}  Owner stake: {bet.owner_stake}")
    typer.echo(f"Public stake: {bet.current_public_stake}/{bet.total_public_stake}")
    for entry in bet.stakes:
        typer.echo(f"  {entry.identity}  {entry.amount}")
