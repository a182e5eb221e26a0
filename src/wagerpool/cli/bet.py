"""Bet subcommand: create, fund, stake, resolve, settle, close, show, list."""

from __future__ import annotations

import typer

from wagerpool.cli._common import echo_bet, open_service

app = typer.Typer(help="Bet lifecycle operations")

CALLER = typer.Option(..., "--as", "-a", help="Caller identity")


@app.command("create")
def create(
    ctx: typer.Context,
    odds: int = typer.Option(..., "--odds", "-o", help="Owner win probability numerator"),
    stake: int = typer.Option(..., "--stake", "-s", help="Owner stake"),
    caller: str = CALLER,
) -> None:
    """Create a bet; the caller becomes the owner."""
    with open_service(ctx) as svc:
        bet = svc.create_bet(caller, odds, stake)
        typer.echo(f"Created bet {bet.bet_id} (public capacity {bet.total_public_stake})")
        typer.echo(f"Approve {bet.custody} for {bet.owner_stake} before funding.")


@app.command("fund")
def fund(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    caller: str = CALLER,
    approve: bool = typer.Option(False, "--approve", help="Approve custody for the owner stake first"),
) -> None:
    """Owner deposits the owner stake into custody."""
    with open_service(ctx) as svc:
        if approve:
            bet = svc.get_bet(bet_id)
            svc.approve(caller, bet.custody, bet.owner_stake)
        bet = svc.fund(bet_id, caller)
        typer.echo(f"Funded bet {bet.bet_id}  Phase: {bet.phase.value}")


@app.command("stake")
def stake(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    amount: int = typer.Option(..., "--amount", "-n", help="Amount to stake"),
    caller: str = CALLER,
    approve: bool = typer.Option(False, "--approve", help="Approve custody for this amount first"),
) -> None:
    """Stake on the public side."""
    with open_service(ctx) as svc:
        if approve:
            bet = svc.get_bet(bet_id)
            svc.approve(caller, bet.custody, amount)
        bet = svc.stake(bet_id, caller, amount)
        typer.echo(
            f"Staked {amount}  Public stake: {bet.current_public_stake}/{bet.total_public_stake}"
        )


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    caller: str = CALLER,
) -> None:
    """Draw the outcome (owner only)."""
    with open_service(ctx) as svc:
        bet = svc.resolve(bet_id, caller)
        typer.echo(f"Draw: {bet.draw}  Winner: {bet.winner.value}")


@app.command("settle")
def settle(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    caller: str = CALLER,
) -> None:
    """Pay out the winning side."""
    with open_service(ctx) as svc:
        bet, payouts = svc.settle(bet_id, caller)
        typer.echo(f"Settled bet {bet.bet_id}  Winner: {bet.winner.value}")
        for p in payouts:
            typer.echo(f"  {p.recipient}  {p.amount}  ({p.kind})")


@app.command("close")
def close(
    ctx: typer.Context,
    bet_id: str = typer.Argument(..., help="Bet ID"),
    caller: str = CALLER,
) -> None:
    """Close a paid bet and remove it from the store (owner only)."""
    with open_service(ctx) as svc:
        _, returned = svc.close(bet_id, caller)
        typer.echo(f"Closed bet {bet_id}  Returned to owner: {returned}")


@app.command("show")
def show(ctx: typer.Context, bet_id: str = typer.Argument(..., help="Bet ID")) -> None:
    """Show bet state and stakers."""
    with open_service(ctx) as svc:
        echo_bet(svc.get_bet(bet_id))


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    owner: str | None = typer.Option(None, "--owner", help="Filter by owner"),
) -> None:
    """List live bets."""
    with open_service(ctx) as svc:
        bets = svc.list_bets(owner=owner)
        if not bets:
            typer.echo("No bets.")
            return
        for b in bets:
            typer.echo(
                f"{b.bet_id}  {b.phase.value:<14} owner={b.owner}  odds={b.odds}/{b.odds_denominator}  "
                f"public={b.current_public_stake}/{b.total_public_stake}"
            )
