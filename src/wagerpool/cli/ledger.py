"""Ledger subcommand: mint, approve, balance (reference DuckDB ledger)."""

from __future__ import annotations

import typer

from wagerpool.cli._common import open_service

app = typer.Typer(help="Reference ledger balances and allowances")


@app.command("mint")
def mint(
    ctx: typer.Context,
    identity: str = typer.Argument(..., help="Account to credit"),
    amount: int = typer.Argument(..., help="Amount"),
) -> None:
    """Credit an account."""
    with open_service(ctx) as svc:
        balance = svc.mint(identity, amount)
        typer.echo(f"{identity}: {balance}")


@app.command("approve")
def approve(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Account granting the allowance"),
    spender: str = typer.Argument(..., help="Spender (e.g. bet custody bet:<id>)"),
    amount: int = typer.Argument(..., help="Allowance"),
) -> None:
    """Set an allowance."""
    with open_service(ctx) as svc:
        if not svc.approve(owner, spender, amount):
            typer.echo("Approve rejected", err=True)
            raise typer.Exit(1)
        typer.echo(f"{owner} -> {spender}: {svc.allowance(owner, spender)}")


@app.command("balance")
def balance(ctx: typer.Context, identity: str = typer.Argument(..., help="Account")) -> None:
    """Show an account balance."""
    with open_service(ctx) as svc:
        typer.echo(f"{identity}: {svc.balance(identity)}")
