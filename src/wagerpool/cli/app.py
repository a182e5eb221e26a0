"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from wagerpool.config import get_settings
from wagerpool.config.settings import configure_logging

app = typer.Typer(
    name="wager",
    help="WagerPool - two-sided pari-mutuel bets: create, fund, stake, resolve, settle.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
    db_path: str | None = typer.Option(None, "--db", help="DuckDB path (overrides storage.db_path)"),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    if db_path:
        settings.storage["db_path"] = db_path
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from wagerpool.cli import api_cmd, bet, ledger, log  # noqa: E402

app.add_typer(bet.app, name="bet")
app.add_typer(ledger.app, name="ledger")
app.add_typer(log.app, name="log")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
