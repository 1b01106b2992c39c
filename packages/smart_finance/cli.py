# ruff: noqa: I001
"""CLI for the ``smart_finance`` package.

This module exposes callable command handlers (``cmd_add``, ``cmd_sync`` ...)
and a Typer-based console interface over them. Environment variables (notably
``OPENAI_API_KEY``) are loaded from a local ``.env`` using ``python-dotenv``
before delegating to command logic. Business logic lives in
``smart_finance.api`` and related modules.

Handlers return a process exit code and print ``Error: ...`` to stderr on
failure.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated
from zoneinfo import ZoneInfo

import typer
from dotenv import load_dotenv

from db.client import init_schema

from . import api
from .config import Settings
from .errors import FinanceError
from .logging_setup import configure_logging
from .models import Transaction
from .monobank import MonobankClient
from .stats import expense_breakdown, in_month, monthly, summarize
from .store import StoreResult


def _format_tx(tx: Transaction) -> str:
    sign = "+" if tx.type.value == "INCOME" else "-"
    line = f"{tx.date}  {sign}{tx.amount:,.2f} UAH  {tx.category}"
    if tx.original_amount is not None and tx.original_currency is not None:
        line += f"  ({tx.original_amount:,.2f} {tx.original_currency.value})"
    if tx.description:
        line += f"  {tx.description}"
    return line


def _report_store(result: StoreResult) -> None:
    if result.local_only:
        reason = getattr(result.outcome, "reason", "")
        print(f"Warning: saved locally only ({reason}).", file=sys.stderr)


def _settings() -> Settings:
    settings = Settings.from_env()
    init_schema(database_url=settings.database_url)
    return settings


# ---- Command handlers --------------------------------------------------------


def cmd_add(text: str, *, user_id: str | None = None) -> int:
    """Extract a transaction from ``text`` and store it."""

    settings = _settings()
    repo = api.build_repository(settings, user_id)
    try:
        rate = api.build_preferences(settings).get_usd_rate()
        tx, result = api.record_from_text(
            text, extractor=api.build_extractor(settings), repository=repo, rate=rate
        )
    except FinanceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        repo.close()
    print(_format_tx(tx))
    _report_store(result)
    return 0


def cmd_list(*, user_id: str | None = None, limit: int | None = None) -> int:
    settings = _settings()
    repo = api.build_repository(settings, user_id)
    try:
        result = repo.list()
    finally:
        repo.close()
    rows = result.transactions[:limit] if limit else result.transactions
    if not rows:
        print("No transactions yet.")
    for tx in rows:
        print(_format_tx(tx))
    _report_store(result)
    return 0


def cmd_sync(token: str | None, *, days: int = 30, user_id: str | None = None) -> int:
    """Import recent Monobank statement lines."""

    settings = _settings()
    repo = api.build_repository(settings, user_id)
    client = MonobankClient.create(
        base_url=settings.monobank_api_url, timeout=settings.http_timeout
    )
    try:
        result = api.sync_monobank(
            token,
            days,
            client=client,
            repository=repo,
            fallback_rate=settings.bank_fallback_rate,
            tz=settings.timezone,
        )
    except FinanceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        client.close()
        repo.close()
    print(f"Imported {result.count} new of {result.fetched} fetched transactions.")
    _report_store(result.store)
    return 0


def cmd_rate(value: str | None = None) -> int:
    """Show the USD rate, or set it when ``value`` is given."""

    prefs = api.build_preferences(_settings())
    if value is None:
        print(f"{prefs.get_usd_rate():g}")
        return 0
    try:
        rate = prefs.set_usd_rate(value)
    except FinanceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    print(f"{rate:g}")
    return 0


def cmd_stats(month: str | None = None, *, user_id: str | None = None) -> int:
    settings = _settings()
    if month is None:
        month = datetime.now(ZoneInfo(settings.timezone)).strftime("%Y-%m")
    try:
        year, mon = (int(p) for p in month.split("-"))
        if not 1 <= mon <= 12:
            raise ValueError(month)
    except ValueError:
        print(f"Error: month must look like YYYY-MM, got {month!r}", file=sys.stderr)
        return 1

    repo = api.build_repository(settings, user_id)
    try:
        transactions = repo.list().transactions
    finally:
        repo.close()
    overall = summarize(transactions)
    current = monthly(transactions, year, mon)

    print(f"Balance: {overall.balance:,.2f} UAH")
    print(f"{month}: income {current.income:,.2f}  expense {current.expense:,.2f}")
    for item in expense_breakdown(in_month(transactions, year, mon)):
        print(f"  {item.category}: {item.amount:,.2f}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Personal finance tracker: record spending from free text, import "
        "Monobank statements, and serve the Telegram Mini App API."
    ),
)

UserOpt = Annotated[
    str | None,
    typer.Option("--user", help="Owner id (e.g. tg_12345). Defaults to the local owner."),
]


@app.command("add")
def add_cmd(
    text: Annotated[str, typer.Argument(help='Free text, e.g. "Misha 200 dollars".')],
    user: UserOpt = None,
) -> None:
    """Record a transaction described in free text."""

    raise typer.Exit(cmd_add(text, user_id=user))


@app.command("list")
def list_cmd(
    user: UserOpt = None,
    limit: Annotated[int | None, typer.Option(min=1, help="Show at most N rows.")] = None,
) -> None:
    """List stored transactions, newest first."""

    raise typer.Exit(cmd_list(user_id=user, limit=limit))


@app.command("sync")
def sync_cmd(
    token: Annotated[
        str | None,
        typer.Option(envvar="MONOBANK_TOKEN", help="Monobank personal API token."),
    ] = None,
    days: Annotated[int, typer.Option(help="Days of history to import (1-365).")] = 30,
    user: UserOpt = None,
) -> None:
    """Import recent transactions from Monobank."""

    raise typer.Exit(cmd_sync(token, days=days, user_id=user))


@app.command("rate")
def rate_cmd(
    value: Annotated[str | None, typer.Argument(help="New UAH per USD rate.")] = None,
) -> None:
    """Show or set the USD to UAH rate used for free-text entries."""

    raise typer.Exit(cmd_rate(value))


@app.command("stats")
def stats_cmd(
    month: Annotated[str | None, typer.Option(help="Month as YYYY-MM.")] = None,
    user: UserOpt = None,
) -> None:
    """Show balance and the month's spending by category."""

    raise typer.Exit(cmd_stats(month, user_id=user))


@app.command("serve")
def serve_cmd(
    host: Annotated[str, typer.Option()] = "127.0.0.1",
    port: Annotated[int, typer.Option()] = 8000,
) -> None:
    """Run the HTTP API."""

    import uvicorn

    from .server import create_app

    uvicorn.run(create_app(_settings()), host=host, port=port, log_config=None)


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
