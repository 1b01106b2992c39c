"""FastAPI service behind the Telegram Mini App.

Endpoints:
  POST   /api/parse-transaction        text -> structured transaction (not stored)
  POST   /api/sync-monobank            import recent Monobank lines (deduplicated)
  GET    /api/transactions             list
  POST   /api/transactions             create
  POST   /api/transactions/from-text   extract + convert + store
  PUT    /api/transactions/{id}        full replace
  DELETE /api/transactions/{id}        delete
  GET    /api/settings/rate            current USD rate
  PUT    /api/settings/rate            update USD rate
  GET    /api/stats                    totals and per-category spend
  GET    /health                       health check

Every error body is ``{"error": <message>}``. The caller's identity comes
from the ``X-Telegram-Init-Data`` header.

Run (dev): smart-finance serve --port 8000
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Annotated, Any
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from db.client import init_schema

from . import api
from .config import PreferencesStore, Settings
from .errors import FinanceError, InputMissing, MalformedResponse
from .extraction import TransactionExtractor
from .logging_setup import get_logger
from .models import Transaction
from .monobank import MonobankClient
from .stats import expense_breakdown, in_month, monthly, summarize
from .store import TransactionRepository
from .telegram import resolve_user_id

_logger = get_logger("smart_finance.server")

type RepositoryFactory = Callable[[str | None], TransactionRepository]


# ---- Request bodies ---------------------------------------------------------


class ParseRequest(BaseModel):
    text: str | None = None
    existingTransactions: list[Transaction] = Field(default_factory=list)


class SyncRequest(BaseModel):
    token: str | None = None
    days: int = 30


class TextRequest(BaseModel):
    text: str | None = None


class RateRequest(BaseModel):
    rate: float | str | None = None


# ---- Dependencies -----------------------------------------------------------


def get_user_id(
    request: Request,
    x_telegram_init_data: Annotated[str | None, Header()] = None,
) -> str | None:
    settings: Settings = request.app.state.settings
    return resolve_user_id(x_telegram_init_data, bot_token=settings.telegram_bot_token)


def get_repository(
    request: Request, user_id: Annotated[str | None, Depends(get_user_id)]
) -> Iterator[TransactionRepository]:
    factory: RepositoryFactory = request.app.state.repository_factory
    repo = factory(user_id)
    try:
        yield repo
    finally:
        repo.close()


def get_preferences(request: Request) -> PreferencesStore:
    return request.app.state.preferences


def get_extractor(request: Request) -> TransactionExtractor:
    return request.app.state.extractor


def get_monobank(request: Request) -> MonobankClient:
    return request.app.state.monobank


Repo = Annotated[TransactionRepository, Depends(get_repository)]
Prefs = Annotated[PreferencesStore, Depends(get_preferences)]
Extractor = Annotated[TransactionExtractor, Depends(get_extractor)]


# ---- App factory ------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    extractor: TransactionExtractor | None = None,
    monobank: MonobankClient | None = None,
    repository_factory: RepositoryFactory | None = None,
) -> FastAPI:
    """Build the application; collaborators default to the ones ``settings`` describes."""

    settings = settings or Settings.from_env()
    init_schema(database_url=settings.database_url)
    owns_monobank = monobank is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_monobank:
            app.state.monobank.close()

    app = FastAPI(title="smart-finance", lifespan=lifespan)
    app.state.settings = settings
    app.state.extractor = api.build_extractor(settings) if extractor is None else extractor
    app.state.monobank = (
        MonobankClient.create(base_url=settings.monobank_api_url, timeout=settings.http_timeout)
        if monobank is None
        else monobank
    )
    app.state.preferences = api.build_preferences(settings)
    app.state.repository_factory = repository_factory or (
        lambda user_id: api.build_repository(settings, user_id)
    )

    @app.exception_handler(FinanceError)
    async def _finance_error(_: Request, exc: FinanceError) -> JSONResponse:
        _logger.info("request:error kind=%s status=%d", exc.__class__.__name__, exc.status_code)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        msg = first.get("msg", "invalid request")
        return JSONResponse(status_code=400, content={"error": f"{where}: {msg}" if where else msg})

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "remoteStore": settings.remote_store_configured}

    @app.post("/api/parse-transaction")
    def parse_transaction(body: ParseRequest, extractor: Extractor) -> dict[str, Any]:
        parsed = api.parse_transaction(body.text, body.existingTransactions, extractor=extractor)
        if parsed is None:
            raise MalformedResponse()
        return parsed.model_dump(mode="json")

    @app.post("/api/sync-monobank")
    def sync_monobank(
        body: SyncRequest,
        repo: Repo,
        client: Annotated[MonobankClient, Depends(get_monobank)],
    ) -> dict[str, Any]:
        result = api.sync_monobank(
            body.token,
            body.days,
            client=client,
            repository=repo,
            fallback_rate=settings.bank_fallback_rate,
            tz=settings.timezone,
        )
        return {
            "success": True,
            "transactions": [tx.to_api() for tx in result.added],
            "count": result.count,
            "fetched": result.fetched,
            "backend": result.store.to_api()["backend"],
            "localOnly": result.store.local_only,
        }

    @app.get("/api/transactions")
    def list_transactions(repo: Repo) -> dict[str, Any]:
        return repo.list().to_api()

    @app.post("/api/transactions")
    def create_transaction(tx: Transaction, repo: Repo) -> dict[str, Any]:
        return repo.create(tx).to_api()

    @app.post("/api/transactions/from-text")
    def create_from_text(
        body: TextRequest, repo: Repo, prefs: Prefs, extractor: Extractor
    ) -> dict[str, Any]:
        tx, result = api.record_from_text(
            body.text, extractor=extractor, repository=repo, rate=prefs.get_usd_rate()
        )
        return {"transaction": tx.to_api(), **result.to_api()}

    @app.put("/api/transactions/{tx_id}")
    def update_transaction(tx_id: str, tx: Transaction, repo: Repo) -> dict[str, Any]:
        return repo.update(tx.model_copy(update={"id": tx_id})).to_api()

    @app.delete("/api/transactions/{tx_id}")
    def delete_transaction(tx_id: str, repo: Repo) -> dict[str, Any]:
        return repo.delete(tx_id).to_api()

    @app.get("/api/settings/rate")
    def get_rate(prefs: Prefs) -> dict[str, float]:
        return {"rate": prefs.get_usd_rate()}

    @app.put("/api/settings/rate")
    def put_rate(body: RateRequest, prefs: Prefs) -> dict[str, float]:
        if body.rate is None:
            raise InputMissing("Rate was not provided.")
        return {"rate": prefs.set_usd_rate(body.rate)}

    @app.get("/api/stats")
    def stats(
        repo: Repo,
        month: Annotated[str | None, Query(pattern=r"^\d{4}-\d{2}$")] = None,
    ) -> dict[str, Any]:
        transactions = repo.list().transactions
        if month is None:
            month = datetime.now(ZoneInfo(settings.timezone)).strftime("%Y-%m")
        year, mon = (int(p) for p in month.split("-"))
        overall = summarize(transactions)
        current = monthly(transactions, year, mon)
        breakdown = expense_breakdown(in_month(transactions, year, mon))
        return {
            "month": month,
            "total": {
                "income": overall.income,
                "expense": overall.expense,
                "balance": overall.balance,
            },
            "monthly": {
                "income": current.income,
                "expense": current.expense,
                "balance": current.balance,
            },
            "categories": [{"name": c.category, "amount": c.amount} for c in breakdown],
        }

    return app


def main() -> None:
    """Run the API with uvicorn (``python -m smart_finance.server``)."""

    import os
    from pathlib import Path

    import uvicorn
    from dotenv import load_dotenv

    from .logging_setup import configure_logging

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()
    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


__all__ = ["create_app", "main"]


if __name__ == "__main__":  # pragma: no cover
    main()
