"""Public orchestration for the ``smart_finance`` pipeline.

The two ingestion paths:

- :func:`parse_transaction` / :func:`record_from_text`: free text → LLM
  extraction → currency conversion → store.
- :func:`sync_monobank`: Monobank statement → normalization → de-duplication
  against a store snapshot → store.

Plus the factories that wire a :class:`~smart_finance.config.Settings` object
into concrete collaborators. Nothing here reads the environment.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from .config import PreferencesStore, Settings
from .currency import to_transaction
from .errors import InputMissing, MalformedResponse
from .extraction import OpenAIExtractor, TransactionExtractor
from .logging_setup import get_logger
from .models import ParsedTransaction, Transaction, known_categories
from .monobank import MonobankClient, clamp_days
from .normalizers import normalize_statement
from .reconcile import filter_new
from .store import (
    LocalTransactionStore,
    StoreResult,
    SupabaseTransactionStore,
    TransactionRepository,
)

_logger = get_logger("smart_finance.api")


# ---- Wiring -----------------------------------------------------------------


def build_extractor(settings: Settings) -> OpenAIExtractor:
    return OpenAIExtractor(
        api_key=settings.openai_api_key,
        model=settings.model,
        timeout=settings.http_timeout,
        tz=settings.timezone,
    )


def build_repository(settings: Settings, user_id: str | None) -> TransactionRepository:
    """Local cache always; Supabase when configured and the user is known."""

    local = LocalTransactionStore(database_url=settings.database_url, owner_id=user_id)
    remote = None
    url, anon_key = settings.supabase_url, settings.supabase_anon_key
    if url and anon_key and user_id:
        remote = SupabaseTransactionStore.create(
            url=url,
            anon_key=anon_key,
            table=settings.supabase_table,
            user_id=user_id,
            timeout=settings.http_timeout,
        )
    return TransactionRepository(
        local, remote, remote_configured=settings.remote_store_configured
    )


def build_preferences(settings: Settings) -> PreferencesStore:
    return PreferencesStore(
        database_url=settings.database_url, default_rate=settings.default_usd_rate
    )


# ---- Free-text path ---------------------------------------------------------


def parse_transaction(
    text: str | None,
    existing: Iterable[Transaction],
    *,
    extractor: TransactionExtractor,
) -> ParsedTransaction | None:
    """Extract one transaction from ``text`` using the history's categories."""

    if not text or not text.strip():
        raise InputMissing("Text was not provided.")
    return extractor.extract(text.strip(), known_categories(existing))


def record_from_text(
    text: str | None,
    *,
    extractor: TransactionExtractor,
    repository: TransactionRepository,
    rate: float,
) -> tuple[Transaction, StoreResult]:
    """Extract, convert with the user's ``rate`` and persist a transaction.

    Raises ``MalformedResponse`` when the text holds no recognizable
    transaction.
    """

    snapshot = repository.list().transactions
    parsed = parse_transaction(text, snapshot, extractor=extractor)
    if parsed is None:
        raise MalformedResponse()
    tx = to_transaction(parsed, rate)
    result = repository.create(tx)
    _logger.info(
        "record_from_text:stored id=%s type=%s local_only=%s",
        tx.id,
        tx.type.value,
        result.local_only,
    )
    return tx, result


# ---- Bank-sync path ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SyncResult:
    added: list[Transaction]
    fetched: int
    store: StoreResult

    @property
    def count(self) -> int:
        return len(self.added)


def sync_monobank(
    token: str | None,
    days: int,
    *,
    client: MonobankClient,
    repository: TransactionRepository,
    fallback_rate: float,
    tz: str,
    now: Callable[[], float] = time.time,
) -> SyncResult:
    """Import the last ``days`` days from Monobank, skipping already-stored lines.

    The whole statement is normalized before anything is written, so a
    malformed line aborts the import with nothing persisted.
    """

    if not token or not token.strip():
        raise InputMissing("Enter your Monobank token in settings.")
    days = clamp_days(days)
    lines = client.fetch_recent(token, days, now=now)
    normalized = normalize_statement(lines, fallback_rate=fallback_rate, tz=ZoneInfo(tz))

    # Snapshot taken right before the write; dedup is computed against it.
    snapshot = repository.list().transactions
    fresh = filter_new(snapshot, normalized)
    result = repository.create_many(fresh)
    _logger.info(
        "sync_monobank:done days=%d fetched=%d added=%d local_only=%s",
        days,
        len(normalized),
        len(fresh),
        result.local_only,
    )
    return SyncResult(added=fresh, fetched=len(normalized), store=result)


__all__ = [
    "SyncResult",
    "build_extractor",
    "build_preferences",
    "build_repository",
    "parse_transaction",
    "record_from_text",
    "sync_monobank",
]
