# ruff: noqa: I001
"""Transaction store: local SQLAlchemy cache plus optional Supabase remote.

Every operation returns the full resulting collection (read-modify-return)
wrapped in a :class:`StoreResult` whose ``outcome`` says where the write
landed:

- ``Persisted(backend)``: the authoritative backend accepted it (``"remote"``
  when Supabase is configured and the user identity resolves, else
  ``"local"``).
- ``PersistedLocalOnly(reason)``: the remote was expected but failed or the
  identity could not be resolved; the local cache holds the change and the
  two stores may now differ.

The local cache is written on every operation regardless of the remote, so it
is always a superset of what this process has seen.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.finance import SfTransaction
from .errors import TransactionNotFound
from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("smart_finance.store")

ANONYMOUS_OWNER = "local"


# ---------------------------------------------------------------------------
# Result variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Persisted:
    backend: str


@dataclass(frozen=True, slots=True)
class PersistedLocalOnly:
    reason: str


type StoreOutcome = Persisted | PersistedLocalOnly


@dataclass(frozen=True, slots=True)
class StoreResult:
    transactions: list[Transaction]
    outcome: StoreOutcome

    @property
    def local_only(self) -> bool:
        return isinstance(self.outcome, PersistedLocalOnly)

    def to_api(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "transactions": [tx.to_api() for tx in self.transactions],
            "localOnly": self.local_only,
        }
        if isinstance(self.outcome, Persisted):
            body["backend"] = self.outcome.backend
        else:
            body["backend"] = "local"
            body["reason"] = self.outcome.reason
        return body


# ---------------------------------------------------------------------------
# Local cache (SQLAlchemy)
# ---------------------------------------------------------------------------


def _row_to_tx(row: SfTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        amount=row.amount,
        original_amount=row.original_amount,
        original_currency=row.original_currency,
        category=row.category,
        description=row.description,
        date=row.date,
        type=row.type,
    )


def _apply(row: SfTransaction, tx: Transaction) -> None:
    row.amount = tx.amount
    row.original_amount = tx.original_amount
    row.original_currency = tx.original_currency.value if tx.original_currency else None
    row.category = tx.category
    row.description = tx.description
    row.date = dt.date.fromisoformat(tx.date)
    row.type = tx.type.value
    row.updated_at = func.now()


class LocalTransactionStore:
    """Per-owner transaction rows in the local database."""

    def __init__(self, *, database_url: str, owner_id: str | None) -> None:
        self._database_url = database_url
        self.owner_id = owner_id or ANONYMOUS_OWNER

    def _upsert(self, session: Session, tx: Transaction) -> None:
        row = session.get(SfTransaction, (self.owner_id, tx.id))
        if row is None:
            row = SfTransaction(owner_id=self.owner_id, id=tx.id)
            session.add(row)
        _apply(row, tx)

    def list(self) -> list[Transaction]:
        with session_scope(database_url=self._database_url) as session:
            rows = session.execute(
                select(SfTransaction)
                .where(SfTransaction.owner_id == self.owner_id)
                .order_by(SfTransaction.date.desc(), SfTransaction.created_at.desc())
            ).scalars()
            return [_row_to_tx(r) for r in rows]

    def upsert_many(self, transactions: Iterable[Transaction]) -> None:
        with session_scope(database_url=self._database_url) as session:
            for tx in transactions:
                self._upsert(session, tx)

    def update(self, tx: Transaction) -> bool:
        with session_scope(database_url=self._database_url) as session:
            row = session.get(SfTransaction, (self.owner_id, tx.id))
            if row is None:
                return False
            _apply(row, tx)
            return True

    def delete(self, tx_id: str) -> bool:
        with session_scope(database_url=self._database_url) as session:
            res = session.execute(
                delete(SfTransaction).where(
                    SfTransaction.owner_id == self.owner_id, SfTransaction.id == tx_id
                )
            )
            return bool(res.rowcount)


# ---------------------------------------------------------------------------
# Remote store (Supabase PostgREST)
# ---------------------------------------------------------------------------


class RemoteStoreError(Exception):
    """Raised by :class:`SupabaseTransactionStore` on any failed call."""


def _to_remote_row(tx: Transaction, user_id: str) -> dict[str, Any]:
    return {
        "id": tx.id,
        "user_id": user_id,
        "amount": tx.amount,
        "original_amount": tx.original_amount,
        "original_currency": tx.original_currency.value if tx.original_currency else None,
        "category": tx.category,
        "description": tx.description,
        "date": tx.date,
        "type": tx.type.value,
    }


class SupabaseTransactionStore:
    """Row-per-transaction table keyed by ``user_id`` behind Supabase REST."""

    def __init__(self, http_client: httpx.Client, *, table: str, user_id: str) -> None:
        self._http = http_client
        self._path = f"/rest/v1/{table}"
        self.user_id = user_id

    @classmethod
    def create(
        cls, *, url: str, anon_key: str, table: str, user_id: str, timeout: float = 20.0
    ) -> SupabaseTransactionStore:
        http = httpx.Client(
            base_url=url.rstrip("/"),
            timeout=timeout,
            headers={
                "apikey": anon_key,
                "Authorization": f"Bearer {anon_key}",
                "Content-Type": "application/json",
            },
        )
        return cls(http, table=table, user_id=user_id)

    def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._http.request(method, self._path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} failed: {e.__class__.__name__}") from e
        if resp.status_code >= 400:
            raise RemoteStoreError(f"{method} failed: HTTP {resp.status_code}")
        return resp

    def _own(self, tx_id: str) -> dict[str, str]:
        return {"id": f"eq.{tx_id}", "user_id": f"eq.{self.user_id}"}

    def list(self) -> list[Transaction]:
        resp = self._request(
            "GET",
            params={"user_id": f"eq.{self.user_id}", "select": "*", "order": "date.desc"},
        )
        try:
            rows = resp.json()
            return [Transaction.model_validate(r) for r in rows]
        except (ValueError, TypeError, ValidationError) as e:
            raise RemoteStoreError("GET returned malformed rows") from e

    def insert_many(self, transactions: Sequence[Transaction]) -> None:
        if not transactions:
            return
        self._request(
            "POST",
            json=[_to_remote_row(tx, self.user_id) for tx in transactions],
            headers={"Prefer": "return=minimal,resolution=merge-duplicates"},
        )

    def update(self, tx: Transaction) -> None:
        row = _to_remote_row(tx, self.user_id)
        del row["id"], row["user_id"]
        self._request(
            "PATCH", params=self._own(tx.id), json=row, headers={"Prefer": "return=minimal"}
        )

    def delete(self, tx_id: str) -> None:
        self._request("DELETE", params=self._own(tx_id), headers={"Prefer": "return=minimal"})

    def close(self) -> None:
        self._http.close()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TransactionRepository:
    """CRUD over the canonical collection with explicit backend reporting."""

    def __init__(
        self,
        local: LocalTransactionStore,
        remote: SupabaseTransactionStore | None = None,
        *,
        remote_configured: bool | None = None,
    ) -> None:
        self.local = local
        self.remote = remote
        # A configured remote without a resolvable user still counts as "expected".
        self._remote_expected = remote is not None if remote_configured is None else remote_configured

    def _unavailable_reason(self) -> str | None:
        if self.remote is None:
            return "user identity unavailable" if self._remote_expected else None
        return None

    def _result(self, remote_error: str | None) -> StoreResult:
        if remote_error is not None:
            return StoreResult(self.local.list(), PersistedLocalOnly(remote_error))
        reason = self._unavailable_reason()
        if reason is not None:
            return StoreResult(self.local.list(), PersistedLocalOnly(reason))
        if self.remote is None:
            return StoreResult(self.local.list(), Persisted("local"))
        try:
            remote_rows = self.remote.list()
        except RemoteStoreError as e:
            _logger.warning("store:remote_list_failed error=%s", e)
            return StoreResult(self.local.list(), PersistedLocalOnly(str(e)))
        # Keep the cache warm with whatever the remote knows.
        self.local.upsert_many(remote_rows)
        return StoreResult(remote_rows, Persisted("remote"))

    def _remote_write(self, op: str, fn: Any, *args: Any) -> str | None:
        if self.remote is None:
            return None
        try:
            fn(*args)
        except RemoteStoreError as e:
            _logger.warning("store:remote_%s_failed error=%s falling_back=local", op, e)
            return str(e)
        return None

    def list(self) -> StoreResult:
        return self._result(None)

    def create(self, tx: Transaction) -> StoreResult:
        return self.create_many([tx])

    def create_many(self, transactions: Sequence[Transaction]) -> StoreResult:
        items = list(transactions)
        self.local.upsert_many(items)
        err = None
        if items and self.remote is not None:
            err = self._remote_write("insert", self.remote.insert_many, items)
        _logger.info("store:create count=%d", len(items))
        return self._result(err)

    def update(self, tx: Transaction) -> StoreResult:
        """Replace an existing record; the remote may hold rows this cache has not seen."""

        if not self.local.update(tx):
            if self.remote is None:
                raise TransactionNotFound()
            _logger.warning("store:update_missing_local id=%s", tx.id)
        err = self._remote_write("update", self.remote.update, tx) if self.remote else None
        return self._result(err)

    def delete(self, tx_id: str) -> StoreResult:
        self.local.delete(tx_id)
        err = self._remote_write("delete", self.remote.delete, tx_id) if self.remote else None
        return self._result(err)

    def close(self) -> None:
        if self.remote is not None:
            self.remote.close()


__all__ = [
    "ANONYMOUS_OWNER",
    "LocalTransactionStore",
    "Persisted",
    "PersistedLocalOnly",
    "RemoteStoreError",
    "StoreOutcome",
    "StoreResult",
    "SupabaseTransactionStore",
    "TransactionRepository",
]
