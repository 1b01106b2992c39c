from __future__ import annotations

import httpx
import pytest

from smart_finance.errors import TransactionNotFound
from smart_finance.models import Transaction
from smart_finance.store import (
    LocalTransactionStore,
    Persisted,
    PersistedLocalOnly,
    RemoteStoreError,
    SupabaseTransactionStore,
    TransactionRepository,
)
from tests.helpers.fake_http import SUPABASE_URL, FakeSupabase


def _tx(tx_id: str = "t1", **kw: object) -> Transaction:
    base: dict[str, object] = {
        "id": tx_id,
        "amount": 8300,
        "originalAmount": 200,
        "originalCurrency": "USD",
        "category": "Переводы",
        "description": "From Misha",
        "date": "2025-03-02",
        "type": "INCOME",
    }
    base.update(kw)
    return Transaction.model_validate(base)


def _local(database_url: str, owner: str | None = None) -> LocalTransactionStore:
    return LocalTransactionStore(database_url=database_url, owner_id=owner)


# ---- Local only ---------------------------------------------------------------


def test_create_then_list_round_trips_every_field(database_url: str) -> None:
    repo = TransactionRepository(_local(database_url))
    tx = _tx()
    result = repo.create(tx)

    assert result.outcome == Persisted("local")
    assert result.local_only is False
    assert result.transactions == [tx]
    assert repo.list().transactions == [tx]


def test_list_is_newest_date_first(database_url: str) -> None:
    repo = TransactionRepository(_local(database_url))
    repo.create(_tx("old", date="2025-01-01"))
    repo.create(_tx("new", date="2025-03-01"))
    repo.create(_tx("mid", date="2025-02-01"))
    assert [t.id for t in repo.list().transactions] == ["new", "mid", "old"]


def test_update_and_delete(database_url: str) -> None:
    repo = TransactionRepository(_local(database_url))
    repo.create_many([_tx("a"), _tx("b", amount=10, originalAmount=None, originalCurrency=None)])

    edited = _tx("a", amount=-120, type="EXPENSE", category="Кафе", originalAmount=None, originalCurrency=None)
    after_update = {t.id: t for t in repo.update(edited).transactions}
    assert after_update["a"].amount == 120
    assert after_update["a"].category == "Кафе"
    assert after_update["a"].original_currency is None

    assert [t.id for t in repo.delete("a").transactions] == ["b"]
    # Deleting again is a no-op.
    assert [t.id for t in repo.delete("a").transactions] == ["b"]


def test_update_of_unknown_id_is_not_found(database_url: str) -> None:
    repo = TransactionRepository(_local(database_url))
    repo.create(_tx("a"))
    with pytest.raises(TransactionNotFound) as exc:
        repo.update(_tx("gone"))
    assert exc.value.status_code == 404
    assert [t.id for t in repo.list().transactions] == ["a"]


def test_create_same_id_upserts(database_url: str) -> None:
    repo = TransactionRepository(_local(database_url))
    repo.create(_tx("a", description="first"))
    repo.create(_tx("a", description="second"))
    (only,) = repo.list().transactions
    assert only.description == "second"


def test_owners_are_isolated(database_url: str) -> None:
    TransactionRepository(_local(database_url, "tg_1")).create(_tx("a"))
    TransactionRepository(_local(database_url, "tg_2")).create(_tx("b"))
    assert [t.id for t in TransactionRepository(_local(database_url, "tg_1")).list().transactions] == ["a"]
    assert TransactionRepository(_local(database_url)).list().transactions == []


def test_missing_identity_with_remote_configured(database_url: str) -> None:
    repo = TransactionRepository(_local(database_url), None, remote_configured=True)
    result = repo.create(_tx())
    assert result.outcome == PersistedLocalOnly("user identity unavailable")
    assert result.transactions == [_tx()]
    assert result.to_api()["localOnly"] is True
    assert result.to_api()["reason"] == "user identity unavailable"


# ---- With Supabase ------------------------------------------------------------


def test_remote_success_reports_remote_and_warms_cache(database_url: str) -> None:
    remote = FakeSupabase()
    repo = TransactionRepository(_local(database_url, "tg_42"), remote.store("tg_42"))

    result = repo.create(_tx())
    assert result.outcome == Persisted("remote")
    assert result.to_api()["backend"] == "remote"
    assert result.transactions == [_tx()]
    (row,) = remote.rows
    assert row["user_id"] == "tg_42"
    assert row["original_currency"] == "USD"
    assert _local(database_url, "tg_42").list() == [_tx()]


def test_remote_rows_from_other_devices_are_cached(database_url: str) -> None:
    remote = FakeSupabase()
    remote.store("tg_42").insert_many([_tx("from-phone")])
    repo = TransactionRepository(_local(database_url, "tg_42"), remote.store("tg_42"))

    assert [t.id for t in repo.list().transactions] == ["from-phone"]
    assert [t.id for t in _local(database_url, "tg_42").list()] == ["from-phone"]


def test_remote_update_and_delete(database_url: str) -> None:
    remote = FakeSupabase()
    repo = TransactionRepository(_local(database_url, "tg_42"), remote.store("tg_42"))
    repo.create_many([_tx("a"), _tx("b")])

    repo.update(_tx("a", category="Семья", type="EXPENSE"))
    assert {r["id"]: r["category"] for r in remote.rows}["a"] == "Семья"

    result = repo.delete("b")
    assert [t.id for t in result.transactions] == ["a"]
    assert [r["id"] for r in remote.rows] == ["a"]


def test_remote_failure_degrades_to_local(database_url: str) -> None:
    remote = FakeSupabase(fail_with=503)
    repo = TransactionRepository(_local(database_url, "tg_42"), remote.store("tg_42"))

    result = repo.create(_tx())
    assert isinstance(result.outcome, PersistedLocalOnly)
    assert "HTTP 503" in result.outcome.reason
    assert result.transactions == [_tx()]
    body = result.to_api()
    assert body["localOnly"] is True and body["backend"] == "local"


def test_remote_list_failure_degrades_to_local(database_url: str) -> None:
    _local(database_url, "tg_42").upsert_many([_tx("cached")])
    repo = TransactionRepository(_local(database_url, "tg_42"), FakeSupabase(fail_with=500).store())
    result = repo.list()
    assert result.local_only
    assert [t.id for t in result.transactions] == ["cached"]


def test_supabase_store_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out")

    store = SupabaseTransactionStore(
        httpx.Client(transport=httpx.MockTransport(handler), base_url=SUPABASE_URL),
        table="transactions",
        user_id="tg_1",
    )
    with pytest.raises(RemoteStoreError, match="ConnectTimeout"):
        store.list()


def test_supabase_store_sends_owner_filter() -> None:
    remote = FakeSupabase()
    remote.store("tg_7").list()
    (req,) = remote.requests
    assert req.url.path == "/rest/v1/transactions"
    assert req.url.params["user_id"] == "eq.tg_7"
    assert req.url.params["order"] == "date.desc"


def test_create_many_empty_skips_remote_write(database_url: str) -> None:
    remote = FakeSupabase()
    repo = TransactionRepository(_local(database_url, "tg_42"), remote.store("tg_42"))
    result = repo.create_many([])
    assert result.transactions == []
    assert all(r.method == "GET" for r in remote.requests)
