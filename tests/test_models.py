from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from smart_finance.models import (
    Transaction,
    TransactionType,
    known_categories,
    match_known_category,
)


def _tx(**kw: object) -> Transaction:
    base: dict[str, object] = {
        "id": "t1",
        "amount": 150,
        "category": "Продукты",
        "description": "Сільпо",
        "date": "2025-03-03",
        "type": "EXPENSE",
    }
    base.update(kw)
    return Transaction.model_validate(base)


def test_signed_amount_from_edit_form_is_normalized_to_magnitude() -> None:
    tx = _tx(amount=-150)
    assert tx.amount == 150
    assert tx.signed_amount == -150
    assert _tx(type="INCOME").signed_amount == 150


def test_camel_case_aliases_round_trip() -> None:
    tx = Transaction.model_validate(
        {
            "id": "t2",
            "amount": 8300,
            "originalAmount": 200,
            "originalCurrency": "USD",
            "category": "Переводы",
            "date": "2025-03-02",
            "type": "INCOME",
        }
    )
    assert tx.original_amount == 200
    assert Transaction.model_validate(tx.to_api()) == tx


def test_base_currency_original_is_dropped() -> None:
    tx = _tx(originalAmount=150, originalCurrency="UAH")
    assert tx.original_amount is None
    assert tx.original_currency is None


def test_original_pair_must_be_complete() -> None:
    with pytest.raises(ValidationError):
        _tx(originalAmount=10)


@pytest.mark.parametrize("bad", ["03/03/2025", "2025-13-01", ""])
def test_date_must_be_iso(bad: str) -> None:
    with pytest.raises(ValidationError):
        _tx(date=bad)


def test_date_object_accepted() -> None:
    assert _tx(date=dt.date(2025, 1, 5)).date == "2025-01-05"


@pytest.mark.parametrize("field", ["id", "category"])
def test_required_text_fields_non_empty(field: str) -> None:
    with pytest.raises(ValidationError):
        _tx(**{field: "   "})


def test_type_values() -> None:
    assert _tx(type="INCOME").type is TransactionType.INCOME
    with pytest.raises(ValidationError):
        _tx(type="TRANSFER")


def test_known_categories_dedupes_case_insensitively() -> None:
    txs = [_tx(category="Кафе"), _tx(category="кафе"), _tx(category="Такси"), _tx(category="Кафе")]
    assert known_categories(txs) == ["Кафе", "Такси"]


def test_match_known_category_prefers_history_spelling() -> None:
    assert match_known_category("  такси ", ["Такси", "Кафе"]) == "Такси"
    assert match_known_category("Books", ["Такси"]) == "Books"
