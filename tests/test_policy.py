from __future__ import annotations

import pytest

from smart_finance.models import ParsedTransaction, TransactionType
from smart_finance.policy import enforce_type, forced_type


@pytest.mark.parametrize(
    "text",
    [
        "Mother 500",
        "mom 1000 uah",
        "Gave mum 300",
        "Мама 500",
        "маме 200 грн",
        "Uncle Vova 100 dollars",
        "Дядя Вова 1000",
        "дяде Вове 50$",
    ],
)
def test_expense_forced(text: str) -> None:
    assert forced_type(text) is TransactionType.EXPENSE


@pytest.mark.parametrize(
    "text",
    [
        "Misha 200 dollars",
        "Саша 1500",
        "Olya 300",
        "Salary 40000",
        "Vova 100",
        "momentum 5",
        "Spent 120 on taxi",
        "Отдал 300 за обед",
    ],
)
def test_names_and_other_text_left_to_model(text: str) -> None:
    assert forced_type(text) is None


def _parsed(tx_type: str) -> ParsedTransaction:
    return ParsedTransaction(
        amount=500, category="Семья", description="", date="2025-03-01", type=tx_type
    )


def test_enforce_type_overrides_model_slip() -> None:
    out = enforce_type("Mom 500", _parsed("INCOME"))
    assert out.type is TransactionType.EXPENSE
    assert out.amount == 500


def test_enforce_type_keeps_model_answer_when_not_forced() -> None:
    parsed = _parsed("INCOME")
    assert enforce_type("Misha 500", parsed) is parsed


@pytest.mark.parametrize(
    "text",
    ["Misha gave me 200 dollars", "Миша отдал долг 500", "Sasha paid me back 300"],
)
def test_named_sender_with_spending_verb_stays_income(text: str) -> None:
    assert enforce_type(text, _parsed("INCOME")).type is TransactionType.INCOME


@pytest.mark.parametrize("text", ["Spent 120 on taxi", "Купила хлеб 40"])
def test_model_expense_for_purchases_is_kept(text: str) -> None:
    parsed = _parsed("EXPENSE")
    assert enforce_type(text, parsed) is parsed
