from __future__ import annotations

import pytest

from smart_finance.mcc import (
    FALLBACK_EXPENSE_CATEGORY,
    FALLBACK_INCOME_CATEGORY,
    MCC_CATEGORIES,
    category_for_mcc,
)
from smart_finance.models import TransactionType


@pytest.mark.parametrize(
    ("mcc", "label"),
    [(5411, "Продукты"), (5812, "Ресторан"), (4121, "Такси"), (5912, "Аптека"), (5541, "Бензин")],
)
def test_curated_codes(mcc: int, label: str) -> None:
    assert category_for_mcc(mcc, TransactionType.EXPENSE) == label
    # The curated label wins over the type.
    assert category_for_mcc(mcc, TransactionType.INCOME) == label


def test_unknown_code_falls_back_on_type() -> None:
    assert 1234 not in MCC_CATEGORIES
    assert category_for_mcc(1234, TransactionType.INCOME) == "Income"
    assert category_for_mcc(1234, TransactionType.EXPENSE) == "Expense"
    assert FALLBACK_INCOME_CATEGORY == "Income"
    assert FALLBACK_EXPENSE_CATEGORY == "Expense"


def test_zero_and_plain_string_type() -> None:
    assert category_for_mcc(0, "INCOME") == "Income"  # type: ignore[arg-type]
    assert category_for_mcc(0, "EXPENSE") == "Expense"  # type: ignore[arg-type]
