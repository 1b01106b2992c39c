"""Merchant category code (MCC) to category label lookup."""

from __future__ import annotations

from .models import TransactionType

# Curated codes only; anything else falls back to the type label below.
MCC_CATEGORIES: dict[int, str] = {
    # Food & restaurants
    5812: "Ресторан",
    5814: "Ресторан",
    5811: "Ресторан",
    5411: "Продукты",
    5499: "Продукты",
    # Transport
    4121: "Такси",
    4111: "Транспорт",
    4112: "Транспорт",
    4131: "Транспорт",
    # Health
    5912: "Аптека",
    8011: "Врач",
    8021: "Врач",
    8041: "Врач",
    # Utilities
    4900: "Коммуналка",
    4814: "Коммуналка",
    # Stores
    5311: "Покупки",
    5310: "Покупки",
    5331: "Покупки",
    5399: "Покупки",
    # Entertainment
    7832: "Кино",
    7833: "Кино",
    7911: "Развлечения",
    7922: "Развлечения",
    # Fuel
    5542: "Бензин",
    5541: "Бензин",
}

FALLBACK_INCOME_CATEGORY = "Income"
FALLBACK_EXPENSE_CATEGORY = "Expense"


def category_for_mcc(mcc: int, tx_type: TransactionType) -> str:
    """Return the category label for ``mcc``, falling back on ``tx_type``."""

    label = MCC_CATEGORIES.get(mcc)
    if label is not None:
        return label
    if tx_type == TransactionType.INCOME:
        return FALLBACK_INCOME_CATEGORY
    return FALLBACK_EXPENSE_CATEGORY


__all__ = [
    "FALLBACK_EXPENSE_CATEGORY",
    "FALLBACK_INCOME_CATEGORY",
    "MCC_CATEGORIES",
    "category_for_mcc",
]
