"""Monobank statement → canonical transaction normalizer.

Rules
-----
- Currency: numeric code ``840`` is USD; every other code is treated as the
  base currency.
- Amounts arrive in minor units (kopecks/cents) and are divided by 100.
- USD lines are converted with the *bank fallback rate* passed in by the
  caller, not the user's rate (see DESIGN.md, open question on rates).
- Sign: negative raw amount means ``EXPENSE``, otherwise ``INCOME``; the
  stored amount is the magnitude.
- Category comes from the MCC table via :func:`smart_finance.mcc.category_for_mcc`.
- Date is the local calendar day of the unix timestamp in ``tz``.
- ID is ``mono_<bank id>`` so re-importing the same line is idempotent.

A batch is all-or-nothing: one malformed line fails the whole import.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import MalformedResponse
from .mcc import category_for_mcc
from .models import BASE_CURRENCY, Currency, Transaction, TransactionType

MONO_ID_PREFIX = "mono_"
USD_NUMERIC_CODE = 840
DEFAULT_DESCRIPTION = "Транзакция Monobank"


class StatementItem(BaseModel):
    """One line of ``GET /personal/statement`` as returned by Monobank."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    time: int
    description: str | None = None
    mcc: int = 0
    hold: bool = False
    amount: int
    operationAmount: int | None = None
    currencyCode: int
    commissionRate: int = 0
    cashbackAmount: int | None = None
    balance: int | None = None
    comment: str | None = None


def mono_id(raw_id: str) -> str:
    return f"{MONO_ID_PREFIX}{raw_id}"


def _currency_for_code(code: int) -> Currency:
    return Currency.USD if code == USD_NUMERIC_CODE else BASE_CURRENCY


def normalize_statement_item(
    item: StatementItem, *, fallback_rate: float, tz: ZoneInfo
) -> Transaction:
    currency = _currency_for_code(item.currencyCode)
    tx_type = TransactionType.EXPENSE if item.amount < 0 else TransactionType.INCOME
    major = abs(item.amount) / 100
    converted = currency != BASE_CURRENCY
    local_day = datetime.fromtimestamp(item.time, tz=tz).date()

    return Transaction(
        id=mono_id(item.id),
        amount=major * fallback_rate if converted else major,
        original_amount=major if converted else None,
        original_currency=currency if converted else None,
        category=category_for_mcc(item.mcc, tx_type),
        description=(item.description or "").strip() or DEFAULT_DESCRIPTION,
        date=local_day.isoformat(),
        type=tx_type,
    )


def normalize_statement(
    items: Iterable[Mapping[str, Any] | StatementItem],
    *,
    fallback_rate: float,
    tz: ZoneInfo,
) -> list[Transaction]:
    """Normalize a whole statement; raise ``MalformedResponse`` on any bad line."""

    out: list[Transaction] = []
    for pos, raw in enumerate(items):
        try:
            item = raw if isinstance(raw, StatementItem) else StatementItem.model_validate(raw)
            out.append(normalize_statement_item(item, fallback_rate=fallback_rate, tz=tz))
        except (ValidationError, ValueError, OverflowError, OSError) as exc:
            raw_id = raw.id if isinstance(raw, StatementItem) else (
                raw.get("id") if isinstance(raw, Mapping) else None
            )
            raise MalformedResponse(
                f"Monobank returned a malformed statement line at position {pos} "
                f"(id={raw_id!r}); nothing was imported."
            ) from exc
    return out


__all__ = [
    "DEFAULT_DESCRIPTION",
    "MONO_ID_PREFIX",
    "StatementItem",
    "mono_id",
    "normalize_statement",
    "normalize_statement_item",
]
