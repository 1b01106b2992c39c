"""Data models for ``smart_finance``.

The canonical record is :class:`Transaction`. All sources (LLM extraction of
free text, Monobank statement lines, manual edits from the UI) are converted
into it before storage.

Amount convention
-----------------
``amount`` is always a non-negative magnitude in the base currency and the
sign lives in ``type``. Inputs carrying a signed amount (the edit form sends
negative expenses, older rows may hold them too) are normalized with ``abs()``
on validation, so every record that exists in memory already follows the
convention. Use :attr:`Transaction.signed_amount` when a signed figure is
needed for balances.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable, Sequence
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TransactionType(StrEnum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Currency(StrEnum):
    UAH = "UAH"
    USD = "USD"


# Every persisted amount is denominated in this currency.
BASE_CURRENCY: Currency = Currency.UAH


def _iso_date(v: str | dt.date) -> str:
    if isinstance(v, dt.date):
        return v.isoformat()
    s = str(v).strip()
    try:
        parsed = dt.date.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"date must be YYYY-MM-DD, got {v!r}") from exc
    return parsed.isoformat()


def _finite_magnitude(v: float) -> float:
    fv = float(v)
    if not math.isfinite(fv):
        raise ValueError("amount must be a finite number")
    return abs(fv)


class Transaction(BaseModel):
    """A single canonical transaction record.

    Field names follow Python conventions; the JSON aliases are the camelCase
    names used by the Mini App (``originalAmount``, ``originalCurrency``).
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: str
    amount: float
    original_amount: float | None = Field(default=None, alias="originalAmount")
    original_currency: Currency | None = Field(default=None, alias="originalCurrency")
    category: str
    description: str = ""
    date: str
    type: TransactionType

    @field_validator("id", "category")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_magnitude(cls, v: float) -> float:
        return _finite_magnitude(v)

    @field_validator("original_amount")
    @classmethod
    def _original_magnitude(cls, v: float | None) -> float | None:
        return None if v is None else _finite_magnitude(v)

    @field_validator("date", mode="before")
    @classmethod
    def _date_iso(cls, v: str | dt.date) -> str:
        return _iso_date(v)

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, v: str | None) -> str:
        return "" if v is None else v

    @model_validator(mode="after")
    def _original_pair(self) -> Transaction:
        # A base-currency "original" carries no information; drop it so the
        # pair only ever describes a real conversion.
        if self.original_currency == BASE_CURRENCY:
            self.original_currency = None
            self.original_amount = None
        if (self.original_currency is None) != (self.original_amount is None):
            raise ValueError("originalAmount and originalCurrency must be set together")
        return self

    @property
    def signed_amount(self) -> float:
        return self.amount if self.type == TransactionType.INCOME else -self.amount

    def to_api(self) -> dict[str, object]:
        """JSON-ready mapping with camelCase keys and unset originals omitted."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ParsedTransaction(BaseModel):
    """Structured result of free-text extraction, before currency conversion."""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: float
    currency: Currency = BASE_CURRENCY
    category: str
    description: str = ""
    date: str
    type: TransactionType

    @field_validator("amount")
    @classmethod
    def _amount_magnitude(cls, v: float) -> float:
        return _finite_magnitude(v)

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("category must be non-empty")
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _date_iso(cls, v: str | dt.date) -> str:
        return _iso_date(v)


def known_categories(transactions: Iterable[Transaction]) -> list[str]:
    """Return the category vocabulary of ``transactions``.

    Deduplicated case-insensitively; the first spelling seen wins and input
    order is preserved.
    """

    seen: dict[str, str] = {}
    for tx in transactions:
        key = tx.category.casefold()
        if key not in seen:
            seen[key] = tx.category
    return list(seen.values())


def match_known_category(category: str, vocabulary: Sequence[str]) -> str:
    """Return the historical spelling of ``category`` when one exists."""

    wanted = " ".join(category.split()).casefold()
    for known in vocabulary:
        if " ".join(known.split()).casefold() == wanted:
            return known
    return category


__all__ = [
    "BASE_CURRENCY",
    "Currency",
    "ParsedTransaction",
    "Transaction",
    "TransactionType",
    "known_categories",
    "match_known_category",
]
