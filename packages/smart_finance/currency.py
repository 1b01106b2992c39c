"""Currency normalization into the base (storage) currency.

Pure functions; the caller supplies the current user-configured rate.
"""

from __future__ import annotations

import math
import uuid

from .errors import InvalidAmount
from .models import BASE_CURRENCY, Currency, ParsedTransaction, Transaction


def _positive_number(raw: object, what: str) -> float:
    if isinstance(raw, bool):
        raise InvalidAmount(f"Invalid {what}: {raw!r}")
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidAmount(f"Invalid {what}: {raw!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount(f"{what.capitalize()} must be a positive number, got {raw!r}")
    return value


def normalize(amount: object, currency: Currency | str, rate: object) -> float:
    """Convert ``amount`` in ``currency`` to the base currency.

    Base currency amounts are returned unchanged whatever ``rate`` is; USD
    amounts are multiplied by ``rate``.
    """

    value = _positive_number(amount, "amount")
    try:
        cur = Currency(currency)
    except ValueError as exc:
        raise InvalidAmount(f"Unsupported currency: {currency!r}") from exc
    if cur == BASE_CURRENCY:
        return value
    converted = value * _positive_number(rate, "rate")
    if not math.isfinite(converted):
        raise InvalidAmount(f"Amount {amount!r} {cur.value} is too large to convert")
    return converted


def to_transaction(parsed: ParsedTransaction, rate: float, *, tx_id: str | None = None) -> Transaction:
    """Build the canonical record for an extracted transaction.

    ``originalAmount``/``originalCurrency`` are only set when a conversion
    actually happened.
    """

    converted = parsed.currency != BASE_CURRENCY
    return Transaction(
        id=tx_id or str(uuid.uuid4()),
        amount=normalize(parsed.amount, parsed.currency, rate),
        original_amount=parsed.amount if converted else None,
        original_currency=parsed.currency if converted else None,
        category=parsed.category,
        description=parsed.description,
        date=parsed.date,
        type=parsed.type,
    )


__all__ = ["normalize", "to_transaction"]
