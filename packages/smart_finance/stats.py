"""Aggregations the Mini App shows: totals, balance and per-category spend."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .models import Transaction, TransactionType


@dataclass(frozen=True, slots=True)
class Totals:
    income: float
    expense: float

    @property
    def balance(self) -> float:
        return self.income - self.expense


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    category: str
    amount: float


def summarize(transactions: Iterable[Transaction]) -> Totals:
    income = 0.0
    expense = 0.0
    for tx in transactions:
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return Totals(income=income, expense=expense)


def in_month(transactions: Iterable[Transaction], year: int, month: int) -> list[Transaction]:
    prefix = f"{year:04d}-{month:02d}-"
    return [tx for tx in transactions if tx.date.startswith(prefix)]


def monthly(transactions: Iterable[Transaction], year: int, month: int) -> Totals:
    return summarize(in_month(transactions, year, month))


def expense_breakdown(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Expense totals per category, largest first (ties by name)."""

    by_category: dict[str, float] = {}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE:
            continue
        by_category[tx.category] = by_category.get(tx.category, 0.0) + tx.amount
    return [
        CategoryTotal(category=name, amount=amount)
        for name, amount in sorted(by_category.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


__all__ = ["CategoryTotal", "Totals", "expense_breakdown", "in_month", "monthly", "summarize"]
