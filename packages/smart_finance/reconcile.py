"""De-duplication of freshly fetched records against the stored collection.

The only identity used is ``Transaction.id``. Bank-sourced records get the
deterministic ``mono_<bank id>`` ID, so a line imported once is recognized on
every later sync.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import Transaction


def filter_new(existing: Iterable[Transaction], incoming: Iterable[Transaction]) -> list[Transaction]:
    """Return the records of ``incoming`` whose ``id`` is not yet stored.

    Repeated IDs inside ``incoming`` are collapsed to their first occurrence.
    Input order is preserved.
    """

    seen = {tx.id for tx in existing}
    fresh: list[Transaction] = []
    for tx in incoming:
        if tx.id in seen:
            continue
        seen.add(tx.id)
        fresh.append(tx)
    return fresh


def find_duplicate_ids(transactions: Iterable[Transaction]) -> list[str]:
    """Return IDs that occur more than once (sorted)."""

    counts: dict[str, int] = {}
    for tx in transactions:
        counts[tx.id] = counts.get(tx.id, 0) + 1
    return sorted(k for k, n in counts.items() if n > 1)


__all__ = ["filter_new", "find_duplicate_ids"]
