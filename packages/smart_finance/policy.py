"""Deterministic part of the income/expense classification policy.

The full policy lives in the model instructions (see ``prompting``). The two
family rules hold regardless of wording, so they are re-applied here after the
model answers and a model slip cannot turn "Mom 500" into income:

- Mother / mom → EXPENSE.
- Uncle Vova → EXPENSE.

Everything else stays with the model. Spending verbs only mean EXPENSE when no
other name is involved ("Misha gave me 200" is income), and telling a name
from a word needs the model.
"""

from __future__ import annotations

import re
import unicodedata

from .logging_setup import get_logger
from .models import ParsedTransaction, TransactionType

_logger = get_logger("smart_finance.policy")

_MOTHER_RE = re.compile(r"\b(mother|mom|mum|mommy|мам[аеуыиоі]|мамой|мамочк\w*)\b")
_UNCLE_VOVA_RE = re.compile(r"\b(uncle\s+vova|дяд\w*\s+вов\w*)\b")


def _normalize(text: str) -> str:
    s = unicodedata.normalize("NFKC", text).casefold()
    return s.replace("ё", "е")


def forced_type(text: str) -> TransactionType | None:
    """Return the type the text forces, or ``None`` when the model decides."""

    s = _normalize(text)
    if _MOTHER_RE.search(s) or _UNCLE_VOVA_RE.search(s):
        return TransactionType.EXPENSE
    return None


def enforce_type(text: str, parsed: ParsedTransaction) -> ParsedTransaction:
    """Apply :func:`forced_type` to a model result."""

    forced = forced_type(text)
    if forced is None or forced == parsed.type:
        return parsed
    _logger.info("policy:type_override from=%s to=%s", parsed.type.value, forced.value)
    return parsed.model_copy(update={"type": forced})


__all__ = ["enforce_type", "forced_type"]
