"""In-memory ``TransactionExtractor`` for tests that do not exercise the LLM."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from smart_finance.models import ParsedTransaction


class FakeExtractor:
    """Return canned results keyed by the exact message text.

    Unknown messages yield ``None`` (no recognizable transaction). Every call
    is recorded as ``(text, known_categories)``.
    """

    def __init__(self, results: Mapping[str, ParsedTransaction | None] | None = None) -> None:
        self.results = dict(results or {})
        self.calls: list[tuple[str, list[str]]] = []

    def extract(self, text: str, known_categories: Sequence[str]) -> ParsedTransaction | None:
        self.calls.append((text, list(known_categories)))
        return self.results.get(text)
