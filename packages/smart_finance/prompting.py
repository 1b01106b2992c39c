"""Prompt construction for free-text transaction extraction.

This module builds:
- The system instructions, which carry the classification policy (who counts
  as income vs. expense), the base currency and today's date.
- The user content: the known category vocabulary plus the user's message,
  delimited so the model cannot confuse the two.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .models import BASE_CURRENCY, Currency, TransactionType

BEGIN_MESSAGE = "BEGIN_USER_MESSAGE\n"
END_MESSAGE = "\nEND_USER_MESSAGE"

_CLASSIFICATION_POLICY = """\
Transaction type rules (these override everything else):

EXPENSE only for:
1. "Mother" / "mom" (Russian: "Мама", "маме", "маму") is ALWAYS an EXPENSE
   (category "Семья" or "Переводы").
2. "Uncle Vova" (Russian: "Дядя Вова", "дяде Вове") is ALWAYS an EXPENSE
   (category "Семья" or "Помощь").
3. Purchases, services, food, taxi, utilities and other spending when the
   message explicitly describes a purchase or a service.
4. Messages with verbs meaning gave / spent / paid ("отдал", "потратил",
   "заплатил", "купил") are EXPENSE when no other person is named.

INCOME for:
1. EVERY other personal name (Misha, Sasha, Olya, Ivan, Petr or any other
   name) with an amount is ALWAYS INCOME.
2. Salary and transfers from people (except Mother and Uncle Vova).
"""

_PARSING_RULES = """\
Parsing rules:
1. Decide the type (INCOME or EXPENSE) using the rules above.
2. Extract the amount as a positive number.
3. Detect the currency ({currencies}). If no currency is mentioned use {base}.
4. Pick a short, clear category (1-2 words). Reuse one of the known categories
   when it fits; otherwise invent a short new one.
5. Write a short description based on the message.
6. Detect the date. If no date is mentioned use today. Return it as
   YYYY-MM-DD.
"""


def build_system_instructions(*, today: date) -> str:
    """Return the extraction instructions for a call made on ``today``."""

    currencies = ", ".join(c.value for c in Currency)
    return (
        "You are a personal finance assistant embedded in a Telegram bot. Parse the "
        "user's message about income or spending into one transaction. "
        f"The user's main currency is {BASE_CURRENCY.value}; the secondary one is "
        f"{Currency.USD.value}.\n\n"
        + _CLASSIFICATION_POLICY
        + "\n"
        + _PARSING_RULES.format(currencies=currencies, base=BASE_CURRENCY.value)
        + f"\nToday's date: {today.isoformat()}.\n"
        + "Output JSON only that conforms to the specified schema."
    )


def build_user_content(text: str, known_categories: Sequence[str]) -> str:
    """Build the user content: category vocabulary followed by the delimited message."""

    if known_categories:
        vocab = json.dumps(list(known_categories), ensure_ascii=False)
        header = f"Known categories (prefer these spellings): {vocab}\n\n"
    else:
        header = "Known categories: none yet.\n\n"
    return header + BEGIN_MESSAGE + text + END_MESSAGE


def build_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response format for one transaction.

    Schema shape:
    {
      "amount": number,
      "currency": "UAH" | "USD",
      "category": string,
      "description": string,
      "date": string (YYYY-MM-DD),
      "type": "INCOME" | "EXPENSE"
    }
    """

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": "parsed_transaction",
        "schema": {
            "type": "object",
            "properties": {
                "amount": {"type": "number", "description": "Transaction amount"},
                "currency": {
                    "type": "string",
                    "enum": [c.value for c in Currency],
                    "description": "Transaction currency",
                },
                "category": {"type": "string", "description": "Category (1-2 words)"},
                "description": {"type": "string", "description": "Short description"},
                "date": {"type": "string", "description": "Transaction date YYYY-MM-DD"},
                "type": {
                    "type": "string",
                    "enum": [t.value for t in TransactionType],
                    "description": "Transaction type",
                },
            },
            "required": ["amount", "currency", "category", "description", "date", "type"],
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = [
    "BEGIN_MESSAGE",
    "END_MESSAGE",
    "build_response_format",
    "build_system_instructions",
    "build_user_content",
]
