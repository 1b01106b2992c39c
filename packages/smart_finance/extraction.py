"""Free-text transaction extraction via the OpenAI Responses API.

Public API:
    - :class:`TransactionExtractor` (the capability boundary)
    - :class:`OpenAIExtractor` (the production implementation)

No side effects occur at import time (no client creation, no environment
reads). Tests replace the module-level ``OpenAI`` name with a stub.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from typing import Any, Protocol
from zoneinfo import ZoneInfo

import openai
from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam
from pydantic import ValidationError

from . import prompting
from .errors import (
    FinanceError,
    InputMissing,
    MalformedResponse,
    UpstreamAuthFailure,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from .logging_setup import get_logger
from .models import ParsedTransaction, match_known_category
from .policy import enforce_type

_logger = get_logger("smart_finance.extraction")


class TransactionExtractor(Protocol):
    """Turn a user's message into one structured transaction.

    Returns ``None`` when the message holds no recognizable transaction; the
    caller should ask the user to rephrase. Service failures raise
    :class:`~smart_finance.errors.FinanceError` subclasses.
    """

    def extract(self, text: str, known_categories: Sequence[str]) -> ParsedTransaction | None: ...


# ---- Internal helpers --------------------------------------------------------


def _response_text(resp: Any) -> str | None:
    """Locate the text output of a Responses SDK result.

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``.
    Returns ``None`` when the model produced no text at all.
    """

    text: str | None = getattr(resp, "output_text", None)
    if text:
        return text
    output = getattr(resp, "output", None)
    if not output:
        return None
    content = getattr(output[0], "content", None)
    if not content:
        return None
    txt_obj = getattr(content[0], "text", None)
    if isinstance(txt_obj, str):
        return txt_obj
    # Some SDK versions expose text as an object with a ``value`` string.
    maybe_val = getattr(txt_obj, "value", None)
    return maybe_val if isinstance(maybe_val, str) else None


def _translate_openai_error(exc: Exception) -> FinanceError:
    if isinstance(exc, openai.APIConnectionError):
        # Includes APITimeoutError.
        return UpstreamUnavailable("The language model service is unreachable. Try again shortly.")
    sc = getattr(exc, "status_code", None)
    if sc in (401, 403):
        return UpstreamAuthFailure("The OpenAI API key was rejected. Check OPENAI_API_KEY.")
    if sc == 429:
        return UpstreamRateLimited(
            "The language model quota or rate limit is exhausted. Wait and try again."
        )
    return UpstreamUnavailable(f"The language model service failed (HTTP {sc}). Try again later.")


def decode_parsed_transaction(text: str) -> ParsedTransaction:
    """Decode the model's JSON text; raise ``MalformedResponse`` when unusable."""

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponse() from exc
    if not isinstance(decoded, Mapping):
        raise MalformedResponse()
    try:
        parsed = ParsedTransaction.model_validate(decoded)
    except ValidationError as exc:
        raise MalformedResponse() from exc
    if parsed.amount == 0:
        raise MalformedResponse()
    return parsed


class OpenAIExtractor:
    """Extractor backed by the OpenAI Responses API with a strict JSON schema."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        timeout: float = 20.0,
        tz: str = "Europe/Kyiv",
        today: Callable[[], date] | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._tz = ZoneInfo(tz)
        self._today = today or (lambda: datetime.now(self._tz).date())

    def _create_client(self) -> OpenAI:
        # No SDK-level retries: the user decides whether to resubmit.
        return OpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)

    def extract(self, text: str, known_categories: Sequence[str]) -> ParsedTransaction | None:
        message = (text or "").strip()
        if not message:
            raise InputMissing("Type what happened, e.g. 'Misha 200 dollars'.")
        if not self._api_key:
            raise UpstreamAuthFailure("OPENAI_API_KEY is not configured on the server.")

        instructions = prompting.build_system_instructions(today=self._today())
        user_content = prompting.build_user_content(message, known_categories)
        text_cfg = ResponseTextConfigParam(format=prompting.build_response_format())

        _logger.info(
            "extract:llm chars=%d known_categories=%d", len(message), len(known_categories)
        )
        t0 = time.perf_counter()
        client = self._create_client()
        try:
            resp = client.responses.create(
                model=self._model,
                instructions=instructions,
                input=user_content,
                text=text_cfg,
            )
        except openai.OpenAIError as e:
            dt_ms = (time.perf_counter() - t0) * 1000.0
            _logger.error(
                "extract:failed latency_ms=%.2f error=%s", dt_ms, e.__class__.__name__
            )
            raise _translate_openai_error(e) from e

        raw = _response_text(resp)
        dt_ms = (time.perf_counter() - t0) * 1000.0
        if not raw or not raw.strip():
            _logger.info("extract:empty latency_ms=%.2f", dt_ms)
            return None

        parsed = enforce_type(message, decode_parsed_transaction(raw))
        parsed = parsed.model_copy(
            update={"category": match_known_category(parsed.category, known_categories)}
        )
        _logger.info(
            "extract:done latency_ms=%.2f type=%s currency=%s",
            dt_ms,
            parsed.type.value,
            parsed.currency.value,
        )
        return parsed


__all__ = [
    "OpenAIExtractor",
    "TransactionExtractor",
    "decode_parsed_transaction",
]
