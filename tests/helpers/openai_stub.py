"""Test helpers to stub the OpenAI Responses client used by extraction.py.

``OpenAIStub`` replies with a fixed payload (or raises) and records each
``responses.create`` call so tests can inspect the prompt and schema that were
sent. ``install`` patches it over ``smart_finance.extraction.OpenAI``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import httpx
import pytest

_OPENAI_URL = "https://api.openai.com/v1/responses"


def parsed_payload(**overrides: Any) -> str:
    """JSON text shaped like the strict ``parsed_transaction`` schema."""

    body: dict[str, Any] = {
        "amount": 200,
        "currency": "USD",
        "category": "Переводы",
        "description": "From Misha",
        "date": "2025-03-02",
        "type": "INCOME",
    }
    body.update(overrides)
    return json.dumps(body, ensure_ascii=False)


def openai_request() -> httpx.Request:
    return httpx.Request("POST", _OPENAI_URL)


def openai_response(status: int) -> httpx.Response:
    return httpx.Response(status, request=openai_request())


class OpenAIStub:
    """Minimal stand-in for ``openai.OpenAI`` exposing ``responses.create``.

    Parameters
    ----------
    reply:
        Text returned as ``output_text``, or an exception instance to raise.
    """

    def __init__(self, reply: str | Exception) -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []
        self.client_kwargs: list[Mapping[str, Any]] = []

        stub = self

        class _Responses:
            def create(self, **kwargs: Any) -> Any:
                stub.calls.append(kwargs)
                if isinstance(stub.reply, Exception):
                    raise stub.reply

                class _Resp:
                    output_text: str

                resp = _Resp()
                resp.output_text = stub.reply
                return resp

        class _Client:
            def __init__(self, *a: Any, **kw: Any) -> None:
                stub.client_kwargs.append(kw)
                self.responses = _Responses()

        self.client_class = _Client


def install(monkeypatch: pytest.MonkeyPatch, reply: str | Exception) -> OpenAIStub:
    import smart_finance.extraction as extraction_mod

    stub = OpenAIStub(reply)
    monkeypatch.setattr(extraction_mod, "OpenAI", stub.client_class)
    return stub
