"""Monobank personal API client.

Two endpoints are used, both authenticated with the user's personal token in
the ``X-Token`` header:

- ``GET /personal/client-info`` → accounts
- ``GET /personal/statement/{account}/{from}/{to}`` → statement lines for a
  unix-second range

HTTP failures are translated into the package error taxonomy here so callers
never handle ``httpx`` exceptions: ``403`` means the token is invalid and
``429`` means the (strict) Monobank rate limit was hit.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import (
    InputMissing,
    MalformedResponse,
    NoAccountsFound,
    UpstreamAuthFailure,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from .logging_setup import get_logger
from .normalizers import StatementItem

_logger = get_logger("smart_finance.monobank")

SECONDS_PER_DAY = 24 * 60 * 60
MIN_SYNC_DAYS = 1
MAX_SYNC_DAYS = 365


class MonobankAccount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    sendId: str | None = None
    balance: int = 0
    creditLimit: int = 0
    type: str | None = None
    currencyCode: int = 980
    cashbackType: str | None = None
    maskedPan: list[str] = []
    iban: str | None = None


def clamp_days(days: int) -> int:
    return max(MIN_SYNC_DAYS, min(MAX_SYNC_DAYS, int(days)))


class MonobankClient:
    """Thin synchronous client over an injected ``httpx.Client``."""

    def __init__(self, http_client: httpx.Client) -> None:
        self._http = http_client

    @classmethod
    def create(cls, *, base_url: str, timeout: float = 20.0) -> MonobankClient:
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def close(self) -> None:
        self._http.close()

    def _get(self, path: str, token: str) -> Any:
        if not token or not token.strip():
            raise InputMissing("Enter your Monobank token in settings.")
        try:
            resp = self._http.get(path, headers={"X-Token": token.strip()})
        except httpx.HTTPError as e:
            _logger.error("monobank:request_failed path=%s error=%s", path, e.__class__.__name__)
            raise UpstreamUnavailable("Monobank is unreachable. Try again later.") from e

        if resp.status_code == 403:
            raise UpstreamAuthFailure("Invalid Monobank token. Check the token in settings.")
        if resp.status_code == 429:
            raise UpstreamRateLimited("Monobank request limit exceeded. Wait a minute.")
        if resp.status_code >= 400:
            _logger.error("monobank:http_error path=%s status=%d", path, resp.status_code)
            raise UpstreamUnavailable(f"Monobank API error: {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponse("Monobank returned a response that is not JSON.") from e

    def client_info(self, token: str) -> list[MonobankAccount]:
        body = self._get("/personal/client-info", token)
        accounts = body.get("accounts") if isinstance(body, dict) else None
        try:
            return [MonobankAccount.model_validate(a) for a in accounts or []]
        except ValidationError as e:
            raise MalformedResponse("Monobank returned malformed account data.") from e

    def statement(self, token: str, account_id: str, from_ts: int, to_ts: int) -> list[Any]:
        """Return raw statement lines; normalization validates each one."""

        body = self._get(f"/personal/statement/{account_id}/{from_ts}/{to_ts}", token)
        if body is None:
            return []
        if not isinstance(body, list):
            raise MalformedResponse("Monobank returned a statement that is not a list.")
        return body

    def fetch_recent(
        self,
        token: str,
        days: int,
        *,
        now: Callable[[], float] = time.time,
    ) -> list[Any]:
        """Fetch the last ``days`` days of the first account's statement."""

        accounts = self.client_info(token)
        if not accounts:
            raise NoAccountsFound()
        account = accounts[0]
        to_ts = int(now())
        from_ts = to_ts - clamp_days(days) * SECONDS_PER_DAY
        lines = self.statement(token, account.id, from_ts, to_ts)
        _logger.info(
            "monobank:statement account_currency=%d days=%d lines=%d",
            account.currencyCode,
            clamp_days(days),
            len(lines),
        )
        return lines


__all__ = [
    "MAX_SYNC_DAYS",
    "MIN_SYNC_DAYS",
    "MonobankAccount",
    "MonobankClient",
    "StatementItem",
    "clamp_days",
]
