"""Runtime configuration for ``smart_finance``.

``Settings`` is an explicit object built once by an entrypoint (CLI or server
factory) and passed down; library modules never read the environment
themselves. Entrypoints load a local ``.env`` with ``python-dotenv`` before
calling :meth:`Settings.from_env`.

The user-editable exchange rate is not part of ``Settings``; it lives in the
local database and is read/written through :class:`PreferencesStore`.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import select

from db.client import session_scope
from db.models.finance import SfSetting

from .errors import InvalidAmount
from .logging_setup import get_logger

_logger = get_logger("smart_finance.config")

DEFAULT_USD_RATE: float = 41.5
# Rate applied by the bank-sync path to USD statement lines. Kept separate from
# the user rate on purpose; see DESIGN.md before unifying the two.
DEFAULT_BANK_FALLBACK_RATE: float = 40.0
DEFAULT_MODEL: str = "gpt-4o-mini"
MONOBANK_API_URL: str = "https://api.monobank.ua"


class Settings(BaseModel):
    """Process configuration resolved from the environment."""

    model_config = ConfigDict(frozen=True)

    openai_api_key: str | None = None
    model: str = DEFAULT_MODEL
    database_url: str = "sqlite:///smart_finance.db"
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    supabase_table: str = "transactions"
    telegram_bot_token: str | None = None
    monobank_api_url: str = MONOBANK_API_URL
    timezone: str = "Europe/Kyiv"
    default_usd_rate: float = DEFAULT_USD_RATE
    bank_fallback_rate: float = DEFAULT_BANK_FALLBACK_RATE
    http_timeout: float = 20.0

    @field_validator("default_usd_rate", "bank_fallback_rate", "http_timeout")
    @classmethod
    def _positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("must be a positive number")
        return v

    @property
    def remote_store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        def _get(name: str) -> str | None:
            val = env.get(name)
            return val.strip() if val and val.strip() else None

        values: dict[str, object] = {
            "openai_api_key": _get("OPENAI_API_KEY"),
            "supabase_url": _get("SUPABASE_URL"),
            "supabase_anon_key": _get("SUPABASE_ANON_KEY"),
            "telegram_bot_token": _get("TELEGRAM_BOT_TOKEN"),
        }
        optional = {
            "model": "SMART_FINANCE_MODEL",
            "database_url": "SMART_FINANCE_DATABASE_URL",
            "supabase_table": "SUPABASE_TABLE",
            "monobank_api_url": "MONOBANK_API_URL",
            "timezone": "SMART_FINANCE_TIMEZONE",
            "default_usd_rate": "SMART_FINANCE_DEFAULT_RATE",
            "bank_fallback_rate": "SMART_FINANCE_BANK_FALLBACK_RATE",
            "http_timeout": "SMART_FINANCE_HTTP_TIMEOUT",
        }
        for field, env_name in optional.items():
            val = _get(env_name)
            if val is not None:
                values[field] = val
        return cls.model_validate(values)


def parse_rate(raw: object) -> float:
    """Parse a user-entered rate; raise ``InvalidAmount`` unless finite and > 0."""

    if isinstance(raw, bool):
        raise InvalidAmount(f"Invalid rate: {raw!r}")
    # Accept "41,5" as typed on a Ukrainian keyboard.
    try:
        value = float(str(raw).strip().replace(",", "."))
    except ValueError as exc:
        raise InvalidAmount(f"Invalid rate: {raw!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount(f"Rate must be a positive number, got {raw!r}")
    return value


_RATE_KEY = "smart_finance_usd_rate"


class PreferencesStore:
    """Storage port for user-editable preferences (currently the USD rate)."""

    def __init__(self, *, database_url: str, default_rate: float = DEFAULT_USD_RATE) -> None:
        self._database_url = database_url
        self._default_rate = default_rate

    def get_usd_rate(self) -> float:
        with session_scope(database_url=self._database_url) as session:
            row = session.execute(
                select(SfSetting.value).where(SfSetting.key == _RATE_KEY)
            ).scalar_one_or_none()
        if row is None:
            return self._default_rate
        try:
            return parse_rate(row)
        except InvalidAmount:
            _logger.warning("preferences:bad_stored_rate value=%r using_default", row)
            return self._default_rate

    def set_usd_rate(self, raw: object) -> float:
        """Validate and persist a new rate. The previous value stays on failure."""

        rate = parse_rate(raw)
        with session_scope(database_url=self._database_url) as session:
            row = session.get(SfSetting, _RATE_KEY)
            if row is None:
                session.add(SfSetting(key=_RATE_KEY, value=repr(rate)))
            else:
                row.value = repr(rate)
        _logger.info("preferences:usd_rate_set rate=%s", rate)
        return rate


__all__ = [
    "DEFAULT_BANK_FALLBACK_RATE",
    "DEFAULT_USD_RATE",
    "PreferencesStore",
    "Settings",
    "parse_rate",
]
