"""User identity from Telegram Mini App init data.

The Mini App forwards ``Telegram.WebApp.initData`` (a URL-encoded query
string) in the ``X-Telegram-Init-Data`` header. When a bot token is
configured the payload signature is checked as documented by Telegram:

    secret = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash   = hex(HMAC_SHA256(key=secret, msg=data_check_string))

where ``data_check_string`` is every ``key=value`` pair except ``hash``,
sorted by key and joined with ``\\n``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from urllib.parse import parse_qsl

from .logging_setup import get_logger

_logger = get_logger("smart_finance.telegram")

USER_ID_PREFIX = "tg_"


def _signature_ok(pairs: dict[str, str], bot_token: str) -> bool:
    received = pairs.get("hash")
    if not received:
        return False
    data_check = "\n".join(f"{k}={v}" for k, v in sorted(pairs.items()) if k != "hash")
    secret = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    expected = hmac.new(secret, data_check.encode("utf-8"), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, received)


def resolve_user_id(init_data: str | None, *, bot_token: str | None = None) -> str | None:
    """Return ``tg_<telegram user id>`` or ``None`` when it cannot be derived."""

    if not init_data:
        return None
    pairs = dict(parse_qsl(init_data, keep_blank_values=True))
    if bot_token and not _signature_ok(pairs, bot_token):
        _logger.warning("telegram:init_data_rejected reason=bad_signature")
        return None
    try:
        user = json.loads(pairs.get("user") or "null")
    except json.JSONDecodeError:
        return None
    if not isinstance(user, dict):
        return None
    uid = user.get("id")
    if isinstance(uid, bool) or not isinstance(uid, int | str) or not str(uid).strip():
        return None
    return f"{USER_ID_PREFIX}{str(uid).strip()}"


__all__ = ["USER_ID_PREFIX", "resolve_user_id"]
