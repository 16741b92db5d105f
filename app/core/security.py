"""Telegram WebApp init-data verification.

The web dashboard forwards the ``initData`` string Telegram hands to the
WebApp. It is a query string signed with a key derived from the bot token:

    secret = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash   = hex(HMAC_SHA256(key=secret, msg=data_check_string))

where ``data_check_string`` is every ``key=value`` pair except ``hash``,
sorted by key and joined with newlines.
"""

from dataclasses import dataclass
import hashlib
import hmac
import json
import time
from urllib.parse import parse_qsl


class InitDataError(ValueError):
    pass


@dataclass(frozen=True)
class Principal:
    telegram_id: int
    username: str


def _secret_key(bot_token: str) -> bytes:
    return hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()


def data_check_string(values: dict[str, str]) -> str:
    return "\n".join(f"{key}={values[key]}" for key in sorted(values) if key != "hash")


def sign_init_data(values: dict[str, str], bot_token: str) -> str:
    return hmac.new(_secret_key(bot_token), data_check_string(values).encode(), hashlib.sha256).hexdigest()


def validate_init_data(
    init_data: str,
    bot_token: str,
    *,
    max_age_seconds: int | None = None,
    now: float | None = None,
) -> Principal:
    if not init_data:
        raise InitDataError("Missing init data")
    if not bot_token:
        raise InitDataError("Bot token is not configured")

    values = dict(parse_qsl(init_data, keep_blank_values=True))
    received = values.get("hash") or ""
    expected = sign_init_data(values, bot_token)
    if not received or not hmac.compare_digest(expected, received):
        raise InitDataError("Invalid init data")

    if max_age_seconds:
        try:
            auth_date = int(values.get("auth_date") or 0)
        except ValueError:
            raise InitDataError("Invalid auth_date")
        current = time.time() if now is None else now
        if auth_date <= 0 or current - auth_date > max_age_seconds:
            raise InitDataError("Init data expired")

    try:
        user = json.loads(values.get("user") or "")
        telegram_id = int(user["id"])
    except (TypeError, ValueError, KeyError):
        raise InitDataError("Invalid user data")
    return Principal(telegram_id=telegram_id, username=str(user.get("username") or ""))
