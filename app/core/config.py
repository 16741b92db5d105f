from functools import lru_cache
import json

from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


def parse_id_list(value: str) -> list[int]:
    ids: list[int] = []
    for item in (value or "").split(","):
        item = item.strip()
        if not item:
            continue
        try:
            ids.append(int(item))
        except ValueError:
            continue
    return list(dict.fromkeys(ids))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "McDuck Wallet"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./mcduck_wallet.db"
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True
    sqlite_busy_timeout_seconds: int = 30

    # Telegram WebApp auth
    telegram_bot_token: str = ""
    init_data_max_age_seconds: int = 86400

    # Currency catalog seed
    default_currency_code: str = "SHL"
    default_currency_name: str = "Shillings"
    default_currency_sign: str = "¤"

    # Ledger
    history_default_limit: int = 10
    history_max_limit: int = 100
    ledger_max_retries: int = 5
    ledger_retry_backoff_seconds: float = 0.05

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    auto_create_tables: bool = False
    rate_limit_enabled: bool = True

    # Ops: bootstrap admin users (comma-separated Telegram IDs). Useful before any
    # admin exists to promote others.
    bootstrap_admin_ids: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
