import logging

from fastapi import Depends, Header, HTTPException

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import InitDataError, Principal, validate_init_data
from app.services.ledger import LedgerEngine

logger = logging.getLogger(__name__)

_ledger: LedgerEngine | None = None


def build_ledger(session_factory=None) -> LedgerEngine:
    settings = get_settings()
    return LedgerEngine(
        session_factory or SessionLocal,
        max_retries=settings.ledger_max_retries,
        retry_backoff_seconds=settings.ledger_retry_backoff_seconds,
        history_default_limit=settings.history_default_limit,
        history_max_limit=settings.history_max_limit,
    )


def get_ledger() -> LedgerEngine:
    global _ledger
    if _ledger is None:
        _ledger = build_ledger()
    return _ledger


def get_principal(x_telegram_init_data: str | None = Header(default=None)) -> Principal:
    settings = get_settings()
    try:
        return validate_init_data(
            x_telegram_init_data or "",
            settings.telegram_bot_token,
            max_age_seconds=settings.init_data_max_age_seconds,
        )
    except InitDataError as exc:
        logger.warning("Rejected init data: %s", exc)
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_current_user_id(principal: Principal = Depends(get_principal)) -> int:
    return principal.telegram_id


def require_admin(
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerEngine = Depends(get_ledger),
) -> int:
    if not ledger.is_admin(user_id):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id
