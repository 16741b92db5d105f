import logging
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.errors import Unauthorized
from app.models import User, UserStatus


logger = logging.getLogger(__name__)


def is_admin(db: Session, telegram_id: int) -> bool:
    # Unknown, disabled or unreadable users are never admins.
    try:
        user = db.execute(select(User).where(User.telegram_id == telegram_id)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.warning("Admin lookup failed telegram_id=%s: %s", telegram_id, exc)
        return False
    if not user or user.status != UserStatus.ACTIVE:
        return False
    return bool(user.is_admin)


def require_admin(db: Session, telegram_id: int) -> None:
    if not is_admin(db, telegram_id):
        logger.warning("Rejected privileged operation telegram_id=%s", telegram_id)
        raise Unauthorized()
