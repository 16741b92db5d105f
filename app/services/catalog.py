import logging
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from app.core.errors import AlreadyExists, NotFound
from app.models import Currency


logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return str(code or "").strip().upper()


def get_by_code(db: Session, code: str) -> Currency:
    normalized = normalize_code(code)
    currency = db.execute(select(Currency).where(Currency.code == normalized)).scalar_one_or_none()
    if not currency:
        raise NotFound(f"Currency not found: {normalized}", code=normalized)
    return currency


def get_default(db: Session) -> Currency:
    currency = db.execute(select(Currency).where(Currency.is_default.is_(True))).scalar_one_or_none()
    if not currency:
        raise NotFound("No default currency configured")
    return currency


def list_currencies(db: Session) -> list[Currency]:
    return list(db.execute(select(Currency).order_by(Currency.code)).scalars())


def add_currency(db: Session, code: str, name: str, sign: str) -> Currency:
    normalized = normalize_code(code)
    existing = db.execute(select(Currency).where(Currency.code == normalized)).scalar_one_or_none()
    if existing:
        raise AlreadyExists(f"Currency already exists: {normalized}", code=normalized)

    has_default = db.execute(select(Currency.id).where(Currency.is_default.is_(True))).first() is not None
    currency = Currency(code=normalized, name=name.strip(), sign=sign.strip(), is_default=not has_default)
    db.add(currency)
    db.flush()
    logger.info("Currency added code=%s default=%s", normalized, currency.is_default)
    return currency


def set_default(db: Session, code: str) -> Currency:
    normalized = normalize_code(code)
    # Lock the whole catalog so two concurrent reassignments cannot interleave
    # their clear and set steps.
    rows = list(
        db.execute(select(Currency).order_by(Currency.id).with_for_update()).scalars()
    )
    target = next((row for row in rows if row.code == normalized), None)
    if target is None:
        raise NotFound(f"Currency not found: {normalized}", code=normalized)
    if target.is_default:
        return target

    # Clear first and flush before setting, otherwise the single-default index
    # can see two defaults mid-flush.
    db.execute(
        update(Currency)
        .where(Currency.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )
    target.is_default = True
    db.flush()
    logger.info("Default currency changed to %s", normalized)
    return target


def ensure_default_currency(db: Session, code: str, name: str, sign: str) -> Currency:
    """Seed the catalog on first start; repair a catalog that lost its default."""
    if db.execute(select(Currency.id).limit(1)).first() is None:
        logger.info("Currency catalog empty, seeding default currency %s", normalize_code(code))
        return add_currency(db, code, name, sign)
    try:
        return get_default(db)
    except NotFound:
        first = db.execute(select(Currency).order_by(Currency.id)).scalars().first()
        logger.warning("No default currency found, promoting %s", first.code)
        return set_default(db, first.code)
