from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.models import Account, Currency
from app.services.catalog import normalize_code


def get_or_create(db: Session, user_id: int, currency_id: int) -> Account:
    account = db.execute(
        select(Account).where(Account.user_id == user_id, Account.currency_id == currency_id)
    ).scalar_one_or_none()
    if not account:
        account = Account(user_id=user_id, currency_id=currency_id, amount=Decimal("0"))
        db.add(account)
        db.flush()
    return account


def find_by_user_and_currency(db: Session, user_id: int, currency_code: str) -> Account | None:
    return db.execute(
        select(Account)
        .join(Currency, Account.currency_id == Currency.id)
        .where(Account.user_id == user_id, Currency.code == normalize_code(currency_code))
    ).scalar_one_or_none()


def list_for_user(db: Session, user_id: int) -> list[Account]:
    return list(db.execute(select(Account).where(Account.user_id == user_id).order_by(Account.id)).scalars())


def lock(db: Session, account_ids) -> dict[int, Account]:
    """Take exclusive row locks in ascending id order and refresh amounts."""
    ids = sorted(set(account_ids))
    rows = db.execute(
        select(Account)
        .where(Account.id.in_(ids))
        .order_by(Account.id)
        .with_for_update(of=Account)
        .execution_options(populate_existing=True)
    ).scalars()
    return {row.id: row for row in rows}


def adjust(db: Session, account: Account, delta: Decimal) -> Account:
    # No balance check here: the caller owns the cross-account rules.
    account.amount = Decimal(account.amount) + Decimal(delta)
    db.flush()
    return account


def set_amount(db: Session, account: Account, amount: Decimal) -> Account:
    account.amount = Decimal(amount)
    db.flush()
    return account
