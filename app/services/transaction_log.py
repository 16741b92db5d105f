from datetime import datetime
from decimal import Decimal
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.models import Account, LedgerTransaction, TransactionKind


def append(
    db: Session,
    *,
    user_id: int,
    account: Account,
    amount: Decimal,
    kind: TransactionKind,
    timestamp: datetime,
    from_user_id: int | None = None,
    from_username: str | None = None,
    to_user_id: int | None = None,
    to_username: str | None = None,
) -> LedgerTransaction:
    entry = LedgerTransaction(
        user_id=user_id,
        account_id=account.id,
        account=account,
        amount=amount,
        kind=kind,
        from_user_id=from_user_id,
        from_username=from_username,
        to_user_id=to_user_id,
        to_username=to_username,
        timestamp=timestamp,
        balance_after=account.amount,
    )
    db.add(entry)
    db.flush()
    return entry


def query_by_user(db: Session, user_id: int, limit: int) -> list[LedgerTransaction]:
    return list(
        db.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.user_id == user_id)
            .order_by(LedgerTransaction.timestamp.desc(), LedgerTransaction.id.desc())
            .limit(limit)
        ).scalars()
    )
