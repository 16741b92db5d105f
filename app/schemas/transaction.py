from pydantic import BaseModel
from decimal import Decimal
from datetime import datetime
from typing import Optional

from app.models.ledger_transaction import TransactionKind


class TransactionOut(BaseModel):
    id: int
    kind: TransactionKind
    amount: Decimal
    currency_code: str
    balance_after: Decimal
    timestamp: datetime
    from_user_id: Optional[int] = None
    from_username: Optional[str] = None
    to_user_id: Optional[int] = None
    to_username: Optional[str] = None

    @classmethod
    def from_row(cls, tx) -> "TransactionOut":
        return cls(
            id=tx.id,
            kind=tx.kind,
            amount=tx.amount,
            currency_code=tx.account.currency.code,
            balance_after=tx.balance_after,
            timestamp=tx.timestamp,
            from_user_id=tx.from_user_id,
            from_username=tx.from_username,
            to_user_id=tx.to_user_id,
            to_username=tx.to_username,
        )
