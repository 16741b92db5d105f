from app.models.user import User, UserStatus
from app.models.currency import Currency
from app.models.account import Account
from app.models.ledger_transaction import LedgerTransaction, TransactionKind

__all__ = [
    "User",
    "UserStatus",
    "Currency",
    "Account",
    "LedgerTransaction",
    "TransactionKind",
]
