import enum
from sqlalchemy import BigInteger, Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin


class TransactionKind(str, enum.Enum):
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"
    ADMIN_SET_BALANCE = "admin_set_balance"


class LedgerTransaction(Base, TimestampMixin):
    """One immutable line of a user's history.

    Counterparty columns are plain values rather than foreign keys: they keep
    showing who was involved after the other side is renamed or destroyed.
    """

    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    kind = Column(
        Enum(TransactionKind, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
    )
    from_user_id = Column(BigInteger, nullable=True)
    from_username = Column(String(64), nullable=True)
    to_user_id = Column(BigInteger, nullable=True)
    to_username = Column(String(64), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    balance_after = Column(Numeric(18, 2), nullable=False)

    user = relationship("User", back_populates="transactions")
    account = relationship("Account", back_populates="transactions", lazy="joined", innerjoin=True)


Index("ix_ledger_transactions_user_timestamp", LedgerTransaction.user_id, LedgerTransaction.timestamp)
