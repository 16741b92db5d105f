from sqlalchemy import Column, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("user_id", "currency_id", name="uq_accounts_user_currency"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    amount = Column(Numeric(18, 2), default=0, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    user = relationship("User", back_populates="accounts")
    currency = relationship("Currency", lazy="joined", innerjoin=True)
    transactions = relationship("LedgerTransaction", back_populates="account", passive_deletes=True)

    # Concurrent writers of the same row lose with StaleDataError instead of
    # silently overwriting each other.
    __mapper_args__ = {"version_id_col": version}
