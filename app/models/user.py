import enum
from sqlalchemy import BigInteger, Column, Integer, String, Boolean, Enum, Index, DateTime
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    DISABLED = "disabled"
    DESTROYED = "destroyed"


# DESTROYED is terminal: the row and everything it owns is deleted.
ALLOWED_TRANSITIONS = {
    UserStatus.ACTIVE: {UserStatus.DISABLED, UserStatus.DESTROYED},
    UserStatus.DISABLED: {UserStatus.ACTIVE, UserStatus.DESTROYED},
    UserStatus.DESTROYED: set(),
}


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    username = Column(String(64), nullable=False, index=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    status = Column(
        Enum(UserStatus, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
        default=UserStatus.ACTIVE,
    )
    disabled_at = Column(DateTime(timezone=True), nullable=True)

    accounts = relationship(
        "Account",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Account.id",
    )
    transactions = relationship(
        "LedgerTransaction",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def transition_to(self, target: UserStatus) -> None:
        current = UserStatus(self.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise ValueError(f"Illegal user transition {current.value} -> {target.value}")
        self.status = target


Index("ix_users_status_admin", User.status, User.is_admin)
