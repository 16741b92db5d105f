from sqlalchemy import Boolean, Column, Index, Integer, String, true
from app.core.database import Base
from app.models.base import TimestampMixin


class Currency(Base, TimestampMixin):
    __tablename__ = "currencies"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(16), unique=True, nullable=False, index=True)
    name = Column(String(64), nullable=False)
    sign = Column(String(8), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)


# At most one default currency, enforced by the database as well.
Index(
    "uq_currencies_single_default",
    Currency.is_default,
    unique=True,
    postgresql_where=Currency.is_default == true(),
    sqlite_where=Currency.is_default == true(),
)
