from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict

from app.models.user import UserStatus


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    telegram_id: int
    username: str
    is_admin: bool
    status: UserStatus


class UserUpsertOut(BaseModel):
    user: UserOut
    outcome: Literal["created", "resurrected", "updated", "unchanged"]


class UserBalancesOut(BaseModel):
    telegram_id: int
    username: str
    is_admin: bool
    status: UserStatus
    balances: dict[str, Decimal]
