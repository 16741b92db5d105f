from pydantic import BaseModel, Field
from decimal import Decimal

from app.schemas.user import UserBalancesOut


class AdminSetBalanceRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    amount: Decimal
    currency: str = Field(..., min_length=1, max_length=16)


class SetAdminStatusRequest(BaseModel):
    is_admin: bool


class AdminCreateUserRequest(BaseModel):
    telegram_id: int
    username: str = Field(..., min_length=1, max_length=64)


class AdminUsersResponse(BaseModel):
    items: list[UserBalancesOut]
    total: int
