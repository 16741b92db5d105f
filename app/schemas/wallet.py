from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from datetime import datetime

from app.schemas.currency import CurrencyOut


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Decimal
    currency: CurrencyOut


class TransferRequest(BaseModel):
    to_username: str = Field(..., min_length=1, max_length=64)
    amount: Decimal
    currency: str | None = None


class TransferOut(BaseModel):
    currency_code: str
    amount: Decimal
    from_user_id: int
    from_username: str
    to_user_id: int
    to_username: str
    timestamp: datetime
    sender_balance_after: Decimal
    recipient_balance_after: Decimal
