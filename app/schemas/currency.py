from pydantic import BaseModel, ConfigDict, Field


class CurrencyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    sign: str
    is_default: bool


class CurrencyCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1, max_length=64)
    sign: str = Field(..., min_length=1, max_length=8)


class SetDefaultCurrencyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)
