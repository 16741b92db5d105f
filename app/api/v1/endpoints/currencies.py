from fastapi import APIRouter, Depends

from app.dependencies import get_current_user_id, get_ledger
from app.schemas.currency import CurrencyOut
from app.services.ledger import LedgerEngine

router = APIRouter()


@router.get("", response_model=list[CurrencyOut])
def list_currencies(user_id: int = Depends(get_current_user_id), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.list_currencies()


@router.get("/default", response_model=CurrencyOut)
def get_default_currency(user_id: int = Depends(get_current_user_id), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.get_default_currency()


@router.get("/{code}", response_model=CurrencyOut)
def get_currency(code: str, user_id: int = Depends(get_current_user_id), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.get_currency_by_code(code)
