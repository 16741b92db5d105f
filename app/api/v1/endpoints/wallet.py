from fastapi import APIRouter, Depends, Query, Request

from app.dependencies import get_current_user_id, get_ledger
from app.middlewares.rate_limit import limiter
from app.schemas.transaction import TransactionOut
from app.schemas.wallet import AccountOut, TransferOut, TransferRequest
from app.services.ledger import LedgerEngine

router = APIRouter()


@router.get("/accounts", response_model=list[AccountOut])
def get_accounts(user_id: int = Depends(get_current_user_id), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.get_accounts(user_id)


@router.post("/transfer", response_model=TransferOut)
@limiter.limit("30/minute")
def transfer(
    request: Request,
    payload: TransferRequest,
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerEngine = Depends(get_ledger),
):
    currency_code = (payload.currency or "").strip()
    if not currency_code:
        currency_code = ledger.get_default_currency().code
    return ledger.transfer(user_id, payload.to_username, payload.amount, currency_code)


@router.get("/history", response_model=list[TransactionOut])
def get_history(
    limit: int | None = Query(default=None, ge=1),
    user_id: int = Depends(get_current_user_id),
    ledger: LedgerEngine = Depends(get_ledger),
):
    return ledger.get_transaction_history(user_id, limit=limit)
