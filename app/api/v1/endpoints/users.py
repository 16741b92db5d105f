from fastapi import APIRouter, Depends, Request

from app.core.security import Principal
from app.dependencies import get_current_user_id, get_ledger, get_principal
from app.middlewares.rate_limit import limiter
from app.schemas.user import UserOut, UserUpsertOut
from app.services.ledger import LedgerEngine

router = APIRouter()


@router.post("/me", response_model=UserUpsertOut)
@limiter.limit("10/minute")
def register_me(
    request: Request,
    principal: Principal = Depends(get_principal),
    ledger: LedgerEngine = Depends(get_ledger),
):
    # First contact creates the user; later calls refresh the username.
    return ledger.create_user(principal.telegram_id, principal.username)


@router.get("/me", response_model=UserOut)
def me(user_id: int = Depends(get_current_user_id), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.get_user(user_id)
