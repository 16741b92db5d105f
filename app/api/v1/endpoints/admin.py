from fastapi import APIRouter, Depends, Request

from app.dependencies import get_ledger, require_admin
from app.middlewares.rate_limit import limiter
from app.schemas.admin import (
    AdminCreateUserRequest,
    AdminSetBalanceRequest,
    AdminUsersResponse,
    SetAdminStatusRequest,
)
from app.schemas.currency import CurrencyCreate, CurrencyOut, SetDefaultCurrencyRequest
from app.schemas.transaction import TransactionOut
from app.schemas.user import UserOut, UserUpsertOut
from app.services.ledger import LedgerEngine

router = APIRouter()


@router.get("/users", response_model=AdminUsersResponse)
def list_users(
    include_disabled: bool = False,
    admin_id: int = Depends(require_admin),
    ledger: LedgerEngine = Depends(get_ledger),
):
    items = ledger.list_users_with_balances(include_disabled=include_disabled)
    return {"items": items, "total": len(items)}


@router.post("/users", response_model=UserUpsertOut)
def add_user(
    payload: AdminCreateUserRequest,
    admin_id: int = Depends(require_admin),
    ledger: LedgerEngine = Depends(get_ledger),
):
    return ledger.create_user(payload.telegram_id, payload.username)


@router.post("/users/{username}/disable", response_model=UserOut)
def disable_user(username: str, admin_id: int = Depends(require_admin), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.disable_user(username)


@router.delete("/users/{username}", response_model=UserOut)
def destroy_user(username: str, admin_id: int = Depends(require_admin), ledger: LedgerEngine = Depends(get_ledger)):
    return ledger.destroy_user(username)


@router.post("/users/{username}/admin", response_model=UserOut)
def set_admin_status(
    username: str,
    payload: SetAdminStatusRequest,
    admin_id: int = Depends(require_admin),
    ledger: LedgerEngine = Depends(get_ledger),
):
    return ledger.set_admin_status(username, payload.is_admin)


@router.post("/balances", response_model=TransactionOut)
@limiter.limit("30/minute")
def set_balance(
    request: Request,
    payload: AdminSetBalanceRequest,
    admin_id: int = Depends(require_admin),
    ledger: LedgerEngine = Depends(get_ledger),
):
    return ledger.admin_set_balance(admin_id, payload.username, payload.amount, payload.currency)


@router.post("/currencies", response_model=CurrencyOut)
def add_currency(
    payload: CurrencyCreate,
    admin_id: int = Depends(require_admin),
    ledger: LedgerEngine = Depends(get_ledger),
):
    return ledger.add_currency(payload.code, payload.name, payload.sign)


@router.post("/currencies/default", response_model=CurrencyOut)
def set_default_currency(
    payload: SetDefaultCurrencyRequest,
    admin_id: int = Depends(require_admin),
    ledger: LedgerEngine = Depends(get_ledger),
):
    return ledger.set_default_currency(payload.code)
