from fastapi import APIRouter
from app.api.v1.endpoints import users, wallet, currencies, admin

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
router.include_router(currencies.router, prefix="/currencies", tags=["currencies"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
