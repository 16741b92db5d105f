from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text, update
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.orm import Session
from app.api.v1.routes import router as api_router
from app.core.config import get_settings, parse_cors_origins, parse_id_list
from app.core.errors import LedgerError
import logging
import time
from app.core.database import Base, engine, SessionLocal, get_db
from app.core.logging import configure_logging
from app.dependencies import get_ledger
from app.middlewares.rate_limit import limiter
from app.models import User


settings = get_settings()

configure_logging()

app = FastAPI(title=settings.app_name)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
_started_at = time.time()


@app.exception_handler(LedgerError)
async def ledger_error_handler(request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.exception_handler(SQLAlchemyTimeoutError)
async def sqlalchemy_timeout_handler(request, exc):
    logging.getLogger(__name__).warning("Database pool timeout on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service is busy. Please retry in a moment."},
    )


allow_origins = parse_cors_origins(settings.cors_origins or "")

logging.getLogger(__name__).info("CORS allow_origins=%s", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


def _bootstrap_admins() -> None:
    ids = parse_id_list(settings.bootstrap_admin_ids)
    if not ids:
        return

    logger = logging.getLogger(__name__)
    try:
        with SessionLocal.begin() as db:
            result = db.execute(
                update(User)
                .where(User.telegram_id.in_(ids), User.is_admin.is_(False))
                .values(is_admin=True)
            )
        if result.rowcount:
            logger.info("Bootstrapped admin flag for %s user(s).", result.rowcount)
    except Exception as exc:
        logger.warning("Admin bootstrap failed: %s", exc)


def _seed_currency_catalog() -> None:
    try:
        currency = get_ledger().ensure_default_currency(
            settings.default_currency_code,
            settings.default_currency_name,
            settings.default_currency_sign,
        )
        logging.getLogger(__name__).info("Default currency is %s", currency.code)
    except Exception as exc:
        logging.getLogger(__name__).warning("Currency catalog seed skipped: %s", exc)


@app.on_event("startup")
def ensure_tables():
    if settings.auto_create_tables:
        # Optional local fallback for fresh environments.
        try:
            Base.metadata.create_all(bind=engine)
        except Exception as exc:
            logging.getLogger(__name__).warning(
                "DB unavailable on startup, skipping table creation: %s",
                exc,
            )
    _seed_currency_catalog()
    _bootstrap_admins()


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    # Liveness: process is up.
    return {
        "status": "ok",
        "uptime_seconds": int(max(0, time.time() - _started_at)),
        "service": settings.app_name,
    }


@app.get("/readyz")
def readyz(db: Session = Depends(get_db)):
    # Readiness: database is reachable.
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "uptime_seconds": int(max(0, time.time() - _started_at)),
        }
    except Exception as exc:
        logging.getLogger(__name__).warning("Readiness DB check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"detail": "database_unavailable", "status": "not_ready"},
        )