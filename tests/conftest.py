import os

import pytest


TEST_BOT_TOKEN = "123456:TEST-BOT-TOKEN"


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "McDuck Wallet Test",
        "ENVIRONMENT": "test",
        "DATABASE_URL": "sqlite://",
        "AUTO_CREATE_TABLES": "true",
        "RATE_LIMIT_ENABLED": "false",
        "TELEGRAM_BOT_TOKEN": TEST_BOT_TOKEN,
        "INIT_DATA_MAX_AGE_SECONDS": "86400",
        "DEFAULT_CURRENCY_CODE": "SHL",
        "DEFAULT_CURRENCY_NAME": "Shillings",
        "DEFAULT_CURRENCY_SIGN": "¤",
        "LEDGER_MAX_RETRIES": "3",
        "LEDGER_RETRY_BACKOFF_SECONDS": "0",
        "CORS_ORIGINS": "http://localhost:5173,http://localhost:3000",
        "BOOTSTRAP_ADMIN_IDS": "",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


_set_test_env()


from sqlalchemy import update  # noqa: E402

from app.core.database import Base, build_engine, build_session_factory  # noqa: E402
from app.models import User  # noqa: E402
from app.services.ledger import LedgerEngine  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    # A file database so worker threads share one store and real locking.
    built = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(bind=built)
    yield built
    built.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def ledger(session_factory):
    ledger_engine = LedgerEngine(
        session_factory,
        max_retries=3,
        retry_backoff_seconds=0,
        history_default_limit=10,
        history_max_limit=100,
    )
    ledger_engine.ensure_default_currency("SHL", "Shillings", "¤")
    return ledger_engine


@pytest.fixture
def promote(session_factory):
    def _promote(telegram_id: int) -> None:
        with session_factory.begin() as db:
            db.execute(update(User).where(User.telegram_id == telegram_id).values(is_admin=True))

    return _promote


@pytest.fixture
def admin(ledger, promote):
    ledger.create_user(1, "scrooge")
    promote(1)
    return 1


@pytest.fixture
def fund(ledger, admin):
    def _fund(username: str, amount, currency: str = "SHL"):
        return ledger.admin_set_balance(admin, username, amount, currency)

    return _fund
