"""Ledger engine: the only writer of balances and producer of history rows.

Every public operation runs as one unit of work on a session obtained from the
injected ``session_factory``. Either all of its reads and writes commit, or the
transaction rolls back and nothing is visible. Write conflicts and transient
store failures roll back and retry the whole unit; when retries run out the
caller gets :class:`Unavailable`.

Users are addressed by their external identity (``telegram_id``). Recipients
and admin targets are addressed by username.
"""

import logging
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as SQLAlchemyTimeoutError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import (
    CurrencyNotHeld,
    InsufficientBalance,
    InvalidAmount,
    LedgerError,
    NotFound,
    SelfTransferNotAllowed,
    Unavailable,
)
from app.models import Account, Currency, LedgerTransaction, TransactionKind, User, UserStatus
from app.schemas.currency import CurrencyOut
from app.schemas.transaction import TransactionOut
from app.schemas.user import UserBalancesOut, UserOut, UserUpsertOut
from app.schemas.wallet import AccountOut, TransferOut
from app.services import accounts, authz, catalog, transaction_log


logger = logging.getLogger(__name__)

T = TypeVar("T")

CENT = Decimal("0.01")
# Numeric(18, 2) holds 16 integer digits.
MAX_AMOUNT = Decimal("1e16")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_username(value: str) -> str:
    return str(value or "").strip().lstrip("@")


def _as_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount("Invalid amount")
    if not amount.is_finite():
        raise InvalidAmount("Invalid amount")
    if abs(amount) >= MAX_AMOUNT:
        raise InvalidAmount("Amount is too large")
    if amount != amount.quantize(CENT):
        raise InvalidAmount("Amount cannot have more than two decimal places")
    return amount.quantize(CENT)


def _active_user(db: Session, telegram_id: int) -> User:
    user = db.execute(
        select(User).where(User.telegram_id == telegram_id, User.status == UserStatus.ACTIVE)
    ).scalar_one_or_none()
    if not user:
        raise NotFound("User not found", telegram_id=telegram_id)
    return user


def _user_by_username(db: Session, username: str, *, include_disabled: bool = False) -> User:
    name = _normalize_username(username)
    if not name:
        # Users without a Telegram username cannot be addressed by name.
        raise NotFound("User not found", username=name)
    query = select(User).where(func.lower(User.username) == name.lower())
    if not include_disabled:
        query = query.where(User.status == UserStatus.ACTIVE)
    user = db.execute(query.order_by(User.id).limit(1)).scalar_one_or_none()
    if not user:
        raise NotFound(f"User not found: {name}", username=name)
    return user


class LedgerEngine:
    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        max_retries: int = 5,
        retry_backoff_seconds: float = 0.05,
        history_default_limit: int = 10,
        history_max_limit: int = 100,
    ):
        self._session_factory = session_factory
        self._max_retries = max(1, int(max_retries))
        self._retry_backoff_seconds = max(0.0, float(retry_backoff_seconds))
        self.history_default_limit = history_default_limit
        self.history_max_limit = history_max_limit

    def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        last_error: Exception | None = None
        for attempt in range(1, self._max_retries + 1):
            try:
                with self._session_factory.begin() as db:
                    return work(db)
            except (StaleDataError, IntegrityError) as exc:
                last_error = exc
                reason = "write conflict"
            except (OperationalError, SQLAlchemyTimeoutError) as exc:
                last_error = exc
                reason = "store unavailable"

            if attempt < self._max_retries:
                logger.warning(
                    "%s: %s, retrying (%s/%s): %s",
                    operation,
                    reason,
                    attempt,
                    self._max_retries,
                    last_error,
                )
                time.sleep(self._retry_backoff_seconds * attempt)

        logger.error("%s failed after %s attempts: %s", operation, self._max_retries, last_error)
        raise Unavailable(operation=operation) from last_error

    # Money movement

    def transfer(self, from_user_id: int, to_username: str, amount, currency_code: str) -> TransferOut:
        value = _as_amount(amount)
        if value <= 0:
            raise InvalidAmount()
        code = catalog.normalize_code(currency_code)

        def work(db: Session) -> TransferOut:
            sender = _active_user(db, from_user_id)
            recipient = _user_by_username(db, to_username)
            if sender.id == recipient.id:
                raise SelfTransferNotAllowed()

            sender_account = accounts.find_by_user_and_currency(db, sender.id, code)
            if not sender_account:
                raise CurrencyNotHeld(currency=code)
            # Same currency as the sender by construction.
            recipient_account = accounts.get_or_create(db, recipient.id, sender_account.currency_id)

            locked = accounts.lock(db, [sender_account.id, recipient_account.id])
            sender_account = locked[sender_account.id]
            recipient_account = locked[recipient_account.id]
            if sender_account.amount < value:
                raise InsufficientBalance(balance=str(sender_account.amount), requested=str(value))

            accounts.adjust(db, sender_account, -value)
            accounts.adjust(db, recipient_account, value)

            now = _utcnow()
            parties = {
                "from_user_id": sender.telegram_id,
                "from_username": sender.username,
                "to_user_id": recipient.telegram_id,
                "to_username": recipient.username,
            }
            transaction_log.append(
                db,
                user_id=sender.id,
                account=sender_account,
                amount=-value,
                kind=TransactionKind.TRANSFER_OUT,
                timestamp=now,
                **parties,
            )
            transaction_log.append(
                db,
                user_id=recipient.id,
                account=recipient_account,
                amount=value,
                kind=TransactionKind.TRANSFER_IN,
                timestamp=now,
                **parties,
            )
            return TransferOut(
                currency_code=sender_account.currency.code,
                amount=value,
                timestamp=now,
                sender_balance_after=sender_account.amount,
                recipient_balance_after=recipient_account.amount,
                **parties,
            )

        try:
            result = self._run("transfer", work)
        except LedgerError as exc:
            logger.warning(
                "Transfer rejected from=%s to=%s amount=%s currency=%s: %s",
                from_user_id,
                to_username,
                value,
                code,
                exc.code,
            )
            raise
        logger.info(
            "Transfer successful from=%s to=%s amount=%s currency=%s",
            result.from_user_id,
            result.to_user_id,
            result.amount,
            result.currency_code,
        )
        return result

    def admin_set_balance(self, admin_id: int, target_username: str, amount, currency_code: str) -> TransactionOut:
        code = catalog.normalize_code(currency_code)

        def work(db: Session) -> TransactionOut:
            authz.require_admin(db, admin_id)
            value = _as_amount(amount)
            if value < 0:
                raise InvalidAmount("Balance cannot be negative")

            admin = _active_user(db, admin_id)
            target = _user_by_username(db, target_username)
            currency = catalog.get_by_code(db, code)
            account = accounts.get_or_create(db, target.id, currency.id)
            account = accounts.lock(db, [account.id])[account.id]

            previous = account.amount
            accounts.set_amount(db, account, value)
            entry = transaction_log.append(
                db,
                user_id=target.id,
                account=account,
                amount=value - previous,
                kind=TransactionKind.ADMIN_SET_BALANCE,
                timestamp=_utcnow(),
                from_user_id=admin.telegram_id,
                from_username=admin.username,
                to_user_id=target.telegram_id,
                to_username=target.username,
            )
            return TransactionOut.from_row(entry)

        result = self._run("admin_set_balance", work)
        logger.info(
            "Balance set by admin=%s target=%s amount=%s currency=%s delta=%s",
            admin_id,
            result.to_user_id,
            result.balance_after,
            result.currency_code,
            result.amount,
        )
        return result

    # Users

    def create_user(self, identity: int, username: str) -> UserUpsertOut:
        name = _normalize_username(username)

        def work(db: Session) -> UserUpsertOut:
            user = db.execute(select(User).where(User.telegram_id == identity)).scalar_one_or_none()
            if user is None:
                default_currency = catalog.get_default(db)
                user = User(telegram_id=identity, username=name, is_admin=False, status=UserStatus.ACTIVE)
                db.add(user)
                db.flush()
                accounts.get_or_create(db, user.id, default_currency.id)
                outcome = "created"
            elif user.status == UserStatus.DISABLED:
                user.transition_to(UserStatus.ACTIVE)
                user.disabled_at = None
                user.username = name
                outcome = "resurrected"
            elif user.username != name:
                user.username = name
                outcome = "updated"
            else:
                outcome = "unchanged"
            db.flush()
            return UserUpsertOut(user=UserOut.model_validate(user), outcome=outcome)

        result = self._run("create_user", work)
        if result.outcome != "unchanged":
            logger.info("User %s telegram_id=%s username=%s", result.outcome, identity, name)
        return result

    def get_user(self, user_id: int) -> UserOut:
        return self._run("get_user", lambda db: UserOut.model_validate(_active_user(db, user_id)))

    def set_admin_status(self, target_username: str, is_admin: bool) -> UserOut:
        def work(db: Session) -> UserOut:
            user = _user_by_username(db, target_username)
            user.is_admin = bool(is_admin)
            db.flush()
            return UserOut.model_validate(user)

        result = self._run("set_admin_status", work)
        logger.info("Admin status of %s set to %s", result.username, result.is_admin)
        return result

    def disable_user(self, username: str) -> UserOut:
        def work(db: Session) -> UserOut:
            user = _user_by_username(db, username)
            user.transition_to(UserStatus.DISABLED)
            user.disabled_at = _utcnow()
            db.flush()
            return UserOut.model_validate(user)

        result = self._run("disable_user", work)
        logger.info("User disabled telegram_id=%s username=%s", result.telegram_id, result.username)
        return result

    def destroy_user(self, username: str) -> UserOut:
        def work(db: Session) -> UserOut:
            user = _user_by_username(db, username, include_disabled=True)
            user.transition_to(UserStatus.DESTROYED)
            snapshot = UserOut.model_validate(user)
            user_pk = user.id
            db.expunge(user)
            db.execute(delete(LedgerTransaction).where(LedgerTransaction.user_id == user_pk))
            db.execute(delete(Account).where(Account.user_id == user_pk))
            db.execute(delete(User).where(User.id == user_pk))
            return snapshot

        result = self._run("destroy_user", work)
        logger.info("User destroyed telegram_id=%s username=%s", result.telegram_id, result.username)
        return result

    def is_admin(self, user_id: int) -> bool:
        try:
            with self._session_factory() as db:
                return authz.is_admin(db, user_id)
        except Exception as exc:
            logger.warning("Admin check failed telegram_id=%s: %s", user_id, exc)
            return False

    def list_users_with_balances(self, include_disabled: bool = False) -> list[UserBalancesOut]:
        def work(db: Session) -> list[UserBalancesOut]:
            # One statement, so each user's balances come from the same snapshot.
            query = (
                select(
                    User.id,
                    User.telegram_id,
                    User.username,
                    User.is_admin,
                    User.status,
                    Currency.code,
                    Account.amount,
                )
                .select_from(User)
                .outerjoin(Account, Account.user_id == User.id)
                .outerjoin(Currency, Currency.id == Account.currency_id)
                .order_by(User.id, Currency.code)
            )
            if not include_disabled:
                query = query.where(User.status == UserStatus.ACTIVE)

            items: dict[int, UserBalancesOut] = {}
            for row in db.execute(query):
                item = items.get(row.id)
                if item is None:
                    item = UserBalancesOut(
                        telegram_id=row.telegram_id,
                        username=row.username,
                        is_admin=row.is_admin,
                        status=row.status,
                        balances={},
                    )
                    items[row.id] = item
                if row.code is not None:
                    item.balances[row.code] = row.amount
            return list(items.values())

        return self._run("list_users_with_balances", work)

    # Accounts and history

    def get_accounts(self, user_id: int) -> list[AccountOut]:
        def work(db: Session) -> list[AccountOut]:
            user = _active_user(db, user_id)
            return [AccountOut.model_validate(account) for account in accounts.list_for_user(db, user.id)]

        return self._run("get_accounts", work)

    def get_transaction_history(self, user_id: int, limit: int | None = None) -> list[TransactionOut]:
        size = self.history_default_limit if limit is None else int(limit)
        size = min(size, self.history_max_limit)

        def work(db: Session) -> list[TransactionOut]:
            user = _active_user(db, user_id)
            if size <= 0:
                return []
            return [TransactionOut.from_row(tx) for tx in transaction_log.query_by_user(db, user.id, size)]

        return self._run("get_transaction_history", work)

    # Currency catalog

    def add_currency(self, code: str, name: str, sign: str) -> CurrencyOut:
        return self._run(
            "add_currency",
            lambda db: CurrencyOut.model_validate(catalog.add_currency(db, code, name, sign)),
        )

    def set_default_currency(self, code: str) -> CurrencyOut:
        return self._run("set_default_currency", lambda db: CurrencyOut.model_validate(catalog.set_default(db, code)))

    def get_default_currency(self) -> CurrencyOut:
        return self._run("get_default_currency", lambda db: CurrencyOut.model_validate(catalog.get_default(db)))

    def get_currency_by_code(self, code: str) -> CurrencyOut:
        return self._run("get_currency_by_code", lambda db: CurrencyOut.model_validate(catalog.get_by_code(db, code)))

    def list_currencies(self) -> list[CurrencyOut]:
        return self._run(
            "list_currencies",
            lambda db: [CurrencyOut.model_validate(currency) for currency in catalog.list_currencies(db)],
        )

    def ensure_default_currency(self, code: str, name: str, sign: str) -> CurrencyOut:
        return self._run(
            "ensure_default_currency",
            lambda db: CurrencyOut.model_validate(catalog.ensure_default_currency(db, code, name, sign)),
        )
