"""Typed failures raised by the ledger engine.

Each error carries a stable machine ``code`` and the HTTP status the API uses
when rendering it. Messages are plain English defaults; front ends are free to
translate them.
"""


class LedgerError(Exception):
    code = "LEDGER_ERROR"
    status_code = 400
    default_message = "Ledger operation failed"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {"message": self.message, "code": self.code}


class NotFound(LedgerError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class AlreadyExists(LedgerError):
    code = "ALREADY_EXISTS"
    status_code = 409
    default_message = "Already exists"


class InvalidAmount(LedgerError):
    code = "INVALID_AMOUNT"
    default_message = "Amount must be greater than zero"


class InsufficientBalance(LedgerError):
    code = "INSUFFICIENT_BALANCE"
    default_message = "Insufficient balance"


class SelfTransferNotAllowed(LedgerError):
    code = "SELF_TRANSFER"
    default_message = "Cannot transfer to yourself"


class CurrencyNotHeld(LedgerError):
    code = "CURRENCY_NOT_HELD"
    default_message = "You don't have this currency in your balances"


class CurrencyMismatch(LedgerError):
    code = "CURRENCY_MISMATCH"
    default_message = "Currency mismatch between accounts"


class Unauthorized(LedgerError):
    code = "UNAUTHORIZED"
    status_code = 403
    default_message = "Admin access required"


class Unavailable(LedgerError):
    code = "UNAVAILABLE"
    status_code = 503
    default_message = "Service is busy. Please retry in a moment."
