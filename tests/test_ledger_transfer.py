from decimal import Decimal

import pytest

from app.core.errors import (
    CurrencyNotHeld,
    InsufficientBalance,
    InvalidAmount,
    NotFound,
    SelfTransferNotAllowed,
)
from app.models import TransactionKind


ALICE = 10
BOB = 20


@pytest.fixture
def users(ledger, admin):
    ledger.create_user(ALICE, "alice")
    ledger.create_user(BOB, "bob")
    return ALICE, BOB


def _balance(ledger, user_id, code="SHL"):
    for account in ledger.get_accounts(user_id):
        if account.currency.code == code:
            return account.amount
    return None


def test_transfer_scenario(ledger, users, fund):
    fund("alice", 100)

    result = ledger.transfer(ALICE, "bob", 40, "SHL")
    assert result.amount == Decimal("40")
    assert result.sender_balance_after == Decimal("60")
    assert result.recipient_balance_after == Decimal("40")
    assert result.from_user_id == ALICE
    assert result.to_username == "bob"

    with pytest.raises(InsufficientBalance):
        ledger.transfer(ALICE, "bob", 100, "SHL")

    assert _balance(ledger, ALICE) == Decimal("60")
    assert _balance(ledger, BOB) == Decimal("40")

    alice_history = ledger.get_transaction_history(ALICE)
    assert [tx.kind for tx in alice_history] == [
        TransactionKind.TRANSFER_OUT,
        TransactionKind.ADMIN_SET_BALANCE,
    ]
    assert alice_history[0].amount == Decimal("-40")
    assert alice_history[0].balance_after == Decimal("60")

    bob_history = ledger.get_transaction_history(BOB)
    assert len(bob_history) == 1
    assert bob_history[0].kind == TransactionKind.TRANSFER_IN
    assert bob_history[0].amount == Decimal("40")
    assert bob_history[0].balance_after == Decimal("40")
    assert bob_history[0].from_username == "alice"


def test_both_history_rows_share_timestamp(ledger, users, fund):
    fund("alice", 10)
    ledger.transfer(ALICE, "bob", 5, "SHL")

    sent = ledger.get_transaction_history(ALICE)[0]
    received = ledger.get_transaction_history(BOB)[0]
    assert sent.timestamp == received.timestamp
    assert sent.currency_code == received.currency_code == "SHL"


@pytest.mark.parametrize("amount", [0, -5, "abc", "NaN"])
def test_invalid_amount_rejected_first(ledger, users, amount):
    # Checked before anything else, so an unknown recipient does not matter.
    with pytest.raises(InvalidAmount):
        ledger.transfer(ALICE, "nobody", amount, "SHL")


def test_unknown_sender(ledger, users):
    with pytest.raises(NotFound):
        ledger.transfer(999, "bob", 1, "SHL")


def test_unknown_recipient(ledger, users, fund):
    fund("alice", 10)
    with pytest.raises(NotFound):
        ledger.transfer(ALICE, "nobody", 1, "SHL")


def test_self_transfer_checked_before_currency(ledger, users):
    ledger.add_currency("USD", "Dollars", "$")
    with pytest.raises(SelfTransferNotAllowed):
        ledger.transfer(ALICE, "alice", 1, "USD")


def test_currency_not_held(ledger, users):
    ledger.add_currency("USD", "Dollars", "$")
    with pytest.raises(CurrencyNotHeld):
        ledger.transfer(ALICE, "bob", 1, "USD")


def test_disabled_recipient_is_not_found(ledger, users, fund):
    fund("alice", 10)
    ledger.disable_user("bob")
    with pytest.raises(NotFound):
        ledger.transfer(ALICE, "bob", 1, "SHL")
    assert _balance(ledger, ALICE) == Decimal("10")


def test_recipient_account_created_on_first_receipt(ledger, users, fund):
    ledger.add_currency("USD", "Dollars", "$")
    fund("alice", 50, "USD")
    assert _balance(ledger, BOB, "USD") is None

    ledger.transfer(ALICE, "bob", 20, "usd")

    assert _balance(ledger, ALICE, "USD") == Decimal("30")
    assert _balance(ledger, BOB, "USD") == Decimal("20")


def test_recipient_name_is_case_insensitive_and_strips_at(ledger, users, fund):
    fund("alice", 10)
    ledger.transfer(ALICE, "@Bob", 3, "SHL")
    ledger.transfer(ALICE, "BOB", 2, "SHL")
    assert _balance(ledger, BOB) == Decimal("5")


def test_amount_equal_to_balance_empties_account(ledger, users, fund):
    fund("alice", 10)
    result = ledger.transfer(ALICE, "bob", "10.00", "SHL")
    assert result.sender_balance_after == Decimal("0")


def test_transfers_conserve_total(ledger, users, fund):
    ledger.create_user(30, "carol")
    fund("alice", 100)
    fund("bob", 50)

    ledger.transfer(ALICE, "bob", "12.34", "SHL")
    ledger.transfer(BOB, "carol", 30, "SHL")
    ledger.transfer(30, "alice", "0.01", "SHL")
    with pytest.raises(InsufficientBalance):
        ledger.transfer(30, "bob", 1000, "SHL")

    total = sum(_balance(ledger, uid) for uid in (ALICE, BOB, 30))
    assert total == Decimal("150")


@pytest.mark.parametrize("amount", [Decimal("1e30"), Decimal("1e16"), "99999999999999999"])
def test_oversized_amount_rejected(ledger, users, fund, amount):
    fund("alice", 100)
    with pytest.raises(InvalidAmount):
        ledger.transfer(ALICE, "bob", amount, "SHL")
    assert _balance(ledger, ALICE) == Decimal("100")


@pytest.mark.parametrize("amount", [Decimal("10.005"), "0.004"])
def test_sub_cent_amount_rejected_not_rounded(ledger, users, fund, amount):
    fund("alice", 100)
    with pytest.raises(InvalidAmount):
        ledger.transfer(ALICE, "bob", amount, "SHL")
    assert _balance(ledger, ALICE) == Decimal("100")
    assert _balance(ledger, BOB) == Decimal("0")


def test_trailing_zeros_are_not_extra_precision(ledger, users, fund):
    fund("alice", 100)
    result = ledger.transfer(ALICE, "bob", "10.500", "SHL")
    assert result.amount == Decimal("10.50")


@pytest.mark.parametrize("recipient", ["@", "", "  "])
def test_blank_recipient_never_matches_nameless_user(ledger, users, fund, recipient):
    ledger.create_user(30, "")
    fund("alice", 100)
    with pytest.raises(NotFound):
        ledger.transfer(ALICE, recipient, 40, "SHL")
    assert _balance(ledger, ALICE) == Decimal("100")
    assert _balance(ledger, 30) == Decimal("0")
