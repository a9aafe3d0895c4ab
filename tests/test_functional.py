from datetime import date
from decimal import Decimal

import pytest

from ledger.domain import Account, AccountKind, Category, Transaction, TransactionType
from ledger.functional import (
    Left,
    Nothing,
    Right,
    Some,
    check_budget,
    find_by_id,
    pipe,
    validate_transaction,
)

ACCOUNTS = (
    Account("a1", "Checking", AccountKind.CHECKING),
    Account("a2", "Savings", AccountKind.SAVINGS),
)


def make_tx(amount="10", tx_type=TransactionType.EXPENSE, acc="a1", to=None, cat="food", d=date(2024, 3, 5)):
    return Transaction("t1", "tx", Decimal(amount), tx_type, d, acc, category_id=cat, to_account_id=to)


def test_maybe():
    assert Some(2).get_or_else(0) == 2
    assert Nothing().get_or_else(0) == 0
    assert Some(1).is_some() and Nothing().is_none()
    assert Some(None).is_some()


def test_either():
    assert Right(2).get_or_else(0) == 2
    assert Right(2) == Right(2)
    assert Left("boom").get_or_else(7) == 7
    assert Left("boom").is_left()
    assert Left("boom").get_error() == "boom"
    with pytest.raises(ValueError):
        Right(1).get_error()


def test_find_by_id():
    assert find_by_id(ACCOUNTS, "a2") == Some(ACCOUNTS[1])
    assert find_by_id(ACCOUNTS, "zz").is_none()


def test_validate_transaction():
    assert validate_transaction(make_tx(), ACCOUNTS).is_right()
    assert validate_transaction(make_tx(acc="zz"), ACCOUNTS).get_error()["error"] == "account_not_found"

    transfer = make_tx(tx_type=TransactionType.TRANSFER, to="a2", cat=None)
    assert validate_transaction(transfer, ACCOUNTS).is_right()

    bad_dest = make_tx(tx_type=TransactionType.TRANSFER, to="zz", cat=None)
    assert validate_transaction(bad_dest, ACCOUNTS).get_error()["error"] == "destination_not_found"

    same = make_tx(tx_type=TransactionType.TRANSFER, to="a1", cat=None)
    assert validate_transaction(same, ACCOUNTS).get_error()["error"] == "same_account_transfer"


def test_check_budget():
    food = Category("food", "Food", TransactionType.EXPENSE, budget_limit=Decimal("100"))
    trans = [
        make_tx("60"),
        make_tx("50"),
        make_tx("500", d=date(2024, 2, 28)),
        make_tx("500", tx_type=TransactionType.INCOME),
        make_tx("500", cat="other"),
    ]

    result = check_budget(food, trans, date(2024, 3, 1))

    assert result.is_left()
    error = result.get_error()
    assert error["error"] == "budget_exceeded"
    assert error["month"] == "2024-03"
    assert error["spent"] == Decimal("110")
    assert error["over_budget"] == Decimal("10")

    assert check_budget(food, trans[:1], date(2024, 3, 1)).is_right()
    assert check_budget(food, trans, date(2024, 4, 1)).is_right()


def test_check_budget_without_limit():
    no_limit = Category("food", "Food", TransactionType.EXPENSE)
    assert check_budget(no_limit, [make_tx("9999")], date(2024, 3, 1)) == Right(no_limit)


def test_pipe():
    add1 = lambda x: x + 1
    mul2 = lambda x: x * 2
    assert pipe(3, add1, mul2) == 8
    assert pipe(3) == 3
