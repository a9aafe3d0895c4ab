"""Balance effects of transactions on accounts.

Every function here is pure: accounts come in as a tuple and a new tuple
goes out. Accounts a transaction does not touch are passed through as the
same objects.
"""

from dataclasses import replace
from decimal import Decimal
from functools import reduce
from typing import Iterable

from ledger.domain import Account, Transaction, TransactionStatus, TransactionType

ZERO = Decimal("0")


def balance_change(account_id: str, t: Transaction) -> Decimal:
    """Signed amount ``t`` moves into (positive) or out of ``account_id``."""
    if t.status is TransactionStatus.PENDING:
        return ZERO
    if t.status is not TransactionStatus.COMPLETED:
        raise ValueError(f"Unhandled transaction status: {t.status!r}")

    if t.type is TransactionType.TRANSFER:
        change = ZERO
        if account_id == t.account_id:
            change -= t.amount
        if account_id == t.to_account_id:
            change += t.amount
        return change
    if t.type is TransactionType.INCOME:
        return t.amount if account_id == t.account_id else ZERO
    if t.type is TransactionType.EXPENSE:
        return -t.amount if account_id == t.account_id else ZERO
    raise ValueError(f"Unhandled transaction type: {t.type!r}")


def apply_effect(
    accounts: tuple[Account, ...], t: Transaction, reverse: bool = False
) -> tuple[Account, ...]:
    sign = -1 if reverse else 1
    result = []
    for acc in accounts:
        change = balance_change(acc.id, t)
        if change:
            acc = replace(acc, balance=acc.balance + sign * change)
        result.append(acc)
    return tuple(result)


def apply_all(
    accounts: tuple[Account, ...], trans: Iterable[Transaction], reverse: bool = False
) -> tuple[Account, ...]:
    return reduce(lambda accs, t: apply_effect(accs, t, reverse), trans, accounts)


def expected_balance(trans: Iterable[Transaction], acc_id: str) -> Decimal:
    """Sum of completed effects touching ``acc_id``, starting from zero."""
    return reduce(lambda total, t: total + balance_change(acc_id, t), trans, ZERO)
