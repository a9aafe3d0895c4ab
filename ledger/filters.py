from datetime import date
from typing import Callable, Collection, Optional

from ledger.domain import Transaction, TransactionStatus, TransactionType

Predicate = Callable[[Transaction], bool]


def by_ids(ids: Collection[str]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.id in ids

    return _filter


def by_category(cat_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category_id == cat_id

    return _filter


def in_month(month: date) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.date.year == month.year and t.date.month == month.month

    return _filter


def by_date_range(start: Optional[date], end: Optional[date]) -> Predicate:
    # either bound may be open
    def _filter(t: Transaction) -> bool:
        if start is not None and t.date < start:
            return False
        if end is not None and t.date > end:
            return False
        return True

    return _filter


def by_account(acc_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.account_id == acc_id or t.to_account_id == acc_id

    return _filter


def by_status(status: TransactionStatus) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.status is status

    return _filter


def by_type(tx_type: TransactionType) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type is tx_type

    return _filter
