from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Iterator, Tuple

from ledger.domain import Category, Transaction, TransactionStatus, TransactionType

UNCATEGORIZED = "Uncategorized"


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def is_open_bill(t: Transaction) -> bool:
    return t.type is TransactionType.EXPENSE and t.status is TransactionStatus.PENDING


def upcoming_bills(trans: Iterable[Transaction], today: date, days: int = 7) -> tuple[Transaction, ...]:
    """Pending expenses due between ``today`` and ``today + days``, soonest first."""
    limit = today + timedelta(days=days)
    due = iter_transactions(trans, lambda t: is_open_bill(t) and today <= t.date <= limit)
    return tuple(sorted(due, key=lambda t: t.date))


def lazy_top_categories(
    trans: Iterable[Transaction], cats: tuple[Category, ...], k: int
) -> Iterator[tuple[str, Decimal]]:
    category_name_by_id: dict[str, str] = {c.id: c.name for c in cats}
    totals_by_category: dict[str, Decimal] = defaultdict(Decimal)

    for t in iter_transactions(trans, lambda t: t.type is TransactionType.EXPENSE):
        totals_by_category[t.category_id] += t.amount

    ordered: list[Tuple[str, Decimal]] = sorted(
        (
            (category_name_by_id.get(cid, UNCATEGORIZED), total)
            for cid, total in totals_by_category.items()
        ),
        key=lambda item: item[1],
        reverse=True,
    )

    for name, total in ordered[: max(0, k)]:
        yield name, total
