"""Filtered, searched and sorted views over the ledger.

Free-text search replaces the month window; explicit filters from
``FilterOptions`` are AND-ed on top of whichever of the two applies.
"""

from datetime import date
from functools import lru_cache
from typing import Iterable

from dateutil.relativedelta import relativedelta

from ledger.domain import Category, Transaction, TransactionType, ViewState
from ledger.filters import (
    Predicate,
    by_account,
    by_date_range,
    by_ids,
    by_status,
    by_type,
    in_month,
)
from ledger.fingerprint import normalize_text
from ledger.functional import pipe


def month_start(d: date) -> date:
    return d.replace(day=1)


def shift_month(month: date, offset: int) -> date:
    return month_start(month) + relativedelta(months=offset)


def amount_text(t: Transaction) -> str:
    return format(t.amount.normalize(), "f")


def search_blob(t: Transaction, category_names: dict[str, str]) -> str:
    return normalize_text(" ".join([
        t.description,
        amount_text(t),
        category_names.get(t.category_id, ""),
        t.subcategory or "",
        " ".join(t.tags),
        t.date.strftime("%d/%m/%Y"),
    ]))


@lru_cache(maxsize=8)
def search_index(trans: tuple[Transaction, ...], cats: tuple[Category, ...]) -> dict[str, str]:
    names = {c.id: c.name for c in cats}
    return {t.id: search_blob(t, names) for t in trans}


def sort_key(t: Transaction) -> tuple[int, int]:
    # newest first; on the same day income before everything else
    return (-t.date.toordinal(), 0 if t.type is TransactionType.INCOME else 1)


def sort_transactions(trans: Iterable[Transaction]) -> tuple[Transaction, ...]:
    return tuple(sorted(trans, key=sort_key))


def view_predicates(
    trans: tuple[Transaction, ...], view: ViewState, cats: tuple[Category, ...]
) -> list[Predicate]:
    predicates = []
    needle = normalize_text(view.search_text)
    if needle:
        index = search_index(trans, cats)
        predicates.append(by_ids({tid for tid, blob in index.items() if needle in blob}))
    elif not view.filters.has_date_range:
        predicates.append(in_month(view.month))

    f = view.filters
    if f.has_date_range:
        predicates.append(by_date_range(f.start_date, f.end_date))
    if f.account_id:
        predicates.append(by_account(f.account_id))
    if f.status is not None:
        predicates.append(by_status(f.status))
    if f.type is not None:
        predicates.append(by_type(f.type))
    return predicates


def query(
    trans: Iterable[Transaction], view: ViewState, cats: Iterable[Category] = ()
) -> tuple[Transaction, ...]:
    trans = tuple(trans)
    predicates = view_predicates(trans, view, tuple(cats))
    return pipe(
        trans,
        lambda ts: (t for t in ts if all(p(t) for p in predicates)),
        sort_transactions,
    )
