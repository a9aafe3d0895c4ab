"""Pure transitions of the ``AppData`` aggregate.

Each function takes the current aggregate and returns the next one; the
input is never modified. Operations addressed at an id that does not exist
return the input object itself, so callers can detect a no-op with ``is``.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ledger.domain import (
    Account,
    AppData,
    Category,
    Goal,
    InvestmentAsset,
    ScheduleMode,
    Transaction,
    TransactionStatus,
    new_id,
)
from ledger.effects import apply_all, apply_effect
from ledger.expander import expand
from ledger.functional import find_by_id


def _replace_by_id(items: tuple, item_id: str, f: Callable) -> tuple:
    return tuple(f(x) if x.id == item_id else x for x in items)


def _without_id(items: tuple, item_id: str) -> tuple:
    return tuple(x for x in items if x.id != item_id)


# --- transactions


def add_transaction(
    data: AppData,
    base: Transaction,
    mode: ScheduleMode = ScheduleMode.SINGLE,
    count: Optional[int] = None,
    id_factory: Callable[[], str] = new_id,
) -> AppData:
    card = find_by_id(data.accounts, base.account_id).get_or_else(None)
    new_trans = expand(base, mode, count, card=card, id_factory=id_factory)
    return replace(
        data,
        accounts=apply_all(data.accounts, new_trans),
        transactions=new_trans + data.transactions,
    )


def edit_transaction(data: AppData, tid: str, new_data: Transaction) -> AppData:
    old = find_by_id(data.transactions, tid).get_or_else(None)
    if old is None:
        return data
    updated = replace(new_data, id=tid)
    accounts = apply_effect(data.accounts, old, reverse=True)
    accounts = apply_effect(accounts, updated)
    return replace(
        data,
        accounts=accounts,
        transactions=_replace_by_id(data.transactions, tid, lambda _: updated),
    )


def delete_transaction(data: AppData, tid: str) -> AppData:
    old = find_by_id(data.transactions, tid).get_or_else(None)
    if old is None:
        return data
    return replace(
        data,
        accounts=apply_effect(data.accounts, old, reverse=True),
        transactions=_without_id(data.transactions, tid),
    )


def toggle_status(data: AppData, tid: str) -> AppData:
    old = find_by_id(data.transactions, tid).get_or_else(None)
    if old is None:
        return data
    flipped = (
        TransactionStatus.PENDING
        if old.status is TransactionStatus.COMPLETED
        else TransactionStatus.COMPLETED
    )
    updated = replace(old, status=flipped)
    accounts = apply_effect(data.accounts, old, reverse=True)
    accounts = apply_effect(accounts, updated)
    return replace(
        data,
        accounts=accounts,
        transactions=_replace_by_id(data.transactions, tid, lambda _: updated),
    )


def import_transactions(data: AppData, trans: Iterable[Transaction]) -> AppData:
    new_trans = tuple(trans)
    if not new_trans:
        return data
    return replace(
        data,
        accounts=apply_all(data.accounts, new_trans),
        transactions=new_trans + data.transactions,
    )


# --- accounts


def add_account(data: AppData, account: Account) -> AppData:
    return replace(data, accounts=data.accounts + (account,))


def delete_account(data: AppData, acc_id: str) -> AppData:
    if find_by_id(data.accounts, acc_id).is_none():
        return data
    return replace(
        data,
        accounts=_without_id(data.accounts, acc_id),
        transactions=tuple(
            t for t in data.transactions
            if t.account_id != acc_id and t.to_account_id != acc_id
        ),
    )


def update_account_balance(data: AppData, acc_id: str, balance: Decimal) -> AppData:
    if find_by_id(data.accounts, acc_id).is_none():
        return data
    return replace(
        data,
        accounts=_replace_by_id(data.accounts, acc_id, lambda a: replace(a, balance=balance)),
    )


def update_account_details(data: AppData, acc_id: str, **changes) -> AppData:
    if "balance" in changes:
        raise ValueError("Use update_account_balance to override a balance")
    if find_by_id(data.accounts, acc_id).is_none():
        return data
    return replace(
        data,
        accounts=_replace_by_id(data.accounts, acc_id, lambda a: replace(a, **changes)),
    )


# --- categories


def add_category(data: AppData, category: Category) -> AppData:
    return replace(data, categories=data.categories + (category,))


def update_category(data: AppData, cat_id: str, **changes) -> AppData:
    if find_by_id(data.categories, cat_id).is_none():
        return data
    return replace(
        data,
        categories=_replace_by_id(data.categories, cat_id, lambda c: replace(c, **changes)),
    )


def delete_category(data: AppData, cat_id: str) -> AppData:
    # transactions keep their category id and show up as uncategorized
    if find_by_id(data.categories, cat_id).is_none():
        return data
    return replace(data, categories=_without_id(data.categories, cat_id))


def add_subcategory(data: AppData, cat_id: str, name: str) -> AppData:
    category = find_by_id(data.categories, cat_id).get_or_else(None)
    name = name.strip()
    if category is None or not name or name in category.subcategories:
        return data
    return update_category(data, cat_id, subcategories=category.subcategories + (name,))


# --- goals


def add_goal(data: AppData, goal: Goal) -> AppData:
    return replace(data, goals=data.goals + (goal,))


def add_to_goal(data: AppData, goal_id: str, amount: Decimal) -> AppData:
    if find_by_id(data.goals, goal_id).is_none():
        return data
    return replace(
        data,
        goals=_replace_by_id(
            data.goals, goal_id, lambda g: replace(g, current_amount=g.current_amount + amount)
        ),
    )


def update_goal(data: AppData, goal_id: str, current_amount: Decimal) -> AppData:
    if find_by_id(data.goals, goal_id).is_none():
        return data
    return replace(
        data,
        goals=_replace_by_id(data.goals, goal_id, lambda g: replace(g, current_amount=current_amount)),
    )


def delete_goal(data: AppData, goal_id: str) -> AppData:
    if find_by_id(data.goals, goal_id).is_none():
        return data
    return replace(data, goals=_without_id(data.goals, goal_id))


# --- investments


def add_investment(data: AppData, asset: InvestmentAsset) -> AppData:
    return replace(data, investments=data.investments + (asset,))


def update_investment(data: AppData, asset_id: str, **changes) -> AppData:
    if find_by_id(data.investments, asset_id).is_none():
        return data
    return replace(
        data,
        investments=_replace_by_id(data.investments, asset_id, lambda i: replace(i, **changes)),
    )


def delete_investment(data: AppData, asset_id: str) -> AppData:
    if find_by_id(data.investments, asset_id).is_none():
        return data
    return replace(data, investments=_without_id(data.investments, asset_id))
