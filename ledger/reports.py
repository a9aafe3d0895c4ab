"""Aggregates for the dashboard: budgets, cash flow, card invoices, totals."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

import pandas as pd

from ledger.domain import (
    Account,
    AccountKind,
    Category,
    Transaction,
    TransactionStatus,
    TransactionType,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class BudgetUsage:
    category_id: str
    name: str
    limit: Decimal
    spent: Decimal
    percent: Decimal
    level: str


@dataclass(frozen=True)
class CardUsage:
    used: Decimal
    available: Decimal
    percent: Decimal


def budget_level(percent: Decimal) -> str:
    if percent >= 100:
        return "over"
    if percent > 80:
        return "high"
    if percent > 50:
        return "warning"
    return "ok"


def budget_usage(cats: Iterable[Category], trans: Iterable[Transaction]) -> tuple[BudgetUsage, ...]:
    """Spending against limits for expense categories over ``trans`` (usually the month view)."""
    spent_by_category: dict[str, Decimal] = defaultdict(Decimal)
    for t in trans:
        if t.type is TransactionType.EXPENSE and t.category_id:
            spent_by_category[t.category_id] += t.amount

    usage = []
    for c in cats:
        if c.type is not TransactionType.EXPENSE:
            continue
        limit = c.budget_limit or ZERO
        spent = spent_by_category.get(c.id, ZERO)
        percent = spent / limit * 100 if limit > 0 else ZERO
        usage.append(BudgetUsage(c.id, c.name, limit, spent, percent, budget_level(percent)))
    return tuple(usage)


def period_totals(trans: Iterable[Transaction]) -> dict[str, Decimal]:
    totals = {"income": ZERO, "expense": ZERO}
    for t in trans:
        if t.type is TransactionType.INCOME:
            totals["income"] += t.amount
        elif t.type is TransactionType.EXPENSE:
            totals["expense"] += t.amount
    totals["net"] = totals["income"] - totals["expense"]
    return totals


def monthly_cashflow(
    trans: Iterable[Transaction],
    end_month: date,
    periods: int = 12,
    completed_only: bool = False,
) -> pd.DataFrame:
    months = pd.period_range(end=pd.Timestamp(end_month).to_period("M"), periods=periods, freq="M")
    rows = [
        {
            "month": pd.Timestamp(t.date).to_period("M"),
            "type": t.type.value,
            "amount": float(t.amount),
        }
        for t in trans
        if t.type is not TransactionType.TRANSFER
        and (not completed_only or t.status is TransactionStatus.COMPLETED)
    ]

    if rows:
        frame = pd.DataFrame(rows)
        table = frame.pivot_table(
            index="month", columns="type", values="amount", aggfunc="sum", fill_value=0.0
        )
    else:
        table = pd.DataFrame(columns=["income", "expense"], dtype=float)

    table = table.reindex(index=months, columns=["income", "expense"], fill_value=0.0).astype(float)
    table.columns.name = None
    table.index.name = "month"
    table["net"] = table["income"] - table["expense"]
    return table


def invoice_totals(trans: Iterable[Transaction], card_id: str) -> dict[str, Decimal]:
    """Expense totals per billing cycle of one card, including future installments."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for t in trans:
        if t.credit_card_id == card_id and t.invoice_month and t.type is TransactionType.EXPENSE:
            totals[t.invoice_month] += t.amount
    return dict(sorted(totals.items()))


def card_usage(card: Account) -> CardUsage:
    used = abs(card.balance)
    limit = card.credit_limit or ZERO
    percent = used / limit * 100 if limit > 0 else ZERO
    return CardUsage(used=used, available=limit - used, percent=percent)


def total_balance(accounts: Iterable[Account]) -> Decimal:
    return sum((a.balance for a in accounts), ZERO)


def reserve_balance(accounts: Iterable[Account]) -> Decimal:
    return sum(
        (a.balance for a in accounts if a.kind in (AccountKind.SAVINGS, AccountKind.INVESTMENT)),
        ZERO,
    )
