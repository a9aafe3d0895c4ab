"""Expansion of one user-entered transaction into concrete records.

Installment shares are rounded to cents independently; the remainder is
not pushed onto any share, so a series may differ from the entered total
by up to one cent per installment.
"""

from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from ledger.domain import (
    Account,
    Installment,
    ScheduleMode,
    Transaction,
    TransactionStatus,
    new_id,
)
from ledger.invoice import invoice_period_for

CENT = Decimal("0.01")
DEFAULT_REPEAT_COUNT = 12


def add_months(d: date, months: int) -> date:
    # clamps to the last day of shorter months (Jan 31 + 1 -> Feb 28/29)
    return d + relativedelta(months=months)


def split_amount(amount: Decimal, count: int) -> Decimal:
    return (amount / count).quantize(CENT, rounding=ROUND_HALF_UP)


def _with_card(t: Transaction, card: Optional[Account], series_id: Optional[str] = None) -> Transaction:
    period = invoice_period_for(card, t.date)
    if period is None:
        return t
    return replace(t, credit_card_id=card.id, invoice_month=period, installment_id=series_id)


def _series(
    base: Transaction,
    count: int,
    make: Callable[[int, date, TransactionStatus], Transaction],
) -> tuple[Transaction, ...]:
    return tuple(
        make(
            i,
            add_months(base.date, i),
            base.status if i == 0 else TransactionStatus.PENDING,
        )
        for i in range(count)
    )


def expand(
    base: Transaction,
    mode: ScheduleMode = ScheduleMode.SINGLE,
    count: Optional[int] = None,
    card: Optional[Account] = None,
    id_factory: Callable[[], str] = new_id,
) -> tuple[Transaction, ...]:
    """Turn ``base`` into the records that ``mode`` describes.

    ``base.id`` is ignored, every produced record gets a fresh id.
    ``card`` is the source account; invoice periods are only attached when it
    is a credit card with a closing day. An installment count below two, or
    one whose share would round down to zero cents, falls back to a single
    record. A missing or non-positive repeat count means twelve occurrences.
    """
    if mode is ScheduleMode.INSTALLMENT and (
        count is None or count < 2 or split_amount(base.amount, count) <= 0
    ):
        mode = ScheduleMode.SINGLE

    if mode is ScheduleMode.SINGLE:
        return (_with_card(replace(base, id=id_factory()), card),)

    group_id = id_factory()

    if mode is ScheduleMode.INSTALLMENT:
        series_id = id_factory()
        share = split_amount(base.amount, count)

        def make(i, d, status):
            t = replace(
                base,
                id=id_factory(),
                description=f"{base.description} ({i + 1}/{count})",
                amount=share,
                date=d,
                status=status,
                group_id=group_id,
                installment=Installment(current=i + 1, total=count),
            )
            return _with_card(t, card, series_id)

        return _series(base, count, make)

    if mode is ScheduleMode.RECURRING:
        repeat = count if count and count > 0 else DEFAULT_REPEAT_COUNT

        def make(i, d, status):
            t = replace(
                base,
                id=id_factory(),
                date=d,
                status=status,
                group_id=group_id,
                is_recurring=True,
            )
            return _with_card(t, card)

        return _series(base, repeat, make)

    raise ValueError(f"Unhandled schedule mode: {mode!r}")
