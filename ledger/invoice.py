from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta

from ledger.domain import Account, AccountKind


def resolve_invoice_period(purchase_date: date, closing_day: int) -> str:
    """Billing cycle ("YYYY-MM") a card purchase falls into.

    Purchases on or after the closing day go to the next month's statement.
    The month step starts from the first of the month, so a closing day that
    the month does not have never pushes the label two months ahead.
    """
    period = purchase_date.replace(day=1)
    if purchase_date.day >= closing_day:
        period += relativedelta(months=1)
    return period.strftime("%Y-%m")


def invoice_period_for(account: Optional[Account], purchase_date: date) -> Optional[str]:
    if account is None:
        return None
    if account.kind is AccountKind.CREDIT_CARD:
        if account.closing_day is None:
            return None
        return resolve_invoice_period(purchase_date, account.closing_day)
    if account.kind in (
        AccountKind.WALLET,
        AccountKind.CHECKING,
        AccountKind.SAVINGS,
        AccountKind.INVESTMENT,
    ):
        return None
    raise ValueError(f"Unhandled account kind: {account.kind!r}")
