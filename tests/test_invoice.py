from datetime import date

from ledger.domain import Account, AccountKind
from ledger.invoice import invoice_period_for, resolve_invoice_period


def test_purchase_after_closing_goes_to_next_month():
    assert resolve_invoice_period(date(2024, 1, 15), 10) == "2024-02"


def test_purchase_before_closing_stays_in_month():
    assert resolve_invoice_period(date(2024, 1, 5), 10) == "2024-01"


def test_purchase_on_closing_day_goes_to_next_month():
    assert resolve_invoice_period(date(2024, 1, 10), 10) == "2024-02"


def test_december_wraps_year():
    assert resolve_invoice_period(date(2024, 12, 15), 10) == "2025-01"


def test_closing_day_past_short_month_end():
    assert resolve_invoice_period(date(2024, 2, 29), 31) == "2024-02"
    assert resolve_invoice_period(date(2024, 1, 31), 31) == "2024-02"
    assert resolve_invoice_period(date(2024, 1, 30), 31) == "2024-01"


def test_invoice_period_only_for_cards_with_closing_day():
    card = Account("c1", "Visa", AccountKind.CREDIT_CARD, closing_day=10)
    card_without_day = Account("c2", "Master", AccountKind.CREDIT_CARD)
    checking = Account("a1", "Checking", AccountKind.CHECKING)

    assert invoice_period_for(card, date(2024, 3, 20)) == "2024-04"
    assert invoice_period_for(card_without_day, date(2024, 3, 20)) is None
    assert invoice_period_for(checking, date(2024, 3, 20)) is None
    assert invoice_period_for(None, date(2024, 3, 20)) is None
