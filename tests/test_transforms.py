from datetime import date
from decimal import Decimal
from itertools import count

import pytest

from ledger import transforms
from ledger.domain import (
    Account,
    AccountKind,
    AppData,
    Category,
    Goal,
    InvestmentAsset,
    InvestmentType,
    ScheduleMode,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from ledger.effects import expected_balance


def ids(prefix="t"):
    c = count(1)
    return lambda: f"{prefix}{next(c)}"


def make_data():
    return AppData(
        categories=(
            Category("c1", "Food", TransactionType.EXPENSE, subcategories=("Groceries",)),
            Category("c2", "Salary", TransactionType.INCOME),
        ),
        accounts=(
            Account("a1", "Checking", AccountKind.CHECKING),
            Account("a2", "Savings", AccountKind.SAVINGS),
            Account("a4", "Visa", AccountKind.CREDIT_CARD, credit_limit=Decimal("5000"), closing_day=10, due_day=17),
        ),
        goals=(Goal("g1", "Trip", Decimal("1000"), Decimal("100"), date(2025, 6, 1)),),
    )


def make_tx(amount, tx_type=TransactionType.EXPENSE, acc="a1", to=None,
            status=TransactionStatus.COMPLETED, d=date(2024, 3, 5)):
    return Transaction(
        id="draft",
        description="Item",
        amount=Decimal(amount),
        type=tx_type,
        date=d,
        account_id=acc,
        status=status,
        category_id="c1" if tx_type is TransactionType.EXPENSE else None,
        to_account_id=to,
    )


def balance(data, acc_id):
    return next(a.balance for a in data.accounts if a.id == acc_id)


def assert_consistent(data):
    for acc in data.accounts:
        assert acc.balance == expected_balance(data.transactions, acc.id)


def test_add_prepends_and_moves_balance():
    data = transforms.add_transaction(make_data(), make_tx("40"), id_factory=ids())
    data = transforms.add_transaction(data, make_tx("10", TransactionType.INCOME), id_factory=ids("u"))

    assert [t.id for t in data.transactions] == ["u1", "t1"]
    assert balance(data, "a1") == Decimal("-30")


def test_installments_only_move_first_share():
    data = transforms.add_transaction(
        make_data(), make_tx("300"), ScheduleMode.INSTALLMENT, 3, id_factory=ids()
    )
    assert len(data.transactions) == 3
    assert balance(data, "a1") == Decimal("-100")


def test_tiny_installment_purchase_is_stored_whole():
    data = transforms.add_transaction(
        make_data(), make_tx("0.05"), ScheduleMode.INSTALLMENT, 12, id_factory=ids()
    )
    assert len(data.transactions) == 1
    assert data.transactions[0].amount == Decimal("0.05")
    assert balance(data, "a1") == Decimal("-0.05")


def test_card_purchase_gets_invoice_month():
    data = transforms.add_transaction(
        make_data(), make_tx("90", acc="a4", d=date(2024, 3, 12)), ScheduleMode.INSTALLMENT, 3, id_factory=ids()
    )
    assert [t.invoice_month for t in data.transactions] == ["2024-04", "2024-05", "2024-06"]


def test_edit_reverses_old_and_applies_new():
    data = transforms.add_transaction(make_data(), make_tx("40"), id_factory=ids())
    data = transforms.add_transaction(data, make_tx("5"), id_factory=ids("u"))
    edited = transforms.edit_transaction(data, "t1", make_tx("60", acc="a2"))

    assert balance(edited, "a1") == Decimal("-5")
    assert balance(edited, "a2") == Decimal("-60")
    assert [t.id for t in edited.transactions] == ["u1", "t1"]
    assert edited.transactions[1].amount == Decimal("60")


def test_delete_restores_balance():
    data = transforms.add_transaction(make_data(), make_tx("40"), id_factory=ids())
    data = transforms.delete_transaction(data, "t1")
    assert data.transactions == ()
    assert balance(data, "a1") == Decimal("0")


def test_toggle_status_pays_and_unpays():
    data = transforms.add_transaction(
        make_data(), make_tx("40", status=TransactionStatus.PENDING), id_factory=ids()
    )
    assert balance(data, "a1") == Decimal("0")

    paid = transforms.toggle_status(data, "t1")
    assert paid.transactions[0].status is TransactionStatus.COMPLETED
    assert balance(paid, "a1") == Decimal("-40")

    unpaid = transforms.toggle_status(paid, "t1")
    assert unpaid.transactions[0].status is TransactionStatus.PENDING
    assert balance(unpaid, "a1") == Decimal("0")


def test_unknown_ids_return_same_object():
    data = make_data()
    assert transforms.edit_transaction(data, "nope", make_tx("1")) is data
    assert transforms.delete_transaction(data, "nope") is data
    assert transforms.toggle_status(data, "nope") is data
    assert transforms.delete_account(data, "nope") is data
    assert transforms.update_account_balance(data, "nope", Decimal("1")) is data
    assert transforms.update_category(data, "nope", name="x") is data
    assert transforms.delete_category(data, "nope") is data
    assert transforms.add_subcategory(data, "nope", "x") is data
    assert transforms.add_to_goal(data, "nope", Decimal("1")) is data
    assert transforms.update_goal(data, "nope", Decimal("1")) is data
    assert transforms.delete_goal(data, "nope") is data
    assert transforms.update_investment(data, "nope", name="x") is data
    assert transforms.delete_investment(data, "nope") is data
    assert transforms.import_transactions(data, []) is data


def test_balances_match_history_after_any_sequence():
    data = make_data()
    data = transforms.add_transaction(data, make_tx("1000", TransactionType.INCOME), id_factory=ids("a"))
    assert_consistent(data)
    data = transforms.add_transaction(data, make_tx("250", TransactionType.TRANSFER, to="a2"), id_factory=ids("b"))
    assert_consistent(data)
    data = transforms.add_transaction(data, make_tx("99.90"), ScheduleMode.INSTALLMENT, 3, id_factory=ids("c"))
    assert_consistent(data)
    data = transforms.add_transaction(data, make_tx("30"), ScheduleMode.RECURRING, 4, id_factory=ids("d"))
    assert_consistent(data)
    data = transforms.toggle_status(data, "c4")
    assert_consistent(data)
    data = transforms.edit_transaction(data, "b1", make_tx("100", TransactionType.TRANSFER, acc="a2", to="a1"))
    assert_consistent(data)
    data = transforms.delete_transaction(data, "a1")
    assert_consistent(data)
    data = transforms.toggle_status(data, "d3")
    assert_consistent(data)


def test_delete_account_cascades_to_both_sides():
    data = make_data()
    data = transforms.add_transaction(data, make_tx("10"), id_factory=ids("a"))
    data = transforms.add_transaction(data, make_tx("20", acc="a2"), id_factory=ids("b"))
    data = transforms.add_transaction(data, make_tx("30", TransactionType.TRANSFER, to="a2"), id_factory=ids("c"))

    data = transforms.delete_account(data, "a2")

    assert [a.id for a in data.accounts] == ["a1", "a4"]
    assert [t.id for t in data.transactions] == ["a1"]
    assert not any("a2" in (t.account_id, t.to_account_id) for t in data.transactions)


def test_delete_category_keeps_transactions():
    data = transforms.add_transaction(make_data(), make_tx("10"), id_factory=ids())
    data = transforms.delete_category(data, "c1")
    assert [c.id for c in data.categories] == ["c2"]
    assert data.transactions[0].category_id == "c1"


def test_add_subcategory_ignores_duplicates_and_blanks():
    data = make_data()
    data = transforms.add_subcategory(data, "c1", "  Restaurant ")
    assert data.categories[0].subcategories == ("Groceries", "Restaurant")
    assert transforms.add_subcategory(data, "c1", "Restaurant") is data
    assert transforms.add_subcategory(data, "c1", "   ") is data


def test_account_updates():
    data = transforms.update_account_balance(make_data(), "a1", Decimal("123.45"))
    assert balance(data, "a1") == Decimal("123.45")

    data = transforms.update_account_details(data, "a4", closing_day=5, name="Visa Gold")
    card = data.accounts[2]
    assert (card.closing_day, card.name, card.balance) == (5, "Visa Gold", Decimal("0"))

    with pytest.raises(ValueError):
        transforms.update_account_details(data, "a1", balance=Decimal("1"))

    data = transforms.add_account(data, Account("a9", "Broker", AccountKind.INVESTMENT))
    assert data.accounts[-1].id == "a9"


def test_goals():
    data = transforms.add_to_goal(make_data(), "g1", Decimal("50"))
    assert data.goals[0].current_amount == Decimal("150")
    data = transforms.update_goal(data, "g1", Decimal("10"))
    assert data.goals[0].current_amount == Decimal("10")
    data = transforms.add_goal(data, Goal("g2", "Car", Decimal("5000"), Decimal("0"), date(2026, 1, 1)))
    data = transforms.delete_goal(data, "g1")
    assert [g.id for g in data.goals] == ["g2"]


def test_investments():
    asset = InvestmentAsset(
        "i1", "CDB", InvestmentType.CDB, "Bank", Decimal("1000"), Decimal("12"), date(2024, 1, 1)
    )
    data = transforms.add_investment(make_data(), asset)
    data = transforms.update_investment(data, "i1", annual_rate=Decimal("13"))
    assert data.investments[0].annual_rate == Decimal("13")
    data = transforms.delete_investment(data, "i1")
    assert data.investments == ()


def test_transforms_do_not_mutate_input():
    data = make_data()
    transforms.add_transaction(data, make_tx("40"), id_factory=ids())
    assert data.transactions == ()
    assert balance(data, "a1") == Decimal("0")
