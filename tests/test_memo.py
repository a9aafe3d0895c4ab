from datetime import date
from decimal import Decimal

from ledger.domain import CategoryStats, Transaction, TransactionType
from ledger.memo import category_stats, is_anomalous


def make_tx(tid, amount, cat="food"):
    return Transaction(tid, "Lunch", Decimal(amount), TransactionType.EXPENSE, date(2024, 3, 1), "a1", category_id=cat)


def test_category_stats():
    trans = (make_tx("t1", "100"), make_tx("t2", "100"), make_tx("t3", "400"), make_tx("t4", "999", cat="other"))
    stats = category_stats(trans, "food")
    assert stats == CategoryStats(average=Decimal("200"), count=3, max=Decimal("400"))


def test_category_stats_empty():
    assert category_stats((), "food") == CategoryStats(Decimal("0"), 0, Decimal("0"))


def test_anomaly_above_threshold():
    stats = category_stats((make_tx("t1", "100"), make_tx("t2", "100"), make_tx("t3", "400")), "food")
    assert is_anomalous(stats, Decimal("300"))
    assert not is_anomalous(stats, Decimal("260"))
    assert is_anomalous(stats, Decimal("260.01"))


def test_anomaly_needs_two_samples():
    stats = category_stats((make_tx("t1", "10"),), "food")
    assert not is_anomalous(stats, Decimal("1000"))


def test_custom_factor():
    stats = CategoryStats(Decimal("100"), 5, Decimal("150"))
    assert is_anomalous(stats, Decimal("120"), factor=Decimal("1.1"))


def test_stats_are_cached():
    trans = (make_tx("t1", "10"), make_tx("t2", "20"))
    assert category_stats(trans, "food") is category_stats(trans, "food")
