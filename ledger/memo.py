from decimal import Decimal
from functools import lru_cache

from ledger.domain import CategoryStats, Transaction
from ledger.filters import by_category

ANOMALY_FACTOR = Decimal("1.3")


@lru_cache(maxsize=128)
def category_stats(trans: tuple[Transaction, ...], cat_id: str) -> CategoryStats:
    values = [t.amount for t in filter(by_category(cat_id), trans)]

    if not values:
        return CategoryStats(average=Decimal("0"), count=0, max=Decimal("0"))

    return CategoryStats(
        average=sum(values, Decimal("0")) / len(values),
        count=len(values),
        max=max(values),
    )


def is_anomalous(stats: CategoryStats, amount: Decimal, factor: Decimal = ANOMALY_FACTOR) -> bool:
    # needs at least two data points to say anything
    return stats.count >= 2 and amount > stats.average * factor
