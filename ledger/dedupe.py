"""Staging and deduplication of imported transactions.

Matching is heuristic: two real transactions on the same account and day
with the same type, amount and description share a fingerprint, and the
later one is treated as a duplicate.
"""

from dataclasses import dataclass
from typing import Iterable

from ledger.domain import Transaction
from ledger.fingerprint import fingerprint


@dataclass(frozen=True)
class StagingItem:
    transaction: Transaction
    possible_duplicate: bool


def stage(
    candidates: Iterable[Transaction], existing: Iterable[Transaction]
) -> tuple[StagingItem, ...]:
    known = {fingerprint(t) for t in existing}
    seen_in_batch = set()
    items = []
    for t in candidates:
        fp = fingerprint(t)
        items.append(StagingItem(t, fp in known or fp in seen_in_batch))
        seen_in_batch.add(fp)
    return tuple(items)


def dedupe(
    candidates: Iterable[Transaction], existing: Iterable[Transaction]
) -> tuple[Transaction, ...]:
    return tuple(
        item.transaction for item in stage(candidates, existing)
        if not item.possible_duplicate
    )
