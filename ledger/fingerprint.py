"""Transaction fingerprinting for import deduplication.

A fingerprint is a structured key rather than a joined string, so text
that happens to contain a separator can never make two different records
compare equal.
"""

import unicodedata
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from ledger.domain import Transaction, TransactionType


def normalize_text(value: str) -> str:
    """Lower-case, strip diacritics and surrounding whitespace."""
    decomposed = unicodedata.normalize("NFD", (value or "").lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


def to_cents(amount: Decimal) -> int:
    return int(abs(amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


class Fingerprint(NamedTuple):
    account_id: str
    date: date
    type: TransactionType
    cents: int
    description: str


def fingerprint(t: Transaction) -> Fingerprint:
    return Fingerprint(
        account_id=t.account_id,
        date=t.date,
        type=t.type,
        cents=to_cents(t.amount),
        description=normalize_text(t.description),
    )
