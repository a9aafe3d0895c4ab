"""Producers of transaction candidates from bank exports (OFX, delimited CSV).

Parsers only turn text into ``Candidate`` rows; attaching them to an
account and deduplicating happens elsewhere.
"""

import io
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional

import pandas as pd

from ledger.domain import Transaction, TransactionStatus, TransactionType, new_id
from ledger.fingerprint import normalize_text


@dataclass(frozen=True)
class Candidate:
    description: str
    amount: Decimal
    type: TransactionType
    date: date


# --- OFX

_STMTTRN = re.compile(r"<STMTTRN>(.*?)</STMTTRN>", re.S | re.I)
_DTPOSTED = re.compile(r"<DTPOSTED>\s*([^<\r\n]+)", re.I)
_TRNAMT = re.compile(r"<TRNAMT>\s*([^<\r\n]+)", re.I)
_MEMO = re.compile(r"<MEMO>\s*([^<\r\n]*)", re.I)
_NAME = re.compile(r"<NAME>\s*([^<\r\n]*)", re.I)

OFX_DEFAULT_DESCRIPTION = "OFX transaction"


def parse_ofx(text: str) -> list[Candidate]:
    candidates = []
    for block in _STMTTRN.findall(text or ""):
        date_match = _DTPOSTED.search(block)
        amount_match = _TRNAMT.search(block)
        if not date_match or not amount_match:
            continue
        raw_amount = _to_decimal(amount_match.group(1).strip().replace(",", "."))
        if raw_amount is None or raw_amount == 0:
            continue
        raw_date = date_match.group(1).strip()[:8]
        try:
            posted = date(int(raw_date[:4]), int(raw_date[4:6]), int(raw_date[6:8]))
        except ValueError:
            continue
        memo = _MEMO.search(block) or _NAME.search(block)
        description = memo.group(1).strip() if memo else ""
        candidates.append(Candidate(
            description=description or OFX_DEFAULT_DESCRIPTION,
            amount=abs(raw_amount),
            type=TransactionType.INCOME if raw_amount >= 0 else TransactionType.EXPENSE,
            date=posted,
        ))
    return candidates


# --- CSV

COLUMN_ALIASES = {
    "date": ("data", "date"),
    "description": ("descricao", "descrição", "historico", "histórico", "description"),
    "amount": ("valor", "amount"),
    "type": ("tipo", "type"),
}

INCOME_MARKERS = ("receita", "credito", "income")
CSV_DEFAULT_DESCRIPTION = "CSV"


def resolve_columns(header: Iterable[str]) -> dict[str, Optional[str]]:
    """Map each logical field to the first header column that names it."""
    by_normalized = {}
    for col in header:
        by_normalized.setdefault(normalize_text(str(col)), col)
    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        resolved[field] = next(
            (by_normalized[normalize_text(a)] for a in aliases if normalize_text(a) in by_normalized),
            None,
        )
    return resolved


def _to_decimal(raw: str) -> Optional[Decimal]:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_amount(raw: str) -> Optional[Decimal]:
    """Parse ``1.234,56``, ``1234,56`` or ``1234.56``; sign is dropped."""
    cleaned = re.sub(r"[^0-9,.\-]", "", raw or "")
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    value = _to_decimal(cleaned)
    return abs(value) if value is not None else None


def parse_date(raw: str, today: date) -> Optional[date]:
    raw = (raw or "").strip()
    if not raw:
        return today
    try:
        if "/" in raw:
            day, month, year = raw.split("/")
            return date(int(year), int(month), int(day))
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def infer_type(raw: str) -> TransactionType:
    value = normalize_text(raw)
    if any(marker in value for marker in INCOME_MARKERS):
        return TransactionType.INCOME
    return TransactionType.EXPENSE


def parse_csv(text: str, separator: str = ";", today: Optional[date] = None) -> list[Candidate]:
    today = today or date.today()
    df = pd.read_csv(
        io.StringIO(text),
        sep=separator or ";",
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        on_bad_lines="skip",
    )
    columns = resolve_columns(df.columns)

    def cell(row, field):
        col = columns[field]
        value = row[col] if col is not None else ""
        return value.strip() if isinstance(value, str) else ""

    candidates = []
    for _, row in df.iterrows():
        amount = parse_amount(cell(row, "amount"))
        if not amount:
            continue
        posted = parse_date(cell(row, "date"), today)
        if posted is None:
            continue
        candidates.append(Candidate(
            description=cell(row, "description") or CSV_DEFAULT_DESCRIPTION,
            amount=amount,
            type=infer_type(cell(row, "type")),
            date=posted,
        ))
    return candidates


def to_transactions(
    candidates: Iterable[Candidate],
    account_id: str,
    id_factory: Callable[[], str] = new_id,
) -> tuple[Transaction, ...]:
    return tuple(
        Transaction(
            id=id_factory(),
            description=c.description,
            amount=c.amount,
            type=c.type,
            date=c.date,
            account_id=account_id,
            status=TransactionStatus.COMPLETED,
        )
        for c in candidates
    )
