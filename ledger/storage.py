"""Persistence of the ``AppData`` aggregate as one JSON document.

The document is an object with ``transactions``, ``categories``,
``accounts``, ``goals`` and ``investments`` arrays. The same format serves
the on-disk store and the user-facing export/import.
"""

import json
import os
import tempfile
from dataclasses import asdict
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from ledger.domain import (
    Account,
    AccountKind,
    AppData,
    Benchmark,
    Category,
    Goal,
    Installment,
    InvestmentAsset,
    InvestmentType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from ledger.functional import Either, Left, Right
from ledger.logging_setup import get_logger

logger = get_logger("ledger.storage")

DEFAULT_CATEGORIES = (
    Category("c1", "Food", TransactionType.EXPENSE, "#ef4444", "Utensils", ("Groceries", "Restaurant", "Delivery")),
    Category("c2", "Transport", TransactionType.EXPENSE, "#f97316", "Car", ("Fuel", "Taxi", "Maintenance", "Bus")),
    Category("c3", "Housing", TransactionType.EXPENSE, "#eab308", "Home", ("Rent", "Condo fee", "Electricity", "Water", "Internet")),
    Category("c4", "Leisure", TransactionType.EXPENSE, "#8b5cf6", "Film", ("Cinema", "Travel", "Subscriptions")),
    Category("c5", "Health", TransactionType.EXPENSE, "#ec4899", "Heart", ("Pharmacy", "Doctor", "Health plan")),
    Category("c6", "Salary", TransactionType.INCOME, "#10b981", "Briefcase", ("Monthly salary", "Bonus", "Vacation pay")),
    Category("c7", "Investments", TransactionType.INCOME, "#06b6d4", "TrendingUp", ("Dividends", "Savings yield")),
)

DEFAULT_ACCOUNTS = (
    Account("a1", "Wallet (cash)", AccountKind.WALLET),
    Account("a2", "Checking account", AccountKind.CHECKING),
    Account("a3", "Savings / reserve", AccountKind.SAVINGS),
)

DEFAULT_GOALS = (
    Goal("g1", "Emergency fund", Decimal("10000"), Decimal("0"), date(2025, 12, 31), "#10b981", "Shield"),
)


def default_data() -> AppData:
    return AppData(
        categories=DEFAULT_CATEGORIES,
        accounts=DEFAULT_ACCOUNTS,
        goals=DEFAULT_GOALS,
    )


# --- entity <-> plain dict


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def _dec(value) -> Decimal:
    return Decimal(str(value))


def _opt(convert, value):
    return None if value is None else convert(value)


def _date(value) -> date:
    return date.fromisoformat(str(value))


def account_from(d: dict) -> Account:
    return Account(
        id=d["id"],
        name=d["name"],
        kind=AccountKind(d["kind"]),
        balance=_dec(d.get("balance", 0)),
        credit_limit=_opt(_dec, d.get("credit_limit")),
        closing_day=_opt(int, d.get("closing_day")),
        due_day=_opt(int, d.get("due_day")),
    )


def transaction_from(d: dict) -> Transaction:
    installment = d.get("installment")
    return Transaction(
        id=d["id"],
        description=d["description"],
        amount=_dec(d["amount"]),
        type=TransactionType(d["type"]),
        date=_date(d["date"]),
        account_id=d["account_id"],
        status=TransactionStatus(d.get("status", TransactionStatus.COMPLETED.value)),
        category_id=d.get("category_id"),
        subcategory=d.get("subcategory"),
        to_account_id=d.get("to_account_id"),
        tags=tuple(d.get("tags") or ()),
        group_id=d.get("group_id"),
        installment=Installment(int(installment["current"]), int(installment["total"])) if installment else None,
        is_recurring=bool(d.get("is_recurring", False)),
        credit_card_id=d.get("credit_card_id"),
        invoice_month=d.get("invoice_month"),
        installment_id=d.get("installment_id"),
    )


def category_from(d: dict) -> Category:
    return Category(
        id=d["id"],
        name=d["name"],
        type=TransactionType(d["type"]),
        color=d.get("color", "#6b7280"),
        icon=d.get("icon", "Tag"),
        subcategories=tuple(d.get("subcategories") or ()),
        budget_limit=_opt(_dec, d.get("budget_limit")),
    )


def goal_from(d: dict) -> Goal:
    return Goal(
        id=d["id"],
        name=d["name"],
        target_amount=_dec(d["target_amount"]),
        current_amount=_dec(d.get("current_amount", 0)),
        deadline=_date(d["deadline"]),
        color=d.get("color", "#10b981"),
        icon=d.get("icon", "Target"),
    )


def investment_from(d: dict) -> InvestmentAsset:
    return InvestmentAsset(
        id=d["id"],
        name=d["name"],
        type=InvestmentType(d["type"]),
        institution=d.get("institution", ""),
        principal=_dec(d["principal"]),
        annual_rate=_dec(d["annual_rate"]),
        start_date=_date(d["start_date"]),
        liquidity_days=int(d.get("liquidity_days", 1)),
        benchmark=_opt(Benchmark, d.get("benchmark")),
        benchmark_percent=_opt(_dec, d.get("benchmark_percent")),
        expected_withdrawal_date=_opt(_date, d.get("expected_withdrawal_date") or None),
        iof_retroactive=bool(d.get("iof_retroactive", False)),
        iof_rate=_dec(d.get("iof_rate", 0)),
        ir_rate=_dec(d.get("ir_rate", 15)),
        ir_retroactive_base=d.get("ir_retroactive_base"),
        notes=d.get("notes", ""),
    )


_BUILDERS = {
    "transactions": transaction_from,
    "categories": category_from,
    "accounts": account_from,
    "goals": goal_from,
    "investments": investment_from,
}


def to_document(data: AppData) -> dict:
    return _plain(asdict(data))


def from_document(doc: dict, fallback: AppData) -> AppData:
    """Build an aggregate; top-level arrays missing from ``doc`` come from ``fallback``."""
    parts = {}
    for key, build in _BUILDERS.items():
        items = doc.get(key)
        if isinstance(items, list):
            parts[key] = tuple(build(item) for item in items)
        else:
            parts[key] = getattr(fallback, key)
    return AppData(**parts)


def export_document(data: AppData) -> str:
    return json.dumps(to_document(data), indent=2, ensure_ascii=False)


def parse_document(text: str, current: AppData) -> Either[dict, AppData]:
    try:
        doc = json.loads(text, parse_float=Decimal)
    except ValueError as e:
        return Left({"error": "invalid_json", "message": str(e)})

    if not isinstance(doc, dict) or not isinstance(doc.get("transactions"), list):
        return Left({"error": "missing_transactions", "message": "Document has no transactions array"})

    try:
        return Right(from_document(doc, current))
    except (KeyError, TypeError, ValueError, AttributeError, InvalidOperation) as e:
        return Left({"error": "invalid_entity", "message": f"{type(e).__name__}: {e}"})


def load_seed(path: Union[str, Path]) -> AppData:
    with open(path, "r", encoding="utf-8") as f:
        doc = json.load(f, parse_float=Decimal)
    return from_document(doc, default_data())


class JsonFileStorage:
    """File-backed persistence provider with ``load``/``save``."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[AppData]:
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Ignoring unreadable ledger file %s: %s", self.path, e)
            return None
        result = parse_document(text, default_data())
        if result.is_left():
            logger.error("Ignoring unreadable ledger file %s: %s", self.path, result.get_error()["message"])
            return None
        return result.get_or_else(None)

    def save(self, data: AppData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(export_document(data))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
