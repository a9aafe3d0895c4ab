from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4


def new_id() -> str:
    return str(uuid4())


class AccountKind(str, Enum):
    WALLET = "wallet"
    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class ScheduleMode(str, Enum):
    SINGLE = "single"
    INSTALLMENT = "installment"
    RECURRING = "recurring"


class InvestmentType(str, Enum):
    CDB = "cdb"
    CDI = "cdi"
    FUNDO_RF = "fundo_rf"
    FUNDO_MULT = "fundo_mult"
    TESOURO = "tesouro"
    OUTRO = "outro"


class Benchmark(str, Enum):
    CDI = "cdi"
    IPCA = "ipca"
    PRE = "pre"


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    kind: AccountKind
    balance: Decimal = Decimal("0")
    # credit cards only
    credit_limit: Optional[Decimal] = None
    closing_day: Optional[int] = None
    due_day: Optional[int] = None

    @property
    def is_credit_card(self) -> bool:
        return self.kind is AccountKind.CREDIT_CARD


@dataclass(frozen=True)
class Installment:
    current: int
    total: int


@dataclass(frozen=True)
class Transaction:
    """One ledger entry.

    ``amount`` is always positive; the direction comes from ``type``.
    Only transfers carry ``to_account_id``.
    """

    id: str
    description: str
    amount: Decimal
    type: TransactionType
    date: date
    account_id: str
    status: TransactionStatus = TransactionStatus.COMPLETED
    category_id: Optional[str] = None
    subcategory: Optional[str] = None
    to_account_id: Optional[str] = None
    tags: tuple[str, ...] = ()
    group_id: Optional[str] = None
    installment: Optional[Installment] = None
    is_recurring: bool = False
    credit_card_id: Optional[str] = None
    invoice_month: Optional[str] = None  # YYYY-MM
    installment_id: Optional[str] = None

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError(f"Transaction amount must be positive, got {self.amount}")
        is_transfer = self.type is TransactionType.TRANSFER
        if is_transfer != (self.to_account_id is not None):
            raise ValueError("Only transfers have a destination account, and every transfer needs one")


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    type: TransactionType  # income or expense
    color: str = "#6b7280"
    icon: str = "Tag"
    subcategories: tuple[str, ...] = ()
    budget_limit: Optional[Decimal] = None


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: date
    color: str = "#10b981"
    icon: str = "Target"


@dataclass(frozen=True)
class InvestmentAsset:
    id: str
    name: str
    type: InvestmentType
    institution: str
    principal: Decimal
    annual_rate: Decimal  # % per year
    start_date: date
    liquidity_days: int = 1
    benchmark: Optional[Benchmark] = None
    benchmark_percent: Optional[Decimal] = None
    expected_withdrawal_date: Optional[date] = None
    iof_retroactive: bool = False
    iof_rate: Decimal = Decimal("0")
    ir_rate: Decimal = Decimal("15")
    ir_retroactive_base: Optional[str] = None
    notes: str = ""


@dataclass(frozen=True)
class AppData:
    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    accounts: tuple[Account, ...] = ()
    goals: tuple[Goal, ...] = ()
    investments: tuple[InvestmentAsset, ...] = ()


@dataclass(frozen=True)
class CategoryStats:
    average: Decimal
    count: int
    max: Decimal


@dataclass(frozen=True)
class FilterOptions:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    account_id: Optional[str] = None
    status: Optional[TransactionStatus] = None
    type: Optional[TransactionType] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


@dataclass(frozen=True)
class ViewState:
    month: date  # first day of the selected month
    search_text: str = ""
    filters: FilterOptions = field(default_factory=FilterOptions)
