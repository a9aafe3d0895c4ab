from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Generic, Iterable, TypeVar

from ledger.domain import Account, Category, Transaction, TransactionType

T = TypeVar('T')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):
    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def get_or_else(self, default):
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):
    __slots__ = ()

    def get_or_else(self, default):
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Result of an operation on untrusted input: ``Right`` value or ``Left`` error."""

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):
    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def get_or_else(self, default):
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self):
        raise ValueError("Right carries no error")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):
    __slots__ = ("_error",)

    def __init__(self, error: E):
        self._error = error

    def get_or_else(self, default):
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self):
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def find_by_id(items: Iterable[Any], item_id: str) -> Maybe[Any]:
    for item in items:
        if item.id == item_id:
            return Some(item)
    return Nothing()


def validate_transaction(t: Transaction, accs: tuple[Account, ...]) -> Either[dict, Transaction]:
    if find_by_id(accs, t.account_id).is_none():
        return Left({
            "error": "account_not_found",
            "message": f"Account with ID {t.account_id} does not exist",
            "account_id": t.account_id,
        })

    if t.type is TransactionType.TRANSFER:
        if find_by_id(accs, t.to_account_id).is_none():
            return Left({
                "error": "destination_not_found",
                "message": f"Destination account with ID {t.to_account_id} does not exist",
                "account_id": t.to_account_id,
            })
        if t.to_account_id == t.account_id:
            return Left({
                "error": "same_account_transfer",
                "message": "A transfer needs two different accounts",
                "account_id": t.account_id,
            })

    return Right(t)


def check_budget(
    category: Category, trans: Iterable[Transaction], month: date
) -> Either[dict, Category]:
    """Left when expenses of ``category`` within ``month`` exceed its limit."""
    if category.budget_limit is None or category.budget_limit <= 0:
        return Right(category)

    spent = sum(
        (
            t.amount for t in trans
            if t.category_id == category.id
            and t.type is TransactionType.EXPENSE
            and (t.date.year, t.date.month) == (month.year, month.month)
        ),
        Decimal("0"),
    )

    if spent > category.budget_limit:
        return Left({
            "error": "budget_exceeded",
            "message": f"Budget limit exceeded for category {category.name}",
            "category_id": category.id,
            "month": month.strftime("%Y-%m"),
            "limit": category.budget_limit,
            "spent": spent,
            "over_budget": spent - category.budget_limit,
        })

    return Right(category)


def pipe(x, *funcs):
    """Pipe a value through a series of functions.

    pipe(x, f, g, h) == h(g(f(x)))
    """
    res = x
    for f in funcs:
        res = f(res)
    return res
