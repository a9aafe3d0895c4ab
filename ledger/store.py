"""The ledger state container.

``LedgerStore`` is the only writer of the ``AppData`` aggregate. Each public
mutation computes the next aggregate with a pure transform, swaps it in,
and publishes ``STATE_CHANGED`` so subscribers (persistence among them)
can react. Operations on unknown ids leave the state untouched and publish
nothing.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional

from pandas.errors import EmptyDataError, ParserError

from ledger import transforms
from ledger.config import Settings
from ledger.dedupe import StagingItem, dedupe, stage
from ledger.domain import (
    Account,
    AppData,
    Category,
    CategoryStats,
    FilterOptions,
    Goal,
    InvestmentAsset,
    ScheduleMode,
    Transaction,
    TransactionType,
    ViewState,
)
from ledger.events import (
    BUDGET_ALERT,
    IMPORT_COMPLETED,
    STATE_CHANGED,
    EventBus,
    log_import_handler,
    persist_handler,
)
from ledger.functional import check_budget, find_by_id
from ledger.lazy import upcoming_bills
from ledger.logging_setup import get_logger
from ledger.memo import category_stats, is_anomalous
from ledger.parsers import Candidate, parse_csv, parse_ofx, to_transactions
from ledger.query import month_start, query, shift_month
from ledger.storage import default_data, export_document, parse_document

logger = get_logger("ledger.store")


class LedgerStore:

    def __init__(
        self,
        data: Optional[AppData] = None,
        storage=None,
        bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or Settings()
        self.bus = bus or EventBus()
        self._data = data if data is not None else default_data()
        self._today = today
        self.view = ViewState(month=month_start(today()))
        if storage is not None:
            self.bus.subscribe(STATE_CHANGED, persist_handler(storage))
        self.bus.subscribe(IMPORT_COMPLETED, log_import_handler)

    @classmethod
    def open(cls, storage, fallback: Optional[AppData] = None, **kwargs) -> "LedgerStore":
        """Load from ``storage``; use ``fallback`` (or the defaults) when nothing is stored yet."""
        data = storage.load()
        if data is None:
            logger.info("No stored ledger found, starting from %s", "seed data" if fallback else "defaults")
            data = fallback
        return cls(data, storage=storage, **kwargs)

    @property
    def data(self) -> AppData:
        return self._data

    def _commit(self, new_data: AppData, action: str) -> AppData:
        if new_data is self._data:
            logger.debug("%s: no matching record, state unchanged", action)
            return self._data
        self._data = new_data
        logger.debug("%s applied", action)
        self.bus.publish(STATE_CHANGED, {"action": action, "data": new_data})
        return new_data

    def _alert_budget(self, t: Transaction) -> None:
        if t.type is not TransactionType.EXPENSE or not t.category_id:
            return
        category = find_by_id(self._data.categories, t.category_id).get_or_else(None)
        if category is None:
            return
        result = check_budget(category, self._data.transactions, t.date)
        if result.is_left():
            self.bus.publish(BUDGET_ALERT, result.get_error())

    # --- transactions

    def add_transaction(
        self,
        base: Transaction,
        mode: ScheduleMode = ScheduleMode.SINGLE,
        count: Optional[int] = None,
    ) -> AppData:
        if mode is ScheduleMode.RECURRING and count is None:
            count = self.settings.recurring_count
        data = self._commit(transforms.add_transaction(self._data, base, mode, count), "add_transaction")
        self._alert_budget(base)
        return data

    def edit_transaction(self, tid: str, new_data: Transaction) -> AppData:
        before = self._data
        data = self._commit(transforms.edit_transaction(self._data, tid, new_data), "edit_transaction")
        if data is not before:
            self._alert_budget(new_data)
        return data

    def delete_transaction(self, tid: str) -> AppData:
        return self._commit(transforms.delete_transaction(self._data, tid), "delete_transaction")

    def toggle_status(self, tid: str) -> AppData:
        return self._commit(transforms.toggle_status(self._data, tid), "toggle_status")

    # --- accounts

    def add_account(self, account: Account) -> AppData:
        return self._commit(transforms.add_account(self._data, account), "add_account")

    def delete_account(self, acc_id: str) -> AppData:
        return self._commit(transforms.delete_account(self._data, acc_id), "delete_account")

    def update_account_balance(self, acc_id: str, balance: Decimal) -> AppData:
        return self._commit(
            transforms.update_account_balance(self._data, acc_id, balance), "update_account_balance"
        )

    def update_account_details(self, acc_id: str, **changes) -> AppData:
        return self._commit(
            transforms.update_account_details(self._data, acc_id, **changes), "update_account_details"
        )

    # --- categories, goals, investments

    def add_category(self, category: Category) -> AppData:
        return self._commit(transforms.add_category(self._data, category), "add_category")

    def update_category(self, cat_id: str, **changes) -> AppData:
        return self._commit(transforms.update_category(self._data, cat_id, **changes), "update_category")

    def delete_category(self, cat_id: str) -> AppData:
        return self._commit(transforms.delete_category(self._data, cat_id), "delete_category")

    def add_subcategory(self, cat_id: str, name: str) -> AppData:
        return self._commit(transforms.add_subcategory(self._data, cat_id, name), "add_subcategory")

    def add_goal(self, goal: Goal) -> AppData:
        return self._commit(transforms.add_goal(self._data, goal), "add_goal")

    def add_to_goal(self, goal_id: str, amount: Decimal) -> AppData:
        return self._commit(transforms.add_to_goal(self._data, goal_id, amount), "add_to_goal")

    def update_goal(self, goal_id: str, current_amount: Decimal) -> AppData:
        return self._commit(transforms.update_goal(self._data, goal_id, current_amount), "update_goal")

    def delete_goal(self, goal_id: str) -> AppData:
        return self._commit(transforms.delete_goal(self._data, goal_id), "delete_goal")

    def add_investment(self, asset: InvestmentAsset) -> AppData:
        return self._commit(transforms.add_investment(self._data, asset), "add_investment")

    def update_investment(self, asset_id: str, **changes) -> AppData:
        return self._commit(transforms.update_investment(self._data, asset_id, **changes), "update_investment")

    def delete_investment(self, asset_id: str) -> AppData:
        return self._commit(transforms.delete_investment(self._data, asset_id), "delete_investment")

    # --- view state and reads

    def change_month(self, offset: int) -> ViewState:
        self.view = ViewState(shift_month(self.view.month, offset), self.view.search_text, self.view.filters)
        return self.view

    def set_search(self, text: str) -> ViewState:
        self.view = ViewState(self.view.month, text or "", self.view.filters)
        return self.view

    def set_filters(self, filters: FilterOptions) -> ViewState:
        self.view = ViewState(self.view.month, self.view.search_text, filters)
        return self.view

    def visible_transactions(self) -> tuple[Transaction, ...]:
        return query(self._data.transactions, self.view, self._data.categories)

    def category_stats(self, cat_id: str) -> CategoryStats:
        return category_stats(self._data.transactions, cat_id)

    def is_anomalous(self, cat_id: str, amount: Decimal) -> bool:
        return is_anomalous(self.category_stats(cat_id), amount, self.settings.anomaly_factor)

    def upcoming_bills(self, today: Optional[date] = None) -> tuple[Transaction, ...]:
        return upcoming_bills(self._data.transactions, today or self._today(), self.settings.upcoming_days)

    # --- imports

    def _parse(self, source: str, parse: Callable[[], list[Candidate]]) -> Optional[list[Candidate]]:
        try:
            return parse()
        except (EmptyDataError, ParserError, ValueError) as e:
            logger.warning("Could not parse %s import: %s", source, e)
            return None

    def _stage(self, source: str, parse: Callable[[], list[Candidate]], account_id: str) -> tuple[StagingItem, ...]:
        if find_by_id(self._data.accounts, account_id).is_none():
            logger.warning("Import into unknown account %s ignored", account_id)
            return ()
        candidates = self._parse(source, parse)
        if not candidates:
            return ()
        return stage(to_transactions(candidates, account_id), self._data.transactions)

    def stage_ofx(self, text: str, account_id: str) -> tuple[StagingItem, ...]:
        return self._stage("ofx", lambda: parse_ofx(text), account_id)

    def stage_csv(self, text: str, account_id: str, separator: Optional[str] = None) -> tuple[StagingItem, ...]:
        sep = separator or self.settings.csv_separator
        return self._stage("csv", lambda: parse_csv(text, sep, self._today()), account_id)

    def commit_staged(self, items: Iterable[StagingItem], source: str = "staged") -> int:
        items = tuple(items)
        chosen = [item.transaction for item in items if not item.possible_duplicate]
        fresh = dedupe(chosen, self._data.transactions)
        self._commit(transforms.import_transactions(self._data, fresh), f"import_{source}")
        self.bus.publish(IMPORT_COMPLETED, {
            "source": source,
            "account_id": items[0].transaction.account_id if items else None,
            "parsed": len(items),
            "imported": len(fresh),
            "skipped": len(items) - len(fresh),
        })
        return len(fresh)

    def import_ofx(self, text: str, account_id: str) -> int:
        return self.commit_staged(self.stage_ofx(text, account_id), "ofx")

    def import_csv(self, text: str, account_id: str, separator: Optional[str] = None) -> int:
        return self.commit_staged(self.stage_csv(text, account_id, separator), "csv")

    # --- whole-document export/import

    def export_document(self) -> str:
        return export_document(self._data)

    def import_document(self, text: str) -> bool:
        result = parse_document(text, self._data)
        if result.is_left():
            logger.warning("Rejected imported document: %s", result.get_error()["message"])
            return False
        self._commit(result.get_or_else(self._data), "import_document")
        return True
