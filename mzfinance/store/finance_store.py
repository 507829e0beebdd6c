"""
Finance Store

Holds every collection of the signed-in household in memory and mirrors
changes to the remote store.

DESIGN DECISION: Mutations are optimistic. They apply to the local
collections synchronously and schedule an asynchronous push of the whole
changed collection (upsert keyed by id). A failed push is logged and
never rolled back, so the local state can be ahead of the remote one
until the next successful push of that table.

Pushes are suppressed until the first load for an owner has completed.
Without that guard the default collections that exist before loading
would overwrite the household's real data.
"""

import asyncio
from decimal import Decimal
from typing import Any, Optional

from mzfinance.audit import AuditLogger, get_logger
from mzfinance.constants import default_categories
from mzfinance.models.audit import AuditEventBuilder
from mzfinance.models.finance import (
    Asset,
    Card,
    Category,
    FixedEntry,
    Goal,
    Investment,
    MonthConfig,
    Transaction,
    TransactionType,
)
from mzfinance.models.user import User
from mzfinance.reports.budget import (
    MONTHLY_DEFAULT_SPLIT,
    clamp_percent,
    default_month_config,
)
from mzfinance.reports.entries import materialize_fixed_entries, switch_type
from mzfinance.reports.summary import monthly_stats, transactions_for_month
from mzfinance.services.storage.interface import RemoteStore, StorageError
from mzfinance.services.storage.mapping import MAPPINGS, TABLES


logger = get_logger(__name__)

CATEGORIES = "categories"
CARDS = "cards"
GOALS = "goals"
FIXED_ENTRIES = "fixed_entries"
TRANSACTIONS = "transactions"
ASSETS = "assets"
INVESTMENTS = "investments"
MONTH_CONFIGS = "month_configs"


def _empty_collections() -> dict[str, list[Any]]:
    collections: dict[str, list[Any]] = {table: [] for table in TABLES}
    collections[CATEGORIES] = default_categories()
    return collections


class FinanceStore:
    """
    In-memory finance collections with per-table remote push.

    ``remote`` may be None (offline mode): everything works locally and
    nothing is ever pushed.
    """

    def __init__(
        self,
        remote: Optional[RemoteStore] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._remote = remote
        self._audit_logger = audit_logger or AuditLogger()
        self._collections = _empty_collections()
        self._owner_id: Optional[str] = None
        self._loaded = False
        # Bumped on every load/reset; a fetch that finishes under an older
        # generation belongs to a previous identity and is discarded
        self._generation = 0
        self._pending: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_syncing(self) -> bool:
        """True while any push or remote delete is in flight."""
        return bool(self._pending)

    @property
    def is_offline(self) -> bool:
        return self._remote is None

    @property
    def categories(self) -> list[Category]:
        return list(self._collections[CATEGORIES])

    @property
    def cards(self) -> list[Card]:
        return list(self._collections[CARDS])

    @property
    def goals(self) -> list[Goal]:
        return list(self._collections[GOALS])

    @property
    def fixed_entries(self) -> list[FixedEntry]:
        return list(self._collections[FIXED_ENTRIES])

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._collections[TRANSACTIONS])

    @property
    def assets(self) -> list[Asset]:
        return list(self._collections[ASSETS])

    @property
    def investments(self) -> list[Investment]:
        return list(self._collections[INVESTMENTS])

    @property
    def month_configs(self) -> list[MonthConfig]:
        return list(self._collections[MONTH_CONFIGS])

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def on_identity_changed(self, user: Optional[User]) -> None:
        """Session listener: load the household of a new identity, reset on logout."""
        if user is None:
            self.reset()
            await self._audit_logger.log(AuditEventBuilder.store_reset())
            return
        await self.load(user.owner_id)

    def reset(self) -> None:
        """Back to the defaults; not loaded and no owner."""
        self._generation += 1
        self._collections = _empty_collections()
        self._owner_id = None
        self._loaded = False

    async def load(self, owner_id: str) -> None:
        """
        Fetch every table owned by ``owner_id`` in parallel.

        Each table that answers replaces its collection; a table that fails
        keeps its current contents and is logged. The store counts as loaded
        afterwards either way.

        A different owner starts from the defaults and stays unloaded until
        its fetch completes; mutations made in between are not pushed.
        """
        self._generation += 1
        generation = self._generation
        if owner_id != self._owner_id:
            self._collections = _empty_collections()
            self._loaded = False
        self._owner_id = owner_id

        if self._remote is None:
            self._loaded = True
            await self._audit_logger.log(
                AuditEventBuilder.offline_mode("finance store loaded without a remote store")
            )
            return

        results = await asyncio.gather(
            *(self._remote.select_owned(table, owner_id) for table in TABLES),
            return_exceptions=True,
        )

        if generation != self._generation:
            logger.info("stale_fetch_ignored", owner_id=owner_id)
            return

        failed: list[str] = []
        seed_categories = False
        for table, result in zip(TABLES, results):
            if isinstance(result, BaseException):
                failed.append(table)
                await self._audit_logger.log(
                    AuditEventBuilder.table_fetch_failed(table, owner_id, str(result))
                )
                continue

            mapping = MAPPINGS[table]
            try:
                items = [mapping.from_remote(row) for row in result]
            except ValueError as e:
                failed.append(table)
                await self._audit_logger.log(
                    AuditEventBuilder.table_fetch_failed(table, owner_id, str(e))
                )
                continue

            if table == CATEGORIES and not items:
                # New household: keep the built-in categories and store them
                seed_categories = True
                continue
            self._collections[table] = items

        self._loaded = True
        await self._audit_logger.log(AuditEventBuilder.store_loaded(
            owner_id,
            {table: len(items) for table, items in self._collections.items()},
            failed,
        ))

        if seed_categories:
            self._schedule_push(CATEGORIES)

    async def flush(self) -> None:
        """Wait for every scheduled push and delete to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
            self._pending = {task for task in self._pending if not task.done()}

    # -------------------------------------------------------------------------
    # Remote push
    # -------------------------------------------------------------------------

    def _can_push(self) -> bool:
        return self._loaded and self._owner_id is not None and self._remote is not None

    def _spawn(self, coro) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("remote_sync_skipped", reason="no running event loop")
            return
        self._pending.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        self._pending.discard(task)

    def _schedule_push(self, table: str) -> None:
        if not self._can_push():
            return
        mapping = MAPPINGS[table]
        rows = [mapping.to_remote(item, self._owner_id) for item in self._collections[table]]
        self._spawn(self._push(table, rows))

    async def _push(self, table: str, rows: list[dict]) -> None:
        try:
            await self._remote.upsert_rows(table, rows)
        except StorageError as e:
            await self._audit_logger.log(AuditEventBuilder.push_failed(table, len(rows), str(e)))

    def _schedule_delete(self, table: str, row_id: str) -> None:
        if not self._can_push():
            return
        self._spawn(self._delete_remote(table, row_id))

    async def _delete_remote(self, table: str, row_id: str) -> None:
        try:
            await self._remote.delete_row(table, row_id)
        except StorageError as e:
            await self._audit_logger.log(AuditEventBuilder.remote_delete_failed(table, row_id, str(e)))

    # -------------------------------------------------------------------------
    # Generic mutations
    # -------------------------------------------------------------------------

    def _set(self, table: str, items: list) -> None:
        self._collections[table] = list(items)
        self._schedule_push(table)

    def _save(self, table: str, item):
        items = self._collections[table]
        for index, existing in enumerate(items):
            if existing.id == item.id:
                items[index] = item
                break
        else:
            items.append(item)
        self._schedule_push(table)
        return item

    def _delete(self, table: str, item_id: str) -> bool:
        items = self._collections[table]
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            return False
        self._collections[table] = remaining
        self._schedule_delete(table, item_id)
        return True

    def _find(self, table: str, item_id: Optional[str]):
        if not item_id:
            return None
        return next((item for item in self._collections[table] if item.id == item_id), None)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def save_category(self, category: Category) -> Category:
        return self._save(CATEGORIES, category)

    def delete_category(self, category_id: str) -> bool:
        """Remove a category. System categories are refused (returns False)."""
        category = self.category(category_id)
        if category is None or category.is_system:
            return False
        return self._delete(CATEGORIES, category_id)

    def set_categories(self, categories: list[Category]) -> None:
        self._set(CATEGORIES, categories)

    def category(self, category_id: Optional[str]) -> Optional[Category]:
        return self._find(CATEGORIES, category_id)

    # -------------------------------------------------------------------------
    # Cards, goals, fixed entries
    # -------------------------------------------------------------------------

    def save_card(self, card: Card) -> Card:
        return self._save(CARDS, card)

    def delete_card(self, card_id: str) -> bool:
        return self._delete(CARDS, card_id)

    def set_cards(self, cards: list[Card]) -> None:
        self._set(CARDS, cards)

    def card(self, card_id: Optional[str]) -> Optional[Card]:
        return self._find(CARDS, card_id)

    def save_goal(self, goal: Goal) -> Goal:
        return self._save(GOALS, goal)

    def delete_goal(self, goal_id: str) -> bool:
        return self._delete(GOALS, goal_id)

    def set_goals(self, goals: list[Goal]) -> None:
        self._set(GOALS, goals)

    def goal(self, goal_id: Optional[str]) -> Optional[Goal]:
        return self._find(GOALS, goal_id)

    def save_fixed_entry(self, entry: FixedEntry) -> FixedEntry:
        return self._save(FIXED_ENTRIES, entry)

    def delete_fixed_entry(self, entry_id: str) -> bool:
        return self._delete(FIXED_ENTRIES, entry_id)

    def set_fixed_entries(self, entries: list[FixedEntry]) -> None:
        self._set(FIXED_ENTRIES, entries)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def save_transaction(self, transaction: Transaction) -> Transaction:
        return self._save(TRANSACTIONS, transaction)

    def delete_transaction(self, transaction_id: str) -> bool:
        return self._delete(TRANSACTIONS, transaction_id)

    def set_transactions(self, transactions: list[Transaction]) -> None:
        self._set(TRANSACTIONS, transactions)

    def transaction(self, transaction_id: Optional[str]) -> Optional[Transaction]:
        return self._find(TRANSACTIONS, transaction_id)

    def month_transactions(self, month_code: str) -> list[Transaction]:
        """Transactions of a month, latest day first."""
        month = transactions_for_month(self._collections[TRANSACTIONS], month_code.lower())
        return sorted(month, key=lambda t: t.day, reverse=True)

    def toggle_paid(self, transaction_id: str) -> Optional[Transaction]:
        transaction = self.transaction(transaction_id)
        if transaction is None:
            return None
        return self._save(TRANSACTIONS, transaction.model_copy(update={"paid": not transaction.paid}))

    def switch_transaction_type(
        self,
        transaction_id: str,
        new_type: TransactionType,
    ) -> Optional[Transaction]:
        """Change a transaction's type, moving it to a matching category."""
        transaction = self.transaction(transaction_id)
        if transaction is None:
            return None
        switched = switch_type(transaction, new_type, self._collections[CATEGORIES])
        return self._save(TRANSACTIONS, switched)

    def apply_fixed_entries(self, month_code: str) -> list[Transaction]:
        """Materialize the active fixed entries into a month; returns what was added."""
        created = materialize_fixed_entries(
            self._collections[FIXED_ENTRIES],
            month_code.lower(),
            self._collections[TRANSACTIONS],
        )
        if created:
            self._collections[TRANSACTIONS].extend(created)
            self._schedule_push(TRANSACTIONS)
        return created

    # -------------------------------------------------------------------------
    # Patrimony
    # -------------------------------------------------------------------------

    def save_asset(self, asset: Asset) -> Asset:
        return self._save(ASSETS, asset)

    def delete_asset(self, asset_id: str) -> bool:
        return self._delete(ASSETS, asset_id)

    def set_assets(self, assets: list[Asset]) -> None:
        self._set(ASSETS, assets)

    def save_investment(self, investment: Investment) -> Investment:
        return self._save(INVESTMENTS, investment)

    def delete_investment(self, investment_id: str) -> bool:
        return self._delete(INVESTMENTS, investment_id)

    def set_investments(self, investments: list[Investment]) -> None:
        self._set(INVESTMENTS, investments)

    def investment(self, investment_id: Optional[str]) -> Optional[Investment]:
        return self._find(INVESTMENTS, investment_id)

    # -------------------------------------------------------------------------
    # Month configs
    # -------------------------------------------------------------------------

    def _stored_month_config(self, month_code: str) -> Optional[MonthConfig]:
        return next(
            (c for c in self._collections[MONTH_CONFIGS] if c.month_code == month_code),
            None,
        )

    def month_config(
        self,
        month_code: str,
        default_split: tuple[Decimal, Decimal, Decimal] = MONTHLY_DEFAULT_SPLIT,
    ) -> MonthConfig:
        """
        The budget split of a month.

        Falls back to ``default_split`` when nothing is stored. ``income`` is
        always the month's live income sum, not the stored value.
        """
        month_code = month_code.lower()
        income = monthly_stats(self._collections[TRANSACTIONS], month_code).income
        stored = self._stored_month_config(month_code)
        if stored is None:
            return default_month_config(month_code, income, default_split)
        return stored.model_copy(update={"income": income})

    def update_month_config(self, config: MonthConfig) -> MonthConfig:
        configs = self._collections[MONTH_CONFIGS]
        for index, existing in enumerate(configs):
            if existing.month_code == config.month_code:
                configs[index] = config
                break
        else:
            configs.append(config)
        self._schedule_push(MONTH_CONFIGS)
        return config

    def delete_month_config(self, month_code: str) -> bool:
        config = self._stored_month_config(month_code.lower())
        if config is None:
            return False
        self._collections[MONTH_CONFIGS] = [
            c for c in self._collections[MONTH_CONFIGS] if c is not config
        ]
        if self._can_push():
            self._schedule_delete(
                MONTH_CONFIGS, MAPPINGS[MONTH_CONFIGS].row_id(config, self._owner_id)
            )
        return True

    def set_month_configs(self, configs: list[MonthConfig]) -> None:
        self._set(MONTH_CONFIGS, configs)

    def set_budget_percent(self, month_code: str, field: str, value) -> MonthConfig:
        """
        Change one percentage of a month's split, clamped so the total stays
        within 100.

        Raises:
            ValueError: If ``field`` is not a budget percentage
        """
        config = clamp_percent(self.month_config(month_code), field, value)
        return self.update_month_config(config)
