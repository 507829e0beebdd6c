"""
Tests for the finance store.

Covers loading (full, empty and partial), optimistic mutations, push
suppression before load, best-effort deletes and the derived lookups.
"""

import asyncio
from decimal import Decimal

import pytest

from mzfinance.constants import CREDIT_PAYMENT_METHOD
from mzfinance.models import (
    AuditEventType,
    Card,
    FixedEntry,
    Goal,
    MonthConfig,
    Transaction,
    TransactionType,
)
from mzfinance.reports import DASHBOARD_DEFAULT_SPLIT, allocate_budget, monthly_stats
from mzfinance.services.storage import InMemoryRemoteStore
from mzfinance.store import FinanceStore


OWNER = "owner-1"


def income(value, month="jan-26", **kwargs) -> Transaction:
    return Transaction(month_code=month, type=TransactionType.INCOME, value=Decimal(value), **kwargs)


def expense(value, month="jan-26", **kwargs) -> Transaction:
    return Transaction(month_code=month, type=TransactionType.EXPENSE, value=Decimal(value), **kwargs)


def upserts(remote: InMemoryRemoteStore, table: str) -> int:
    return sum(1 for call in remote.calls if call == ("upsert", table))


class TestLoad:
    """Tests for FinanceStore.load."""

    def test_new_store_has_defaults(self, store):
        """Test the state before any load."""
        assert not store.is_loaded
        assert len(store.categories) == 23
        assert store.transactions == []
        assert store.owner_id is None

    def test_load_replaces_collections(self, audit_logger):
        """Test that owned rows are fetched and translated."""
        remote = InMemoryRemoteStore({
            "categories": [
                {"id": "k1", "name": "Mercado", "icon": "🛒", "subcategories": "", "is_system": False, "user_id": OWNER},
                {"id": "k2", "name": "Receita", "icon": "💸", "subcategories": "", "is_system": True, "user_id": OWNER},
            ],
            "cards": [
                {"id": "c1", "name": "Nubank", "bank": "Nu", "credit_limit": 1000, "closing_day": 3,
                 "color": "#000000", "user_id": OWNER},
                {"id": "c2", "name": "Other household", "bank": "", "credit_limit": 10, "closing_day": 1,
                 "color": "#000000", "user_id": "someone-else"},
            ],
        })
        store = FinanceStore(remote, audit_logger)

        asyncio.run(store.load(OWNER))

        assert store.is_loaded
        assert store.owner_id == OWNER
        assert [c.name for c in store.categories] == ["Mercado", "Receita"]
        assert [c.id for c in store.cards] == ["c1"]
        assert store.cards[0].limit == Decimal("1000")
        assert audit_logger.last_event.event_type == AuditEventType.STORE_LOADED

    def test_empty_household_seeds_default_categories(self, store, remote):
        """Test that a new household keeps and pushes the 23 defaults."""
        async def scenario():
            await store.load(OWNER)
            await store.flush()

        asyncio.run(scenario())

        assert len(store.categories) == 23
        rows = remote.rows("categories")
        assert len(rows) == 23
        assert all(row["user_id"] == OWNER for row in rows)
        assert {row["id"] for row in rows} == {c.id for c in store.categories}

    def test_partial_failure_keeps_defaults_for_failed_table(self, audit_logger):
        """Test that one failing table does not block the others."""
        remote = InMemoryRemoteStore({
            "goals": [{"id": "g1", "name": "Viagem", "icon": "✈️", "target_value": 5000,
                       "saved_value": 0, "user_id": OWNER}],
        })
        remote.fail_table("cards")
        store = FinanceStore(remote, audit_logger)

        asyncio.run(store.load(OWNER))

        assert store.is_loaded
        assert store.cards == []
        assert [g.name for g in store.goals] == ["Viagem"]
        event = audit_logger.last_event
        assert event.event_type == AuditEventType.STORE_LOADED
        assert event.details["failed_tables"] == ["cards"]

    def test_invalid_rows_count_as_failed_table(self, audit_logger):
        """Test that an untranslatable row fails only its table."""
        remote = InMemoryRemoteStore({
            "transactions": [{"id": "t1", "month_code": "not-a-month", "type": "Despesa",
                              "value": 1, "user_id": OWNER}],
        })
        store = FinanceStore(remote, audit_logger)

        asyncio.run(store.load(OWNER))

        assert store.is_loaded
        assert store.transactions == []
        assert audit_logger.last_event.details["failed_tables"] == ["transactions"]

    def test_offline_load(self, audit_logger):
        """Test that a store without remote loads locally and never pushes."""
        store = FinanceStore(None, audit_logger)

        async def scenario():
            await store.load(OWNER)
            store.save_card(Card(name="Nubank"))
            assert not store.is_syncing

        asyncio.run(scenario())

        assert store.is_loaded
        assert store.is_offline
        assert len(store.cards) == 1

    def test_reset_on_logout(self, store):
        """Test that losing the identity resets to defaults."""
        async def scenario():
            await store.load(OWNER)
            store.save_card(Card(name="Nubank"))
            await store.flush()
            await store.on_identity_changed(None)

        asyncio.run(scenario())

        assert not store.is_loaded
        assert store.owner_id is None
        assert store.cards == []
        assert len(store.categories) == 23

    def test_fetch_finishing_after_logout_is_ignored(self, audit_logger):
        """Test that a stale load does not repopulate a reset store."""
        remote = InMemoryRemoteStore({
            "cards": [{"id": "c1", "name": "Nubank", "credit_limit": 0,
                       "closing_day": 1, "user_id": OWNER}],
        })
        store = FinanceStore(remote, audit_logger)

        async def scenario():
            loading = asyncio.ensure_future(store.load(OWNER))
            await asyncio.sleep(0)
            store.reset()
            await loading

        asyncio.run(scenario())

        assert not store.is_loaded
        assert store.cards == []


class TestOwnerChange:
    """Tests for loading a different household into a loaded store."""

    def test_failed_table_never_keeps_previous_household(self, audit_logger):
        """Test that rows of the old owner are neither kept nor re-stamped."""
        remote = InMemoryRemoteStore({
            "transactions": [{"id": "a-tx", "month_code": "jan-26", "type": "Despesa",
                              "value": 10, "user_id": "A"}],
        })
        store = FinanceStore(remote, audit_logger)

        async def scenario():
            await store.load("A")
            assert [t.id for t in store.transactions] == ["a-tx"]
            remote.fail_table("transactions")
            await store.load("B")
            remote.heal_table("transactions")
            store.save_transaction(expense("5", id="b-tx"))
            await store.flush()

        asyncio.run(scenario())

        assert store.owner_id == "B"
        assert [t.id for t in store.transactions] == ["b-tx"]
        assert remote.row("transactions", "a-tx")["user_id"] == "A"
        assert remote.row("transactions", "b-tx")["user_id"] == "B"

    def test_mutation_during_fetch_is_not_pushed(self, store, remote):
        """Test push suppression until the new owner's load completes."""
        async def scenario():
            await store.load("A")
            await store.flush()
            loading = asyncio.ensure_future(store.load("B"))
            await asyncio.sleep(0)
            assert not store.is_loaded
            store.save_card(Card(id="c1", name="Nubank"))
            await loading
            await store.flush()

        asyncio.run(scenario())

        assert store.is_loaded
        assert upserts(remote, "cards") == 0
        assert remote.row("cards", "c1") is None

    def test_reload_of_same_owner_keeps_collections(self, store, remote):
        """Test that refreshing the current owner does not start from defaults."""
        async def scenario():
            await store.load(OWNER)
            store.save_goal(Goal(id="g1", name="Reserva"))
            await store.flush()
            remote.fail_table("goals")
            await store.load(OWNER)

        asyncio.run(scenario())

        assert [g.id for g in store.goals] == ["g1"]


class TestPush:
    """Tests for optimistic mutations and the remote push."""

    def test_mutations_before_load_are_not_pushed(self, store, remote):
        """Test push suppression before the first load."""
        async def scenario():
            store.save_card(Card(name="Nubank"))
            await store.flush()

        asyncio.run(scenario())

        assert len(store.cards) == 1
        assert upserts(remote, "cards") == 0
        assert remote.rows("cards") == []

    def test_save_pushes_whole_collection(self, store, remote):
        """Test that a save upserts every row of the table with the owner id."""
        async def scenario():
            await store.load(OWNER)
            store.save_card(Card(id="c1", name="Nubank", limit=Decimal("800")))
            store.save_card(Card(id="c2", name="Inter"))
            assert store.is_syncing
            await store.flush()
            assert not store.is_syncing

        asyncio.run(scenario())

        row = remote.row("cards", "c1")
        assert row["credit_limit"] == 800.0
        assert row["user_id"] == OWNER
        assert remote.row("cards", "c2") is not None

    def test_save_replaces_by_id(self, store):
        """Test that saving an existing id updates in place."""
        store.save_goal(Goal(id="g1", name="Viagem"))
        store.save_goal(Goal(id="g1", name="Viagem ao Japão"))
        assert [g.name for g in store.goals] == ["Viagem ao Japão"]

    def test_repeated_upsert_is_idempotent(self, store, remote):
        """Test that pushing an unchanged collection twice changes nothing."""
        card = Card(id="c1", name="Nubank")

        async def scenario():
            await store.load(OWNER)
            store.set_cards([card])
            await store.flush()
            first = remote.rows("cards")
            store.set_cards([card])
            await store.flush()
            return first

        first = asyncio.run(scenario())
        assert remote.rows("cards") == first

    def test_push_failure_is_logged_not_rolled_back(self, store, remote, audit_logger):
        """Test that a failed push keeps the local change."""
        async def scenario():
            await store.load(OWNER)
            remote.fail_table("goals")
            store.save_goal(Goal(id="g1", name="Reserva"))
            await store.flush()

        asyncio.run(scenario())

        assert [g.id for g in store.goals] == ["g1"]
        assert audit_logger.last_event.event_type == AuditEventType.PUSH_FAILED

    def test_credit_card_id_round_trip(self, store, remote):
        """Test that a credit transaction keeps its card id remotely."""
        async def scenario():
            await store.load(OWNER)
            store.save_transaction(expense("90", id="t1", payment_method=CREDIT_PAYMENT_METHOD, card_id="c1"))
            await store.flush()
            reloaded = FinanceStore(remote)
            await reloaded.load(OWNER)
            return reloaded

        reloaded = asyncio.run(scenario())
        assert reloaded.transaction("t1").card_id == "c1"

    def test_month_config_pushed_with_synthesized_id(self, store, remote):
        """Test the month config remote id."""
        async def scenario():
            await store.load(OWNER)
            store.update_month_config(MonthConfig(month_code="jan-26", needs_percent=40))
            await store.flush()

        asyncio.run(scenario())

        row = remote.row("month_configs", f"mconf_{OWNER}_jan-26")
        assert row is not None
        assert row["needs_percent"] == 40.0

    def test_update_month_config_replaces_by_month(self, store):
        """Test that a month has at most one config."""
        store.update_month_config(MonthConfig(month_code="jan-26", needs_percent=40))
        store.update_month_config(MonthConfig(month_code="jan-26", needs_percent=45))
        assert len(store.month_configs) == 1
        assert store.month_configs[0].needs_percent == Decimal("45")


class TestDelete:
    """Tests for local-first, best-effort deletes."""

    def test_delete_removes_remote_row(self, store, remote):
        """Test a successful delete."""
        async def scenario():
            await store.load(OWNER)
            store.save_card(Card(id="c1", name="Nubank"))
            await store.flush()
            assert store.delete_card("c1")
            await store.flush()

        asyncio.run(scenario())

        assert store.cards == []
        assert remote.row("cards", "c1") is None

    def test_delete_failure_is_logged_only(self, store, remote, audit_logger):
        """Test that a failed remote delete keeps the local removal."""
        async def scenario():
            await store.load(OWNER)
            store.save_goal(Goal(id="g1", name="Reserva"))
            await store.flush()
            remote.fail_table("goals")
            assert store.delete_goal("g1")
            await store.flush()

        asyncio.run(scenario())

        assert store.goals == []
        assert audit_logger.last_event.event_type == AuditEventType.REMOTE_DELETE_FAILED

    def test_delete_unknown_id(self, store):
        """Test deleting something that does not exist."""
        assert store.delete_transaction("missing") is False

    def test_system_category_cannot_be_deleted(self, store):
        """Test that the revenue category is protected."""
        revenue = next(c for c in store.categories if c.is_system)
        assert store.delete_category(revenue.id) is False
        assert store.category(revenue.id) is not None

    def test_deleted_category_reference_resolves_to_none(self, store):
        """Test that deletes never cascade to transactions."""
        category = next(c for c in store.categories if not c.is_system)
        store.save_transaction(expense("50", id="t1", category_id=category.id))

        assert store.delete_category(category.id)

        transaction = store.transaction("t1")
        assert transaction is not None
        assert transaction.category_id == category.id
        assert store.category(transaction.category_id) is None

    def test_delete_month_config_uses_synthesized_id(self, store, remote):
        """Test the remote delete of a month config."""
        async def scenario():
            await store.load(OWNER)
            store.update_month_config(MonthConfig(month_code="fev-26"))
            await store.flush()
            assert store.delete_month_config("fev-26")
            await store.flush()

        asyncio.run(scenario())

        assert ("delete", "month_configs") in remote.calls
        assert remote.row("month_configs", f"mconf_{OWNER}_fev-26") is None


class TestLookupsAndTransforms:
    """Tests for lookups and transaction helpers."""

    def test_lookups_return_none_for_unknown_ids(self, store):
        """Test None for missing references."""
        assert store.category("nope") is None
        assert store.card(None) is None
        assert store.goal("") is None
        assert store.investment("nope") is None

    def test_month_transactions_sorted_by_day_desc(self, store):
        """Test the month listing order."""
        store.set_transactions([
            expense("1", day=3),
            expense("1", day=20),
            expense("1", day=11),
            expense("1", day=5, month="fev-26"),
        ])
        assert [t.day for t in store.month_transactions("jan-26")] == [20, 11, 3]

    def test_month_config_default_uses_live_income(self, store):
        """Test the default config of a month without stored config."""
        store.set_transactions([income("2000"), income("500"), expense("100")])

        monthly = store.month_config("jan-26")
        assert monthly.income == Decimal("2500")
        assert (monthly.needs_percent, monthly.desires_percent, monthly.savings_percent) == (50, 20, 30)

        dashboard = store.month_config("jan-26", DASHBOARD_DEFAULT_SPLIT)
        assert (dashboard.desires_percent, dashboard.savings_percent) == (30, 20)

    def test_month_config_income_ignores_stored_value(self, store):
        """Test that stored income is replaced by the live sum."""
        store.update_month_config(MonthConfig(month_code="jan-26", income=Decimal("9999")))
        store.save_transaction(income("1200"))
        assert store.month_config("jan-26").income == Decimal("1200")

    def test_set_budget_percent_clamps(self, store):
        """Test that edits never push the total over 100."""
        config = store.set_budget_percent("jan-26", "needs_percent", 90)
        assert config.needs_percent == Decimal("50")
        assert config.total_percent <= 100

    def test_set_budget_percent_unknown_field(self, store):
        """Test that only the three percentages can be edited."""
        with pytest.raises(ValueError, match="Unknown budget percentage"):
            store.set_budget_percent("jan-26", "income", 10)

    def test_toggle_paid(self, store):
        """Test flipping the paid flag."""
        store.save_transaction(expense("10", id="t1"))
        assert store.toggle_paid("t1").paid is True
        assert store.toggle_paid("t1").paid is False
        assert store.toggle_paid("missing") is None

    def test_switch_to_income_uses_revenue_category(self, store):
        """Test the category fix-up when switching type."""
        regular = next(c for c in store.categories if not c.is_system)
        revenue = next(c for c in store.categories if c.is_system)
        store.save_transaction(expense("10", id="t1", category_id=regular.id))

        switched = store.switch_transaction_type("t1", TransactionType.INCOME)
        assert switched.category_id == revenue.id

        back = store.switch_transaction_type("t1", TransactionType.EXPENSE)
        assert back.type == TransactionType.EXPENSE
        assert back.category_id == store.categories[0].id

    def test_apply_fixed_entries_once(self, store):
        """Test that fixed entries materialize once per month."""
        store.save_fixed_entry(FixedEntry(description="Aluguel", day=5, value=Decimal("1500")))
        store.save_fixed_entry(FixedEntry(description="Academia", day=10, value=Decimal("90"), active=False))

        created = store.apply_fixed_entries("mar-26")
        again = store.apply_fixed_entries("mar-26")

        assert [t.description for t in created] == ["Aluguel"]
        assert created[0].is_fixed
        assert again == []
        assert len(store.month_transactions("mar-26")) == 1


class TestEndToEnd:
    """Store-level end-to-end flows."""

    def test_income_stats_and_needs_allocation(self, store):
        """Test income of 3000, then a 60% needs share allocating 1800."""
        async def scenario():
            await store.load(OWNER)
            assert len(store.categories) == 23
            store.save_transaction(income("3000"))

            stats = monthly_stats(store.transactions, "jan-26")
            assert (stats.income, stats.expenses, stats.balance) == (3000, 0, 3000)

            store.set_budget_percent("jan-26", "savings_percent", 20)
            config = store.set_budget_percent("jan-26", "needs_percent", 60)
            assert config.needs_percent == Decimal("60")
            assert allocate_budget(store.month_config("jan-26")).needs == Decimal("1800")
            await store.flush()

        asyncio.run(scenario())
