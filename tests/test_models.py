"""
Tests for Mz Finance models

Test strategy:
1. Unit tests for models, mappings, reports and validators
2. Flow tests for the store and the session manager against in-memory backends
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal

from mzfinance.constants import (
    CREDIT_PAYMENT_METHOD,
    PAYMENT_METHODS,
    REVENUE_CATEGORY_NAME,
    default_categories,
)
from mzfinance.models import (
    DEFAULT_DEPENDENT_PERMISSIONS,
    FULL_PERMISSIONS,
    Asset,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Card,
    Liquidity,
    MonthConfig,
    Permission,
    Transaction,
    TransactionType,
    User,
    UserRole,
    current_month_code,
    is_month_code,
    month_code,
    month_codes_for_year,
    month_label,
    parse_month_code,
)


class TestMonthCodes:
    """Tests for month code helpers."""

    def test_month_code_uses_portuguese_abbreviations(self):
        """Test codes for a few calendar months."""
        assert month_code(2026, 1) == "jan-26"
        assert month_code(2026, 2) == "fev-26"
        assert month_code(2025, 12) == "dez-25"

    def test_month_code_rejects_month_out_of_range(self):
        """Test that month 13 is refused."""
        with pytest.raises(ValueError, match="between 1 and 12"):
            month_code(2026, 13)

    def test_parse_month_code(self):
        """Test parsing back to (year, month)."""
        assert parse_month_code("set-24") == (2024, 9)
        assert parse_month_code("JAN-26") == (2026, 1)

    def test_parse_month_code_rejects_garbage(self):
        """Test malformed and unknown codes."""
        for bad in ("", "jan26", "xyz-26", "jan-2026"):
            with pytest.raises(ValueError):
                parse_month_code(bad)
        assert not is_month_code("sep-24")

    def test_year_has_twelve_codes(self):
        """Test month_codes_for_year order."""
        codes = month_codes_for_year(2026)
        assert len(codes) == 12
        assert codes[0] == "jan-26"
        assert codes[-1] == "dez-26"

    def test_current_month_code_and_label(self):
        """Test the code of a given date and its label."""
        assert current_month_code(date(2026, 10, 18)) == "out-26"
        assert month_label("mar-26") == "Março 2026"


class TestFinanceModels:
    """Tests for finance entity models."""

    def test_transaction_normalizes_month_code(self):
        """Test that month codes are lowercased."""
        t = Transaction(month_code="JAN-26", type=TransactionType.INCOME, value=Decimal("10"))
        assert t.month_code == "jan-26"
        assert t.is_income

    def test_transaction_rejects_invalid_month_code(self):
        """Test that a bad month code is refused."""
        with pytest.raises(ValueError, match="Invalid month code"):
            Transaction(month_code="janeiro", type=TransactionType.EXPENSE, value=Decimal("1"))

    def test_transaction_rejects_negative_value(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Transaction(month_code="jan-26", type=TransactionType.EXPENSE, value=Decimal("-5"))

    def test_transaction_day_range(self):
        """Test day of month bounds."""
        with pytest.raises(ValueError):
            Transaction(month_code="jan-26", day=32, type="Despesa", value=1)

    def test_blank_references_become_none(self):
        """Test that empty card/goal ids are stored as None."""
        t = Transaction(month_code="jan-26", type="Despesa", value=1, card_id="  ", goal_id="")
        assert t.card_id is None
        assert t.goal_id is None

    def test_card_id_kept_for_non_credit(self):
        """Test that a card id survives a non-credit payment method."""
        t = Transaction(
            month_code="jan-26", type="Despesa", value=1,
            payment_method="PIX", card_id="card-1",
        )
        assert t.card_id == "card-1"

    def test_ids_are_unique(self):
        """Test client-side id generation."""
        assert Card(name="Nubank").id != Card(name="Nubank").id

    def test_whitespace_is_stripped(self):
        """Test that text fields are stripped."""
        assert Card(name="  Inter  ").name == "Inter"

    def test_asset_accepts_yes_no_labels(self):
        """Test legacy Sim/Não values for can_touch."""
        assert Asset(description="Reserva", can_touch="Sim").can_touch is True
        assert Asset(description="Reserva", can_touch="Não").can_touch is False

    def test_liquidity_is_ordered(self):
        """Test liquidity ranking from immediate to long term."""
        ranks = [level.rank for level in Liquidity]
        assert ranks == sorted(ranks)
        assert Liquidity.IMMEDIATE.rank < Liquidity.LONG_TERM.rank

    def test_money_serializes_as_number(self):
        """Test JSON dumps of Decimal amounts."""
        data = Card(name="Nubank", limit=Decimal("1500.50")).model_dump(mode="json")
        assert data["limit"] == 1500.5


class TestMonthConfig:
    """Tests for the budget split model."""

    def test_defaults(self):
        """Test default 50/20/30 split."""
        config = MonthConfig(month_code="jan-26")
        assert config.total_percent == Decimal("100")

    def test_percent_sum_over_100_rejected(self):
        """Test the sum invariant."""
        with pytest.raises(ValueError, match="more than 100"):
            MonthConfig(
                month_code="jan-26",
                needs_percent=60,
                desires_percent=30,
                savings_percent=20,
            )

    def test_percent_bounds(self):
        """Test each percentage stays within 0-100."""
        with pytest.raises(ValueError):
            MonthConfig(month_code="jan-26", needs_percent=101, desires_percent=0, savings_percent=0)


class TestUserModels:
    """Tests for users and permissions."""

    def test_dependent_requires_responsible(self):
        """Test the dependent reference invariant."""
        with pytest.raises(ValueError, match="must reference"):
            User(name="Ana", username="ana", email="ana@example.com", role=UserRole.DEPENDENT)

    def test_responsible_cannot_reference_responsible(self):
        """Test the reverse of the invariant."""
        with pytest.raises(ValueError, match="cannot reference"):
            User(name="Ana", username="ana", email="ana@example.com", responsible_id="x")

    def test_owner_id(self):
        """Test that dependents work on their responsible user's data."""
        owner = User(id="o1", name="Maria", username="maria", email="maria@example.com")
        child = User(
            name="Ana", username="ana", email="ana@example.com",
            role=UserRole.DEPENDENT, responsible_id="o1",
        )
        assert owner.owner_id == "o1"
        assert child.owner_id == "o1"

    def test_password_never_serialized(self):
        """Test that the password is excluded from dumps."""
        user = User(name="Maria", username="maria", email="maria@example.com", password="segredo1")
        assert "password" not in user.model_dump()
        assert "segredo1" not in user.model_dump_json()

    def test_default_dependent_permissions(self):
        """Test the dependent default capability set."""
        perms = DEFAULT_DEPENDENT_PERMISSIONS
        assert perms.allows(Permission.EDIT_TRANSACTIONS)
        assert perms.allows(Permission.VIEW_PATRIMONY)
        assert not perms.allows(Permission.EDIT_PATRIMONY)
        assert not perms.allows(Permission.EDIT_GOALS)
        assert perms.allows(Permission.ACCESS_REPORTS)
        assert not perms.allows(Permission.MANAGE_SETTINGS)

    def test_full_permissions(self):
        """Test that FULL_PERMISSIONS grants everything."""
        assert all(FULL_PERMISSIONS.allows(p) for p in Permission)


class TestConstants:
    """Tests for built-in reference data."""

    def test_default_categories(self):
        """Test the 23 built-in categories."""
        categories = default_categories()
        assert len(categories) == 23
        system = [c for c in categories if c.is_system]
        assert [c.name for c in system] == [REVENUE_CATEGORY_NAME]

    def test_default_categories_get_fresh_ids(self):
        """Test that two calls never share ids."""
        first = {c.id for c in default_categories()}
        second = {c.id for c in default_categories()}
        assert not first & second

    def test_payment_methods(self):
        """Test that credit is one of the payment methods."""
        assert CREDIT_PAYMENT_METHOD in PAYMENT_METHODS
        assert len(PAYMENT_METHODS) == 6


class TestAuditModels:
    """Tests for audit-related models."""

    def test_login_failed_event(self):
        """Test login failure event."""
        event = AuditEventBuilder.login_failed("maria", "Invalid login credentials")
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.severity == AuditSeverity.WARNING

    def test_push_failed_event(self):
        """Test push failure event carries table and row count."""
        event = AuditEventBuilder.push_failed("transactions", 3, "timeout")
        assert event.event_type == AuditEventType.PUSH_FAILED
        assert event.entity_id == "transactions"
        assert event.error_message == "timeout"

    def test_to_log_dict(self):
        """Test conversion for structured logging."""
        event = AuditEventBuilder.store_loaded("owner-1", {"cards": 2}, [])
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "store_loaded"
        assert isinstance(log_dict["event_id"], str)
