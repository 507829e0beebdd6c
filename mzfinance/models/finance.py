"""
Core Finance Models for Mz Finance

These models define the schemas for every collection the finance store
keeps in memory and mirrors to the remote store. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for the remote store and for logging

Money and percentages are Decimal; they serialize to plain numbers in JSON
mode so rows can be sent to the remote store as-is.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)

from mzfinance.models.month import parse_month_code


def new_id() -> str:
    """Client-side globally unique identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


Money = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]

Percent = Annotated[
    Decimal,
    Field(ge=0, le=100),
    PlainSerializer(float, return_type=float, when_used="json"),
]

DayOfMonth = Annotated[int, Field(ge=1, le=31)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction. Values are the stored labels."""
    INCOME = "Receita"
    EXPENSE = "Despesa"


class Liquidity(str, Enum):
    """
    How fast an asset can be turned into cash.

    Ordered from immediate to long-term; use ``rank`` to compare.
    """
    IMMEDIATE = "Imediata"
    SHORT_TERM = "Curto Prazo"
    MEDIUM_TERM = "Médio Prazo"
    LONG_TERM = "Longo Prazo"

    @property
    def rank(self) -> int:
        return list(Liquidity).index(self)


class InvestmentType(str, Enum):
    """Supported investment instrument classes."""
    FIXED_INCOME = "Renda Fixa"
    VARIABLE_INCOME = "Renda Variável"
    REAL_ESTATE_FUND = "Fundo Imobiliário"
    CRYPTO = "Criptomoedas"
    PRIVATE_PENSION = "Previdência Privada"
    TREASURY = "Tesouro Direto"
    CDB = "CDB"
    LCI_LCA = "LCI/LCA"
    STOCKS = "Ações"
    OTHER = "Outros"


# =============================================================================
# SETTINGS ENTITIES
# =============================================================================

class Category(BaseModel):
    """
    Transaction category.

    System categories (the synthetic revenue category) are never deleted and
    are managed by the transaction type switch.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="")
    subcategories: str = Field(
        default="",
        description="Free-text description of what the category covers"
    )
    is_system: bool = False


class Card(BaseModel):
    """Credit card."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    bank: str = ""
    limit: Money = Decimal("0")
    closing_day: DayOfMonth = 1
    color: str = "#222222"


class Goal(BaseModel):
    """
    Savings goal.

    ``saved_value`` is kept for compatibility only; progress is always
    recomputed from the paid transactions that reference the goal.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = ""
    target_value: Money = Decimal("0")
    saved_value: Money = Decimal("0")


class FixedEntry(BaseModel):
    """Recurring transaction template, materialized once per month."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    description: str = Field(..., min_length=1, max_length=200)
    day: DayOfMonth = 1
    type: TransactionType = TransactionType.EXPENSE
    value: Money = Decimal("0")
    category_id: str = ""
    payment_method: str = ""
    notes: str = ""
    active: bool = True


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense line in a budgeting month.

    References to categories, cards, goals and investments are plain ids.
    They may dangle after the referenced item is deleted; lookups resolve
    them to None instead of failing.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    month_code: str = Field(..., description="Budgeting month, e.g. jan-26")
    description: str = Field(default="", max_length=200)
    day: DayOfMonth = 1
    type: TransactionType
    value: Money
    category_id: str = ""
    payment_method: str = ""
    # Only meaningful when payment_method is "Crédito"; kept as stored otherwise
    card_id: Optional[str] = None
    paid: bool = False
    payment_date: Optional[date] = None
    goal_id: Optional[str] = None
    investment_id: Optional[str] = None
    notes: str = ""
    is_fixed: bool = False

    @field_validator('month_code')
    @classmethod
    def validate_month_code(cls, v: str) -> str:
        parse_month_code(v)
        return v.lower()

    @field_validator('card_id', 'goal_id', 'investment_id', mode='before')
    @classmethod
    def blank_reference_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


# =============================================================================
# PATRIMONY
# =============================================================================

class Asset(BaseModel):
    """A liquid or illiquid holding counted in the patrimony."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    description: str = Field(..., min_length=1, max_length=200)
    objective: str = ""
    bank: str = ""
    value: Money = Decimal("0")
    updated_at: datetime = Field(default_factory=utc_now)
    liquidity: Liquidity = Liquidity.IMMEDIATE
    can_touch: bool = True

    @field_validator('can_touch', mode='before')
    @classmethod
    def parse_yes_no(cls, v):
        """Accept the legacy "Sim"/"Não" labels."""
        if isinstance(v, str) and v.strip().lower() in ("sim", "não", "nao"):
            return v.strip().lower() == "sim"
        return v


class Investment(BaseModel):
    """An investment position."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    type: InvestmentType = InvestmentType.OTHER
    value: Money = Decimal("0")
    broker: str = ""
    updated_at: datetime = Field(default_factory=utc_now)
    category: str = Field(default="", description="Free-text label")


# =============================================================================
# BUDGET CONFIGURATION
# =============================================================================

PERCENT_FIELDS = ("needs_percent", "desires_percent", "savings_percent")


class MonthConfig(BaseModel):
    """
    Budget split for one month.

    ``income`` mirrors the month's income-transaction sum. The three
    percentages are each within [0, 100] and never add up to more than 100.
    """

    month_code: str
    income: Money = Decimal("0")
    needs_percent: Percent = Decimal("50")
    desires_percent: Percent = Decimal("20")
    savings_percent: Percent = Decimal("30")

    @field_validator('month_code')
    @classmethod
    def validate_month_code(cls, v: str) -> str:
        parse_month_code(v)
        return v.lower()

    @model_validator(mode='after')
    def validate_percent_total(self) -> 'MonthConfig':
        if self.total_percent > 100:
            raise ValueError(
                f"Budget percentages add up to {self.total_percent}, more than 100"
            )
        return self

    @property
    def total_percent(self) -> Decimal:
        return self.needs_percent + self.desires_percent + self.savings_percent
