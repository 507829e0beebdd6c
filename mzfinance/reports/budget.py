"""
Budget split arithmetic.

A month's income is divided into needs, desires and savings by three
percentages that never add up to more than 100. Editing one percentage
clamps it against the other two instead of rejecting the edit.
"""

from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel

from mzfinance.models.finance import PERCENT_FIELDS, MonthConfig


# (needs, desires, savings) used when a month has no stored config
MONTHLY_DEFAULT_SPLIT = (Decimal("50"), Decimal("20"), Decimal("30"))
DASHBOARD_DEFAULT_SPLIT = (Decimal("50"), Decimal("30"), Decimal("20"))

Number = Union[int, float, Decimal, str]


class BudgetAllocation(BaseModel):
    """Currency amounts allocated to each bucket."""

    income: Decimal
    needs: Decimal
    desires: Decimal
    savings: Decimal

    @property
    def unallocated(self) -> Decimal:
        return self.income - self.needs - self.desires - self.savings


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def default_month_config(
    month_code: str,
    income: Number = 0,
    split: tuple[Decimal, Decimal, Decimal] = MONTHLY_DEFAULT_SPLIT,
) -> MonthConfig:
    needs, desires, savings = split
    return MonthConfig(
        month_code=month_code,
        income=to_decimal(income),
        needs_percent=needs,
        desires_percent=desires,
        savings_percent=savings,
    )


def clamp_percent(config: MonthConfig, field: str, value: Number) -> MonthConfig:
    """
    Return a copy of ``config`` with one percentage changed.

    The new value is ``min(requested, 100 - sum of the other two)``,
    floored at 0, so the total stays within 100.

    Raises:
        ValueError: If ``field`` is not one of the three percentages
    """
    if field not in PERCENT_FIELDS:
        raise ValueError(f"Unknown budget percentage: {field}")

    others = sum(
        (getattr(config, other) for other in PERCENT_FIELDS if other != field),
        Decimal("0"),
    )
    ceiling = max(Decimal("0"), Decimal("100") - others)
    clamped = min(max(Decimal("0"), to_decimal(value)), ceiling)
    return config.model_copy(update={field: clamped})


def allocate_budget(config: MonthConfig, income: Optional[Number] = None) -> BudgetAllocation:
    """Multiply each percentage by the income (the config's own income by default)."""
    base = to_decimal(income) if income is not None else config.income
    hundred = Decimal("100")
    return BudgetAllocation(
        income=base,
        needs=base * config.needs_percent / hundred,
        desires=base * config.desires_percent / hundred,
        savings=base * config.savings_percent / hundred,
    )
