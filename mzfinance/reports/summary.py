"""
Derived figures for dashboards and reports.

Every function here is a pure reduction over the store's collections; none
of them read or write remote state. Amounts are Decimal throughout.
"""

import math
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from mzfinance.models.finance import (
    Asset,
    Card,
    Goal,
    Investment,
    MonthConfig,
    Transaction,
    TransactionType,
)
from mzfinance.models.month import MONTH_NAMES, month_codes_for_year


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _total(transactions: Iterable[Transaction], kind: TransactionType) -> Decimal:
    return sum((t.value for t in transactions if t.type == kind), ZERO)


def _ratio(part: Decimal, whole: Decimal) -> Decimal:
    """``part`` as a percentage of ``whole``; 0 when ``whole`` is not positive."""
    return part / whole * HUNDRED if whole > 0 else ZERO


# =============================================================================
# MONTHLY
# =============================================================================

class MonthlyStats(BaseModel):
    month_code: str
    income: Decimal
    expenses: Decimal
    balance: Decimal


def transactions_for_month(transactions: Iterable[Transaction], month_code: str) -> list[Transaction]:
    return [t for t in transactions if t.month_code == month_code]


def monthly_stats(transactions: Iterable[Transaction], month_code: str) -> MonthlyStats:
    """Income, expenses and balance of the transactions in one month."""
    month = transactions_for_month(transactions, month_code)
    income = _total(month, TransactionType.INCOME)
    expenses = _total(month, TransactionType.EXPENSE)
    return MonthlyStats(
        month_code=month_code,
        income=income,
        expenses=expenses,
        balance=income - expenses,
    )


def daily_spend(transactions: Iterable[Transaction], month_code: str) -> dict[int, Decimal]:
    """Expense total per day of month, for days that have expenses."""
    days: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions_for_month(transactions, month_code):
        if t.type == TransactionType.EXPENSE:
            days[t.day] += t.value
    return dict(sorted(days.items()))


class HealthStatus(str, Enum):
    """Budget health bands of the expense thermometer."""
    HEALTHY = "no_azul"
    AT_LIMIT = "no_limite"
    OVERSPENT = "no_vermelho"


class Thermometer(BaseModel):
    """Expense-to-income ratio for a month."""

    month_code: str
    income_base: Decimal
    expenses: Decimal
    ratio: Decimal = Field(description="Expenses as a percentage of income_base")
    status: HealthStatus


def thermometer(
    transactions: Iterable[Transaction],
    month_code: str,
    config: Optional[MonthConfig] = None,
) -> Thermometer:
    """
    Budget health for a month.

    The income base is the larger of the live income sum and the
    configured income. Up to 80% is healthy, up to 100% is at the limit.
    """
    stats = monthly_stats(transactions, month_code)
    income_base = max(stats.income, config.income if config else ZERO)
    ratio = _ratio(stats.expenses, income_base)

    if ratio <= 80:
        status = HealthStatus.HEALTHY
    elif ratio <= 100:
        status = HealthStatus.AT_LIMIT
    else:
        status = HealthStatus.OVERSPENT

    return Thermometer(
        month_code=month_code,
        income_base=income_base,
        expenses=stats.expenses,
        ratio=ratio,
        status=status,
    )


# =============================================================================
# GOALS
# =============================================================================

class GoalProgress(BaseModel):
    goal_id: str
    actual: Decimal
    target: Decimal
    percent: int


def goal_progress(goal: Goal, transactions: Iterable[Transaction]) -> GoalProgress:
    """
    Amount actually saved towards a goal.

    Paid income transactions linked to the goal add, paid expenses
    subtract; the result is floored at 0. The goal's own ``saved_value``
    is ignored. ``percent`` is rounded half up to a whole number.
    """
    saved = ZERO
    for t in transactions:
        if t.goal_id != goal.id or not t.paid:
            continue
        saved += t.value if t.type == TransactionType.INCOME else -t.value
    actual = max(ZERO, saved)
    percent = min(_ratio(actual, goal.target_value), HUNDRED)
    return GoalProgress(
        goal_id=goal.id,
        actual=actual,
        target=goal.target_value,
        percent=int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
    )


# =============================================================================
# ANNUAL REPORT
# =============================================================================

class AnnualReportRow(BaseModel):
    month_code: str
    month_name: str
    income: Decimal
    expenses: Decimal
    balance: Decimal
    cumulative_balance: Decimal


class AnnualReport(BaseModel):
    year: int
    rows: list[AnnualReportRow]
    total_income: Decimal
    total_expenses: Decimal
    total_balance: Decimal
    expense_ratio: Decimal


def annual_report(transactions: Iterable[Transaction], year: int) -> AnnualReport:
    """One row per calendar month of ``year`` plus yearly totals."""
    transactions = list(transactions)
    rows = []
    running = ZERO
    for index, code in enumerate(month_codes_for_year(year)):
        stats = monthly_stats(transactions, code)
        running += stats.balance
        rows.append(AnnualReportRow(
            month_code=code,
            month_name=MONTH_NAMES[index],
            income=stats.income,
            expenses=stats.expenses,
            balance=stats.balance,
            cumulative_balance=running,
        ))

    total_income = sum((row.income for row in rows), ZERO)
    total_expenses = sum((row.expenses for row in rows), ZERO)
    return AnnualReport(
        year=year,
        rows=rows,
        total_income=total_income,
        total_expenses=total_expenses,
        total_balance=total_income - total_expenses,
        expense_ratio=_ratio(total_expenses, total_income),
    )


# =============================================================================
# PATRIMONY AND CARDS
# =============================================================================

class PatrimonySummary(BaseModel):
    total_assets: Decimal
    total_investments: Decimal
    total: Decimal
    by_investment_type: dict[str, Decimal]
    by_liquidity: dict[str, Decimal]


def patrimony_summary(
    assets: Iterable[Asset],
    investments: Iterable[Investment],
) -> PatrimonySummary:
    """Net worth across assets and investments with simple breakdowns."""
    assets = sorted(assets, key=lambda a: a.liquidity.rank)
    investments = list(investments)

    by_type: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for investment in investments:
        by_type[investment.type.value] += investment.value

    by_liquidity: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for asset in assets:
        by_liquidity[asset.liquidity.value] += asset.value

    total_assets = sum((a.value for a in assets), ZERO)
    total_investments = sum((i.value for i in investments), ZERO)
    return PatrimonySummary(
        total_assets=total_assets,
        total_investments=total_investments,
        total=total_assets + total_investments,
        by_investment_type=dict(by_type),
        by_liquidity=dict(by_liquidity),
    )


class CardUsage(BaseModel):
    card_id: str
    spent: Decimal
    limit: Decimal
    percent: int


def card_usage(card: Card, transactions: Iterable[Transaction], month_code: str) -> CardUsage:
    """Amount charged to a card in a month and the share of its limit (floored)."""
    spent = sum(
        (t.value for t in transactions_for_month(transactions, month_code) if t.card_id == card.id),
        ZERO,
    )
    percent = math.floor(_ratio(spent, card.limit))
    return CardUsage(card_id=card.id, spent=spent, limit=card.limit, percent=percent)
