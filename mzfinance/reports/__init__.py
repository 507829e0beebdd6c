"""
Derived Computations Package

Pure functions over the finance store's collections: budget split
arithmetic, monthly and annual figures, goal progress and patrimony.
"""

from mzfinance.reports.budget import (
    DASHBOARD_DEFAULT_SPLIT,
    MONTHLY_DEFAULT_SPLIT,
    BudgetAllocation,
    allocate_budget,
    clamp_percent,
    default_month_config,
)
from mzfinance.reports.entries import materialize_fixed_entries, switch_type
from mzfinance.reports.summary import (
    AnnualReport,
    AnnualReportRow,
    CardUsage,
    GoalProgress,
    HealthStatus,
    MonthlyStats,
    PatrimonySummary,
    Thermometer,
    annual_report,
    card_usage,
    daily_spend,
    goal_progress,
    monthly_stats,
    patrimony_summary,
    thermometer,
    transactions_for_month,
)

__all__ = [
    # Budget
    "DASHBOARD_DEFAULT_SPLIT",
    "MONTHLY_DEFAULT_SPLIT",
    "BudgetAllocation",
    "allocate_budget",
    "clamp_percent",
    "default_month_config",
    # Entries
    "materialize_fixed_entries",
    "switch_type",
    # Summaries
    "AnnualReport",
    "AnnualReportRow",
    "CardUsage",
    "GoalProgress",
    "HealthStatus",
    "MonthlyStats",
    "PatrimonySummary",
    "Thermometer",
    "annual_report",
    "card_usage",
    "daily_spend",
    "goal_progress",
    "monthly_stats",
    "patrimony_summary",
    "thermometer",
    "transactions_for_month",
]
