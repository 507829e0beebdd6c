"""
Data Models Package

This package contains all Pydantic models used in Mz Finance.
All data held by the finance store must conform to these schemas.
"""

from mzfinance.models.finance import (
    PERCENT_FIELDS,
    Asset,
    Card,
    Category,
    FixedEntry,
    Goal,
    Investment,
    InvestmentType,
    Liquidity,
    MonthConfig,
    Transaction,
    TransactionType,
    new_id,
)
from mzfinance.models.user import (
    DEFAULT_DEPENDENT_PERMISSIONS,
    FULL_PERMISSIONS,
    Permission,
    User,
    UserPermissions,
    UserRole,
)
from mzfinance.models.month import (
    current_month_code,
    is_month_code,
    month_code,
    month_codes_for_year,
    month_label,
    parse_month_code,
)
from mzfinance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from mzfinance.models.validation import (
    RegistrationForm,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Finance models
    "PERCENT_FIELDS",
    "Asset",
    "Card",
    "Category",
    "FixedEntry",
    "Goal",
    "Investment",
    "InvestmentType",
    "Liquidity",
    "MonthConfig",
    "Transaction",
    "TransactionType",
    "new_id",
    # Users
    "DEFAULT_DEPENDENT_PERMISSIONS",
    "FULL_PERMISSIONS",
    "Permission",
    "User",
    "UserPermissions",
    "UserRole",
    # Month codes
    "current_month_code",
    "is_month_code",
    "month_code",
    "month_codes_for_year",
    "month_label",
    "parse_month_code",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Validation
    "RegistrationForm",
    "ValidationIssue",
    "ValidationResult",
]
