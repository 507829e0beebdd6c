"""Validation package."""

from mzfinance.validation.validator import (
    EMAIL_PATTERN,
    is_valid_email,
    summarize,
    validate_registration,
    validate_transaction,
)

__all__ = [
    "EMAIL_PATTERN",
    "is_valid_email",
    "summarize",
    "validate_registration",
    "validate_transaction",
]
