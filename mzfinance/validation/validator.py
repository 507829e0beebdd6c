"""
Form Validation

DESIGN DECISION: Validation NEVER silently fixes input. Every problem is
reported as a ValidationIssue with a severity:
- error: blocks saving (bad email, short password, missing card)
- warning: saved anyway but shown to the user (dangling card reference)

Checks that need other records (duplicate usernames, card existence) take
those records as arguments, so the validators stay pure.
"""

import re
from typing import Iterable, Optional

from mzfinance.config import get_settings
from mzfinance.constants import CREDIT_PAYMENT_METHOD
from mzfinance.models.finance import Card, Transaction
from mzfinance.models.user import User
from mzfinance.models.validation import (
    RegistrationForm,
    ValidationIssue,
    ValidationResult,
)


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_registration(
    form: RegistrationForm,
    existing_users: Iterable[User] = (),
    min_password_length: Optional[int] = None,
) -> ValidationResult:
    """
    Check a sign-up form before it reaches the auth backend.

    Checks:
    - Name present
    - Email format
    - Password length and confirmation
    - Username and email not already used in the household (case-insensitive)
    """
    if min_password_length is None:
        min_password_length = get_settings().app.min_password_length

    issues = []

    if not form.name:
        issues.append(ValidationIssue(
            field="name",
            issue_type="missing",
            message="Name is required",
            severity="error",
        ))

    if not is_valid_email(form.email):
        issues.append(ValidationIssue(
            field="email",
            issue_type="invalid_format",
            message="Email address is not valid",
            severity="error",
            suggested_fix="Use the format name@domain.com",
        ))

    password = form.password.get_secret_value()
    if len(password) < min_password_length:
        issues.append(ValidationIssue(
            field="password",
            issue_type="too_short",
            message=f"Password must have at least {min_password_length} characters",
            severity="error",
        ))
    if password != form.confirm_password.get_secret_value():
        issues.append(ValidationIssue(
            field="confirm_password",
            issue_type="mismatch",
            message="Passwords do not match",
            severity="error",
            suggested_fix="Type the same password in both fields",
        ))

    usernames = set()
    emails = set()
    for user in existing_users:
        usernames.add(user.username.lower())
        emails.add(str(user.email).lower())

    if form.username and form.username.lower() in usernames:
        issues.append(ValidationIssue(
            field="username",
            issue_type="duplicate",
            message=f"Username '{form.username}' is already taken",
            severity="error",
            suggested_fix="Choose a different username",
        ))
    if form.email and form.email.lower() in emails:
        issues.append(ValidationIssue(
            field="email",
            issue_type="duplicate",
            message="This email is already registered",
            severity="error",
            suggested_fix="Sign in or reset the password instead",
        ))

    return ValidationResult(issues=issues)


def validate_transaction(
    transaction: Transaction,
    cards: Iterable[Card] = (),
) -> ValidationResult:
    """
    Check a transaction's card reference.

    A credit transaction needs a card that exists. Any other payment
    method keeps whatever card id it has; an unknown one is only a warning.
    """
    card_ids = {card.id for card in cards}
    issues = []

    if transaction.payment_method == CREDIT_PAYMENT_METHOD:
        if not transaction.card_id:
            issues.append(ValidationIssue(
                field="card_id",
                issue_type="missing",
                message="Credit transactions need a card",
                severity="error",
                suggested_fix="Pick one of your cards or register a new one",
            ))
        elif transaction.card_id not in card_ids:
            issues.append(ValidationIssue(
                field="card_id",
                issue_type="unknown_reference",
                message="The selected card no longer exists",
                severity="error",
                suggested_fix="Pick one of your cards",
            ))
    elif transaction.card_id and transaction.card_id not in card_ids:
        issues.append(ValidationIssue(
            field="card_id",
            issue_type="unknown_reference",
            message="Transaction references a card that no longer exists",
            severity="warning",
        ))

    return ValidationResult(issues=issues)


def summarize(result: ValidationResult) -> str:
    """User-facing summary of a validation result."""
    if not result.issues:
        return "✅ All checks passed!"

    lines = []
    if result.has_errors:
        lines.append("❌ Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     💡 {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("⚠️ Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning.message}")

    return "\n".join(lines)
