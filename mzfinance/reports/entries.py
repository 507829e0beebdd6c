"""Transaction rewrites driven by templates and type changes."""

from typing import Iterable, Optional

from mzfinance.models.finance import (
    Category,
    FixedEntry,
    Transaction,
    TransactionType,
)


def materialize_fixed_entries(
    entries: Iterable[FixedEntry],
    month_code: str,
    existing: Iterable[Transaction],
) -> list[Transaction]:
    """
    New transactions for the active fixed entries of a month.

    An entry counts as already materialized when the month has an
    ``is_fixed`` transaction with the same description and day, so running
    this twice for the same month adds nothing the second time.
    """
    seen = {
        (t.description, t.day)
        for t in existing
        if t.month_code == month_code and t.is_fixed
    }
    created = []
    for entry in entries:
        if not entry.active or (entry.description, entry.day) in seen:
            continue
        seen.add((entry.description, entry.day))
        created.append(Transaction(
            month_code=month_code,
            description=entry.description,
            day=entry.day,
            type=entry.type,
            value=entry.value,
            category_id=entry.category_id,
            payment_method=entry.payment_method,
            notes=entry.notes,
            is_fixed=True,
        ))
    return created


def _revenue_category(categories: list[Category]) -> Optional[Category]:
    return next((c for c in categories if c.is_system), None)


def switch_type(
    transaction: Transaction,
    new_type: TransactionType,
    categories: Iterable[Category],
) -> Transaction:
    """
    Copy of ``transaction`` with its type changed and its category fixed up.

    Income always lands in the system revenue category. An expense that was
    sitting in a system category moves to the first regular category.
    """
    categories = list(categories)
    update: dict = {"type": new_type}

    if new_type == TransactionType.INCOME:
        revenue = _revenue_category(categories)
        if revenue is not None:
            update["category_id"] = revenue.id
    else:
        current = next((c for c in categories if c.id == transaction.category_id), None)
        if current is not None and current.is_system:
            regular = next((c for c in categories if not c.is_system), None)
            update["category_id"] = regular.id if regular is not None else ""

    return transaction.model_copy(update=update)
