"""Finance store package."""

from mzfinance.store.finance_store import FinanceStore

__all__ = ["FinanceStore"]
