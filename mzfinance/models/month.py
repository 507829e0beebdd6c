"""
Month codes.

A budgeting period is identified by a short code: a three-letter Portuguese
month abbreviation and a two-digit year, e.g. ``jan-26``.
"""

import re
from datetime import date
from typing import Optional


MONTH_ABBREVIATIONS = [
    "jan", "fev", "mar", "abr", "mai", "jun",
    "jul", "ago", "set", "out", "nov", "dez",
]

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

_MONTH_CODE_RE = re.compile(r"^([a-z]{3})-(\d{2})$")


def month_code(year: int, month: int) -> str:
    """Build the code for a calendar month (``month`` is 1-12)."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return f"{MONTH_ABBREVIATIONS[month - 1]}-{year % 100:02d}"


def parse_month_code(code: str) -> tuple[int, int]:
    """
    Split a month code into (year, month).

    Two-digit years are read as 20xx.

    Raises:
        ValueError: If the code is malformed or the month is unknown
    """
    match = _MONTH_CODE_RE.match(code.strip().lower()) if code else None
    if not match:
        raise ValueError(f"Invalid month code: {code!r}")
    abbreviation, year_digits = match.groups()
    if abbreviation not in MONTH_ABBREVIATIONS:
        raise ValueError(f"Unknown month abbreviation in {code!r}")
    return 2000 + int(year_digits), MONTH_ABBREVIATIONS.index(abbreviation) + 1


def is_month_code(code: str) -> bool:
    try:
        parse_month_code(code)
    except ValueError:
        return False
    return True


def month_codes_for_year(year: int) -> list[str]:
    """The twelve month codes of a calendar year, January first."""
    return [month_code(year, month) for month in range(1, 13)]


def current_month_code(today: Optional[date] = None) -> str:
    today = today or date.today()
    return month_code(today.year, today.month)


def month_label(code: str) -> str:
    """Human label, e.g. ``jan-26`` -> ``Janeiro 2026``."""
    year, month = parse_month_code(code)
    return f"{MONTH_NAMES[month - 1]} {year}"
