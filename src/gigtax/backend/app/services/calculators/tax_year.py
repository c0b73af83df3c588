"""SARS year-of-assessment windows.

A year of assessment runs from 1 March to the last day of February and is
identified by the calendar year in which it ends.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date

_TAX_YEAR_START_MONTH = 3
_LABEL_PATTERN = re.compile(r"^\s*(\d{4})\s*/\s*(\d{4})\s*$")


@dataclass(frozen=True)
class TaxYearWindow:
    """Inclusive date range covered by a year of assessment."""

    year: int
    start: date
    end: date

    @property
    def label(self) -> str:
        return f"{self.start.year}/{self.end.year}"

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


def tax_year_for(value: date) -> int:
    """Return the year of assessment that ``value`` falls in."""

    if value.month >= _TAX_YEAR_START_MONTH:
        return value.year + 1
    return value.year


def end_of_february(year: int) -> date:
    return date(year, 2, calendar.monthrange(year, 2)[1])


def tax_year_window(year: int) -> TaxYearWindow:
    """Return the window for the year of assessment ending in ``year``."""

    return TaxYearWindow(
        year=year,
        start=date(year - 1, _TAX_YEAR_START_MONTH, 1),
        end=end_of_february(year),
    )


def current_tax_year(today: date | None = None) -> int:
    return tax_year_for(today or date.today())


def is_in_tax_year(value: date, year: int) -> bool:
    return tax_year_window(year).contains(value)


def tax_year_label(year: int) -> str:
    """Return the ``2025/2026`` style label for a year of assessment."""

    return tax_year_window(year).label


def parse_tax_year_label(label: str) -> int:
    """Parse ``2025/2026`` into the year of assessment ``2026``.

    Raises ``ValueError`` when the label is malformed or the years are not
    consecutive.
    """

    match = _LABEL_PATTERN.match(label or "")
    if not match:
        raise ValueError(f"Invalid tax year label: {label!r}")
    start, end = (int(part) for part in match.groups())
    if end != start + 1:
        raise ValueError(f"Tax year label must span consecutive years: {label!r}")
    return end


__all__ = [
    "TaxYearWindow",
    "current_tax_year",
    "end_of_february",
    "is_in_tax_year",
    "parse_tax_year_label",
    "tax_year_for",
    "tax_year_label",
    "tax_year_window",
]
