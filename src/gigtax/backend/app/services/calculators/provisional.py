"""Provisional tax installment schedule and threshold progress."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from gigtax.backend.app.localization import Translator, get_translator
from gigtax.backend.app.models import TaxCalculationResult
from gigtax.backend.config.year_config import ProvisionalConfig, YearConfiguration

from .tax_year import end_of_february
from .utils import HUNDRED, ZERO, to_decimal

# Band upper limits as a percentage of the tax-free threshold.
_PROGRESS_BANDS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("70"), "low"),
    (Decimal("85"), "moderate"),
    (Decimal("100"), "high"),
)


@dataclass(frozen=True)
class ProvisionalInstallment:
    period: int
    label: str
    due_date: date
    amount: Decimal
    is_past_due: bool


@dataclass(frozen=True)
class ThresholdProgress:
    percent: Decimal
    band: str
    threshold: Decimal


def first_installment_due(year: int, provisional: ProvisionalConfig) -> date:
    """Return the first due date, which falls inside the year of assessment."""

    calendar_year = year - 1 if provisional.first_due_month >= 3 else year
    return date(calendar_year, provisional.first_due_month, provisional.first_due_day)


def provisional_schedule(
    result: TaxCalculationResult,
    config: YearConfiguration,
    as_of: date | None = None,
    translator: Translator | None = None,
) -> tuple[ProvisionalInstallment, ...]:
    """Return the two IRP6 installments for the year of assessment."""

    translate = translator or get_translator()
    reference = as_of or date.today()
    first_due = first_installment_due(config.year, config.provisional)
    second_due = end_of_february(config.year)
    dues = (
        (1, "provisional.first_period", first_due, result.first_provisional_payment),
        (2, "provisional.second_period", second_due, result.second_provisional_payment),
    )
    return tuple(
        ProvisionalInstallment(
            period=period,
            label=translate(key),
            due_date=due,
            amount=amount,
            is_past_due=reference > due,
        )
        for period, key, due, amount in dues
    )


def threshold_progress(ytd_income: Any, config: YearConfiguration) -> ThresholdProgress:
    """Return how far ``ytd_income`` has progressed towards the tax-free threshold.

    The percentage is capped at 100; the band still reports ``exceeded`` once
    the threshold is reached.
    """

    threshold = config.thresholds.tax_free
    ytd = max(ZERO, to_decimal(ytd_income))
    raw = ytd / threshold * HUNDRED
    band = "exceeded"
    for limit, name in _PROGRESS_BANDS:
        if raw < limit:
            band = name
            break
    return ThresholdProgress(percent=min(raw, HUNDRED), band=band, threshold=threshold)


__all__ = [
    "ProvisionalInstallment",
    "ThresholdProgress",
    "first_installment_due",
    "provisional_schedule",
    "threshold_progress",
]
