"""Progressive income tax engine driven by the configured bracket table."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from gigtax.backend.app.models import TaxCalculationResult
from gigtax.backend.config.year_config import TaxBracket, YearConfiguration

from .utils import HUNDRED, ZERO, format_percentage, format_whole_rand, to_decimal

_TWO = Decimal("2")


def _clip(value: Any) -> Decimal:
    amount = to_decimal(value)
    return amount if amount > 0 else ZERO


def bracket_label(bracket: TaxBracket, symbol: str = "R") -> str:
    """Return the display label for ``bracket`` (``R95,751 - R237,100 (18%)``)."""

    rate = format_percentage(bracket.rate)
    lower = format_whole_rand(bracket.lower_bound, symbol)
    if bracket.upper_bound is None:
        return f"{lower}+ ({rate})"
    upper = format_whole_rand(bracket.upper_bound, symbol)
    return f"{lower} - {upper} ({rate})"


def select_bracket(brackets: Sequence[TaxBracket], taxable_income: Decimal) -> TaxBracket:
    """Return the highest bracket whose lower bound lies strictly below the income.

    Income equal to a lower bound therefore resolves to the bracket beneath it.
    Incomes at or below zero resolve to the first bracket.
    """

    for bracket in reversed(brackets):
        if bracket.lower_bound < taxable_income:
            return bracket
    return brackets[0]


def compute_tax(
    annual_income: Any, total_deductions: Any, config: YearConfiguration
) -> TaxCalculationResult:
    """Compute annual income tax for the year of assessment described by ``config``.

    Negative inputs are clipped to zero. At or below the tax-free threshold the
    zero result also reports zero taxable income. Results are exact; callers
    round for presentation.
    """

    income = _clip(annual_income)
    deductions = _clip(total_deductions)
    taxable_income = max(ZERO, income - deductions)

    brackets = config.brackets
    symbol = config.currency_symbol
    threshold = config.thresholds.tax_free

    if taxable_income <= threshold:
        zero_band = brackets[0]
        return TaxCalculationResult(
            taxable_income=ZERO,
            estimated_tax=ZERO,
            bracket_label=bracket_label(zero_band, symbol),
            effective_rate_percent=ZERO,
            first_provisional_payment=ZERO,
            second_provisional_payment=ZERO,
            marginal_rate=zero_band.rate,
            below_threshold=True,
        )

    bracket = select_bracket(brackets, taxable_income)
    estimated_tax = bracket.base_tax + (taxable_income - bracket.lower_bound) * bracket.rate
    effective_rate = estimated_tax / taxable_income * HUNDRED
    half = estimated_tax / _TWO

    return TaxCalculationResult(
        taxable_income=taxable_income,
        estimated_tax=estimated_tax,
        bracket_label=bracket_label(bracket, symbol),
        effective_rate_percent=effective_rate,
        first_provisional_payment=half,
        second_provisional_payment=half,
        marginal_rate=bracket.rate,
        below_threshold=False,
    )


__all__ = ["bracket_label", "compute_tax", "select_bracket"]
