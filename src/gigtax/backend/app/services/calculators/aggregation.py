"""Sum stored income and expense records over a year of assessment."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from types import MappingProxyType

from gigtax.backend.app.models import ExpenseRecord, IncomeRecord, TaxYearTotals

from .tax_year import TaxYearWindow
from .utils import HUNDRED, ZERO


def deductible_amount(expense: ExpenseRecord) -> Decimal:
    """Return the portion of ``expense`` SARS allows as a deduction."""

    if not expense.is_deductible:
        return ZERO
    percentage = expense.max_deductible_percentage
    if percentage is None:
        return expense.amount
    return expense.amount * percentage / HUNDRED


def aggregate_records(
    income: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    window: TaxYearWindow,
) -> TaxYearTotals:
    """Return exact totals for the records dated inside ``window``.

    Non-monetary income is included at its fair market value, as SARS taxes
    gifted products and services like cash.
    """

    cash = ZERO
    non_monetary = ZERO
    withheld = ZERO
    income_count = 0
    for record in income:
        if not window.contains(record.date):
            continue
        income_count += 1
        withheld += record.tax_withheld
        if record.is_non_monetary:
            non_monetary += record.amount
        else:
            cash += record.amount

    deductible = ZERO
    by_category: dict[str, Decimal] = {}
    expense_count = 0
    for expense in expenses:
        if not window.contains(expense.date):
            continue
        expense_count += 1
        amount = deductible_amount(expense)
        if not expense.is_deductible:
            continue
        deductible += amount
        category = expense.category or "Uncategorised"
        by_category[category] = by_category.get(category, ZERO) + amount

    return TaxYearTotals(
        cash_income=cash,
        non_monetary_income=non_monetary,
        deductible_expenses=deductible,
        tax_withheld=withheld,
        income_count=income_count,
        expense_count=expense_count,
        deductions_by_category=MappingProxyType(dict(sorted(by_category.items()))),
    )


__all__ = ["aggregate_records", "deductible_amount"]
