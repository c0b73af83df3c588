"""Typed value objects shared across the calculation services.

Requests and responses are Pydantic models (see :mod:`.api`); everything the
calculators derive is an immutable dataclass built fresh on every evaluation.
None of these objects carry identity or are persisted by the backend itself.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .api import (
    CalculationRequest,
    CalculationResponse,
    ComplianceOutput,
    ComplianceRequest,
    DeductionAnalysisRequest,
    DeductionSuggestionRequest,
    ExpenseRecordInput,
    FairValueRequest,
    IncomeRecordInput,
    InvoiceLineInput,
    InvoicePreviewRequest,
    PriceSourceInput,
    PricingQuoteRequest,
    ProvisionalInstallmentOutput,
    RegistrationInput,
    ReportRequest,
    ResponseMeta,
    Summary,
    SummaryLabels,
    TaxpayerInput,
    ThresholdProgressOutput,
    format_validation_error,
)

__all__ = [
    "CalculationRequest",
    "CalculationResponse",
    "ComplianceOutput",
    "ComplianceRequest",
    "ComplianceSeverity",
    "ComplianceStatus",
    "DeductionAnalysisRequest",
    "DeductionSuggestionRequest",
    "ExpenseRecord",
    "ExpenseRecordInput",
    "FairValueRequest",
    "IncomeRecord",
    "IncomeRecordInput",
    "InvoiceLineInput",
    "InvoicePreviewRequest",
    "PriceSourceInput",
    "PricingQuoteRequest",
    "ProvisionalInstallmentOutput",
    "RegistrationInput",
    "ReportRequest",
    "ResponseMeta",
    "Summary",
    "SummaryLabels",
    "TaxCalculationResult",
    "TaxYearTotals",
    "TaxpayerInput",
    "TaxpayerRegistrationState",
    "ThresholdProgressOutput",
    "format_validation_error",
]


class ComplianceSeverity(str, Enum):
    """Closed set of compliance severities, mildest first."""

    SUCCESS = "success"
    WARNING = "warning"
    URGENT = "urgent"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TaxpayerRegistrationState:
    """SARS registration flags supplied by the user profile."""

    has_tax_number: bool = False
    has_vat_number: bool = False
    is_provisional_tax_registered: bool = False

    @classmethod
    def from_flags(
        cls,
        has_tax_number: bool | None = None,
        has_vat_number: bool | None = None,
        is_provisional_tax_registered: bool | None = None,
    ) -> TaxpayerRegistrationState:
        """Build a state treating missing flags as unregistered."""

        return cls(
            has_tax_number=bool(has_tax_number),
            has_vat_number=bool(has_vat_number),
            is_provisional_tax_registered=bool(is_provisional_tax_registered),
        )


@dataclass(frozen=True)
class TaxCalculationResult:
    """Outcome of the progressive tax engine for one assessment period."""

    taxable_income: Decimal
    estimated_tax: Decimal
    bracket_label: str
    effective_rate_percent: Decimal
    first_provisional_payment: Decimal
    second_provisional_payment: Decimal
    marginal_rate: Decimal
    below_threshold: bool


@dataclass(frozen=True)
class ComplianceStatus:
    """Single prioritised compliance verdict."""

    rule: str
    status: ComplianceSeverity
    message: str
    action: str | None = None
    link: str | None = None
    guide: bool = False
    amount_remaining: Decimal | None = None


@dataclass(frozen=True)
class IncomeRecord:
    """Income entry as held by the persistence layer."""

    date: datetime.date
    amount: Decimal
    is_non_monetary: bool = False
    tax_withheld: Decimal = Decimal("0")
    platform: str = ""
    client: str = ""
    category: str = "eft"
    description: str = ""
    is_paid: bool = True


@dataclass(frozen=True)
class ExpenseRecord:
    """Expense entry as held by the persistence layer."""

    date: datetime.date
    amount: Decimal
    is_deductible: bool = False
    category: str = ""
    description: str = ""
    max_deductible_percentage: Decimal | None = None
    vat_amount: Decimal = Decimal("0")
    sars_section: str = ""


@dataclass(frozen=True)
class TaxYearTotals:
    """Exact sums over the records that fall inside a tax-year window."""

    cash_income: Decimal
    non_monetary_income: Decimal
    deductible_expenses: Decimal
    tax_withheld: Decimal
    income_count: int
    expense_count: int
    deductions_by_category: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def gross_income(self) -> Decimal:
        return self.cash_income + self.non_monetary_income
