"""Pydantic models describing the public API surface."""

from __future__ import annotations

import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

__all__ = [
    "Amount",
    "RegistrationInput",
    "IncomeRecordInput",
    "ExpenseRecordInput",
    "CalculationRequest",
    "ComplianceRequest",
    "TaxpayerInput",
    "ReportRequest",
    "DeductionAnalysisRequest",
    "DeductionSuggestionRequest",
    "InvoiceLineInput",
    "InvoicePreviewRequest",
    "PricingQuoteRequest",
    "PriceSourceInput",
    "FairValueRequest",
    "SummaryLabels",
    "Summary",
    "ComplianceOutput",
    "ThresholdProgressOutput",
    "ProvisionalInstallmentOutput",
    "ResponseMeta",
    "CalculationResponse",
    "format_validation_error",
]


def _coerce_amount(value: Any) -> Any:
    if value is None or isinstance(value, Decimal):
        amount = value
    elif isinstance(value, bool):
        raise ValueError("Amounts must be numeric")
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError("Amounts must be numeric") from exc
    else:
        raise ValueError("Amounts must be numeric")

    if amount is not None and not amount.is_finite():
        raise ValueError("Amounts must be finite numbers")
    return amount


Amount = Annotated[Decimal, BeforeValidator(_coerce_amount)]


def _normalise_locale_value(value: Any) -> str:
    if value is None:
        return "en"
    text = str(value).strip()
    return text or "en"


class RegistrationInput(BaseModel):
    """SARS registration details taken from the user's profile.

    Explicit ``has_*`` flags win; otherwise a non-blank reference number counts
    as registered. Anything missing is treated as unregistered.
    """

    model_config = ConfigDict(extra="forbid")

    has_tax_number: bool | None = None
    has_vat_number: bool | None = None
    is_provisional_tax_registered: bool | None = None
    tax_number: str | None = None
    vat_number: str | None = None

    @staticmethod
    def _has_reference(value: str | None) -> bool:
        return bool(value and value.strip())

    @property
    def resolved_tax_number(self) -> bool:
        if self.has_tax_number is not None:
            return self.has_tax_number
        return self._has_reference(self.tax_number)

    @property
    def resolved_vat_number(self) -> bool:
        if self.has_vat_number is not None:
            return self.has_vat_number
        return self._has_reference(self.vat_number)

    @property
    def resolved_provisional(self) -> bool:
        return bool(self.is_provisional_tax_registered)


class IncomeRecordInput(BaseModel):
    """Income record supplied by the persistence layer."""

    model_config = ConfigDict(extra="forbid")

    date: datetime.date
    amount: Amount = Field(..., ge=0)
    value_type: Literal["monetary", "non_monetary"] = "monetary"
    tax_withheld: Amount = Field(default=Decimal("0"), ge=0)
    platform: str = ""
    client: str = ""
    category: str = "eft"
    description: str = ""
    is_paid: bool = True

    @field_validator("value_type", mode="before")
    @classmethod
    def _default_value_type(cls, value: Any) -> Any:
        return "monetary" if value is None else value


class ExpenseRecordInput(BaseModel):
    """Expense record supplied by the persistence layer."""

    model_config = ConfigDict(extra="forbid")

    date: datetime.date
    amount: Amount = Field(..., ge=0)
    is_deductible: bool = False
    category: str = ""
    description: str = ""
    max_deductible_percentage: Amount | None = Field(default=None, gt=0, le=100)
    vat_amount: Amount = Field(default=Decimal("0"), ge=0)
    sars_section: str = ""


class CalculationRequest(BaseModel):
    """Payload accepted by the calculation endpoint.

    Either provide the aggregated ``annual_income``/``total_deductions`` pair
    or the raw ``income``/``expenses`` records for the year of assessment.
    """

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    locale: str = Field(default="en")
    as_of: datetime.date | None = None
    annual_income: Amount | None = None
    total_deductions: Amount | None = None
    ytd_income: Amount | None = None
    income: list[IncomeRecordInput] = Field(default_factory=list)
    expenses: list[ExpenseRecordInput] = Field(default_factory=list)
    registration: RegistrationInput = Field(default_factory=RegistrationInput)

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        return _normalise_locale_value(value)

    @field_validator("income", "expenses", "registration", mode="before")
    @classmethod
    def _drop_nulls(cls, value: Any, info: Any) -> Any:
        if value is None:
            return {} if info.field_name == "registration" else []
        return value

    @model_validator(mode="after")
    def _require_income_source(self) -> "CalculationRequest":
        has_records = bool(self.income or self.expenses)
        if self.annual_income is not None and has_records:
            raise ValueError(
                "Provide either annual_income/total_deductions or income/expense records, not both"
            )
        if self.annual_income is None and self.total_deductions is not None:
            raise ValueError("total_deductions requires annual_income")
        return self

    @property
    def uses_records(self) -> bool:
        return self.annual_income is None


class ComplianceRequest(BaseModel):
    """Payload accepted by the compliance endpoint."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    locale: str = Field(default="en")
    ytd_income: Amount
    registration: RegistrationInput = Field(default_factory=RegistrationInput)

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        return _normalise_locale_value(value)


class TaxpayerInput(BaseModel):
    """Identity block printed at the top of compliance reports."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    email: str = ""
    tax_number: str | None = None
    id_number: str | None = None


class ReportRequest(CalculationRequest):
    """Calculation payload plus the report header details."""

    taxpayer: TaxpayerInput = Field(default_factory=TaxpayerInput)
    generated_on: datetime.date | None = None


class DeductionAnalysisRequest(BaseModel):
    """Expense to be checked against the SARS deduction rules."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    locale: str = Field(default="en")
    amount: Amount = Field(..., ge=0)
    category: str | None = None
    description: str = ""

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        return _normalise_locale_value(value)


class DeductionSuggestionRequest(BaseModel):
    """Free-text expense description to categorise."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    description: str


class InvoiceLineInput(BaseModel):
    """Single invoice line item."""

    model_config = ConfigDict(extra="forbid")

    description: str
    quantity: Amount = Field(default=Decimal("1"), ge=0)
    rate: Amount = Field(..., ge=0)


class InvoicePreviewRequest(BaseModel):
    """Invoice draft to be totalled."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    issue_date: datetime.date | None = None
    due_date: datetime.date | None = None
    vat_registered: bool = False
    existing_invoice_count: int = Field(default=0, ge=0)
    line_items: list[InvoiceLineInput] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _validate_dates(self) -> "InvoicePreviewRequest":
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError("due_date cannot precede issue_date")
        return self


class PricingQuoteRequest(BaseModel):
    """Inputs for the creator pricing assistant."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    platform: str
    followers: int = Field(default=10_000, ge=0)
    content_type: str = "single-post"
    hourly_rate: Amount | None = Field(default=None, ge=0)


class PriceSourceInput(BaseModel):
    """Retailer price gathered as fair-market-value evidence."""

    model_config = ConfigDict(extra="forbid")

    retailer: str = Field(..., min_length=1)
    price: Amount = Field(..., ge=0)
    url: str = ""
    is_manual: bool = False


class FairValueRequest(BaseModel):
    """Price evidence for an item received as non-cash income."""

    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=0)
    locale: str = Field(default="en")
    item_description: str = ""
    calculation_method: Literal["market_research", "retailer_price", "comparable_sales"] = (
        "retailer_price"
    )
    sources: list[PriceSourceInput] = Field(..., min_length=1)
    selected_amount: Amount | None = Field(default=None, ge=0)
    proof_urls: list[str] = Field(default_factory=list)
    valuation_date: datetime.date | None = None

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        return _normalise_locale_value(value)


class SummaryLabels(BaseModel):
    """Localized labels for summary fields."""

    model_config = ConfigDict(extra="forbid")

    annual_income: str
    total_deductions: str
    taxable_income: str
    estimated_tax: str
    effective_tax_rate: str
    tax_bracket: str
    first_provisional_payment: str
    second_provisional_payment: str
    tax_withheld: str | None = None
    balance_due: str | None = None


class Summary(BaseModel):
    """Rounded tax engine output."""

    model_config = ConfigDict(extra="forbid")

    annual_income: float
    total_deductions: float
    taxable_income: float
    estimated_tax: float
    effective_tax_rate: float
    tax_bracket: str
    marginal_rate: float
    first_provisional_payment: float
    second_provisional_payment: float
    below_threshold: bool
    labels: SummaryLabels
    cash_income: float | None = None
    non_monetary_income: float | None = None
    tax_withheld: float | None = None
    balance_due: float | None = None
    balance_due_is_refund: bool | None = None
    deductions_by_category: dict[str, float] | None = None


class ComplianceOutput(BaseModel):
    """Serialised compliance verdict."""

    model_config = ConfigDict(extra="forbid")

    rule: str
    status: Literal["success", "warning", "urgent", "critical"]
    message: str
    action: str | None = None
    link: str | None = None
    guide: bool = False
    amount_remaining: float | None = None


class ThresholdProgressOutput(BaseModel):
    """Progress towards the tax-free threshold."""

    model_config = ConfigDict(extra="forbid")

    percent: float
    band: Literal["low", "moderate", "high", "exceeded"]
    threshold: float


class ProvisionalInstallmentOutput(BaseModel):
    """Provisional tax installment with its due date."""

    model_config = ConfigDict(extra="forbid")

    period: int
    label: str
    due_date: datetime.date
    amount: float
    is_past_due: bool


class ResponseMeta(BaseModel):
    """Metadata returned alongside the calculation output."""

    model_config = ConfigDict(extra="forbid")

    year: int
    tax_year: str
    locale: str
    period_start: datetime.date
    period_end: datetime.date
    as_of: datetime.date
    source: Literal["scalar", "records"]
    warnings: list[str] | None = None


class CalculationResponse(BaseModel):
    """Full response payload produced by the calculation service."""

    model_config = ConfigDict(extra="forbid")

    summary: Summary
    compliance: ComplianceOutput
    threshold_progress: ThresholdProgressOutput
    provisional: list[ProvisionalInstallmentOutput]
    meta: ResponseMeta


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid request payload: {details}"
