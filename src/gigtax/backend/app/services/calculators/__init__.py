"""Domain-specific calculation helpers."""

from .aggregation import aggregate_records, deductible_amount
from .compliance import COMPLIANCE_RULES, ComplianceRule, classify
from .deductions import DeductionAnalysis, analyse_expense, suggest_category
from .fair_value import (
    FairValueAssessment,
    PriceSource,
    assess_fair_value,
    retailer_search_links,
)
from .invoices import InvoiceLine, InvoiceTotals, generate_invoice_number, invoice_totals
from .pricing import PriceQuote, quote_price
from .progressive import bracket_label, compute_tax, select_bracket
from .provisional import (
    ProvisionalInstallment,
    ThresholdProgress,
    provisional_schedule,
    threshold_progress,
)
from .tax_year import TaxYearWindow, tax_year_for, tax_year_label, tax_year_window
from .utils import format_zar, parse_zar, round_currency, round_percentage

__all__ = [
    "COMPLIANCE_RULES",
    "ComplianceRule",
    "DeductionAnalysis",
    "FairValueAssessment",
    "InvoiceLine",
    "InvoiceTotals",
    "PriceSource",
    "PriceQuote",
    "ProvisionalInstallment",
    "TaxYearWindow",
    "ThresholdProgress",
    "aggregate_records",
    "analyse_expense",
    "assess_fair_value",
    "bracket_label",
    "classify",
    "compute_tax",
    "deductible_amount",
    "format_zar",
    "generate_invoice_number",
    "invoice_totals",
    "parse_zar",
    "provisional_schedule",
    "quote_price",
    "retailer_search_links",
    "round_currency",
    "round_percentage",
    "select_bracket",
    "suggest_category",
    "tax_year_for",
    "tax_year_label",
    "tax_year_window",
    "threshold_progress",
]
