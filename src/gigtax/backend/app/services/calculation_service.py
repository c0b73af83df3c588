"""Orchestrate request validation, aggregation and the tax calculators.

The service resolves the year configuration and translator for a request,
turns stored records into tax-year totals, and runs the progressive engine and
compliance classifier over them. Responses are rounded to cents only here, so
the calculators can keep exact values.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from time import perf_counter
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from gigtax.backend.app.localization import Translator, get_translator
from gigtax.backend.app.models import (
    CalculationRequest,
    CalculationResponse,
    ComplianceOutput,
    ComplianceRequest,
    ComplianceStatus,
    ExpenseRecord,
    ExpenseRecordInput,
    IncomeRecord,
    IncomeRecordInput,
    RegistrationInput,
    TaxCalculationResult,
    TaxpayerRegistrationState,
    TaxYearTotals,
    format_validation_error,
)
from gigtax.backend.config.year_config import YearConfiguration, load_year_configuration

from .calculators import (
    ProvisionalInstallment,
    TaxYearWindow,
    ThresholdProgress,
    aggregate_records,
    classify,
    compute_tax,
    provisional_schedule,
    round_currency,
    round_percentage,
    tax_year_window,
    threshold_progress,
)
from .calculators.utils import HUNDRED, ZERO

_LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("GIGTAX_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def validate_payload(model: type[_ModelT], payload: Mapping[str, Any] | BaseModel) -> _ModelT:
    """Validate ``payload`` against ``model`` raising ``ValueError`` on failure."""

    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="python")
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    if "year" in model.model_fields and "year" not in payload:
        raise ValueError("Payload must include a tax year")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def registration_state(registration: RegistrationInput | None) -> TaxpayerRegistrationState:
    if registration is None:
        return TaxpayerRegistrationState()
    return TaxpayerRegistrationState.from_flags(
        has_tax_number=registration.resolved_tax_number,
        has_vat_number=registration.resolved_vat_number,
        is_provisional_tax_registered=registration.resolved_provisional,
    )


def _income_record(entry: IncomeRecordInput) -> IncomeRecord:
    return IncomeRecord(
        date=entry.date,
        amount=entry.amount,
        is_non_monetary=entry.value_type == "non_monetary",
        tax_withheld=entry.tax_withheld,
        platform=entry.platform,
        client=entry.client,
        category=entry.category,
        description=entry.description,
        is_paid=entry.is_paid,
    )


def _expense_record(entry: ExpenseRecordInput) -> ExpenseRecord:
    return ExpenseRecord(
        date=entry.date,
        amount=entry.amount,
        is_deductible=entry.is_deductible,
        category=entry.category,
        description=entry.description,
        max_deductible_percentage=entry.max_deductible_percentage,
        vat_amount=entry.vat_amount,
        sars_section=entry.sars_section,
    )


@dataclass(frozen=True)
class CalculationOutcome:
    """Everything derived for one calculation request, before rounding."""

    request: CalculationRequest
    config: YearConfiguration
    translator: Translator
    window: TaxYearWindow
    as_of: date
    annual_income: Decimal
    total_deductions: Decimal
    ytd_income: Decimal
    totals: TaxYearTotals | None
    result: TaxCalculationResult
    compliance: ComplianceStatus
    progress: ThresholdProgress
    schedule: tuple[ProvisionalInstallment, ...]

    @property
    def source(self) -> str:
        return "records" if self.totals is not None else "scalar"

    @property
    def balance_due(self) -> Decimal | None:
        """Tax still payable after withholding; negative means a refund."""

        if self.totals is None or self.totals.tax_withheld <= 0:
            return None
        return self.result.estimated_tax - self.totals.tax_withheld


def run_calculation(payload: Mapping[str, Any] | CalculationRequest) -> CalculationOutcome:
    """Validate ``payload`` and run every calculator over it."""

    request = validate_payload(CalculationRequest, payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    config = load_year_configuration(request.year)
    translator = get_translator(request.locale)
    window = tax_year_window(request.year)
    as_of = request.as_of or date.today()

    totals: TaxYearTotals | None = None
    if request.uses_records:
        with _profile_section("aggregate_records", timings):
            totals = aggregate_records(
                (_income_record(entry) for entry in request.income),
                (_expense_record(entry) for entry in request.expenses),
                window,
            )
        annual_income = totals.gross_income
        total_deductions = totals.deductible_expenses
    else:
        annual_income = request.annual_income or ZERO
        total_deductions = request.total_deductions or ZERO

    ytd_income = request.ytd_income if request.ytd_income is not None else annual_income

    with _profile_section("compute_tax", timings):
        result = compute_tax(annual_income, total_deductions, config)

    with _profile_section("classify", timings):
        compliance = classify(
            registration_state(request.registration), ytd_income, config, translator
        )

    progress = threshold_progress(ytd_income, config)
    schedule = provisional_schedule(result, config, as_of=as_of, translator=translator)

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "run_calculation timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    return CalculationOutcome(
        request=request,
        config=config,
        translator=translator,
        window=window,
        as_of=as_of,
        annual_income=annual_income,
        total_deductions=total_deductions,
        ytd_income=ytd_income,
        totals=totals,
        result=result,
        compliance=compliance,
        progress=progress,
        schedule=schedule,
    )


def _money(value: Decimal) -> float:
    return float(round_currency(value))


def serialise_compliance(status: ComplianceStatus) -> dict[str, Any]:
    """Return the JSON-ready representation of a compliance verdict."""

    model = ComplianceOutput.model_validate(
        {
            "rule": status.rule,
            "status": status.status.value,
            "message": status.message,
            "action": status.action,
            "link": status.link,
            "guide": status.guide,
            "amount_remaining": (
                _money(status.amount_remaining) if status.amount_remaining is not None else None
            ),
        }
    )
    return model.model_dump(mode="json", exclude_none=True)


def _serialise_progress(progress: ThresholdProgress) -> dict[str, Any]:
    return {
        "percent": float(round_percentage(progress.percent)),
        "band": progress.band,
        "threshold": _money(progress.threshold),
    }


def _build_summary(outcome: CalculationOutcome) -> dict[str, Any]:
    result = outcome.result
    translator = outcome.translator

    summary: dict[str, Any] = {
        "annual_income": _money(outcome.annual_income),
        "total_deductions": _money(outcome.total_deductions),
        "taxable_income": _money(result.taxable_income),
        "estimated_tax": _money(result.estimated_tax),
        "effective_tax_rate": float(round_percentage(result.effective_rate_percent)),
        "tax_bracket": result.bracket_label,
        "marginal_rate": float(round_percentage(result.marginal_rate * HUNDRED)),
        "first_provisional_payment": _money(result.first_provisional_payment),
        "second_provisional_payment": _money(result.second_provisional_payment),
        "below_threshold": result.below_threshold,
        "labels": {
            "annual_income": translator("summary.annual_income"),
            "total_deductions": translator("summary.total_deductions"),
            "taxable_income": translator("summary.taxable_income"),
            "estimated_tax": translator("summary.estimated_tax"),
            "effective_tax_rate": translator("summary.effective_tax_rate"),
            "tax_bracket": translator("summary.tax_bracket"),
            "first_provisional_payment": translator("summary.first_provisional_payment"),
            "second_provisional_payment": translator("summary.second_provisional_payment"),
        },
    }

    totals = outcome.totals
    if totals is not None:
        summary["cash_income"] = _money(totals.cash_income)
        summary["non_monetary_income"] = _money(totals.non_monetary_income)
        if totals.deductions_by_category:
            summary["deductions_by_category"] = {
                category: _money(amount)
                for category, amount in totals.deductions_by_category.items()
            }

    balance_due = outcome.balance_due
    if totals is not None and balance_due is not None:
        summary["tax_withheld"] = _money(totals.tax_withheld)
        summary["labels"]["tax_withheld"] = translator("summary.tax_withheld")

        is_refund = balance_due < 0
        summary["balance_due"] = _money(-balance_due if is_refund else balance_due)
        summary["balance_due_is_refund"] = is_refund
        balance_label_key = "summary.refund_due" if is_refund else "summary.balance_due"
        summary["labels"]["balance_due"] = translator(balance_label_key)

    return summary


def build_response(outcome: CalculationOutcome) -> dict[str, Any]:
    """Round and serialise a calculation outcome."""

    config = outcome.config
    translator = outcome.translator
    warnings = [translator(warning.message_key) for warning in config.warnings]

    response_model = CalculationResponse.model_validate(
        {
            "summary": _build_summary(outcome),
            "compliance": serialise_compliance(outcome.compliance),
            "threshold_progress": _serialise_progress(outcome.progress),
            "provisional": [
                {
                    "period": installment.period,
                    "label": installment.label,
                    "due_date": installment.due_date,
                    "amount": _money(installment.amount),
                    "is_past_due": installment.is_past_due,
                }
                for installment in outcome.schedule
            ],
            "meta": {
                "year": config.year,
                "tax_year": outcome.window.label,
                "locale": translator.locale,
                "period_start": outcome.window.start,
                "period_end": outcome.window.end,
                "as_of": outcome.as_of,
                "source": outcome.source,
                "warnings": warnings or None,
            },
        }
    )

    return response_model.model_dump(mode="json", exclude_none=True)


def calculate_tax(payload: Mapping[str, Any] | CalculationRequest) -> dict[str, Any]:
    """Compute the tax summary, compliance verdict and provisional schedule."""

    outcome = run_calculation(payload)
    _LOGGER.debug(
        "Calculated %s tax for year %s (%s input)",
        outcome.result.estimated_tax,
        outcome.config.year,
        outcome.source,
    )
    return build_response(outcome)


def evaluate_compliance(payload: Mapping[str, Any] | ComplianceRequest) -> dict[str, Any]:
    """Classify a taxpayer's compliance position without computing tax."""

    request = validate_payload(ComplianceRequest, payload)
    config = load_year_configuration(request.year)
    translator = get_translator(request.locale)

    status = classify(
        registration_state(request.registration), request.ytd_income, config, translator
    )
    progress = threshold_progress(request.ytd_income, config)

    return {
        "compliance": serialise_compliance(status),
        "threshold_progress": _serialise_progress(progress),
        "meta": {"year": config.year, "locale": translator.locale},
    }


__all__ = [
    "CalculationOutcome",
    "build_response",
    "calculate_tax",
    "evaluate_compliance",
    "registration_state",
    "run_calculation",
    "serialise_compliance",
    "validate_payload",
]
