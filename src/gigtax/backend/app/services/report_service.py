"""CSV compliance report generation."""

from __future__ import annotations

import csv
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Any

from gigtax.backend.app.localization import Translator
from gigtax.backend.app.models import ReportRequest

from .calculation_service import CalculationOutcome, run_calculation, validate_payload
from .calculators.utils import format_amount, round_percentage

_DEFAULT_DEDUCTIBILITY_SCORE = 100


def _amount(value: Decimal) -> str:
    return format_amount(value)


def _header_rows(
    outcome: CalculationOutcome, request: ReportRequest, generated_on: date
) -> list[list[str]]:
    translate = outcome.translator
    taxpayer = request.taxpayer
    rows = [
        [translate.format("report.title", tax_year=outcome.window.label)],
        [translate("report.generated"), generated_on.isoformat()],
        [translate("report.taxpayer"), taxpayer.name],
        [translate("report.email"), taxpayer.email],
    ]
    if taxpayer.id_number:
        rows.append([translate("report.id_number"), taxpayer.id_number])
    if taxpayer.tax_number:
        rows.append([translate("report.tax_number"), taxpayer.tax_number])
    return rows


def _summary_rows(outcome: CalculationOutcome) -> list[list[str]]:
    translate = outcome.translator
    result = outcome.result
    rows = [
        [translate("report.income_summary")],
        [translate("summary.annual_income"), _amount(outcome.annual_income)],
        [translate("summary.total_deductions"), _amount(outcome.total_deductions)],
        [translate("summary.taxable_income"), _amount(result.taxable_income)],
        [translate("summary.estimated_tax"), _amount(result.estimated_tax)],
        [
            translate("summary.effective_tax_rate"),
            f"{round_percentage(result.effective_rate_percent):.2f}%",
        ],
        [translate("summary.tax_bracket"), result.bracket_label],
        [translate("report.compliance_status"), outcome.compliance.message],
    ]
    for installment in outcome.schedule:
        rows.append(
            [
                installment.label,
                _amount(installment.amount),
                installment.due_date.isoformat(),
            ]
        )
    return rows


def _income_rows(outcome: CalculationOutcome) -> list[list[str]]:
    translate = outcome.translator
    rows = [
        [translate("report.income_records")],
        [
            translate("report.columns.date"),
            translate("report.columns.amount"),
            translate("report.columns.platform"),
            translate("report.columns.client"),
            translate("report.columns.category"),
            translate("report.columns.status"),
            translate("report.columns.description"),
            translate("report.columns.value_type"),
            translate("report.columns.tax_withheld"),
        ],
    ]
    for record in outcome.request.income:
        if not outcome.window.contains(record.date):
            continue
        rows.append(
            [
                record.date.isoformat(),
                _amount(record.amount),
                record.platform,
                record.client,
                record.category,
                translate("report.paid") if record.is_paid else translate("report.pending"),
                record.description,
                record.value_type,
                _amount(record.tax_withheld),
            ]
        )
    return rows


def _expense_rows(outcome: CalculationOutcome) -> list[list[str]]:
    translate = outcome.translator
    deductions = outcome.config.deductions
    rows = [
        [translate("report.expense_records")],
        [
            translate("report.columns.date"),
            translate("report.columns.amount"),
            translate("report.columns.category"),
            translate("report.columns.deductible"),
            translate("report.columns.description"),
            translate("report.columns.vat_amount"),
            translate("report.columns.deductibility_score"),
            translate("report.columns.sars_section"),
        ],
    ]
    for record in outcome.request.expenses:
        if not outcome.window.contains(record.date):
            continue
        rule = deductions.get_rule(record.category)
        score = rule.deductibility_score if rule else _DEFAULT_DEDUCTIBILITY_SCORE
        section = record.sars_section or (rule.section if rule else "")
        rows.append(
            [
                record.date.isoformat(),
                _amount(record.amount),
                record.category,
                translate("report.yes") if record.is_deductible else translate("report.no"),
                record.description,
                _amount(record.vat_amount),
                str(score),
                section,
            ]
        )
    return rows


def _category_rows(outcome: CalculationOutcome) -> list[list[str]]:
    translate = outcome.translator
    rows = [
        [translate("report.deductions_by_category")],
        [translate("report.columns.category"), translate("report.columns.total_amount")],
    ]
    totals = outcome.totals
    if totals is None:
        return rows
    ranked = sorted(totals.deductions_by_category.items(), key=lambda item: (-item[1], item[0]))
    rows.extend([category, _amount(amount)] for category, amount in ranked)
    return rows


def render_report_csv(outcome: CalculationOutcome, generated_on: date | None = None) -> str:
    """Render the SARS compliance report for ``outcome`` as CSV text."""

    request = outcome.request
    if not isinstance(request, ReportRequest):
        request = ReportRequest.model_validate(request.model_dump(mode="python"))
    generated = generated_on or request.generated_on or outcome.as_of

    sections = [
        _header_rows(outcome, request, generated),
        _summary_rows(outcome),
        _income_rows(outcome),
        _expense_rows(outcome),
        _category_rows(outcome),
    ]

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for index, rows in enumerate(sections):
        if index:
            writer.writerow([])
        writer.writerows(rows)
    return buffer.getvalue()


def report_filename(outcome: CalculationOutcome, generated_on: date, translator: Translator) -> str:
    prefix = translator("report.filename_prefix")
    label = outcome.window.label.replace("/", "-")
    return f"{prefix}_{label}_{generated_on.isoformat()}.csv"


def generate_report(payload: Mapping[str, Any] | ReportRequest) -> tuple[str, str]:
    """Return ``(filename, csv_text)`` for a report request."""

    request = validate_payload(ReportRequest, payload)
    outcome = run_calculation(request)
    generated = request.generated_on or outcome.as_of
    content = render_report_csv(outcome, generated)
    return report_filename(outcome, generated, outcome.translator), content


__all__ = ["generate_report", "render_report_csv", "report_filename"]
