"""Endpoints for the deduction, fair-value, invoice and pricing assistants."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from gigtax.backend.app.services.assistant_service import (
    analyse_deduction,
    assess_non_cash_income,
    preview_invoice,
    quote_pricing,
    suggest_deduction,
)
from gigtax.backend.services.request_parser import (
    parse_calculation_payload,
    parse_json_payload,
)
from gigtax.backend.services.response_builder import build_calculation_response

blueprint = Blueprint("assistants", __name__, url_prefix="/api/v1")


@blueprint.post("/deductions/analysis")
def analyse_expense_deduction() -> tuple[Any, int]:
    """Check an expense against the SARS deduction rules."""

    payload = parse_calculation_payload(request)
    return build_calculation_response(analyse_deduction(payload))


@blueprint.post("/deductions/suggestion")
def suggest_expense_category() -> tuple[Any, int]:
    payload = parse_json_payload(request)
    return build_calculation_response(suggest_deduction(payload))


@blueprint.post("/fair-value/assessment")
def assess_fair_market_value() -> tuple[Any, int]:
    """Value non-cash income from the retailer prices collected for it."""

    payload = parse_calculation_payload(request)
    return build_calculation_response(assess_non_cash_income(payload))


@blueprint.post("/invoices/preview")
def preview_invoice_totals() -> tuple[Any, int]:
    """Return invoice totals, VAT and the next invoice number."""

    payload = parse_json_payload(request)
    return build_calculation_response(preview_invoice(payload))


@blueprint.post("/pricing/quote")
def quote_creator_pricing() -> tuple[Any, int]:
    payload = parse_json_payload(request)
    return build_calculation_response(quote_pricing(payload))
