"""Deduction, fair-value, invoice and pricing helpers exposed over the API.

Each entry point validates its payload, resolves the year configuration and
returns a JSON-ready mapping with amounts rounded to cents.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from gigtax.backend.app.localization import get_translator
from gigtax.backend.app.models import (
    DeductionAnalysisRequest,
    DeductionSuggestionRequest,
    FairValueRequest,
    InvoicePreviewRequest,
    PricingQuoteRequest,
)
from gigtax.backend.config.year_config import load_year_configuration

from .calculation_service import validate_payload
from .calculators import (
    InvoiceLine,
    PriceSource,
    analyse_expense,
    assess_fair_value,
    generate_invoice_number,
    invoice_totals,
    quote_price,
    retailer_search_links,
    round_currency,
    suggest_category,
)
from .calculators.tax_year import tax_year_for, tax_year_label
from .calculators.utils import HUNDRED, round_percentage


def _money(value: Any) -> float:
    return float(round_currency(value))


def analyse_deduction(payload: Mapping[str, Any] | DeductionAnalysisRequest) -> dict[str, Any]:
    """Assess an expense against the SARS deduction rules for the year."""

    request = validate_payload(DeductionAnalysisRequest, payload)
    config = load_year_configuration(request.year)
    translator = get_translator(request.locale)

    category = request.category
    suggested = False
    if not category and request.description:
        category = suggest_category(request.description, config.deductions)
        suggested = True

    analysis = analyse_expense(request.amount, category, config, translator)
    result: dict[str, Any] = {
        "category": analysis.category,
        "category_suggested": suggested,
        "recognised": analysis.recognised,
        "deductibility_score": analysis.deductibility_score,
        "sars_section": analysis.sars_section,
        "max_deductible_percentage": float(analysis.max_deductible_percentage),
        "max_deductible_amount": _money(analysis.max_deductible_amount),
        "potential_deduction": _money(analysis.potential_deduction),
        "reasoning": analysis.reasoning,
        "warnings": list(analysis.warnings),
        "required_documentation": list(analysis.required_documentation),
        "optimization_tips": list(analysis.optimization_tips),
    }
    if analysis.annual_wear_and_tear is not None:
        result["annual_wear_and_tear"] = _money(analysis.annual_wear_and_tear)

    return {"analysis": result, "meta": {"year": config.year, "locale": translator.locale}}


def suggest_deduction(payload: Mapping[str, Any] | DeductionSuggestionRequest) -> dict[str, Any]:
    """Suggest a deduction category for a free-text expense description."""

    request = validate_payload(DeductionSuggestionRequest, payload)
    config = load_year_configuration(request.year)
    category = suggest_category(request.description, config.deductions)
    rule = config.deductions.get_rule(category)
    return {
        "category": category,
        "is_fallback": category == config.deductions.fallback_category,
        "sars_section": rule.section if rule else None,
        "year": config.year,
    }


def assess_non_cash_income(payload: Mapping[str, Any] | FairValueRequest) -> dict[str, Any]:
    """Value an item received in kind from the retailer prices supplied.

    The response carries a ``non_monetary`` income record that can be posted
    back to the calculation endpoint unchanged.
    """

    request = validate_payload(FairValueRequest, payload)
    config = load_year_configuration(request.year)
    translator = get_translator(request.locale)
    valuation_date = request.valuation_date or date.today()

    sources = [
        PriceSource(
            retailer=source.retailer,
            price=source.price,
            url=source.url,
            is_manual=source.is_manual,
        )
        for source in request.sources
    ]
    assessment = assess_fair_value(
        sources,
        config.fair_value,
        translator,
        selected_amount=request.selected_amount,
        proof_urls=request.proof_urls,
    )
    search_links = []
    if request.item_description.strip():
        search_links = [
            {"retailer": name, "url": url}
            for name, url in retailer_search_links(request.item_description, config.fair_value)
        ]

    return {
        "assessment": {
            "item_description": request.item_description,
            "calculation_method": request.calculation_method,
            "source_count": assessment.source_count,
            "average": _money(assessment.average),
            "median": _money(assessment.median),
            "minimum": _money(assessment.minimum),
            "maximum": _money(assessment.maximum),
            "variance_percent": float(assessment.variance_percent),
            "fmv_amount": _money(assessment.fmv_amount),
            "verification_status": assessment.verification_status,
            "warnings": [
                {"id": warning.id, "message": warning.message} for warning in assessment.warnings
            ],
            "proof_urls": list(assessment.proof_urls),
            "notes": assessment.notes,
            "valuation_date": valuation_date.isoformat(),
            "tax_year": tax_year_label(tax_year_for(valuation_date)),
        },
        "income_record": {
            "date": valuation_date.isoformat(),
            "amount": _money(assessment.fmv_amount),
            "value_type": "non_monetary",
            "description": request.item_description,
        },
        "search_links": search_links,
        "meta": {"year": config.year, "locale": translator.locale},
    }


def preview_invoice(payload: Mapping[str, Any] | InvoicePreviewRequest) -> dict[str, Any]:
    """Total an invoice draft and assign its sequential number."""

    request = validate_payload(InvoicePreviewRequest, payload)
    config = load_year_configuration(request.year)
    issue_date = request.issue_date or date.today()

    lines = [
        InvoiceLine(description=item.description, quantity=item.quantity, rate=item.rate)
        for item in request.line_items
    ]
    totals = invoice_totals(lines, request.vat_registered, config)

    invoice: dict[str, Any] = {
        "invoice_number": generate_invoice_number(request.existing_invoice_count, issue_date),
        "issue_date": issue_date.isoformat(),
        "line_items": [
            {
                "description": line.description,
                "quantity": float(line.quantity),
                "rate": _money(line.rate),
                "amount": _money(line.amount),
            }
            for line in totals.lines
        ],
        "subtotal": _money(totals.subtotal),
        "vat_rate": float(round_percentage(totals.vat_rate * HUNDRED)),
        "vat_amount": _money(totals.vat_amount),
        "total": _money(totals.total),
    }
    if request.due_date:
        invoice["due_date"] = request.due_date.isoformat()
    return {"invoice": invoice, "year": config.year}


def quote_pricing(payload: Mapping[str, Any] | PricingQuoteRequest) -> dict[str, Any]:
    """Recommend a price range for creator or freelance work."""

    request = validate_payload(PricingQuoteRequest, payload)
    config = load_year_configuration(request.year)
    quote = quote_price(
        request.platform,
        config.pricing,
        followers=request.followers,
        content_type=request.content_type,
        hourly_rate=request.hourly_rate,
    )
    return {
        "quote": {
            "platform": quote.platform,
            "content_type": quote.content_type,
            "base_rate": _money(quote.base_rate),
            "multiplier": float(quote.multiplier),
            "minimum": int(quote.minimum),
            "recommended": int(quote.recommended),
            "maximum": int(quote.maximum),
        },
        "year": config.year,
    }


__all__ = [
    "analyse_deduction",
    "assess_non_cash_income",
    "preview_invoice",
    "quote_pricing",
    "suggest_deduction",
]
