"""Expose year configuration metadata to API consumers.

Front-ends use these endpoints to render bracket tables, threshold hints and
deduction guidance without duplicating the YAML-backed rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flask import Blueprint, jsonify, request

from gigtax.backend.app.http import ProblemResponse, problem_response
from gigtax.backend.app.localization import Translator, get_translator, normalise_locale
from gigtax.backend.app.services.calculators import bracket_label, tax_year_window
from gigtax.backend.app.services.calculators.provisional import first_installment_due
from gigtax.backend.config.year_config import (
    DeductionRuleConfig,
    TaxYearManifestEntry,
    YearConfiguration,
    load_manifest,
    load_year_configuration,
    manifest_entries,
)
from gigtax.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


@dataclass(frozen=True)
class YearRouteContext:
    """Common context shared by year-scoped configuration endpoints."""

    year: int
    locale: str
    translator: Translator
    configuration: YearConfiguration


def _build_year_context(year: int, locale_hint: str | None) -> YearRouteContext | ProblemResponse:
    """Resolve configuration and localisation helpers for a given year."""

    try:
        configuration = load_year_configuration(year)
    except FileNotFoundError as exc:
        return problem_response("not_found", status=404, message=str(exc))

    translator = get_translator(normalise_locale(locale_hint))
    return YearRouteContext(
        year=year,
        locale=translator.locale,
        translator=translator,
        configuration=configuration,
    )


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_year(entry: TaxYearManifestEntry) -> dict[str, Any]:
    year = entry.year
    config = load_year_configuration(year)
    window = tax_year_window(year)
    thresholds = config.thresholds
    return {
        "year": year,
        "status": entry.status,
        "notes_url": entry.notes_url,
        "tax_year": config.tax_year_label,
        "period_start": window.start.isoformat(),
        "period_end": window.end.isoformat(),
        "meta": dict(config.meta),
        "thresholds": {
            "tax_free": float(thresholds.tax_free),
            "vat_registration": float(thresholds.vat_registration),
            "provisional_tax": float(thresholds.provisional_tax),
            "approaching_ratio": float(thresholds.approaching_ratio),
        },
        "vat_rate": float(config.vat.standard_rate),
        "provisional_due_dates": [
            first_installment_due(year, config.provisional).isoformat(),
            window.end.isoformat(),
        ],
        "warnings": [warning.model_dump(mode="json") for warning in config.warnings],
    }


def _serialise_rule(rule: DeductionRuleConfig) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "category": rule.category,
        "group": rule.group,
        "section": rule.section,
        "max_percentage": float(rule.max_percentage),
        "deductibility_score": rule.deductibility_score,
        "requirements": list(rule.requirements),
        "documentation": list(rule.documentation),
        "warnings": list(rule.warnings),
        "tips": list(rule.tips),
    }
    if rule.wear_and_tear_rate is not None:
        entry["wear_and_tear_rate"] = float(rule.wear_and_tear_rate)
    return entry


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return all configured years with their thresholds and key dates."""

    metadata = get_configuration_metadata()
    payload = {
        "years": [_serialise_year(entry) for entry in manifest_entries()],
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/brackets")
def get_brackets(year: int) -> tuple[Any, int]:
    """Return the progressive bracket table with display labels."""

    context = _build_year_context(year, request.args.get("locale"))
    if isinstance(context, ProblemResponse):
        return context.to_response()

    config = context.configuration
    brackets = [
        {
            "lower": float(bracket.lower_bound),
            "upper": float(bracket.upper_bound) if bracket.upper_bound is not None else None,
            "rate": float(bracket.rate),
            "base": float(bracket.base_tax),
            "label": bracket_label(bracket, config.currency_symbol),
        }
        for bracket in config.brackets
    ]
    payload = {
        "year": context.year,
        "tax_year": config.tax_year_label,
        "locale": context.locale,
        "brackets": brackets,
        "notes": [context.translator(warning.message_key) for warning in config.warnings],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/deductions")
def get_deduction_rules(year: int) -> tuple[Any, int]:
    """Expose the SARS deduction rules configured for the year."""

    context = _build_year_context(year, request.args.get("locale"))
    if isinstance(context, ProblemResponse):
        return context.to_response()

    deductions = context.configuration.deductions
    payload = {
        "year": context.year,
        "locale": context.locale,
        "fallback_category": deductions.fallback_category,
        "rules": [_serialise_rule(rule) for rule in deductions.rules],
    }
    return jsonify(payload), 200
