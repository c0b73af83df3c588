"""REST endpoints for tax calculations and compliance checks."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from gigtax.backend.app.services.calculation_service import (
    calculate_tax,
    evaluate_compliance,
)
from gigtax.backend.services.request_parser import parse_calculation_payload
from gigtax.backend.services.response_builder import build_calculation_response

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Create a tax calculation using the submitted JSON payload."""

    payload = parse_calculation_payload(request)
    result = calculate_tax(payload)

    return build_calculation_response(result)


@blueprint.post("/compliance")
def check_compliance() -> tuple[Any, int]:
    """Classify the taxpayer's SARS compliance position."""

    payload = parse_calculation_payload(request)
    return build_calculation_response(evaluate_compliance(payload))
