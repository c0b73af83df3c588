"""Downloadable compliance reports."""

from __future__ import annotations

from flask import Blueprint, Response, request

from gigtax.backend.app.services.report_service import generate_report
from gigtax.backend.services.request_parser import parse_calculation_payload
from gigtax.backend.services.response_builder import build_csv_response

blueprint = Blueprint("reports", __name__, url_prefix="/api/v1/reports")


@blueprint.post("/csv")
def download_csv_report() -> Response:
    """Return the SARS tax report for the submitted records as CSV."""

    payload = parse_calculation_payload(request)
    filename, content = generate_report(payload)
    return build_csv_response(filename, content)
