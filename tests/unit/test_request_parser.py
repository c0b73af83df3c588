"""Unit tests for request parsing helpers."""

from __future__ import annotations

import pytest
from flask import Flask, request
from werkzeug.exceptions import BadRequest

from gigtax.backend.services.request_parser import (
    locale_hint,
    parse_calculation_payload,
    parse_json_payload,
)


def test_parse_payload_uses_accept_language(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"year": 2026, "annual_income": 120000},
        headers={"Accept-Language": "af-ZA,af;q=0.9,en;q=0.8"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "af"


def test_parse_payload_prefers_query_parameter_over_header(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations?locale=af",
        method="POST",
        json={"year": 2026},
        headers={"Accept-Language": "en"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "af"


def test_parse_payload_preserves_explicit_locale(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations?locale=en",
        method="POST",
        json={"year": 2026, "locale": "AF"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "af"


def test_unknown_locale_falls_back_to_english(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"year": 2026, "locale": "zu"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "en"


def test_parse_payload_rejects_non_object(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json=["not", "an", "object"],
    ):
        with pytest.raises(BadRequest):
            parse_calculation_payload(request)


def test_parse_json_payload_rejects_invalid_json(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/pricing/quote",
        method="POST",
        data="{not json",
        content_type="application/json",
    ):
        with pytest.raises(BadRequest):
            parse_json_payload(request)


def test_locale_hint_returns_raw_request_value(app: Flask) -> None:
    with app.test_request_context("/", headers={"Accept-Language": "af-ZA;q=0.9, en"}):
        assert locale_hint(request) == "af-ZA"

    with app.test_request_context("/?locale=en-GB", headers={"Accept-Language": "af"}):
        assert locale_hint(request) == "en-GB"

    with app.test_request_context("/"):
        assert locale_hint(request) is None
