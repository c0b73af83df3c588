"""Unit tests for the calculation service."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any

import pytest

from gigtax.backend.app.models import CalculationRequest, RegistrationInput
from gigtax.backend.app.services.calculation_service import (
    calculate_tax,
    evaluate_compliance,
    registration_state,
    run_calculation,
    validate_payload,
)

SCALAR_PAYLOAD: dict[str, Any] = {
    "year": 2026,
    "as_of": "2025-10-19",
    "annual_income": 600_000,
    "total_deductions": 100_000,
}

RECORDS_PAYLOAD: dict[str, Any] = {
    "year": 2026,
    "as_of": "2025-10-19",
    "income": [
        {
            "date": "2025-04-01",
            "amount": "60000",
            "tax_withheld": "5000",
            "platform": "upwork",
            "client": "Acme",
        },
        {
            "date": "2025-05-01",
            "amount": 20000,
            "value_type": "non_monetary",
            "platform": "instagram",
        },
        {"date": "2024-12-01", "amount": 99_999},
    ],
    "expenses": [
        {
            "date": "2025-06-01",
            "amount": 12_000,
            "is_deductible": True,
            "category": "Home Office (Max 50%)",
            "max_deductible_percentage": 50,
        },
        {"date": "2025-07-01", "amount": 3_000, "category": "Groceries"},
    ],
}


def test_scalar_calculation_summary() -> None:
    response = calculate_tax(deepcopy(SCALAR_PAYLOAD))
    summary = response["summary"]

    assert summary["annual_income"] == pytest.approx(600_000.0)
    assert summary["taxable_income"] == pytest.approx(500_000.0)
    assert summary["estimated_tax"] == pytest.approx(100_271.69)
    assert summary["effective_tax_rate"] == pytest.approx(20.05)
    assert summary["marginal_rate"] == pytest.approx(31.0)
    assert summary["tax_bracket"] == "R370,501 - R512,800 (31%)"
    assert summary["first_provisional_payment"] == pytest.approx(50_135.85)
    assert summary["second_provisional_payment"] == pytest.approx(50_135.85)
    assert summary["below_threshold"] is False
    assert summary["labels"]["estimated_tax"] == "Estimated tax"
    assert "cash_income" not in summary
    assert "balance_due" not in summary


def test_scalar_calculation_meta_and_schedule() -> None:
    response = calculate_tax(deepcopy(SCALAR_PAYLOAD))

    meta = response["meta"]
    assert meta["year"] == 2026
    assert meta["tax_year"] == "2025/2026"
    assert meta["period_start"] == "2025-03-01"
    assert meta["period_end"] == "2026-02-28"
    assert meta["as_of"] == "2025-10-19"
    assert meta["source"] == "scalar"
    assert meta["locale"] == "en"
    assert len(meta["warnings"]) == 1

    first, second = response["provisional"]
    assert first["due_date"] == "2025-08-31"
    assert first["is_past_due"] is True
    assert second["due_date"] == "2026-02-28"
    assert second["is_past_due"] is False
    assert first["label"] == "First provisional payment (IRP6)"

    assert response["threshold_progress"] == {
        "percent": 100.0,
        "band": "exceeded",
        "threshold": 95_750.0,
    }


def test_ytd_income_defaults_to_annual_income() -> None:
    response = calculate_tax(deepcopy(SCALAR_PAYLOAD))

    assert response["compliance"]["rule"] == "tax_registration_required"
    assert response["compliance"]["status"] == "urgent"


def test_explicit_ytd_income_drives_compliance() -> None:
    payload = deepcopy(SCALAR_PAYLOAD)
    payload["ytd_income"] = 90_000

    response = calculate_tax(payload)

    assert response["compliance"]["rule"] == "approaching_tax_threshold"
    assert response["compliance"]["amount_remaining"] == pytest.approx(5_750.0)
    assert response["summary"]["estimated_tax"] == pytest.approx(100_271.69)


def test_record_calculation_aggregates_window() -> None:
    response = calculate_tax(deepcopy(RECORDS_PAYLOAD))
    summary = response["summary"]

    assert response["meta"]["source"] == "records"
    assert summary["annual_income"] == pytest.approx(80_000.0)
    assert summary["cash_income"] == pytest.approx(60_000.0)
    assert summary["non_monetary_income"] == pytest.approx(20_000.0)
    assert summary["total_deductions"] == pytest.approx(6_000.0)
    assert summary["taxable_income"] == 0
    assert summary["estimated_tax"] == 0
    assert summary["below_threshold"] is True
    assert summary["deductions_by_category"] == {"Home Office (Max 50%)": 6_000.0}


def test_withheld_tax_beyond_liability_is_refund() -> None:
    response = calculate_tax(deepcopy(RECORDS_PAYLOAD))
    summary = response["summary"]

    assert summary["tax_withheld"] == pytest.approx(5_000.0)
    assert summary["balance_due"] == pytest.approx(5_000.0)
    assert summary["balance_due_is_refund"] is True
    assert summary["labels"]["balance_due"] == "Refund due"


def test_withheld_tax_reduces_balance_payable() -> None:
    payload = {
        "year": 2026,
        "income": [{"date": "2025-09-01", "amount": 300_000, "tax_withheld": 10_000}],
    }

    summary = calculate_tax(payload)["summary"]

    assert summary["estimated_tax"] == pytest.approx(41_796.74)
    assert summary["balance_due"] == pytest.approx(31_796.74)
    assert summary["balance_due_is_refund"] is False
    assert summary["labels"]["balance_due"] == "Balance payable"


def test_empty_records_calculate_zero_tax() -> None:
    response = calculate_tax({"year": 2026})

    assert response["summary"]["estimated_tax"] == 0
    assert response["meta"]["source"] == "records"
    assert response["compliance"]["rule"] == "below_threshold"


def test_negative_scalar_income_is_clipped() -> None:
    response = calculate_tax({"year": 2026, "annual_income": -5_000})

    assert response["summary"]["taxable_income"] == 0
    assert response["summary"]["estimated_tax"] == 0


def test_localised_labels() -> None:
    payload = deepcopy(SCALAR_PAYLOAD)
    payload["locale"] = "af-ZA"

    response = calculate_tax(payload)

    assert response["meta"]["locale"] == "af"
    assert response["summary"]["labels"]["estimated_tax"] == "Beraamde belasting"


def test_registration_numbers_count_as_registered() -> None:
    payload = deepcopy(SCALAR_PAYLOAD)
    payload["registration"] = {"tax_number": "0123456789", "is_provisional_tax_registered": True}

    response = calculate_tax(payload)

    assert response["compliance"]["rule"] == "up_to_date"
    assert "action" not in response["compliance"]


def test_explicit_flag_overrides_reference_number() -> None:
    registration = RegistrationInput(has_tax_number=False, tax_number="0123456789")

    assert registration_state(registration).has_tax_number is False
    assert registration_state(None).has_tax_number is False


def test_missing_year_is_rejected() -> None:
    with pytest.raises(ValueError, match="tax year"):
        calculate_tax({"annual_income": 100_000})


def test_scalar_and_records_cannot_be_combined() -> None:
    payload = deepcopy(RECORDS_PAYLOAD)
    payload["annual_income"] = 100_000

    with pytest.raises(ValueError, match="not both"):
        calculate_tax(payload)


def test_deductions_without_income_are_rejected() -> None:
    with pytest.raises(ValueError, match="total_deductions requires annual_income"):
        calculate_tax({"year": 2026, "total_deductions": 1_000})


def test_negative_record_amount_is_rejected() -> None:
    payload = {"year": 2026, "income": [{"date": "2025-04-01", "amount": -1}]}

    with pytest.raises(ValueError, match="value cannot be negative"):
        calculate_tax(payload)


def test_non_numeric_amount_is_rejected() -> None:
    with pytest.raises(ValueError, match="Amounts must be numeric"):
        calculate_tax({"year": 2026, "annual_income": "lots"})


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid request payload"):
        calculate_tax({"year": 2026, "annual_income": 1, "bonus": 5})


def test_unknown_year_raises_file_not_found() -> None:
    with pytest.raises(FileNotFoundError):
        calculate_tax({"year": 1999, "annual_income": 100_000})


def test_validate_payload_passes_models_through() -> None:
    request = CalculationRequest(year=2026, annual_income=1)

    assert validate_payload(CalculationRequest, request) is request


def test_run_calculation_keeps_exact_values() -> None:
    outcome = run_calculation({"year": 2026, "annual_income": "333333.33"})

    assert outcome.result.estimated_tax == outcome.result.first_provisional_payment * 2
    assert outcome.source == "scalar"
    assert outcome.balance_due is None


def test_evaluate_compliance() -> None:
    response = evaluate_compliance({"year": 2026, "ytd_income": 90_000})

    assert response["compliance"]["rule"] == "approaching_tax_threshold"
    assert response["compliance"]["message"] == "You're R 5,750.00 away from the tax threshold"
    assert response["threshold_progress"]["band"] == "high"
    assert response["threshold_progress"]["percent"] == pytest.approx(93.99)
    assert response["meta"] == {"year": 2026, "locale": "en"}


def test_evaluate_compliance_requires_income() -> None:
    with pytest.raises(ValueError, match="ytd_income"):
        evaluate_compliance({"year": 2026})


def test_profiling_logs_timings(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("GIGTAX_PROFILE_CALCULATIONS", "true")
    caplog.set_level(logging.DEBUG, logger="gigtax.backend.app.services.calculation_service")

    calculate_tax(deepcopy(SCALAR_PAYLOAD))

    assert any("run_calculation timings" in record.getMessage() for record in caplog.records)
