"""Unit tests for invoice numbering and VAT totals."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from gigtax.backend.app.services.calculators import (
    InvoiceLine,
    generate_invoice_number,
    invoice_totals,
)
from gigtax.backend.app.services.calculators.invoices import calculate_vat
from gigtax.backend.config.year_config import YearConfiguration

LINES = (
    InvoiceLine(description="Sponsored reel", quantity=Decimal("2"), rate=Decimal("1500")),
    InvoiceLine(description="Usage rights", quantity=Decimal("1"), rate=Decimal("499.99")),
)


def test_invoice_numbers_are_sequential_per_issue_year() -> None:
    assert generate_invoice_number(0, date(2025, 11, 3)) == "INV-2025-0001"
    assert generate_invoice_number(41, date(2026, 1, 15)) == "INV-2026-0042"


def test_negative_invoice_count_is_rejected() -> None:
    with pytest.raises(ValueError):
        generate_invoice_number(-1, date(2025, 11, 3))


def test_line_amount_rounds_to_cents() -> None:
    line = InvoiceLine(description="Hours", quantity=Decimal("3"), rate=Decimal("33.333"))

    assert line.amount == Decimal("100.00")


def test_vat_vendor_charges_standard_rate(config_2026: YearConfiguration) -> None:
    totals = invoice_totals(LINES, True, config_2026)

    assert totals.subtotal == Decimal("3499.99")
    assert totals.vat_rate == Decimal("0.15")
    assert totals.vat_amount == Decimal("525.00")
    assert totals.total == Decimal("4024.99")


def test_non_vendor_charges_no_vat(config_2026: YearConfiguration) -> None:
    totals = invoice_totals(LINES, False, config_2026)

    assert totals.vat_rate == 0
    assert totals.vat_amount == 0
    assert totals.total == totals.subtotal


def test_calculate_vat_accepts_plain_numbers(config_2026: YearConfiguration) -> None:
    assert calculate_vat(1000, True, config_2026) == Decimal("150.00")
    assert calculate_vat(1000, False, config_2026) == 0
