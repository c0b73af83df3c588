"""Invoice totals and numbering."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from gigtax.backend.config.year_config import YearConfiguration

from .utils import ZERO, round_currency, to_decimal


@dataclass(frozen=True)
class InvoiceLine:
    description: str
    quantity: Decimal
    rate: Decimal

    @property
    def amount(self) -> Decimal:
        return round_currency(self.quantity * self.rate)


@dataclass(frozen=True)
class InvoiceTotals:
    lines: tuple[InvoiceLine, ...]
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal


def generate_invoice_number(existing_count: int, issued_on: date | None = None) -> str:
    """Return the next sequential number, e.g. ``INV-2025-0001``."""

    if existing_count < 0:
        raise ValueError("Existing invoice count cannot be negative")
    year = (issued_on or date.today()).year
    return f"INV-{year}-{existing_count + 1:04d}"


def calculate_vat(amount: Any, vat_registered: bool, config: YearConfiguration) -> Decimal:
    """Return VAT due on ``amount``; only VAT vendors charge it."""

    if not vat_registered:
        return ZERO
    return round_currency(to_decimal(amount) * config.vat.standard_rate)


def invoice_totals(
    lines: Sequence[InvoiceLine], vat_registered: bool, config: YearConfiguration
) -> InvoiceTotals:
    subtotal = sum((line.amount for line in lines), ZERO)
    vat_amount = calculate_vat(subtotal, vat_registered, config)
    return InvoiceTotals(
        lines=tuple(lines),
        subtotal=subtotal,
        vat_rate=config.vat.standard_rate if vat_registered else ZERO,
        vat_amount=vat_amount,
        total=subtotal + vat_amount,
    )


__all__ = [
    "InvoiceLine",
    "InvoiceTotals",
    "calculate_vat",
    "generate_invoice_number",
    "invoice_totals",
]
