"""Prioritised SARS compliance classifier.

The classifier walks :data:`COMPLIANCE_RULES` top to bottom and reports the
first rule whose predicate matches. Rules are ranked by regulatory severity so
that a taxpayer near several thresholds only sees the most pressing one.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from gigtax.backend.app.localization import Translator, get_translator
from gigtax.backend.app.models import (
    ComplianceSeverity,
    ComplianceStatus,
    TaxpayerRegistrationState,
)
from gigtax.backend.config.year_config import ComplianceThresholds, YearConfiguration

from .utils import format_whole_rand, format_zar, to_decimal

Predicate = Callable[[TaxpayerRegistrationState, Decimal, ComplianceThresholds], bool]


@dataclass(frozen=True)
class ComplianceRule:
    """One row of the ordered compliance decision table."""

    rule: str
    status: ComplianceSeverity
    applies: Predicate
    has_action: bool = True
    link: str | None = None
    guide: bool = False
    reports_remaining: bool = False

    @property
    def message_key(self) -> str:
        return f"compliance.{self.rule}.message"

    @property
    def action_key(self) -> str:
        return f"compliance.{self.rule}.action"


COMPLIANCE_RULES: tuple[ComplianceRule, ...] = (
    ComplianceRule(
        rule="vat_registration_required",
        status=ComplianceSeverity.CRITICAL,
        applies=lambda state, ytd, limits: ytd > limits.vat_registration
        and not state.has_vat_number,
        guide=True,
    ),
    ComplianceRule(
        rule="tax_registration_required",
        status=ComplianceSeverity.URGENT,
        applies=lambda state, ytd, limits: not state.has_tax_number
        and ytd > limits.tax_free,
        guide=True,
    ),
    ComplianceRule(
        rule="approaching_tax_threshold",
        status=ComplianceSeverity.WARNING,
        applies=lambda state, ytd, limits: not state.has_tax_number
        and ytd > limits.approaching_tax_free,
        link="/learn",
        reports_remaining=True,
    ),
    ComplianceRule(
        rule="provisional_registration_suggested",
        status=ComplianceSeverity.WARNING,
        applies=lambda state, ytd, limits: ytd > limits.provisional_tax
        and not state.is_provisional_tax_registered,
        link="/learn",
    ),
    ComplianceRule(
        rule="below_threshold",
        status=ComplianceSeverity.SUCCESS,
        applies=lambda state, ytd, limits: ytd <= limits.tax_free,
        has_action=False,
    ),
    ComplianceRule(
        rule="up_to_date",
        status=ComplianceSeverity.SUCCESS,
        applies=lambda state, ytd, limits: True,
        has_action=False,
    ),
)


def match_rule(
    state: TaxpayerRegistrationState, ytd_income: Decimal, thresholds: ComplianceThresholds
) -> ComplianceRule:
    """Return the first rule in priority order that applies."""

    for rule in COMPLIANCE_RULES:
        if rule.applies(state, ytd_income, thresholds):
            return rule
    raise RuntimeError("Compliance rule table must end with a catch-all rule")  # pragma: no cover


def classify(
    state: TaxpayerRegistrationState | None,
    ytd_income: Any,
    config: YearConfiguration,
    translator: Translator | None = None,
) -> ComplianceStatus:
    """Map registration state and year-to-date income to a compliance verdict.

    A missing ``state`` is treated as fully unregistered.
    """

    registration = state or TaxpayerRegistrationState()
    ytd = to_decimal(ytd_income)
    thresholds = config.thresholds
    translate = translator or get_translator()
    symbol = config.currency_symbol

    rule = match_rule(registration, ytd, thresholds)

    remaining = thresholds.tax_free - ytd if rule.reports_remaining else None
    message = translate.format(
        rule.message_key,
        remaining=format_zar(remaining, symbol) if remaining is not None else "",
        vat_threshold=format_whole_rand(thresholds.vat_registration, symbol),
        tax_free_threshold=format_whole_rand(thresholds.tax_free, symbol),
        provisional_threshold=format_whole_rand(thresholds.provisional_tax, symbol),
    )

    return ComplianceStatus(
        rule=rule.rule,
        status=rule.status,
        message=message,
        action=translate(rule.action_key) if rule.has_action else None,
        link=rule.link,
        guide=rule.guide,
        amount_remaining=remaining,
    )


__all__ = ["COMPLIANCE_RULES", "ComplianceRule", "classify", "match_rule"]
