"""SARS deduction rule lookups for individual expenses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Any

from gigtax.backend.app.localization import Translator, get_translator
from gigtax.backend.config.year_config import DeductionConfig, YearConfiguration

from .utils import HUNDRED, format_zar, to_decimal

_UNKNOWN_SCORE = 50
_UNKNOWN_SECTION = "11(a)"


@dataclass(frozen=True)
class DeductionAnalysis:
    """Deductibility verdict for one expense."""

    category: str
    recognised: bool
    deductibility_score: int
    sars_section: str
    max_deductible_percentage: Decimal
    max_deductible_amount: Decimal
    reasoning: str
    warnings: tuple[str, ...]
    required_documentation: tuple[str, ...]
    optimization_tips: tuple[str, ...]
    annual_wear_and_tear: Decimal | None = None

    @property
    def potential_deduction(self) -> Decimal:
        return self.max_deductible_amount


def _format_percent(value: Decimal) -> str:
    text = format(value.normalize(), "f")
    return f"{text}%"


def analyse_expense(
    amount: Any,
    category: str | None,
    config: YearConfiguration,
    translator: Translator | None = None,
) -> DeductionAnalysis:
    """Check ``amount`` spent on ``category`` against the configured SARS rules.

    Categories without a rule get a neutral verdict recommending manual review.
    """

    translate = translator or get_translator()
    symbol = config.currency_symbol
    value = to_decimal(amount)
    label = (category or "").strip()
    rule = config.deductions.get_rule(label) if label else None

    if rule is None:
        return DeductionAnalysis(
            category=label,
            recognised=False,
            deductibility_score=_UNKNOWN_SCORE,
            sars_section=_UNKNOWN_SECTION,
            max_deductible_percentage=HUNDRED,
            max_deductible_amount=value,
            reasoning=translate("deductions.reasoning.unknown"),
            warnings=(translate("deductions.unknown.warning"),),
            required_documentation=(
                translate("deductions.unknown.receipts"),
                translate("deductions.unknown.purpose"),
            ),
            optimization_tips=(translate("deductions.unknown.tip"),),
        )

    max_amount = value * rule.max_percentage / HUNDRED
    warnings = list(rule.warnings)
    tips = list(rule.tips)
    wear_and_tear: Decimal | None = None
    if rule.wear_and_tear_rate is not None:
        wear_and_tear = value * rule.wear_and_tear_rate / HUNDRED
        warnings.append(
            translate.format(
                "deductions.wear_and_tear.warning",
                rate=_format_percent(rule.wear_and_tear_rate),
            )
        )
        tips.append(
            translate.format(
                "deductions.wear_and_tear.tip", amount=format_zar(wear_and_tear, symbol)
            )
        )

    reasoning = [translate.format("deductions.reasoning.qualifies", section=rule.section)]
    if rule.max_percentage < HUNDRED:
        reasoning.append(
            translate.format(
                "deductions.reasoning.limited",
                percentage=_format_percent(rule.max_percentage),
                amount=format_zar(max_amount, symbol),
            )
        )
    if rule.requirements:
        reasoning.append(". ".join(rule.requirements) + ".")

    return DeductionAnalysis(
        category=rule.category,
        recognised=True,
        deductibility_score=rule.deductibility_score,
        sars_section=rule.section,
        max_deductible_percentage=rule.max_percentage,
        max_deductible_amount=max_amount,
        reasoning=" ".join(reasoning),
        warnings=tuple(warnings),
        required_documentation=tuple(rule.documentation),
        optimization_tips=tuple(tips),
        annual_wear_and_tear=wear_and_tear,
    )


@lru_cache(maxsize=256)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # Match at word starts so "ad" finds "ads" but not "bread".
    return re.compile(rf"\b{re.escape(keyword)}")


def suggest_category(description: str, deductions: DeductionConfig) -> str:
    """Return the first rule whose keywords appear in ``description``."""

    text = (description or "").lower()
    for rule in deductions.rules:
        if any(_keyword_pattern(keyword).search(text) for keyword in rule.keywords):
            return rule.category
    return deductions.fallback_category


__all__ = ["DeductionAnalysis", "analyse_expense", "suggest_category"]
