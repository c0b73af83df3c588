"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
from collections import Counter
from decimal import Decimal
from typing import Sequence

from .year_config import (
    ComplianceThresholds,
    DeductionConfig,
    FairValueConfig,
    PricingConfig,
    TaxBracket,
    YearConfiguration,
    YearWarning,
    available_years,
    load_year_configuration,
)

# Published base amounts are rounded to whole rand.
BASE_TAX_TOLERANCE = Decimal("1")


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def report_base_tax_drift(brackets: Sequence[TaxBracket]) -> list[str]:
    """Describe bases that differ from the tax owed at their lower bound.

    Published bases are used as shipped, so drift never fails validation.
    """

    notes: list[str] = []
    for previous, current in zip(brackets, brackets[1:]):
        expected = previous.base_tax + (
            current.lower_bound - previous.lower_bound
        ) * previous.rate
        drift = current.base_tax - expected
        if abs(drift) > BASE_TAX_TOLERANCE:
            notes.append(
                _format_scope(
                    "brackets",
                    (
                        f"base tax {current.base_tax} at {current.lower_bound} differs "
                        f"from the cumulative value {expected} by {drift}"
                    ),
                )
            )
    return notes


def _validate_thresholds(
    thresholds: ComplianceThresholds, brackets: Sequence[TaxBracket]
) -> list[str]:
    errors: list[str] = []

    zero_band = brackets[0]
    if zero_band.rate != 0:
        errors.append(_format_scope("brackets", "first bracket should be the zero-rate band"))
    elif zero_band.upper_bound != thresholds.tax_free:
        errors.append(
            _format_scope(
                "thresholds.tax_free",
                (
                    f"threshold {thresholds.tax_free} does not match the zero-rate band "
                    f"upper bound {zero_band.upper_bound}"
                ),
            )
        )

    if thresholds.provisional_tax >= thresholds.tax_free:
        errors.append(
            _format_scope(
                "thresholds.provisional_tax",
                "provisional tax threshold should sit below the tax-free threshold",
            )
        )

    if thresholds.vat_registration <= thresholds.tax_free:
        errors.append(
            _format_scope(
                "thresholds.vat_registration",
                "VAT registration threshold should exceed the tax-free threshold",
            )
        )

    return errors


def _validate_deductions(config: DeductionConfig) -> list[str]:
    errors: list[str] = []

    categories = [rule.category for rule in config.rules]
    duplicates = [value for value, count in Counter(categories).items() if count > 1]
    if duplicates:
        errors.append(
            _format_scope(
                "deductions.rules",
                f"duplicate categories detected: {sorted(duplicates)}",
            )
        )

    owners: dict[str, str] = {}
    for rule in config.rules:
        for keyword in rule.keywords:
            owner = owners.setdefault(keyword, rule.category)
            if owner != rule.category:
                errors.append(
                    _format_scope(
                        "deductions.rules",
                        (
                            f"keyword '{keyword}' is claimed by both '{owner}' "
                            f"and '{rule.category}'"
                        ),
                    )
                )

        if not rule.documentation:
            errors.append(
                _format_scope(
                    f"deductions.{rule.category}",
                    "rule should list the supporting documentation SARS expects",
                )
            )

    return errors


def _validate_pricing(pricing: PricingConfig) -> list[str]:
    errors: list[str] = []
    if "single-post" not in pricing.content_multipliers:
        errors.append(
            _format_scope(
                "pricing.content_multipliers",
                "a 'single-post' multiplier is required as the default content type",
            )
        )
    for name, platform in pricing.platforms.items():
        if platform.basis != "none" and platform.rate == 0:
            errors.append(
                _format_scope(f"pricing.platforms.{name}", "rate-based platforms need a rate")
            )
    return errors


def _validate_fair_value(fair_value: FairValueConfig) -> list[str]:
    errors: list[str] = []
    for retailer in fair_value.retailers:
        if not retailer.search_url.startswith("https://"):
            errors.append(
                _format_scope(
                    "fair_value.retailers",
                    f"search URL for '{retailer.name}' must be an absolute https URL",
                )
            )
    return errors


def _validate_warnings(warnings: Sequence[YearWarning]) -> list[str]:
    errors: list[str] = []
    seen_ids: set[str] = set()
    for warning in warnings:
        if warning.id in seen_ids:
            errors.append(
                _format_scope("warnings", f"duplicate warning identifier '{warning.id}'")
            )
        seen_ids.add(warning.id)

        url = warning.documentation_url
        if url and not url.startswith(("http://", "https://")):
            errors.append(
                _format_scope("warnings", f"documentation URL for '{warning.id}' must be absolute")
            )
    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of human-readable validation issues for ``config``."""

    errors: list[str] = []
    errors.extend(_validate_thresholds(config.thresholds, config.brackets))
    errors.extend(_validate_deductions(config.deductions))
    errors.extend(_validate_pricing(config.pricing))
    errors.extend(_validate_fair_value(config.fair_value))
    errors.extend(_validate_warnings(config.warnings))
    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Validate configured years of assessment and report issues helpful to contributors."
        )
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except FileNotFoundError as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

        for note in report_base_tax_drift(config.brackets):
            print(f"  note: {note}")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
