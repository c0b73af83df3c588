from decimal import Decimal

import pytest

from gigtax.backend.config.validator import (
    main,
    report_base_tax_drift,
    validate_all_years,
    validate_year_configuration,
)
from gigtax.backend.config.year_config import YearConfiguration, load_year_configuration


@pytest.fixture()
def config() -> YearConfiguration:
    return load_year_configuration(2026)


def test_current_configurations_are_valid() -> None:
    results = validate_all_years()
    assert set(results) == {2025, 2026}
    assert all(not issues for issues in results.values()), results


def test_validator_reports_base_tax_drift_without_failing(config: YearConfiguration) -> None:
    brackets = list(config.brackets)
    brackets[3] = brackets[3].model_copy(update={"base_tax": Decimal("70000")})
    drifted = config.model_copy(update={"brackets": tuple(brackets)})

    notes = report_base_tax_drift(drifted.brackets)

    assert any(note.startswith("brackets:") and "370501" in note for note in notes)
    assert validate_year_configuration(drifted) == []


def test_published_bases_are_reported_against_cumulative_values(
    config: YearConfiguration,
) -> None:
    notes = report_base_tax_drift(config.brackets)

    assert len(notes) == 3
    assert "161952 at 673001" in notes[0] and "by 40" in notes[0]
    assert "234074 at 857901" in notes[1] and "by 11" in notes[1]
    assert "627283 at 1817001" in notes[2] and "by -22" in notes[2]


def test_drift_report_tolerates_whole_rand_rounding(config: YearConfiguration) -> None:
    brackets = list(config.brackets)
    brackets[2] = brackets[2].model_copy(update={"base_tax": Decimal("25443.8")})

    notes = report_base_tax_drift(brackets[:5])

    assert notes == []


def test_validator_flags_threshold_outside_zero_band(config: YearConfiguration) -> None:
    thresholds = config.thresholds.model_copy(update={"tax_free": Decimal("100000")})
    broken = config.model_copy(update={"thresholds": thresholds})

    errors = validate_year_configuration(broken)

    assert any("thresholds.tax_free" in error for error in errors)


def test_validator_flags_shared_keywords(config: YearConfiguration) -> None:
    rules = list(config.deductions.rules)
    rules[0] = rules[0].model_copy(update={"keywords": (*rules[0].keywords, "data")})
    deductions = config.deductions.model_copy(update={"rules": tuple(rules)})
    broken = config.model_copy(update={"deductions": deductions})

    errors = validate_year_configuration(broken)

    assert any("keyword 'data'" in error for error in errors)


def test_validator_requires_default_content_multiplier(config: YearConfiguration) -> None:
    multipliers = {
        key: value
        for key, value in config.pricing.content_multipliers.items()
        if key != "single-post"
    }
    pricing = config.pricing.model_copy(update={"content_multipliers": multipliers})
    broken = config.model_copy(update={"pricing": pricing})

    errors = validate_year_configuration(broken)

    assert any("pricing.content_multipliers" in error for error in errors)


def test_validator_flags_relative_documentation_url(config: YearConfiguration) -> None:
    warning = config.warnings[0].model_copy(update={"documentation_url": "/tax-rates"})
    broken = config.model_copy(update={"warnings": (warning,)})

    errors = validate_year_configuration(broken)

    assert any("must be absolute" in error for error in errors)


def test_cli_reports_success(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["2026"]) == 0
    output = capsys.readouterr().out
    assert "[2026] OK" in output
    assert "note: brackets: base tax 161952" in output


def test_cli_reports_missing_year(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["1999"]) == 1
    assert "failed to load configuration" in capsys.readouterr().out


def test_validator_requires_https_retailer_search(config: YearConfiguration) -> None:
    retailers = list(config.fair_value.retailers)
    retailers[0] = retailers[0].model_copy(update={"search_url": "takealot.com/search?q="})
    fair_value = config.fair_value.model_copy(update={"retailers": tuple(retailers)})
    broken = config.model_copy(update={"fair_value": fair_value})

    errors = validate_year_configuration(broken)

    assert any(error.startswith("fair_value.retailers") and "Takealot" in error for error in errors)
