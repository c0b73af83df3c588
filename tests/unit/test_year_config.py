"""Unit coverage for year configuration discovery and parsing utilities."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from shutil import copy2

import pytest
import yaml

from gigtax.backend.config import year_config
from gigtax.backend.config.schema import ConfigurationError, YearConfiguration


@pytest.fixture()
def isolated_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Return a temporary configuration directory patched into ``year_config``."""

    original_directory = year_config.CONFIG_DIRECTORY
    for filename in ("2025.yaml", "2026.yaml", "manifest.yaml"):
        copy2(original_directory / filename, tmp_path / filename)

    monkeypatch.setattr(year_config, "CONFIG_DIRECTORY", tmp_path)
    monkeypatch.setattr(year_config, "MANIFEST_FILE", tmp_path / "manifest.yaml")
    year_config.load_year_configuration.cache_clear()
    year_config.load_manifest.cache_clear()

    yield tmp_path

    year_config.load_year_configuration.cache_clear()
    year_config.load_manifest.cache_clear()


def _raw_config(directory: Path, year: int = 2026) -> dict:
    return yaml.safe_load((directory / f"{year}.yaml").read_text(encoding="utf-8"))


def test_shipped_years_are_declared_in_manifest() -> None:
    assert tuple(year_config.available_years()) == (2025, 2026)


def test_loaded_configuration_exposes_bracket_table(config_2026: YearConfiguration) -> None:
    brackets = config_2026.brackets

    assert len(brackets) == 8
    assert brackets[0].lower_bound == 0
    assert brackets[0].rate == 0
    assert brackets[1].lower_bound == Decimal("95751")
    assert brackets[-1].is_open
    assert brackets[-1].base_tax == Decimal("627283")
    assert config_2026.thresholds.tax_free == Decimal("95750")
    assert config_2026.thresholds.approaching_tax_free == Decimal("81387.50")
    assert config_2026.tax_year_label == "2025/2026"
    assert config_2026.currency_symbol == "R"


def test_deduction_rules_are_loaded_in_order(config_2026: YearConfiguration) -> None:
    categories = [rule.category for rule in config_2026.deductions.rules]

    assert categories[0] == "Home Office (Max 50%)"
    assert config_2026.deductions.fallback_category == "Other Deductible"
    home_office = config_2026.deductions.get_rule("Home Office (Max 50%)")
    assert home_office is not None
    assert home_office.max_percentage == Decimal("50")
    assert config_2026.deductions.get_rule("Unknown") is None


def test_available_years_discovers_new_manifest_entry(isolated_config_directory: Path) -> None:
    new_year_path = isolated_config_directory / "2027.yaml"
    raw = _raw_config(isolated_config_directory)
    raw["year"] = 2027
    new_year_path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")

    manifest_path = isolated_config_directory / "manifest.yaml"
    manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    manifest.setdefault("years", []).append({"year": 2027})
    manifest_path.write_text(yaml.safe_dump(manifest, sort_keys=False), encoding="utf-8")
    year_config.load_manifest.cache_clear()

    assert tuple(year_config.available_years()) == (2025, 2026, 2027)
    assert year_config.load_year_configuration(2027).tax_year_label == "2026/2027"


def test_unknown_year_raises_file_not_found(isolated_config_directory: Path) -> None:
    with pytest.raises(FileNotFoundError):
        year_config.load_year_configuration(1999)


def test_year_mismatch_is_rejected(isolated_config_directory: Path) -> None:
    raw = _raw_config(isolated_config_directory)
    raw["year"] = 2030
    (isolated_config_directory / "2026.yaml").write_text(
        yaml.safe_dump(raw, sort_keys=False), encoding="utf-8"
    )

    with pytest.raises(ConfigurationError, match="mismatch"):
        year_config.load_year_configuration(2026)


def test_gap_between_brackets_is_rejected(isolated_config_directory: Path) -> None:
    raw = _raw_config(isolated_config_directory)
    raw["brackets"][2]["lower"] = 237200

    with pytest.raises((ConfigurationError, ValueError), match="contiguous"):
        YearConfiguration.model_validate(raw)


def test_open_bracket_must_be_last(isolated_config_directory: Path) -> None:
    raw = _raw_config(isolated_config_directory)
    raw["brackets"][3].pop("upper")

    with pytest.raises((ConfigurationError, ValueError), match="open-ended"):
        YearConfiguration.model_validate(raw)


def test_rates_outside_unit_interval_are_rejected(isolated_config_directory: Path) -> None:
    raw = _raw_config(isolated_config_directory)
    raw["brackets"][1]["rate"] = 18

    with pytest.raises(ValueError):
        YearConfiguration.model_validate(raw)


def test_unknown_sections_are_rejected(isolated_config_directory: Path) -> None:
    raw = _raw_config(isolated_config_directory)
    raw["unexpected"] = {}

    with pytest.raises(ValueError):
        YearConfiguration.model_validate(raw)


def test_configuration_is_immutable(config_2026: YearConfiguration) -> None:
    with pytest.raises(ValueError):
        config_2026.year = 2030  # type: ignore[misc]
