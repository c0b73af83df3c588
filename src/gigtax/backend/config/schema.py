"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def _coerce_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ConfigurationError("Boolean values cannot be used as amounts or rates")
    if isinstance(value, float):
        # repr() keeps the literal written in YAML (0.18, not 0.179999...)
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ConfigurationError(f"Invalid numeric value: {value!r}") from exc


def _coerce_strings(value: Any, field_name: str) -> Sequence[str]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(entry) for entry in value)
    raise ConfigurationError(f"'{field_name}' must be a list of strings")


class TaxBracket(ImmutableModel):
    """A marginal bracket with its precomputed cumulative base tax."""

    lower_bound: Decimal = Field(alias="lower")
    upper_bound: Decimal | None = Field(default=None, alias="upper")
    rate: Decimal
    base_tax: Decimal = Field(default=Decimal("0"), alias="base")

    @field_validator("lower_bound", "upper_bound", "rate", "base_tax", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @model_validator(mode="after")
    def _validate_values(self) -> TaxBracket:
        if self.rate < 0 or self.rate > 1:
            raise ConfigurationError("Tax rates must be between 0 and 1")
        if self.lower_bound < 0:
            raise ConfigurationError("Lower bounds must be non-negative")
        if self.base_tax < 0:
            raise ConfigurationError("Base tax amounts must be non-negative")
        if self.upper_bound is not None and self.upper_bound <= self.lower_bound:
            raise ConfigurationError("Upper bounds must exceed their lower bound")
        return self

    @property
    def is_open(self) -> bool:
        return self.upper_bound is None


class ComplianceThresholds(ImmutableModel):
    """Registration thresholds that drive the compliance classifier."""

    tax_free: Decimal
    vat_registration: Decimal
    provisional_tax: Decimal
    approaching_ratio: Decimal = Decimal("0.85")

    @field_validator(
        "tax_free", "vat_registration", "provisional_tax", "approaching_ratio", mode="before"
    )
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @model_validator(mode="after")
    def _validate_thresholds(self) -> ComplianceThresholds:
        for name in ("tax_free", "vat_registration", "provisional_tax"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"Threshold '{name}' must be positive")
        if not Decimal("0") < self.approaching_ratio < Decimal("1"):
            raise ConfigurationError("'approaching_ratio' must be between 0 and 1")
        return self

    @property
    def approaching_tax_free(self) -> Decimal:
        return self.tax_free * self.approaching_ratio


class ProvisionalConfig(ImmutableModel):
    """Due date of the first provisional installment.

    The second installment is always due on the last day of the tax year.
    """

    first_due_month: int = Field(default=8, ge=1, le=12)
    first_due_day: int = Field(default=31, ge=1, le=31)


class VatConfig(ImmutableModel):
    """Value-added tax settings applied to invoices."""

    standard_rate: Decimal

    @field_validator("standard_rate", mode="before")
    @classmethod
    def _coerce_rate(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @model_validator(mode="after")
    def _validate_rate(self) -> VatConfig:
        if self.standard_rate < 0 or self.standard_rate > 1:
            raise ConfigurationError("VAT rate must be between 0 and 1")
        return self


class DeductionRuleConfig(ImmutableModel):
    """SARS deduction rule for one expense category."""

    category: str
    group: str
    section: str
    max_percentage: Decimal = Decimal("100")
    wear_and_tear_rate: Decimal | None = None
    deductibility_score: int = Field(default=100, ge=0, le=100)
    requirements: Sequence[str] = Field(default_factory=tuple)
    documentation: Sequence[str] = Field(default_factory=tuple)
    warnings: Sequence[str] = Field(default_factory=tuple)
    tips: Sequence[str] = Field(default_factory=tuple)
    keywords: Sequence[str] = Field(default_factory=tuple)

    @field_validator("max_percentage", "wear_and_tear_rate", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @field_validator("requirements", "documentation", "warnings", "tips", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Sequence[str]:
        return _coerce_strings(value, "deduction text")

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value: Any) -> Sequence[str]:
        return tuple(entry.lower() for entry in _coerce_strings(value, "keywords"))

    @model_validator(mode="after")
    def _validate_rule(self) -> DeductionRuleConfig:
        if not Decimal("0") < self.max_percentage <= Decimal("100"):
            raise ConfigurationError(
                f"Deduction '{self.category}' max_percentage must be within (0, 100]"
            )
        if self.wear_and_tear_rate is not None and not (
            Decimal("0") < self.wear_and_tear_rate <= Decimal("100")
        ):
            raise ConfigurationError(
                f"Deduction '{self.category}' wear_and_tear_rate must be within (0, 100]"
            )
        return self


class DeductionConfig(ImmutableModel):
    """Deduction rules plus the category used for unmatched descriptions."""

    fallback_category: str
    rules: Sequence[DeductionRuleConfig]

    @model_validator(mode="after")
    def _validate_rules(self) -> DeductionConfig:
        if not self.rules:
            raise ConfigurationError("At least one deduction rule must be defined")
        if self.fallback_category not in {rule.category for rule in self.rules}:
            raise ConfigurationError(
                "Deduction 'fallback_category' must reference a configured rule"
            )
        return self

    def get_rule(self, category: str) -> DeductionRuleConfig | None:
        for rule in self.rules:
            if rule.category == category:
                return rule
        return None


class PlatformRate(ImmutableModel):
    """Base rate card for a creator or freelance platform."""

    basis: str
    rate: Decimal = Decimal("0")
    per_followers: int | None = Field(default=None, gt=0)

    @field_validator("rate", mode="before")
    @classmethod
    def _coerce_rate(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @model_validator(mode="after")
    def _validate_basis(self) -> Self:
        if self.basis not in {"followers", "hourly", "none"}:
            raise ConfigurationError("Platform 'basis' must be one of: followers, hourly, none")
        if self.basis == "followers" and self.per_followers is None:
            raise ConfigurationError("Follower-based rates require 'per_followers'")
        if self.rate < 0:
            raise ConfigurationError("Platform rates must be non-negative")
        return self


class PricingConfig(ImmutableModel):
    """Creator pricing guidance parameters."""

    platforms: Mapping[str, PlatformRate]
    content_multipliers: Mapping[str, Decimal]
    spread: Decimal = Decimal("0.3")

    @field_validator("platforms", mode="before")
    @classmethod
    def _normalise_platform_keys(cls, value: Any) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise ConfigurationError("Pricing 'platforms' must be a mapping")
        return {str(key).lower(): entry for key, entry in value.items()}

    @field_validator("content_multipliers", mode="before")
    @classmethod
    def _coerce_multipliers(cls, value: Any) -> Mapping[str, Decimal]:
        if not isinstance(value, Mapping):
            raise ConfigurationError("Pricing 'content_multipliers' must be a mapping")
        return {str(key): _coerce_decimal(entry) for key, entry in value.items()}

    @field_validator("spread", mode="before")
    @classmethod
    def _coerce_spread(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @model_validator(mode="after")
    def _validate_pricing(self) -> PricingConfig:
        if not self.platforms:
            raise ConfigurationError("Pricing requires at least one platform")
        if any(multiplier <= 0 for multiplier in self.content_multipliers.values()):
            raise ConfigurationError("Content multipliers must be positive")
        if not Decimal("0") <= self.spread < Decimal("1"):
            raise ConfigurationError("Pricing 'spread' must be within [0, 1)")
        return self


class RetailerSearch(ImmutableModel):
    """Retailer whose search page is offered when pricing a non-cash item."""

    name: str
    search_url: str


class FairValueConfig(ImmutableModel):
    """Limits for fair-market-value evidence on non-cash income."""

    min_sources: int = Field(default=3, ge=1)
    max_variance_percent: Decimal = Decimal("30")
    retailers: Sequence[RetailerSearch] = Field(default_factory=tuple)

    @field_validator("max_variance_percent", mode="before")
    @classmethod
    def _coerce_variance(cls, value: Any) -> Decimal | None:
        return _coerce_decimal(value)

    @model_validator(mode="after")
    def _validate_limits(self) -> FairValueConfig:
        if self.max_variance_percent <= 0:
            raise ConfigurationError("Fair value 'max_variance_percent' must be positive")
        return self


class YearWarning(ImmutableModel):
    """Structured warning surfaced for a configured tax year."""

    id: str
    message_key: str
    severity: str = "info"
    documentation_url: str | None = None

    @model_validator(mode="after")
    def _validate_severity(self) -> Self:
        if self.severity not in {"info", "warning", "error"}:
            raise ConfigurationError("Warning 'severity' must be one of: info, warning, error")
        return self


class YearConfiguration(ImmutableModel):
    """Structured representation of a SARS year of assessment.

    ``year`` is the calendar year in which the assessment period ends, so the
    2026 configuration covers 1 March 2025 to 28 February 2026.
    """

    year: int
    meta: Mapping[str, Any] = Field(default_factory=dict)
    thresholds: ComplianceThresholds
    brackets: Sequence[TaxBracket]
    provisional: ProvisionalConfig = Field(default_factory=ProvisionalConfig)
    vat: VatConfig
    deductions: DeductionConfig
    pricing: PricingConfig
    fair_value: FairValueConfig = Field(default_factory=FairValueConfig)
    warnings: Sequence[YearWarning] = Field(default_factory=tuple)

    @model_validator(mode="before")
    @classmethod
    def _prepare_sections(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")

        prepared = dict(data)
        meta = prepared.get("meta")
        if meta is None:
            prepared["meta"] = {}
        elif not isinstance(meta, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")

        if not isinstance(prepared.get("brackets"), Sequence):
            raise ConfigurationError("Configuration must include a 'brackets' list")

        if prepared.get("provisional") is None:
            prepared["provisional"] = {}

        if prepared.get("fair_value") is None:
            prepared["fair_value"] = {}

        if prepared.get("warnings") is None:
            prepared["warnings"] = []

        return prepared

    @model_validator(mode="after")
    def _validate_year(self) -> YearConfiguration:
        self._validate_bracket_sequence(self.brackets)
        return self

    @staticmethod
    def _validate_bracket_sequence(brackets: Sequence[TaxBracket]) -> None:
        if not brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        if brackets[0].lower_bound != 0:
            raise ConfigurationError("The first tax bracket must start at zero")
        for current, following in zip(brackets, brackets[1:]):
            if current.upper_bound is None:
                raise ConfigurationError("Only the final tax bracket may be open-ended")
            if following.lower_bound != current.upper_bound + 1:
                raise ConfigurationError(
                    "Tax brackets must be ascending and contiguous "
                    f"(gap or overlap after {current.upper_bound})"
                )
        if brackets[-1].upper_bound is not None:
            raise ConfigurationError("Final tax bracket must have an open upper bound")

    @computed_field
    @property
    def tax_year_label(self) -> str:
        return f"{self.year - 1}/{self.year}"

    @property
    def currency_symbol(self) -> str:
        return str(self.meta.get("currency_symbol", "R"))


class TaxYearManifestEntry(ImmutableModel):
    """Entry describing a supported tax year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available tax year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> TaxYearManifest:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "ComplianceThresholds",
    "ConfigurationError",
    "DeductionConfig",
    "DeductionRuleConfig",
    "FairValueConfig",
    "ImmutableModel",
    "PlatformRate",
    "PricingConfig",
    "ProvisionalConfig",
    "RetailerSearch",
    "TaxBracket",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "VatConfig",
    "YearConfiguration",
    "YearWarning",
    "ValidationError",
]
