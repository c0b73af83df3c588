"""Fair-market-value evidence for non-cash income.

Gifted products and other payments in kind are taxable at their fair market
value. The value is taken from retailer prices collected by the user and is
only treated as verified when enough sources agree closely.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from urllib.parse import quote

from gigtax.backend.app.localization import Translator
from gigtax.backend.config.year_config import FairValueConfig

from .utils import HUNDRED, ZERO, format_zar, to_decimal

_ONE = Decimal("1")
_TENTH = Decimal("0.1")
_TWO = Decimal("2")

VERIFIED = "verified"
REQUIRES_REVIEW = "requires_review"


@dataclass(frozen=True)
class PriceSource:
    """Price observed at one retailer, or entered by hand."""

    retailer: str
    price: Decimal
    url: str = ""
    is_manual: bool = False


@dataclass(frozen=True)
class FairValueWarning:
    id: str
    message: str


@dataclass(frozen=True)
class FairValueAssessment:
    source_count: int
    average: Decimal
    median: Decimal
    minimum: Decimal
    maximum: Decimal
    variance_percent: Decimal
    fmv_amount: Decimal
    verification_status: str
    warnings: tuple[FairValueWarning, ...]
    proof_urls: tuple[str, ...]
    notes: str

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VERIFIED


def _whole_rand(value: Decimal) -> Decimal:
    return value.quantize(_ONE, rounding=ROUND_HALF_UP)


def average_price(sources: Sequence[PriceSource]) -> Decimal:
    """Mean price rounded to whole rand; zero without sources."""

    if not sources:
        return ZERO
    total = sum((source.price for source in sources), ZERO)
    return _whole_rand(total / Decimal(len(sources)))


def median_price(sources: Sequence[PriceSource]) -> Decimal:
    """Middle price. An even count averages the two middle prices to whole rand."""

    if not sources:
        return ZERO
    prices = sorted(source.price for source in sources)
    middle = len(prices) // 2
    if len(prices) % 2 == 0:
        return _whole_rand((prices[middle - 1] + prices[middle]) / _TWO)
    return prices[middle]


def price_variance(sources: Sequence[PriceSource]) -> Decimal:
    """Return ``(max - min) / average * 100`` to one decimal place.

    Fewer than two sources, or a zero average, have no spread.
    """

    if len(sources) < 2:
        return ZERO
    average = average_price(sources)
    if average == 0:
        return ZERO
    prices = [source.price for source in sources]
    spread = (max(prices) - min(prices)) / average * HUNDRED
    return spread.quantize(_TENTH, rounding=ROUND_HALF_UP)


def collect_proof_urls(
    sources: Iterable[PriceSource], proof_urls: Iterable[str] = ()
) -> tuple[str, ...]:
    """Explicit proof links followed by source URLs, without blanks or repeats."""

    ordered: dict[str, None] = {}
    for url in (*proof_urls, *(source.url for source in sources)):
        text = (url or "").strip()
        if text:
            ordered.setdefault(text, None)
    return tuple(ordered)


def retailer_search_links(query: str, config: FairValueConfig) -> list[tuple[str, str]]:
    """Return ``(retailer, url)`` pairs searching each configured retailer."""

    encoded = quote(query.strip(), safe="!~*'()")
    return [(retailer.name, f"{retailer.search_url}{encoded}") for retailer in config.retailers]


def assess_fair_value(
    sources: Sequence[PriceSource],
    config: FairValueConfig,
    translator: Translator,
    selected_amount: Any = None,
    proof_urls: Sequence[str] = (),
) -> FairValueAssessment:
    """Summarise the price evidence for one non-cash item.

    ``selected_amount`` defaults to the median price. The valuation is
    verified only with at least ``config.min_sources`` sources whose spread
    stays strictly below ``config.max_variance_percent``.
    """

    if not sources:
        raise ValueError("At least one price source is required")

    average = average_price(sources)
    median = median_price(sources)
    variance = price_variance(sources)
    prices = [source.price for source in sources]
    amount = median if selected_amount is None else to_decimal(selected_amount)

    explicit_proof = [url for url in proof_urls if url and url.strip()]
    warnings: list[FairValueWarning] = []
    if len(sources) < config.min_sources:
        warnings.append(
            FairValueWarning(
                "insufficient_sources",
                translator.format(
                    "fair_value.warning.insufficient_sources", minimum=config.min_sources
                ),
            )
        )
    if variance > config.max_variance_percent:
        warnings.append(
            FairValueWarning(
                "high_variance",
                translator.format("fair_value.warning.high_variance", variance=variance),
            )
        )
    if not explicit_proof and any(not source.is_manual for source in sources):
        warnings.append(
            FairValueWarning("missing_proof", translator("fair_value.warning.missing_proof"))
        )

    verified = len(sources) >= config.min_sources and variance < config.max_variance_percent
    notes = translator.format(
        "fair_value.notes",
        count=len(sources),
        average=format_zar(average),
        median=format_zar(median),
        variance=variance,
    )

    return FairValueAssessment(
        source_count=len(sources),
        average=average,
        median=median,
        minimum=min(prices),
        maximum=max(prices),
        variance_percent=variance,
        fmv_amount=amount,
        verification_status=VERIFIED if verified else REQUIRES_REVIEW,
        warnings=tuple(warnings),
        proof_urls=collect_proof_urls(sources, explicit_proof),
        notes=notes,
    )


__all__ = [
    "FairValueAssessment",
    "FairValueWarning",
    "PriceSource",
    "assess_fair_value",
    "average_price",
    "collect_proof_urls",
    "median_price",
    "price_variance",
    "retailer_search_links",
]
