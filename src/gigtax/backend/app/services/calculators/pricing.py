"""Rate-card guidance for creators and freelancers."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from gigtax.backend.config.year_config import PlatformRate, PricingConfig

from .utils import ZERO, to_decimal

_ONE = Decimal("1")


@dataclass(frozen=True)
class PriceQuote:
    platform: str
    content_type: str
    base_rate: Decimal
    multiplier: Decimal
    minimum: Decimal
    recommended: Decimal
    maximum: Decimal


def _whole_rand(value: Decimal) -> Decimal:
    return value.quantize(_ONE, rounding=ROUND_HALF_UP)


def base_rate(platform: PlatformRate, followers: int, hourly_rate: Any = None) -> Decimal:
    """Return the platform's base price before content multipliers."""

    if platform.basis == "followers":
        return Decimal(followers) / Decimal(platform.per_followers) * platform.rate
    if platform.basis == "hourly":
        if hourly_rate is not None:
            custom = to_decimal(hourly_rate)
            if custom > 0:
                return custom
        return platform.rate
    return ZERO


def quote_price(
    platform: str,
    pricing: PricingConfig,
    followers: int = 10_000,
    content_type: str = "single-post",
    hourly_rate: Any = None,
) -> PriceQuote:
    """Recommend a price range for one deliverable.

    Unknown content types price as a single post. Unknown platforms raise
    ``ValueError``.
    """

    key = platform.strip().lower()
    rate_card = pricing.platforms.get(key)
    if rate_card is None:
        supported = ", ".join(sorted(pricing.platforms))
        raise ValueError(f"Unsupported platform '{platform}' (expected one of: {supported})")
    if followers < 0:
        raise ValueError("Follower count cannot be negative")

    multiplier = pricing.content_multipliers.get(content_type, _ONE)
    rate = base_rate(rate_card, followers, hourly_rate)
    price = rate * multiplier

    return PriceQuote(
        platform=key,
        content_type=content_type,
        base_rate=rate,
        multiplier=multiplier,
        minimum=_whole_rand(price * (_ONE - pricing.spread)),
        recommended=_whole_rand(price),
        maximum=_whole_rand(price * (_ONE + pricing.spread)),
    )


__all__ = ["PriceQuote", "base_rate", "quote_price"]
