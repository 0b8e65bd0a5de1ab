"""
Tiered day/week/month pricing.

Greedy largest-unit-first: whole 30-day months at the monthly rate, then
whole 7-day weeks at the weekly rate, then single days at the daily rate.
A missing (or zero) weekly/monthly rate simply skips that tier; partial
tiers are never prorated.
"""
import math
from numbers import Number
from typing import List, Optional

from ..utils.errors import ValidationError
from ..utils.models import Asset, AssetType, PriceLine, PriceMode, PriceQuote
from .interval import DateLike, DateInterval

DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30


def _check_rate(name: str, value) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, Number) or value < 0:
        raise ValidationError(f"{name} must be a non-negative number, got {value!r}")


def _format_breakdown(lines: List[PriceLine]) -> str:
    return " + ".join(line.label for line in lines if line.count)


def compute_price(
    days: int,
    daily_rate: float,
    weekly_rate: Optional[float] = None,
    monthly_rate: Optional[float] = None,
) -> PriceQuote:
    """Compute the total and a "1 month + 5 days" style breakdown.

    Examples:
        >>> compute_price(10, 300, 1800, 6000).total
        2700
        >>> compute_price(35, 300, 1800, 6000).breakdown
        '1 month + 5 days'
    """
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValidationError(f"days must be a positive integer, got {days!r}")
    _check_rate("daily_rate", daily_rate)
    if daily_rate is None:
        raise ValidationError("daily_rate is required")
    _check_rate("weekly_rate", weekly_rate)
    _check_rate("monthly_rate", monthly_rate)

    tiers = []
    if monthly_rate:
        tiers.append(("month", DAYS_PER_MONTH, monthly_rate))
    if weekly_rate:
        tiers.append(("week", DAYS_PER_WEEK, weekly_rate))
    tiers.append(("day", 1, daily_rate))

    lines: List[PriceLine] = []
    remaining = days
    for unit, size, rate in tiers:
        count, remaining = divmod(remaining, size)
        if count:
            lines.append(PriceLine(unit=unit, count=count, rate=rate, subtotal=count * rate))

    total = sum(line.subtotal for line in lines)
    return PriceQuote(total=total, breakdown=_format_breakdown(lines), days=days, lines=tuple(lines))


def compute_unit_price(days: int, price: float, price_mode: PriceMode) -> PriceQuote:
    """Price a furnished unit: per night, or per started 30-day month."""
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValidationError(f"days must be a positive integer, got {days!r}")
    _check_rate("price", price)

    if price_mode is PriceMode.MONTH:
        unit, count = "month", math.ceil(days / DAYS_PER_MONTH)
    else:
        unit, count = "night", days
    line = PriceLine(unit=unit, count=count, rate=price, subtotal=count * price)
    return PriceQuote(total=line.subtotal, breakdown=line.label, days=days, lines=(line,))


def apply_override(quote: PriceQuote, override: Optional[float]) -> PriceQuote:
    """Attach an operator's manual price; the computed total stays on the quote for audit."""
    if override is None:
        return quote
    _check_rate("override", override)
    return PriceQuote(
        total=quote.total,
        breakdown=quote.breakdown,
        days=quote.days,
        lines=quote.lines,
        override=override,
    )


def quote_for_asset(asset: Asset, start: DateLike, end: DateLike, override: Optional[float] = None) -> PriceQuote:
    """Price a reservation window against the asset's own rate schedule."""
    days = DateInterval.from_values(start, end).days
    if asset.asset_type is AssetType.CONDO and asset.price_mode is not None:
        if asset.price_mode is PriceMode.MONTH:
            quote = compute_unit_price(days, asset.monthly_rate or 0, PriceMode.MONTH)
        else:
            quote = compute_unit_price(days, asset.daily_rate, PriceMode.NIGHT)
    else:
        quote = compute_price(days, asset.daily_rate, asset.weekly_rate, asset.monthly_rate)
    return apply_override(quote, override)

