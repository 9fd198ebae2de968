from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Iterable

from .models import (
    ACTIONABLE_PLATFORMS,
    ALL_PLATFORMS,
    Platform,
    PriceComparisonResult,
    SourceListing,
)

DEFAULT_PLATFORM = Platform.JIOMART

# Auxiliary sources feed the price signal only; recommendations land on the
# checkout target that serves the same shoppers.
ACTIONABLE_TARGET: MappingProxyType = MappingProxyType({
    Platform.JIOMART: Platform.JIOMART,
    Platform.BIGBASKET: Platform.BIGBASKET,
    Platform.DMART: Platform.JIOMART,
    Platform.AMAZON_FRESH: Platform.BIGBASKET,
})

_ORDER = {p: i for i, p in enumerate(ALL_PLATFORMS)}


def to_actionable(platform: Platform) -> Platform:
    return ACTIONABLE_TARGET[platform]


def _cheapest(priced: dict[Platform, Decimal]) -> Platform:
    # Ties go to the platform listed first (JioMart before BigBasket).
    return min(priced, key=lambda p: (priced[p], _ORDER[p]))


def arbitrate(item_name: str, quantity: str, listings: Iterable[SourceListing]) -> PriceComparisonResult:
    by_platform: dict[Platform, SourceListing] = {}
    for listing in listings:
        # First attempt per platform wins; later duplicates are ignored.
        by_platform.setdefault(listing.platform, listing)

    per_platform_price = {p: lst.price for p, lst in by_platform.items()}
    for p in ACTIONABLE_PLATFORMS:
        per_platform_price.setdefault(p, None)

    priced = {p: price for p, price in per_platform_price.items() if price is not None}

    if not priced:
        recommended, savings = DEFAULT_PLATFORM, Decimal(0)
    elif len(priced) == 1:
        recommended, savings = next(iter(priced)), Decimal(0)
    else:
        recommended = _cheapest(priced)
        savings = max(Decimal(0), max(priced.values()) - min(priced.values()))

    # Savings measure the spread of the price signal across every source, not
    # what checkout on the target will cost; an auxiliary winner can land on
    # the dearer actionable platform.
    target = to_actionable(recommended)
    if priced and target not in priced:
        actionable_priced = {p: v for p, v in priced.items() if p in ACTIONABLE_PLATFORMS}
        if actionable_priced:
            target = _cheapest(actionable_priced)

    return PriceComparisonResult(
        item_name=item_name,
        quantity=quantity,
        per_platform_price=per_platform_price,
        recommended_platform=target,
        savings=savings,
        listings=by_platform,
    )
