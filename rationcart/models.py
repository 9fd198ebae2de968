from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class Platform(str, Enum):
    JIOMART = "jiomart"
    BIGBASKET = "bigbasket"

    # Auxiliary price-signal sources; never shown as a checkout target.
    DMART = "dmart"
    AMAZON_FRESH = "amazon_fresh"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    Platform.JIOMART: "JioMart",
    Platform.BIGBASKET: "BigBasket",
    Platform.DMART: "DMart",
    Platform.AMAZON_FRESH: "Amazon Fresh",
}

ACTIONABLE_PLATFORMS: tuple[Platform, ...] = (Platform.JIOMART, Platform.BIGBASKET)
ALL_PLATFORMS: tuple[Platform, ...] = tuple(Platform)


@dataclass(frozen=True)
class ExtractedItem:
    raw_text: str

    # Lowercase canonical category, e.g. "wheat flour".
    normalized_name: str

    # Numeric-as-text so "0.5" and "5" survive a JSON round trip untouched.
    quantity: str = "1"
    unit: str = "pack"       # one of kg, g, ltr, pack, bottle

    def as_dict(self) -> dict[str, str]:
        return {
            "item_name": self.raw_text,
            "quantity": self.quantity,
            "unit": self.unit,
            "normalized_name": self.normalized_name,
        }


@dataclass(frozen=True)
class SourceListing:
    """One retailer's answer for one item. All-None fields mean "no match"."""

    platform: Platform
    product_name: str | None = None
    price: Decimal | None = None
    pack_size: str | None = None    # e.g. "5kg", "30 pieces"
    url: str | None = None
    from_fallback: bool = False

    @property
    def has_price(self) -> bool:
        return self.price is not None


@dataclass(frozen=True)
class ComparisonRequest:
    item_name: str
    quantity: str = "1"

    # Lookup key; the display name is used when absent.
    normalized_name: str | None = None

    @property
    def lookup_name(self) -> str:
        return (self.normalized_name or self.item_name).strip().lower()

    @staticmethod
    def from_extracted(item: ExtractedItem) -> "ComparisonRequest":
        return ComparisonRequest(
            item_name=item.raw_text,
            quantity=item.quantity,
            normalized_name=item.normalized_name,
        )


@dataclass(frozen=True)
class PriceComparisonResult:
    item_name: str
    quantity: str
    per_platform_price: dict[Platform, Decimal | None]
    recommended_platform: Platform
    savings: Decimal
    listings: dict[Platform, SourceListing] = field(default_factory=dict)

    def price_on(self, platform: Platform) -> Decimal | None:
        return self.per_platform_price.get(platform)

    def to_row(self, list_id: str | None = None) -> dict:
        """Flatten into a ``price_comparisons`` table row."""
        row: dict = {
            "list_id": list_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "recommended_platform": self.recommended_platform.value,
            "savings": float(self.savings),
        }
        for p in ACTIONABLE_PLATFORMS:
            listing = self.listings.get(p)
            price = self.per_platform_price.get(p)
            row[f"{p.value}_price"] = float(price) if price is not None else None
            row[f"{p.value}_product_name"] = listing.product_name if listing else None
            row[f"{p.value}_url"] = listing.url if listing else None
        return row


@dataclass(frozen=True)
class CartItem:
    item_name: str
    quantity: str = "1"
    price: Decimal | None = None


@dataclass(frozen=True)
class CartAutomationResult:
    platform: Platform
    log: str
    platform_url: str
    added: int
    failed: int
