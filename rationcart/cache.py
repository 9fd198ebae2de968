from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Protocol

from .models import Platform, SourceListing
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceCache(Protocol):
    def get(self, item_name: str, platform: Platform, *, now: datetime | None = None) -> SourceListing | None:
        ...

    def put(self, item_name: str, platform: Platform, listing: SourceListing, *, now: datetime | None = None) -> None:
        ...


@dataclass(frozen=True)
class _Entry:
    listing: SourceListing
    stored_at: datetime


class MemoryPriceCache:
    """Process-local cache. Concurrent writers race harmlessly: last write wins."""

    def __init__(self, *, ttl: timedelta = CACHE_TTL):
        self.ttl = ttl
        self._entries: dict[tuple[str, Platform], _Entry] = {}

    def get(self, item_name: str, platform: Platform, *, now: datetime | None = None) -> SourceListing | None:
        entry = self._entries.get((item_name.lower(), platform))
        if entry is None:
            return None
        now = now or utcnow()
        if now - entry.stored_at > self.ttl:
            return None
        return entry.listing

    def put(self, item_name: str, platform: Platform, listing: SourceListing, *, now: datetime | None = None) -> None:
        self._entries[(item_name.lower(), platform)] = _Entry(listing=listing, stored_at=now or utcnow())

    def __len__(self) -> int:
        return len(self._entries)


class SupabasePriceCache:
    """``price_cache`` table rows: one per (item_name, platform) lookup.

    Reads that fail count as a miss. Writes that fail are logged and dropped;
    the comparison result in hand is still valid without them.
    """

    TABLE = "price_cache"

    def __init__(self, client: SupabaseClient, *, ttl: timedelta = CACHE_TTL):
        self.client = client
        self.ttl = ttl

    def get(self, item_name: str, platform: Platform, *, now: datetime | None = None) -> SourceListing | None:
        now = now or utcnow()
        since = (now - self.ttl).isoformat()
        try:
            rows = self.client.select(
                self.TABLE,
                filters={
                    "item_name": f"eq.{item_name.lower()}",
                    "platform": f"eq.{platform.value}",
                    "last_updated": f"gte.{since}",
                },
                order="last_updated.desc",
                limit=1,
            )
        except RuntimeError as exc:
            logger.warning("price_cache read failed for %s/%s: %s", item_name, platform.value, exc)
            return None

        if not rows:
            return None
        return _listing_from_row(platform, rows[0])

    def put(self, item_name: str, platform: Platform, listing: SourceListing, *, now: datetime | None = None) -> None:
        row = {
            "item_name": item_name.lower(),
            "platform": platform.value,
            "product_name": listing.product_name,
            "price": float(listing.price) if listing.price is not None else None,
            "pack_size": listing.pack_size,
            "product_url": listing.url,
            "last_updated": (now or utcnow()).isoformat(),
        }
        try:
            self.client.insert(self.TABLE, row)
        except RuntimeError as exc:
            logger.warning("price_cache write failed for %s/%s: %s", item_name, platform.value, exc)


def _listing_from_row(platform: Platform, row: dict) -> SourceListing | None:
    # price_cache has no fallback column, so rows always read back as matches.
    raw_price = row.get("price")
    try:
        price = Decimal(str(raw_price)) if raw_price is not None else None
    except InvalidOperation:
        price = None
    if price is None:
        return None
    return SourceListing(
        platform=platform,
        product_name=row.get("product_name"),
        price=price,
        pack_size=row.get("pack_size") or None,
        url=row.get("product_url") or None,
    )
