from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable

from .cache import MemoryPriceCache, PriceCache, utcnow
from .catalog import (
    BRANDS_BY_CATEGORY,
    FALLBACK_BASE_URLS,
    FALLBACK_PACK_SIZE,
    FALLBACK_PRICE_BUCKETS,
    FALLBACK_PRICES,
    KNOWN_BRANDS,
)
from .models import Platform, SourceListing
from .retailers import Candidate, parse_candidates

logger = logging.getLogger(__name__)

MIN_SCORE = 0.3

# Fetches the raw search page for (platform, query). None means "no corpus".
Fetcher = Callable[[Platform, str], "str | None"]

_WORD_SPLIT_RE = re.compile(r"[\s,/()\[\]\-_:;|+&]+")


@dataclass(frozen=True)
class ChosenProduct:
    candidate: Candidate
    score: float


def _words(text: str) -> list[str]:
    return [w for w in _WORD_SPLIT_RE.split(text) if w]


def _brands_for(query: str) -> tuple[str, ...]:
    return BRANDS_BY_CATEGORY.get(query, ())


def score_relevance(query: str, name: str) -> float:
    q = query.strip().lower()
    n = name.strip().lower()
    if not q or not n:
        return 0.0
    if q == n:
        return 1.0

    score = 0.0
    if q in n or n in q:
        score = 0.8

    significant = [w for w in _words(q) if len(w) > 2]
    matched = [w for w in significant if w in n]
    score += 0.1 * len(matched)

    if significant and len(matched) / len(significant) >= 0.7:
        score += 0.2

    # Long titles that merely mention the term are usually combos or add-ons.
    if len(n) > 3 * len(q):
        score -= 0.2

    if any(b in n for b in _brands_for(q)) or (matched and any(b in n for b in KNOWN_BRANDS)):
        score += 0.1

    return max(0.0, min(1.0, score))


def choose_best(query: str, candidates: list[Candidate], *, min_score: float = MIN_SCORE) -> ChosenProduct | None:
    best: ChosenProduct | None = None
    for c in candidates:
        s = score_relevance(query, c.name)
        if s <= min_score:
            continue
        if best is None or s > best.score:
            best = ChosenProduct(candidate=c, score=s)
    return best


def _slug(item_name: str) -> str:
    return re.sub(r"\s+", "-", item_name.strip())


def fallback_listing(item_name: str, platform: Platform, rng: random.Random | None = None) -> SourceListing:
    """Static listing used when live matching produces nothing acceptable.

    Unknown items get a price drawn from the platform's bucket. That draw is
    only reproducible when a seeded *rng* is passed in.
    """
    key = item_name.strip().lower()
    table = FALLBACK_PRICES.get(platform)
    if table is None:
        # Auxiliary sources only contribute live prices.
        return SourceListing(platform=platform)

    row = table.get(key)
    if row is not None:
        return SourceListing(
            platform=platform,
            product_name=row["name"],
            price=row["price"],
            pack_size=row["pack"],
            url=row["url"],
            from_fallback=True,
        )

    low, high = FALLBACK_PRICE_BUCKETS[platform]
    price = (rng or random).randint(low, high)
    return SourceListing(
        platform=platform,
        product_name=f"{item_name} - {platform.label}",
        price=Decimal(price),
        pack_size=FALLBACK_PACK_SIZE,
        url=f"{FALLBACK_BASE_URLS[platform]}/{_slug(item_name)}",
        from_fallback=True,
    )


def match_listing(
    item_name: str,
    platform: Platform,
    corpus: str | None,
    *,
    rng: random.Random | None = None,
    min_score: float = MIN_SCORE,
) -> SourceListing:
    candidates = parse_candidates(platform, corpus)
    chosen = choose_best(item_name, candidates, min_score=min_score)
    if chosen is None:
        if candidates:
            logger.info("No %s candidate for %r cleared %.2f", platform.value, item_name, min_score)
        return fallback_listing(item_name, platform, rng)

    c = chosen.candidate
    return SourceListing(
        platform=platform,
        product_name=c.name,
        price=c.price,
        pack_size=c.pack_size,
        url=c.url,
    )


class ProductMatcher:
    """Read-through cache in front of fetch + match, with fallback on failure.

    ``lookup`` never raises: fetch or parse errors are logged and answered
    with the fallback listing.
    """

    def __init__(
        self,
        *,
        fetch: Fetcher | None = None,
        cache: PriceCache | None = None,
        rng: random.Random | None = None,
        min_score: float = MIN_SCORE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.fetch = fetch
        self.cache = cache if cache is not None else MemoryPriceCache()
        self.rng = rng
        self.min_score = min_score
        self.clock = clock

    def lookup(self, item_name: str, platform: Platform) -> SourceListing:
        key = item_name.strip().lower()
        now = self.clock()

        try:
            cached = self.cache.get(key, platform, now=now)
        except Exception as exc:
            logger.warning("Cache read failed for %s/%s: %s", key, platform.value, exc)
            cached = None
        if cached is not None:
            logger.debug("Cache hit for %s/%s", key, platform.value)
            return cached

        listing = self._match(key, platform)

        if listing.has_price:
            try:
                self.cache.put(key, platform, listing, now=now)
            except Exception as exc:
                logger.warning("Cache write failed for %s/%s: %s", key, platform.value, exc)
        return listing

    def _match(self, key: str, platform: Platform) -> SourceListing:
        try:
            corpus = self.fetch(platform, key) if self.fetch is not None else None
            return match_listing(key, platform, corpus, rng=self.rng, min_score=self.min_score)
        except Exception as exc:
            logger.warning("Lookup failed for %s on %s, using fallback: %s", key, platform.value, exc)
            return fallback_listing(key, platform, self.rng)
