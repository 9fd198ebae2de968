from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from .arbiter import arbitrate
from .match import ProductMatcher
from .models import ACTIONABLE_PLATFORMS, ComparisonRequest, Platform, PriceComparisonResult

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 4
DEFAULT_COURTESY_DELAY_S = 0.5


def compare_item(
    request: ComparisonRequest,
    matcher: ProductMatcher,
    *,
    platforms: Sequence[Platform] = ACTIONABLE_PLATFORMS,
    pool: ThreadPoolExecutor | None = None,
) -> PriceComparisonResult:
    """Look the item up on every platform concurrently, then arbitrate."""
    name = request.lookup_name
    if pool is None:
        listings = [matcher.lookup(name, p) for p in platforms]
    else:
        futures = [pool.submit(matcher.lookup, name, p) for p in platforms]
        listings = [f.result() for f in futures]
    return arbitrate(request.item_name, request.quantity, listings)


def compare_items(
    items: Sequence[ComparisonRequest],
    matcher: ProductMatcher,
    *,
    platforms: Sequence[Platform] = ACTIONABLE_PLATFORMS,
    batch_size: int = DEFAULT_BATCH_SIZE,
    courtesy_delay_s: float = DEFAULT_COURTESY_DELAY_S,
    max_workers: int = 8,
    sleep: Callable[[float], None] = time.sleep,
) -> list[PriceComparisonResult]:
    """Compare prices for every item; output order follows input order.

    Items run concurrently in batches of *batch_size*, with a courtesy pause
    between batches. An item that still fails is logged and left out.
    """
    batch_size = max(1, batch_size)
    results: list[PriceComparisonResult] = []

    # Item tasks block on their platform lookups; lookups get their own pool.
    with ThreadPoolExecutor(max_workers=batch_size) as item_pool, \
            ThreadPoolExecutor(max_workers=max(1, max_workers)) as lookup_pool:
        for start in range(0, len(items), batch_size):
            if start > 0 and courtesy_delay_s > 0:
                sleep(courtesy_delay_s)

            batch = items[start:start + batch_size]
            futures = [
                item_pool.submit(compare_item, r, matcher, platforms=platforms, pool=lookup_pool)
                for r in batch
            ]
            for req, fut in zip(batch, futures):
                try:
                    results.append(fut.result())
                except Exception:
                    logger.exception("Error processing item %s", req.lookup_name)

    return results
