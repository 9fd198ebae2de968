from __future__ import annotations

import logging
import random
import time
from typing import Callable, Sequence

from .arbiter import to_actionable
from .models import CartAutomationResult, CartItem, Platform

logger = logging.getLogger(__name__)

CART_URLS = {
    Platform.JIOMART: "https://www.jiomart.com/cart",
    Platform.BIGBASKET: "https://www.bigbasket.com/cart",
}

SUCCESS_RATE = 0.9


def platform_url(platform: Platform) -> str:
    return CART_URLS[to_actionable(platform)]


def simulate_cart_automation(
    platform: Platform,
    items: Sequence[CartItem],
    *,
    rng: random.Random | None = None,
    step_delay_s: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> CartAutomationResult:
    """Walk the items as an add-to-cart run would and return the log.

    Nothing is sent to the retailer; each item "succeeds" with
    ``SUCCESS_RATE`` probability.
    """
    target = to_actionable(platform)
    rng = rng or random.Random()

    logs = [
        f"Starting cart automation for {target.label}",
        f"Processing {len(items)} items",
    ]
    added = failed = 0

    for i, item in enumerate(items, 1):
        logs.append(f"[{i}/{len(items)}] Processing: {item.item_name}")
        if step_delay_s > 0:
            sleep(step_delay_s)

        if rng.random() < SUCCESS_RATE:
            added += 1
            logs.append(f"✓ Added {item.item_name} (qty {item.quantity}) to cart successfully")
        else:
            failed += 1
            logs.append(f"✗ Failed to add {item.item_name} - product not found or out of stock")

    logs.append("Cart automation completed")
    logs.append(f"Next step: Visit {target.label} to review cart and complete checkout")
    logs.append("⚠️ Please verify quantities and review total before payment")

    logger.info("Simulated %s cart: %d added, %d failed", target.value, added, failed)
    return CartAutomationResult(
        platform=target,
        log="\n".join(logs),
        platform_url=platform_url(target),
        added=added,
        failed=failed,
    )
