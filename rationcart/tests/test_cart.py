import random

from rationcart.cart import platform_url, simulate_cart_automation
from rationcart.models import CartItem, Platform


def _items(*names):
    return [CartItem(item_name=n) for n in names]


def test_platform_urls_follow_actionable_mapping():
    assert platform_url(Platform.JIOMART) == "https://www.jiomart.com/cart"
    assert platform_url(Platform.BIGBASKET) == "https://www.bigbasket.com/cart"
    assert platform_url(Platform.DMART) == "https://www.jiomart.com/cart"


def test_log_has_one_entry_per_item():
    slept = []
    result = simulate_cart_automation(
        Platform.JIOMART,
        _items("atta", "rice", "oil"),
        rng=random.Random(0),
        sleep=slept.append,
    )
    lines = result.log.splitlines()

    assert lines[0] == "Starting cart automation for JioMart"
    assert lines[1] == "Processing 3 items"
    assert "[3/3] Processing: oil" in lines
    assert result.added + result.failed == 3
    assert lines[-3] == "Cart automation completed"
    assert slept == [0.5, 0.5, 0.5]


def test_seeded_run_is_reproducible():
    a = simulate_cart_automation(Platform.BIGBASKET, _items("a1", "b2", "c3"), rng=random.Random(5), step_delay_s=0)
    b = simulate_cart_automation(Platform.BIGBASKET, _items("a1", "b2", "c3"), rng=random.Random(5), step_delay_s=0)
    assert a == b


def test_auxiliary_platform_is_collapsed():
    result = simulate_cart_automation(Platform.AMAZON_FRESH, [], step_delay_s=0)
    assert result.platform == Platform.BIGBASKET
    assert result.platform_url == "https://www.bigbasket.com/cart"
    assert result.added == result.failed == 0
