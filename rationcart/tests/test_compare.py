import threading
from decimal import Decimal

from rationcart.compare import compare_item, compare_items
from rationcart.match import ProductMatcher
from rationcart.models import ComparisonRequest, Platform, SourceListing


class _FakeMatcher:
    def __init__(self, prices, fail_on=()):
        self.prices = prices
        self.fail_on = set(fail_on)
        self.calls = []
        self._lock = threading.Lock()

    def lookup(self, item_name, platform):
        with self._lock:
            self.calls.append((item_name, platform))
        if item_name in self.fail_on:
            raise ValueError("boom")
        price = self.prices.get((item_name, platform))
        return SourceListing(platform=platform, price=Decimal(price) if price is not None else None)


def _req(name, qty="1"):
    return ComparisonRequest(item_name=name, quantity=qty, normalized_name=name)


def test_compare_item_queries_every_platform():
    matcher = _FakeMatcher({("rice", Platform.JIOMART): 520, ("rice", Platform.BIGBASKET): 540})
    r = compare_item(_req("rice"), matcher)
    assert r.recommended_platform == Platform.JIOMART
    assert r.savings == Decimal(20)
    assert sorted(p.value for _, p in matcher.calls) == ["bigbasket", "jiomart"]


def test_compare_items_keeps_input_order_and_pauses_between_batches():
    prices = {}
    names = [f"item{i}" for i in range(7)]
    for i, n in enumerate(names):
        prices[(n, Platform.JIOMART)] = 100 + i
        prices[(n, Platform.BIGBASKET)] = 99 + i
    sleeps = []

    results = compare_items(
        [_req(n) for n in names],
        _FakeMatcher(prices),
        batch_size=3,
        courtesy_delay_s=0.5,
        sleep=sleeps.append,
    )

    assert [r.item_name for r in results] == names
    assert all(r.recommended_platform == Platform.BIGBASKET for r in results)
    assert sleeps == [0.5, 0.5]


def test_failing_item_is_skipped():
    prices = {("milk", Platform.JIOMART): 60, ("milk", Platform.BIGBASKET): 55}
    results = compare_items(
        [_req("bad"), _req("milk")],
        _FakeMatcher(prices, fail_on={"bad"}),
        courtesy_delay_s=0,
    )
    assert [r.item_name for r in results] == ["milk"]


def test_lookup_uses_normalized_name_and_reports_display_name():
    matcher = ProductMatcher()
    req = ComparisonRequest(item_name="आटा 5 किलो", quantity="5", normalized_name="wheat flour")

    [r] = compare_items([req], matcher, courtesy_delay_s=0)

    assert r.item_name == "आटा 5 किलो"
    assert r.quantity == "5"
    assert r.recommended_platform == Platform.BIGBASKET
    assert r.savings == Decimal(5)


def test_empty_input():
    assert compare_items([], _FakeMatcher({})) == []
