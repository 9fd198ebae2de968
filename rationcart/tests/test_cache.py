from datetime import datetime, timedelta, timezone
from decimal import Decimal

from rationcart.cache import MemoryPriceCache, SupabasePriceCache
from rationcart.models import Platform, SourceListing

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _listing(price="240"):
    return SourceListing(
        platform=Platform.JIOMART,
        product_name="Aashirvaad Atta",
        price=Decimal(price),
        pack_size="5kg",
        url="https://jiomart.com/atta",
    )


class _FakeSupabase:
    def __init__(self, rows=None, fail=False):
        self.rows = rows or []
        self.fail = fail
        self.inserted = []
        self.selects = []

    def select(self, table, *, filters=None, order=None, limit=None):
        self.selects.append((table, filters, order, limit))
        if self.fail:
            raise RuntimeError("Supabase API error 500")
        return self.rows

    def insert(self, table, rows):
        if self.fail:
            raise RuntimeError("Supabase API error 500")
        self.inserted.append((table, rows))
        return [rows]


def test_memory_cache_hit_and_expiry():
    cache = MemoryPriceCache()
    cache.put("Wheat Flour", Platform.JIOMART, _listing(), now=NOW)

    assert cache.get("wheat flour", Platform.JIOMART, now=NOW + timedelta(hours=24)) == _listing()
    assert cache.get("wheat flour", Platform.JIOMART, now=NOW + timedelta(hours=24, seconds=1)) is None
    assert cache.get("wheat flour", Platform.BIGBASKET, now=NOW) is None


def test_memory_cache_last_write_wins():
    cache = MemoryPriceCache()
    cache.put("rice", Platform.JIOMART, _listing("500"), now=NOW)
    cache.put("rice", Platform.JIOMART, _listing("520"), now=NOW)
    assert cache.get("rice", Platform.JIOMART, now=NOW).price == Decimal("520")
    assert len(cache) == 1


def test_supabase_cache_reads_fresh_rows():
    client = _FakeSupabase(rows=[{
        "item_name": "wheat flour",
        "platform": "jiomart",
        "product_name": "Aashirvaad Atta",
        "price": 240,
        "pack_size": "5kg",
        "product_url": "https://jiomart.com/atta",
    }])
    cache = SupabasePriceCache(client)

    got = cache.get("Wheat Flour", Platform.JIOMART, now=NOW)

    assert got == _listing()
    table, filters, order, limit = client.selects[0]
    assert table == "price_cache"
    assert filters["item_name"] == "eq.wheat flour"
    assert filters["platform"] == "eq.jiomart"
    assert filters["last_updated"] == "gte." + (NOW - timedelta(hours=24)).isoformat()
    assert limit == 1


def test_supabase_cache_miss():
    assert SupabasePriceCache(_FakeSupabase()).get("rice", Platform.JIOMART, now=NOW) is None


def test_supabase_cache_read_error_is_a_miss():
    assert SupabasePriceCache(_FakeSupabase(fail=True)).get("rice", Platform.JIOMART, now=NOW) is None


def test_supabase_cache_write_row():
    client = _FakeSupabase()
    SupabasePriceCache(client).put("Wheat Flour", Platform.JIOMART, _listing(), now=NOW)

    table, row = client.inserted[0]
    assert table == "price_cache"
    assert row["item_name"] == "wheat flour"
    assert row["price"] == 240.0
    assert row["product_url"] == "https://jiomart.com/atta"
    assert row["last_updated"] == NOW.isoformat()


def test_supabase_cache_write_error_is_swallowed():
    SupabasePriceCache(_FakeSupabase(fail=True)).put("rice", Platform.JIOMART, _listing(), now=NOW)


def test_supabase_cache_row_has_no_fallback_column():
    client = _FakeSupabase()
    cache = SupabasePriceCache(client)
    fallback = SourceListing(platform=Platform.JIOMART, product_name="Tata Salt", price=Decimal(28), from_fallback=True)

    cache.put("salt", Platform.JIOMART, fallback, now=NOW)
    _, row = client.inserted[0]
    assert "from_fallback" not in row

    client.rows = [row]
    got = cache.get("salt", Platform.JIOMART, now=NOW)
    assert got.price == Decimal(28)
    assert got.from_fallback is False
