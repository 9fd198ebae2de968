from decimal import Decimal

import pytest

from rationcart.models import Platform
from rationcart.retailers import RetailerClient, parse_candidates, parse_pack_size, parse_price, search_url

BIGBASKET_STATE = (
    '{"products":[{"id":126906,"desc":"Pillsbury Chakki Fresh Atta","w":"5 kg",'
    '"absolute_url":"/pd/126906/pillsbury-chakki-fresh-atta-5-kg/",'
    '"pricing":{"discount":{"mrp":"289","prim_price":{"sp":"229.00"}}}}]}'
)

JIOMART_CARDS = """
<li class="ais-InfiniteHits-item">
  <a href="/p/groceries/fortune-sunflower-oil-1-l/490000363" class="plp-card-wrapper">
    <div class="plp-card-details-name line-clamp jm-body-xs">Fortune Sunflower Refined Oil 1 l</div>
    <span class="jm-heading-xxs jm-mb-xxs">₹155.00</span>
  </a>
</li>
"""

AMAZON_RESULT = (
    '<div data-component-type="s-search-result">'
    '<a class="a-link-normal" href="/Tata-Salt-Vacuum-Evaporated-Iodised/dp/B07G5H8T6P/ref=sr_1_1">'
    '<span class="a-size-base-plus a-color-base a-text-normal">Tata Salt, 1kg</span></a>'
    '<div><span class="a-price-whole">27</span></div></div>'
)


def test_parse_price():
    assert parse_price("₹1,299.00") == Decimal("1299.00")
    assert parse_price("240") == Decimal(240)
    assert parse_price("") is None
    assert parse_price("free") is None
    assert parse_price("0") is None
    assert parse_price("₹229 ₹289") == Decimal(229)
    assert parse_price(245.0) == Decimal("245.0")


def test_parse_pack_size():
    assert parse_pack_size("Tata Salt, 1kg") == "1kg"
    assert parse_pack_size("Amul Taaza Milk 500 ml") == "500 ml"
    assert parse_pack_size("Loose Onion") is None


def test_bigbasket_embedded_state():
    [c] = parse_candidates(Platform.BIGBASKET, BIGBASKET_STATE)
    assert c.name == "Pillsbury Chakki Fresh Atta"
    assert c.price == Decimal("229")
    assert c.pack_size == "5 kg"
    assert c.url == "https://www.bigbasket.com/pd/126906/pillsbury-chakki-fresh-atta-5-kg/"


def test_jiomart_html_cards():
    [c] = parse_candidates(Platform.JIOMART, JIOMART_CARDS)
    assert c.name == "Fortune Sunflower Refined Oil 1 l"
    assert c.price == Decimal("155")
    assert c.url == "https://www.jiomart.com/p/groceries/fortune-sunflower-oil-1-l/490000363"


def test_amazon_fresh_results():
    [c] = parse_candidates(Platform.AMAZON_FRESH, AMAZON_RESULT)
    assert c.name == "Tata Salt, 1kg"
    assert c.price == Decimal(27)
    assert c.pack_size == "1kg"
    assert c.url.startswith("https://www.amazon.in/Tata-Salt-Vacuum-Evaporated-Iodised/dp/")


def test_no_corpus():
    assert parse_candidates(Platform.JIOMART, None) == []
    assert parse_candidates(Platform.DMART, "<html></html>") == []


def test_search_url_quotes_query():
    assert search_url(Platform.BIGBASKET, "wheat flour") == "https://www.bigbasket.com/ps/?q=wheat+flour"


def test_fetch_error_becomes_runtime_error(monkeypatch):
    class _Resp:
        status_code = 403
        text = "denied"

    monkeypatch.setattr("rationcart.http.requests.request", lambda *a, **kw: _Resp())
    with pytest.raises(RuntimeError, match="403"):
        RetailerClient(retries=0).fetch_search_page(Platform.JIOMART, "rice")


def test_bigbasket_unpriced_product_does_not_borrow_next_price():
    page = (
        '{"products":['
        '{"desc":"Fortune Atta","w":"5 kg","absolute_url":"/pd/1/fortune-atta/","pricing":null},'
        '{"desc":"Aashirvaad Atta","w":"5 kg","absolute_url":"/pd/2/aashirvaad-atta/",'
        '"pricing":{"discount":{"prim_price":{"sp":"260"}}}}]}'
    )
    found = [(c.name, c.price) for c in parse_candidates(Platform.BIGBASKET, page)]
    assert found == [("Aashirvaad Atta", Decimal(260))]


def test_jiomart_product_with_nested_objects():
    page = (
        '{"items":[{"product_name":"Aashirvaad Atta","image":{"src":"a.jpg"},'
        '"url_path":"/p/atta","selling_price":240}]}'
    )
    [c] = parse_candidates(Platform.JIOMART, page)
    assert c.name == "Aashirvaad Atta"
    assert c.price == Decimal(240)
    assert c.url == "https://www.jiomart.com/p/atta"


def test_state_in_script_tag():
    page = (
        "<html><head>"
        '<script id="__NEXT_DATA__" type="application/json">'
        '{"props":{"products":[{"name":"DMart Toor Dal 1 kg","seo_token_ntk":"toor-dal-1kg",'
        '"sKUs":[{"priceSALE":"129.00","priceMRP":"160.00"}]}]}}'
        "</script><script>window.dataLayer = [];</script>"
        "</head><body></body></html>"
    )
    [c] = parse_candidates(Platform.DMART, page)
    assert c.name == "DMart Toor Dal 1 kg"
    assert c.price == Decimal("129")
    assert c.pack_size == "1 kg"
    assert c.url == "https://www.dmart.in/toor-dal-1kg"


def test_bigbasket_html_card():
    page = (
        '<ul><li><a href="/pd/40/tata-salt-1-kg/"><h3>Tata Salt</h3></a>'
        '<div class="Pricing___StyledDiv"><span>₹27</span><span>₹30</span></div></li></ul>'
    )
    [c] = parse_candidates(Platform.BIGBASKET, page)
    assert c.price == Decimal(27)
    assert c.url == "https://www.bigbasket.com/pd/40/tata-salt-1-kg/"
