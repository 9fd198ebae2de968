from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from urllib.parse import quote_plus, urljoin

import requests
from bs4 import BeautifulSoup

from .http import HttpClient
from .models import Platform

logger = logging.getLogger(__name__)

# Desktop browser headers; the search pages serve an empty shell otherwise.
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-IN,en;q=0.9,hi;q=0.8",
}


@dataclass(frozen=True)
class Candidate:
    """A single product pulled out of a retailer search page."""

    name: str
    price: Decimal
    url: str | None = None
    pack_size: str | None = None    # e.g. "5 kg", from the card or the name


# A key path into decoded page state; ints index into lists.
KeyPath = tuple  # tuple[str | int, ...]


@dataclass(frozen=True)
class StateSpec:
    """Where product fields live inside a search page's JSON state.

    Any object carrying ``name_key`` is treated as a product. Each of the
    path tuples is tried in order and the first non-empty value wins.
    """

    name_key: str
    price_paths: tuple[KeyPath, ...]
    url_paths: tuple[KeyPath, ...] = ()
    pack_paths: tuple[KeyPath, ...] = ()


@dataclass(frozen=True)
class CardSpec:
    """CSS selectors for server-rendered product cards."""

    card: str
    name: str
    price: str
    link: str | None = None         # None: the card element itself is the link
    pack: str | None = None


@dataclass(frozen=True)
class RetailerSite:
    platform: Platform
    base_url: str
    search_path: str                # formatted with the quoted query
    state: StateSpec | None = None
    cards: CardSpec | None = None


SITES: MappingProxyType = MappingProxyType({
    Platform.JIOMART: RetailerSite(
        platform=Platform.JIOMART,
        base_url="https://www.jiomart.com",
        search_path="/search/{query}",
        state=StateSpec(
            name_key="product_name",
            price_paths=(("selling_price",), ("price", "selling_price")),
            url_paths=(("url_path",),),
        ),
        cards=CardSpec(
            card="a.plp-card-wrapper",
            name=".plp-card-details-name",
            price="span.jm-heading-xxs",
        ),
    ),
    Platform.BIGBASKET: RetailerSite(
        platform=Platform.BIGBASKET,
        base_url="https://www.bigbasket.com",
        search_path="/ps/?q={query}",
        state=StateSpec(
            name_key="desc",
            price_paths=(("pricing", "discount", "prim_price", "sp"), ("sp",)),
            url_paths=(("absolute_url",),),
            pack_paths=(("w",),),
        ),
        cards=CardSpec(
            card='li:has(a[href*="/pd/"])',
            name="h3",
            price='[class*="Pricing"] span, span[class*="price"]',
            link='a[href*="/pd/"]',
        ),
    ),
    Platform.DMART: RetailerSite(
        platform=Platform.DMART,
        base_url="https://www.dmart.in",
        search_path="/search?searchTerm={query}",
        state=StateSpec(
            name_key="name",
            price_paths=(("priceSALE",), ("sKUs", 0, "priceSALE")),
            url_paths=(("seo_token_ntk",),),
        ),
    ),
    Platform.AMAZON_FRESH: RetailerSite(
        platform=Platform.AMAZON_FRESH,
        base_url="https://www.amazon.in",
        search_path="/s?k={query}&i=nowstore",
        cards=CardSpec(
            card='div[data-component-type="s-search-result"]',
            name="span.a-size-base-plus.a-text-normal, h2 span",
            price="span.a-price-whole",
            link='a.a-link-normal[href*="/dp/"]',
        ),
    ),
})

_SIZE_RE = re.compile(
    r"(\d+(?:\.\d+)?\s*(?:kg|g|gm|ml|l|ltr|litre|pcs|pieces|pack|pc)\b(?:\s*x\s*\d+)?)",
    re.IGNORECASE,
)
_AMOUNT_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")


def parse_price(text: str | float | None) -> Decimal | None:
    """Parse '₹1,299.00', '240' or '180.5' into a Decimal.

    Only the first amount counts, so '₹229 ₹289' (sale, then MRP) is 229.
    """
    if text is None or isinstance(text, bool):
        return None
    m = _AMOUNT_RE.search(str(text))
    if not m:
        return None
    try:
        value = Decimal(m.group(0).replace(",", ""))
    except InvalidOperation:
        return None
    if value <= 0:
        return None
    return value


def parse_pack_size(name: str) -> str | None:
    m = _SIZE_RE.search(name)
    return m.group(1) if m else None


def parse_candidates(platform: Platform, corpus: str | None) -> list[Candidate]:
    """Extract every product a search page carries, in page order.

    The corpus may be a bare JSON API response or an HTML page. HTML is
    searched both for JSON state in script tags and for rendered cards.
    """
    if not corpus:
        return []

    site = SITES[platform]
    found: list[Candidate] = []

    states = []
    if corpus.lstrip()[:1] in ("{", "["):
        state = _load_json(corpus)
        if state is not None:
            states.append(state)

    if not states:
        soup = BeautifulSoup(corpus, "html.parser")
        for script in soup.find_all("script"):
            text = script.string or ""
            if text.lstrip()[:1] in ("{", "["):
                state = _load_json(text)
                if state is not None:
                    states.append(state)
        if site.cards is not None:
            found.extend(_candidates_from_cards(site, soup))

    if site.state is not None:
        state_found = [c for state in states for c in _candidates_from_state(site, state)]
        found = state_found + found

    candidates: list[Candidate] = []
    seen: set[tuple[str, Decimal]] = set()
    for c in found:
        key = (c.name.lower(), c.price)
        if key in seen:
            continue
        seen.add(key)
        candidates.append(c)
    return candidates


def _load_json(text: str):
    try:
        return json.loads(text)
    except ValueError:
        logger.debug("Ignoring undecodable JSON block (%d chars)", len(text))
        return None


def _iter_objects(node):
    if isinstance(node, dict):
        yield node
        for value in node.values():
            yield from _iter_objects(value)
    elif isinstance(node, list):
        for value in node:
            yield from _iter_objects(value)


def _dig(obj, path: KeyPath):
    for key in path:
        if isinstance(key, int):
            if not isinstance(obj, list) or key >= len(obj):
                return None
            obj = obj[key]
        else:
            if not isinstance(obj, dict):
                return None
            obj = obj.get(key)
    return obj


def _first(obj: dict, paths: tuple[KeyPath, ...]):
    for path in paths:
        value = _dig(obj, path)
        if value not in (None, ""):
            return value
    return None


def _candidates_from_state(site: RetailerSite, state) -> list[Candidate]:
    spec = site.state
    out: list[Candidate] = []
    for obj in _iter_objects(state):
        name = obj.get(spec.name_key)
        if not isinstance(name, str):
            continue
        price = parse_price(_first(obj, spec.price_paths))
        url = _first(obj, spec.url_paths)
        pack = _first(obj, spec.pack_paths)
        c = _candidate(
            site,
            name,
            price,
            url if isinstance(url, str) else None,
            pack if isinstance(pack, str) else None,
        )
        if c is not None:
            out.append(c)
    return out


def _candidates_from_cards(site: RetailerSite, soup: BeautifulSoup) -> list[Candidate]:
    spec = site.cards
    out: list[Candidate] = []
    for card in soup.select(spec.card):
        name_el = card.select_one(spec.name)
        price_el = card.select_one(spec.price)
        if name_el is None or price_el is None:
            continue

        link_el = card if spec.link is None else card.select_one(spec.link)
        url = link_el.get("href") if link_el is not None else None
        pack_el = card.select_one(spec.pack) if spec.pack else None

        c = _candidate(
            site,
            name_el.get_text(" ", strip=True),
            parse_price(price_el.get_text(" ", strip=True)),
            url,
            pack_el.get_text(" ", strip=True) if pack_el is not None else None,
        )
        if c is not None:
            out.append(c)
    return out


def _candidate(
    site: RetailerSite,
    name: str,
    price: Decimal | None,
    url: str | None,
    pack: str | None,
) -> Candidate | None:
    name = re.sub(r"\s{2,}", " ", name).strip()
    if not name or price is None:
        return None
    if url:
        url = urljoin(site.base_url + "/", url)
    return Candidate(name=name, price=price, url=url or None, pack_size=pack or parse_pack_size(name))


def search_url(platform: Platform, query: str) -> str:
    site = SITES[platform]
    return site.base_url + site.search_path.format(query=quote_plus(query))


class RetailerClient:
    """Fetches raw search pages; parsing lives in :func:`parse_candidates`."""

    def __init__(self, *, timeout_s: float = 15.0, retries: int = 2):
        self.timeout_s = timeout_s
        self.retries = retries

    def fetch_search_page(self, platform: Platform, query: str) -> str:
        site = SITES[platform]
        http = HttpClient(
            base_url=site.base_url,
            headers=DEFAULT_HEADERS,
            timeout_s=self.timeout_s,
            retries=self.retries,
        )
        path = site.search_path.format(query=quote_plus(query))
        try:
            resp = http.get(path)
        except requests.RequestException as exc:
            raise RuntimeError(f"{platform.label} search failed for {query!r}: {exc}") from exc

        if resp.status_code >= 400:
            raise RuntimeError(f"{platform.label} search error {resp.status_code} for {query!r}")
        return resp.text

    __call__ = fetch_search_page
