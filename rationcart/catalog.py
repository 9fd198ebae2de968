"""Static reference data: known brands per category and fallback price tables.

Prices are list prices in rupees as last seen on each platform. They back the
matcher whenever a live search page is unavailable or yields nothing usable.
"""
from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType

from .models import Platform


BRANDS_BY_CATEGORY: MappingProxyType = MappingProxyType({
    "wheat flour": ("aashirvaad", "pillsbury", "fortune", "annapurna", "patanjali", "nature fresh"),
    "rice": ("india gate", "daawat", "dawat", "kohinoor", "fortune", "lal qilla"),
    "sugar": ("dhampure", "madhur", "parry", "uttam", "more"),
    "oil": ("fortune", "saffola", "sundrop", "dhara", "gemini", "emami"),
    "lentils": ("tata sampann", "24 mantra", "organic tattva", "fortune"),
    "chickpea": ("tata sampann", "24 mantra", "organic tattva"),
    "salt": ("tata", "aashirvaad", "catch", "annapurna"),
    "milk": ("amul", "nandini", "mother dairy", "heritage", "akshayakalpa"),
    "ghee": ("amul", "gowardhan", "patanjali", "nandini"),
    "tea": ("tata tea", "red label", "taj mahal", "wagh bakri", "brooke bond"),
    "butter": ("amul", "britannia", "mother dairy"),
    "paneer": ("amul", "mother dairy", "milky mist"),
    "curd": ("amul", "mother dairy", "nandini", "milky mist"),
    "turmeric": ("everest", "mdh", "catch", "tata sampann"),
    "chilli powder": ("everest", "mdh", "catch", "aachi"),
    "soap": ("lux", "dettol", "lifebuoy", "santoor", "dove"),
})

KNOWN_BRANDS: frozenset[str] = frozenset(
    brand for brands in BRANDS_BY_CATEGORY.values() for brand in brands
)


def _row(name: str, price: int, pack: str, url: str) -> MappingProxyType:
    return MappingProxyType({"name": name, "price": Decimal(price), "pack": pack, "url": url})


FALLBACK_PRICES: MappingProxyType = MappingProxyType({
    Platform.JIOMART: MappingProxyType({
        "wheat flour": _row("Aashirvaad Atta", 240, "5kg", "https://jiomart.com/atta"),
        "rice": _row("India Gate Basmati Rice", 520, "10kg", "https://jiomart.com/rice"),
        "sugar": _row("Dhampure Sugar", 90, "2kg", "https://jiomart.com/sugar"),
        "oil": _row("Fortune Sunflower Oil", 180, "1L", "https://jiomart.com/oil"),
        "lentils": _row("Toor Dal", 120, "1kg", "https://jiomart.com/dal"),
        "chickpea": _row("Chana Dal", 100, "1kg", "https://jiomart.com/chana"),
        "onion": _row("Fresh Onions", 40, "2kg", "https://jiomart.com/onion"),
        "potato": _row("Fresh Potatoes", 35, "3kg", "https://jiomart.com/potato"),
        "tomato": _row("Fresh Tomatoes", 45, "1kg", "https://jiomart.com/tomato"),
        "milk": _row("Amul Milk", 60, "1L", "https://jiomart.com/milk"),
        "eggs": _row("Farm Fresh Eggs", 180, "30 pieces", "https://jiomart.com/eggs"),
        "salt": _row("Tata Salt", 28, "1kg", "https://jiomart.com/salt"),
        "ghee": _row("Amul Pure Ghee", 610, "1L", "https://jiomart.com/ghee"),
        "tea": _row("Tata Tea Premium", 260, "500g", "https://jiomart.com/tea"),
    }),
    Platform.BIGBASKET: MappingProxyType({
        "wheat flour": _row("Pillsbury Atta", 235, "5kg", "https://bigbasket.com/atta"),
        "rice": _row("Dawat Basmati Rice", 540, "10kg", "https://bigbasket.com/rice"),
        "sugar": _row("More Sugar", 95, "2kg", "https://bigbasket.com/sugar"),
        "oil": _row("Saffola Gold Oil", 185, "1L", "https://bigbasket.com/oil"),
        "lentils": _row("Organic Toor Dal", 130, "1kg", "https://bigbasket.com/dal"),
        "chickpea": _row("Organic Chana Dal", 95, "1kg", "https://bigbasket.com/chana"),
        "onion": _row("Farm Fresh Onions", 38, "2kg", "https://bigbasket.com/onion"),
        "potato": _row("Fresh Potatoes", 42, "3kg", "https://bigbasket.com/potato"),
        "tomato": _row("Organic Tomatoes", 55, "1kg", "https://bigbasket.com/tomato"),
        "milk": _row("Nandini Milk", 55, "1L", "https://bigbasket.com/milk"),
        "eggs": _row("Country Eggs", 190, "30 pieces", "https://bigbasket.com/eggs"),
        "salt": _row("Tata Salt", 27, "1kg", "https://bigbasket.com/salt"),
        "ghee": _row("Gowardhan Cow Ghee", 640, "1L", "https://bigbasket.com/ghee"),
        "tea": _row("Red Label Tea", 255, "500g", "https://bigbasket.com/tea"),
    }),
})

# Inclusive price range for items missing from the table above.
FALLBACK_PRICE_BUCKETS: MappingProxyType = MappingProxyType({
    Platform.JIOMART: (50, 249),
    Platform.BIGBASKET: (45, 244),
})

FALLBACK_BASE_URLS: MappingProxyType = MappingProxyType({
    Platform.JIOMART: "https://jiomart.com",
    Platform.BIGBASKET: "https://bigbasket.com",
})

FALLBACK_PACK_SIZE = "1kg"
