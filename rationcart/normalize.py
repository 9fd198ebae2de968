from __future__ import annotations

import logging
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from types import MappingProxyType

from .models import ExtractedItem

logger = logging.getLogger(__name__)


# Bilingual term -> canonical category. Order matters: the first key found in
# the phrase wins (Latin keys as whole words), so multi-word and more specific
# terms come before the generic ones they contain ("besan" before "chana",
# "toor dal" before "dal").
TERM_CATEGORIES: MappingProxyType = MappingProxyType({
    # Devanagari
    "गेहूं का आटा": "wheat flour",
    "आटा": "wheat flour",
    "मैदा": "refined flour",
    "बेसन": "gram flour",
    "सूजी": "semolina",
    "बासमती": "rice",
    "चावल": "rice",
    "चीनी": "sugar",
    "शक्कर": "sugar",
    "गुड़": "jaggery",
    "चना": "chickpea",
    "अरहर": "lentils",
    "तूर": "lentils",
    "मूंग": "lentils",
    "दाल": "lentils",
    "सरसों का तेल": "oil",
    "घी": "ghee",
    "तेल": "oil",
    "नमक": "salt",
    "हल्दी": "turmeric",
    "मिर्च": "chilli powder",
    "जीरा": "cumin",
    "चाय": "tea",
    "प्याज": "onion",
    "आलू": "potato",
    "टमाटर": "tomato",
    "दूध": "milk",
    "दही": "curd",
    "पनीर": "paneer",
    "मक्खन": "butter",
    "अंडा": "eggs",
    "अंडे": "eggs",
    "मांस": "meat",
    "मछली": "fish",
    "साबुन": "soap",
    "सब्जी": "vegetables",
    "फल": "fruits",
    # Latin script / Hinglish
    "wheat flour": "wheat flour",
    "atta": "wheat flour",
    "aata": "wheat flour",
    "maida": "refined flour",
    "besan": "gram flour",
    "sooji": "semolina",
    "suji": "semolina",
    "basmati": "rice",
    "chawal": "rice",
    "rice": "rice",
    "sugar": "sugar",
    "cheeni": "sugar",
    "jaggery": "jaggery",
    "gur": "jaggery",
    "chana": "chickpea",
    "chickpea": "chickpea",
    "toor dal": "lentils",
    "arhar": "lentils",
    "moong": "lentils",
    "dal": "lentils",
    "daal": "lentils",
    "lentil": "lentils",
    "ghee": "ghee",
    "oil": "oil",
    "tel": "oil",
    "salt": "salt",
    "namak": "salt",
    "haldi": "turmeric",
    "turmeric": "turmeric",
    "mirch": "chilli powder",
    "chilli": "chilli powder",
    "jeera": "cumin",
    "cumin": "cumin",
    "chai": "tea",
    "tea": "tea",
    "onion": "onion",
    "pyaz": "onion",
    "potato": "potato",
    "aloo": "potato",
    "tomato": "tomato",
    "tamatar": "tomato",
    "milk": "milk",
    "doodh": "milk",
    "curd": "curd",
    "dahi": "curd",
    "paneer": "paneer",
    "butter": "butter",
    "egg": "eggs",
    "anda": "eggs",
    "meat": "meat",
    "fish": "fish",
    "soap": "soap",
    "vegetable": "vegetables",
    "sabzi": "vegetables",
    "fruit": "fruits",
})


UNIT_ALIASES: MappingProxyType = MappingProxyType({
    "kg": "kg",
    "kgs": "kg",
    "kilo": "kg",
    "kilos": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "किलो": "kg",
    "किग्रा": "kg",
    "कग": "kg",
    "केजी": "kg",
    "g": "g",
    "gm": "g",
    "gms": "g",
    "gram": "g",
    "grams": "g",
    "ग्राम": "g",
    "l": "ltr",
    "ltr": "ltr",
    "litre": "ltr",
    "litres": "ltr",
    "liter": "ltr",
    "liters": "ltr",
    "लीटर": "ltr",
    "लिटर": "ltr",
    "ml": "ml",
    "मिली": "ml",
    "pack": "pack",
    "packs": "pack",
    "packet": "pack",
    "packets": "pack",
    "pkt": "pack",
    "पैक": "pack",
    "पैकेट": "pack",
    "bottle": "bottle",
    "bottles": "bottle",
    "बोतल": "bottle",
})

DEFAULT_QUANTITY = "1"
DEFAULT_UNIT = "pack"

_DEVANAGARI_DIGITS = str.maketrans("०१२३४५६७८९", "0123456789")

# A unit word must end at whitespace, punctuation or end of line. \b is not
# usable here: Devanagari vowel signs are not \w in Python's re.
_UNIT_END = r"(?=$|[\s,.;:()/\-])"

_NUMBER = r"(\d+(?:[.,]\d+)?)"

_QTY_UNIT_RE = re.compile(
    _NUMBER
    + r"\s*("
    + "|".join(re.escape(u) for u in sorted(UNIT_ALIASES, key=len, reverse=True))
    + r")"
    + _UNIT_END,
    re.IGNORECASE,
)

_BARE_NUMBER_RE = re.compile(r"(?:^|(?<=\s))" + _NUMBER + r"(?=$|\s)")

_DIGITS_ONLY_RE = re.compile(r"^\d+$")


def parse_quantity_token(tok: str) -> Decimal | None:
    """Parse '5', '2.5', '2,5' or Devanagari '५' into a Decimal."""
    tok = tok.strip().translate(_DEVANAGARI_DIGITS).replace(",", ".")
    if not tok:
        return None
    try:
        return Decimal(tok)
    except InvalidOperation:
        return None


def _format_quantity(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), "f")


def parse_quantity_unit(line: str) -> tuple[str | None, str | None, str]:
    """Pull one "number + unit" token out of *line*.

    Returns ``(quantity, unit, remaining_text)``. Quantity and unit are None
    when the line carries no number at all. A number without a known unit
    word keeps the default unit. Millilitres are reported as litres.
    """
    m = _QTY_UNIT_RE.search(line)
    if m:
        qty = parse_quantity_token(m.group(1))
        unit = UNIT_ALIASES[m.group(2).lower()]
        rest = (line[: m.start()] + " " + line[m.end():]).strip()
        if qty is None:
            return None, None, line
        if unit == "ml":
            qty, unit = qty / 1000, "ltr"
        return _format_quantity(qty), unit, _collapse(rest)

    m = _BARE_NUMBER_RE.search(line)
    if m:
        qty = parse_quantity_token(m.group(1))
        if qty is not None:
            rest = (line[: m.start()] + " " + line[m.end():]).strip()
            return _format_quantity(qty), None, _collapse(rest)

    return None, None, line


def _collapse(s: str) -> str:
    return re.sub(r"\s{2,}", " ", s).strip()


def _strip_punctuation(s: str) -> str:
    # Unicode-aware: drops P* and S* categories, keeps Devanagari vowel signs.
    kept = "".join(
        ch for ch in s if not unicodedata.category(ch).startswith(("P", "S"))
    )
    return _collapse(kept)


def _term_matcher(term: str):
    # Latin keys must stand alone ("gur" is not in "yogurt"); Devanagari keys
    # match as substrings since vowel signs break \w boundaries.
    if term.isascii():
        pattern = re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)")
        return lambda phrase: pattern.search(phrase) is not None
    return lambda phrase: term in phrase


_TERM_MATCHERS = tuple(
    (category, _term_matcher(term)) for term, category in TERM_CATEGORIES.items()
)


def _word_matches(term: str, word: str) -> bool:
    if term.isascii():
        # Inflections and truncations only: "dalein", "toma".
        return word.startswith(term) or (len(word) >= 3 and term.startswith(word))
    return term in word or (len(word) >= 3 and word in term)


def normalize_name(phrase: str) -> str:
    phrase = phrase.strip().lower()
    if not phrase:
        return ""

    for category, matches in _TERM_MATCHERS:
        if matches(phrase):
            return category

    # Per-word fallback catches misspellings and inflections ("dalein", "eggs").
    for word in _strip_punctuation(phrase).split():
        if len(word) < 2:
            continue
        for term, category in TERM_CATEGORIES.items():
            if _word_matches(term, word):
                return category

    return _strip_punctuation(phrase)


def normalize_line(line: str) -> ExtractedItem | None:
    raw = line.strip()
    text = raw.lower()
    if len(text) < 2 or _DIGITS_ONLY_RE.match(text):
        return None

    quantity, unit, item_text = parse_quantity_unit(text)
    name = normalize_name(item_text)
    if not name:
        return None

    return ExtractedItem(
        raw_text=raw,
        quantity=quantity or DEFAULT_QUANTITY,
        unit=unit or DEFAULT_UNIT,
        normalized_name=name,
    )


def extract_items(text: str | None) -> list[ExtractedItem]:
    """Turn an OCR text block (one item per line) into extracted items."""
    if not text:
        return []

    items: list[ExtractedItem] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            item = normalize_line(line)
        except Exception:
            logger.exception("Could not normalize OCR line %r", line)
            continue
        if item is not None:
            items.append(item)
    return items
