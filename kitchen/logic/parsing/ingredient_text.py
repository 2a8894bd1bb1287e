"""Free-text ingredient parsing.

"2 cups flour", "Bloemkool 600 g", "Ui 1", "3 eggs" and "Peper" are all
understood. Each line is tried against an ordered list of patterns and the
first one that matches wins, so the later, looser patterns only see lines the
stricter ones rejected.
"""
import logging
import re
from typing import Callable, Iterable, List, Optional, Tuple

from kitchen.utilities.constants import DESCRIPTOR_WORDS, NAME_PREFIXES, UNIT_ALIASES

logger = logging.getLogger(__name__)

LINE_SEPARATORS = re.compile(r"[,\n\r;]")
_UNIT = "|".join(sorted((re.escape(u) for u in UNIT_ALIASES), key=len, reverse=True))
_QTY = r"\d+(?:\.\d+)?"

QUANTITY_UNIT_NAME = re.compile(rf"^({_QTY})\s*({_UNIT})\s+(.+)$", re.IGNORECASE)
NAME_QUANTITY_UNIT = re.compile(rf"^(.+?)\s+({_QTY})\s*({_UNIT})$", re.IGNORECASE)
NAME_QUANTITY = re.compile(rf"^(.+?)\s+({_QTY})$")
QUANTITY_NAME = re.compile(rf"^({_QTY})\s*(.+)$")
NAME_ONLY = re.compile(r"^([A-Za-zÀ-ſ\s,-]+)$")

_PREFIX = re.compile(rf"^(?:{'|'.join(NAME_PREFIXES)})\s+", re.IGNORECASE)
_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_DESCRIPTORS = re.compile(rf"\b(?:{'|'.join(DESCRIPTOR_WORDS)})\b")


def normalize_unit(unit: str) -> str:
    lowered = unit.lower()
    return UNIT_ALIASES.get(lowered, lowered)


# (pattern, extractor) pairs in priority order; extractors return (quantity, unit, name)
PATTERNS: List[Tuple[re.Pattern, Callable[[re.Match], Tuple[float, str, str]]]] = [
    (QUANTITY_UNIT_NAME, lambda m: (float(m.group(1)), normalize_unit(m.group(2)), m.group(3))),
    (NAME_QUANTITY_UNIT, lambda m: (float(m.group(2)), normalize_unit(m.group(3)), m.group(1))),
    (NAME_QUANTITY, lambda m: (float(m.group(2)), "pcs", m.group(1))),
    (QUANTITY_NAME, lambda m: (float(m.group(1)), "pcs", m.group(2))),
    (NAME_ONLY, lambda m: (1.0, "pinch", m.group(1))),
]


def clean_product_name(name: str) -> str:
    name = _PREFIX.sub("", name.strip())
    return _PARENTHETICAL.sub("", name).strip()


def _number(value: float):
    return int(value) if value.is_integer() else value


def parse_ingredient_line(line: str) -> Optional[dict]:
    '''Parse one line into {quantity, unit, productName}; None when nothing usable matches.'''
    line = line.strip()
    for pattern, extract in PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        quantity, unit, name = extract(match)
        name = clean_product_name(name)
        if name and quantity > 0:
            return {"quantity": _number(quantity), "unit": unit, "productName": name}
        return None
    return None


def split_lines(text: str) -> List[str]:
    return [part.strip() for part in LINE_SEPARATORS.split(text or "") if part.strip()]


def parse_ingredients_text(text: str) -> List[dict]:
    parsed = []
    for line in split_lines(text):
        result = parse_ingredient_line(line)
        if result:
            parsed.append(result)
        else:
            logger.debug(f"Could not parse ingredient line: {line!r}")
    return parsed


def match_product(name: str, products: Iterable):
    """Best product for an ingredient name.

    Tries exact (case-insensitive) equality, then product-name-contains-term,
    then term-contains-product-name, then both containment checks again with
    descriptor words such as "fresh" or "gehakt" removed.
    """
    products = list(products)
    term = (name or "").strip().lower()
    if not term:
        return None
    for product in products:
        if product.name.lower() == term:
            return product
    for product in products:
        if term in product.name.lower():
            return product
    for product in products:
        if product.name and product.name.lower() in term:
            return product
    cleaned = re.sub(r"\s+", " ", _DESCRIPTORS.sub("", term)).strip()
    if cleaned and cleaned != term:
        for product in products:
            lowered = product.name.lower()
            if cleaned in lowered or (lowered and lowered in cleaned):
                return product
    return None


def resolve_ingredients(text: str, products: Iterable) -> dict:
    """Parse `text` and match every line to a product; unmatched lines are reported, never created."""
    products = list(products)
    matched, skipped = [], []
    seen = set()
    for parsed in parse_ingredients_text(text):
        product = match_product(parsed["productName"], products)
        if product is None:
            skipped.append({**parsed, "reason": "No matching product"})
            continue
        if product.id in seen:
            skipped.append({**parsed, "reason": f"Product '{product.name}' already listed"})
            continue
        seen.add(product.id)
        matched.append({**parsed, "productId": product.id, "matchedName": product.name})
    return {"matched": matched, "skipped": skipped}
