"""
OPTCG Price Lookup — Card Attribute Parsing

tcgcsv ships card attributes as a free-form extendedData list of
{name, displayName, value} entries. This module flattens that list and
derives the typed columns of the products table from it.

Upstream keys used:
    Number, CardType, Color, Rarity, Cost, Power, Life, Attribute,
    Subtypes, Counterplus, Description
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from optcg_prices.config import settings
from optcg_prices.pipeline.tcgcsv import ExtendedDataItem, TcgProduct

_BRACKET_RE = re.compile(r"\[([^\]]+)\]")
_DON_TAG_RE = re.compile(r"^DON!! x\d+$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

ALT_ART_MARKER = "(Alternate Art)"
MANGA_MARKER = "(Manga)"
SP_MARKER = "(SP)"


def parse_extended_data(items: Iterable[ExtendedDataItem]) -> dict[str, str]:
    """Flatten extendedData into a name -> value mapping. Later duplicates win."""
    return {item.name: item.value for item in items}


def split_list(value: str | None) -> list[str]:
    """
    Split a ';'-separated attribute into trimmed, non-empty parts.

    Examples:
        >>> split_list("Red;Blue; Green ")
        ['Red', 'Blue', 'Green']
        >>> split_list(None)
        []
    """
    if not value:
        return []
    return [part.strip() for part in value.split(";") if part.strip()]


def safe_int(value: str | None) -> int | None:
    """
    Parse the leading integer of an attribute value, or None.

    Trailing text is ignored ("5000+" -> 5000); a value that does not start
    with digits ("abc", "-", "") yields None.
    """
    if not value:
        return None
    match = _LEADING_INT_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


def extract_tags(description: str | None) -> list[str]:
    """
    Collect gameplay keywords written as [Keyword] in a card description.

    Only keywords in settings.GAMEPLAY_TAGS and "DON!! x<n>" are kept.
    Order of first appearance is preserved; duplicates are dropped.
    """
    if not description:
        return []

    found: list[str] = []
    for match in _BRACKET_RE.finditer(description):
        tag = match.group(1)
        if tag in found:
            continue
        if tag in settings.GAMEPLAY_TAGS or _DON_TAG_RE.match(tag):
            found.append(tag)
    return found


def name_flags(name: str) -> dict[str, bool]:
    """Printing-variant flags read off the product name."""
    return {
        "is_alt_art": ALT_ART_MARKER in name,
        "is_manga": MANGA_MARKER in name,
        "is_sp": SP_MARKER in name,
    }


def build_product_row(
    product: TcgProduct,
    group_id: int,
    synced_at: datetime,
) -> dict[str, Any]:
    """Map one upstream product onto a products-table row."""
    ext = parse_extended_data(product.extendedData)

    return {
        "product_id": product.productId,
        "group_id": group_id,
        "name": product.name,
        "clean_name": product.cleanName,
        "image_url": product.imageUrl,
        "url": product.url,
        "card_number": ext.get("Number"),
        "card_type": ext.get("CardType"),
        "colors": split_list(ext.get("Color")),
        "rarity": ext.get("Rarity"),
        "cost": safe_int(ext.get("Cost")),
        "power": safe_int(ext.get("Power")),
        "life": safe_int(ext.get("Life")),
        "attribute": ext.get("Attribute"),
        "subtypes": split_list(ext.get("Subtypes")),
        "counter_plus": safe_int(ext.get("Counterplus")),
        "description": ext.get("Description"),
        "tags": extract_tags(ext.get("Description")),
        **name_flags(product.name),
        "synced_at": synced_at,
    }
