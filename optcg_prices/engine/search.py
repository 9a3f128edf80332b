"""
OPTCG Price Lookup — Card Search

Three read-only queries over the mirrored products table:

- search_by_card_number: exact collector number, case-insensitive ("eb03-001")
- search_by_name: name substring within one set (set resolved locally)
- search_by_name_global: name substring across every synced set

Each result carries its latest prices, one per sub-type
(engine/latest_prices.py).
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from optcg_prices.engine.latest_prices import select_latest_prices
from optcg_prices.errors import SetNotFoundError
from optcg_prices.models.group import Group
from optcg_prices.models.price import Price
from optcg_prices.models.product import Product

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Result Models
# ---------------------------------------------------------------------------


class PriceResult(BaseModel):
    """Latest snapshot of one pricing sub-type."""

    model_config = ConfigDict(from_attributes=True)

    sub_type_name: str
    market_price: Decimal | None = None
    low_price: Decimal | None = None
    mid_price: Decimal | None = None
    high_price: Decimal | None = None
    recorded_at: datetime

    @field_serializer("market_price", "low_price", "mid_price", "high_price")
    def _money_as_number(self, v: Decimal | None) -> float | None:
        # JSON clients expect numbers, not Decimal strings
        return None if v is None else float(v)


class CardResult(BaseModel):
    """A card as returned by search, with its latest prices attached."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    card_number: str | None = None
    card_type: str | None = None
    colors: list[str] = Field(default_factory=list)
    rarity: str | None = None
    cost: int | None = None
    power: int | None = None
    counter_plus: int | None = None
    tags: list[str] = Field(default_factory=list)
    is_alt_art: bool = False
    is_manga: bool = False
    is_sp: bool = False
    url: str | None = None
    image_url: str | None = None
    prices: list[PriceResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Price attachment
# ---------------------------------------------------------------------------


async def get_latest_prices(
    session: AsyncSession,
    product_ids: Sequence[int],
) -> dict[int, list[Price]]:
    """Fetch all price rows for product_ids in one query, keep the latest per sub-type."""
    if not product_ids:
        return {}

    result = await session.scalars(
        select(Price)
        .where(Price.product_id.in_(product_ids))
        .order_by(Price.recorded_at.desc(), Price.id.desc())
    )
    return select_latest_prices(result.all())


async def attach_prices(
    session: AsyncSession,
    products: Sequence[Product],
) -> list[CardResult]:
    """Convert product rows to CardResults with their latest prices."""
    price_map = await get_latest_prices(session, [p.product_id for p in products])

    cards: list[CardResult] = []
    for product in products:
        card = CardResult.model_validate(product)
        card.prices = [
            PriceResult.model_validate(row)
            for row in price_map.get(product.product_id, [])
        ]
        cards.append(card)
    return cards


async def _run(session: AsyncSession, stmt: Select) -> list[CardResult]:
    result = await session.scalars(stmt.order_by(Product.card_number, Product.product_id))
    products = result.all()
    if not products:
        return []
    return await attach_prices(session, products)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def search_by_card_number(session: AsyncSession, card_number: str) -> list[CardResult]:
    """Cards whose collector number equals card_number, ignoring case."""
    stmt = select(Product).where(
        func.lower(Product.card_number) == card_number.strip().lower()
    )
    cards = await _run(session, stmt)
    logger.info("search_by_card_number", card_number=card_number, results_count=len(cards))
    return cards


async def find_local_group_id(session: AsyncSession, abbreviation: str) -> int:
    """
    Resolve a set abbreviation against the locally mirrored groups.

    Raises:
        SetNotFoundError: the set has never been synced.
    """
    group_id = await session.scalar(
        select(Group.group_id)
        .where(func.lower(Group.abbreviation) == abbreviation.strip().lower())
        .limit(1)
    )
    if group_id is None:
        raise SetNotFoundError(abbreviation)
    return group_id


async def search_by_name(
    session: AsyncSession,
    name: str,
    set_abbreviation: str,
) -> list[CardResult]:
    """
    Cards in one set whose name contains name, ignoring case.

    Raises:
        SetNotFoundError: set_abbreviation is not in the local groups table.
    """
    group_id = await find_local_group_id(session, set_abbreviation)

    stmt = select(Product).where(
        Product.group_id == group_id,
        Product.name.icontains(name, autoescape=True),
    )
    cards = await _run(session, stmt)
    logger.info(
        "search_by_name",
        name=name,
        set=set_abbreviation,
        group_id=group_id,
        results_count=len(cards),
    )
    return cards


async def search_by_name_global(session: AsyncSession, name: str) -> list[CardResult]:
    """Cards in any synced set whose name contains name, ignoring case."""
    stmt = select(Product).where(Product.name.icontains(name, autoescape=True))
    cards = await _run(session, stmt)
    logger.info("search_by_name_global", name=name, results_count=len(cards))
    return cards
