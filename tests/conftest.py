"""
OPTCG Price Lookup — Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- In-memory SQLite database built from the ORM metadata (aiosqlite)
- Canned tcgcsv payloads for one set (EB03)
- respx router intercepting every tcgcsv call
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Iterator

import httpx
import pytest
import respx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from optcg_prices.config import settings
from optcg_prices.models.base import Base


TCGCSV_URL = settings.tcgcsv_category_url
EB03_GROUP_ID = 23890
OP01_GROUP_ID = 3188


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for anyio tests."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory over a fresh in-memory SQLite database.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# tcgcsv Payloads
# ---------------------------------------------------------------------------


def _ext(**values: str) -> list[dict[str, str]]:
    return [{"name": k, "displayName": k, "value": v} for k, v in values.items()]


@pytest.fixture
def groups_payload() -> dict[str, Any]:
    return {
        "success": True,
        "results": [
            {"groupId": OP01_GROUP_ID, "name": "Romance Dawn", "abbreviation": "OP01"},
            {
                "groupId": EB03_GROUP_ID,
                "name": "Extra Booster: One Piece Heroines Edition",
                "abbreviation": "EB03",
            },
            {"groupId": 17675, "name": "One Piece Promotion Cards", "abbreviation": None},
        ],
    }


@pytest.fixture
def products_payload() -> dict[str, Any]:
    return {
        "success": True,
        "results": [
            {
                "productId": 600001,
                "name": "Nefeltari Vivi",
                "cleanName": "Nefeltari Vivi",
                "imageUrl": "https://tcgplayer-cdn.tcgplayer.com/product/600001_200w.jpg",
                "url": "https://www.tcgplayer.com/product/600001",
                "extendedData": _ext(
                    Number="EB03-001",
                    Rarity="L",
                    CardType="Leader",
                    Color="Blue;Purple",
                    Life="4",
                    Power="5000",
                    Attribute="Wisdom",
                    Subtypes="Alabasta; Straw Hat Crew",
                    Description=(
                        "[Activate: Main] [Once Per Turn] Draw 1 card. "
                        "[DON!! x1] [Your Turn] This Leader gains +1000 power."
                    ),
                ),
            },
            {
                "productId": 600002,
                "name": "Nefeltari Vivi (Alternate Art)",
                "cleanName": "Nefeltari Vivi Alternate Art",
                "imageUrl": "https://tcgplayer-cdn.tcgplayer.com/product/600002_200w.jpg",
                "url": "https://www.tcgplayer.com/product/600002",
                "extendedData": _ext(
                    Number="EB03-001",
                    Rarity="L",
                    CardType="Leader",
                    Color="Blue;Purple",
                    Life="4",
                    Power="5000",
                ),
            },
            {
                "productId": 600010,
                "name": "Nami",
                "cleanName": "Nami",
                "imageUrl": None,
                "url": "https://www.tcgplayer.com/product/600010",
                "extendedData": _ext(
                    Number="EB03-010",
                    Rarity="SR",
                    CardType="Character",
                    Color="Green",
                    Cost="2",
                    Power="3000",
                    Counterplus="1000",
                    Description="[On Play] Draw 1 card. [Trigger] Play this card.",
                ),
            },
        ],
    }


@pytest.fixture
def prices_payload() -> dict[str, Any]:
    return {
        "success": True,
        "results": [
            {
                "productId": 600001,
                "subTypeName": "Normal",
                "lowPrice": 0.9,
                "midPrice": 1.25,
                "highPrice": 4.99,
                "marketPrice": 1.5,
            },
            {
                "productId": 600002,
                "subTypeName": "Foil",
                "lowPrice": 20.0,
                "midPrice": 24.5,
                "highPrice": 40.0,
                "marketPrice": 25.0,
            },
            {
                "productId": 600010,
                "subTypeName": "Normal",
                "lowPrice": 0.1,
                "midPrice": 0.2,
                "highPrice": None,
                "marketPrice": 0.25,
            },
            {
                "productId": 600010,
                "subTypeName": "Foil",
                "lowPrice": 0.5,
                "midPrice": 0.7,
                "highPrice": 1.5,
                "marketPrice": 0.8,
            },
        ],
    }


# ---------------------------------------------------------------------------
# HTTP Mock
# ---------------------------------------------------------------------------


@pytest.fixture
def tcgcsv_mock(
    groups_payload: dict[str, Any],
    products_payload: dict[str, Any],
    prices_payload: dict[str, Any],
) -> Iterator[respx.MockRouter]:
    """
    respx router serving the EB03 payloads.

    Routes are named "groups", "products" and "prices" so tests can check
    call counts or swap in failure responses.
    """
    with respx.mock(base_url=TCGCSV_URL, assert_all_called=False) as mock:
        mock.get("/groups", name="groups").mock(
            return_value=httpx.Response(200, json=groups_payload)
        )
        mock.get(f"/{EB03_GROUP_ID}/products", name="products").mock(
            return_value=httpx.Response(200, json=products_payload)
        )
        mock.get(f"/{EB03_GROUP_ID}/prices", name="prices").mock(
            return_value=httpx.Response(200, json=prices_payload)
        )
        yield mock
