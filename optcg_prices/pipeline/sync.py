"""
OPTCG Price Lookup — Catalog Sync

Mirrors one set from tcgcsv into the local database:

1. Resolve the set abbreviation against the upstream group list.
2. Freshness gate: skip everything if the group was synced < SYNC_TTL_HOURS ago.
3. Fetch products, parse attributes (pipeline/parsing.py).
4. Upsert the group row and all product rows in batches; commit.
5. Fetch prices and append them to the prices table; commit.

Steps 4 and 5 are committed separately. A price failure after step 4 leaves
products refreshed and no new prices; the group's synced_at has already moved,
so the next sync inside the window is skipped.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from optcg_prices.config import settings
from optcg_prices.errors import SetNotFoundError, StoreWriteError
from optcg_prices.models.group import Group
from optcg_prices.models.price import Price
from optcg_prices.models.product import Product
from optcg_prices.pipeline.parsing import build_product_row
from optcg_prices.pipeline.tcgcsv import TcgCsvClient, TcgGroup, TcgPrice

logger = structlog.get_logger(__name__)


class SyncResult(BaseModel):
    """Outcome of one set sync. Serialized with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    skipped: bool
    group: str | None = None
    products_upserted: int | None = Field(default=None, alias="productsUpserted")
    prices_inserted: int | None = Field(default=None, alias="pricesInserted")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_fresh(synced_at: datetime | None, now: datetime, ttl: timedelta) -> bool:
    """True if a group synced at synced_at is still inside the TTL window."""
    if synced_at is None:
        return False
    return now - as_utc(synced_at) < ttl


def _upsert(
    session: AsyncSession,
    step: str,
    model: Any,
    key: str,
    rows: list[dict[str, Any]],
) -> list[Any]:
    """
    Build INSERT ... ON CONFLICT (key) DO UPDATE statements for the session's dialect.

    Rows are split into batches of SYNC_UPSERT_BATCH_SIZE, one statement each.
    Every non-key column is overwritten with the incoming value.

    Raises:
        StoreWriteError: the dialect has no ON CONFLICT upsert.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        insert_fn = postgresql.insert
    elif dialect == "sqlite":
        insert_fn = sqlite.insert
    else:
        raise StoreWriteError(step, f"upsert not supported for dialect {dialect!r}")

    batch_size = max(1, settings.SYNC_UPSERT_BATCH_SIZE)
    statements = []
    for start in range(0, len(rows), batch_size):
        stmt = insert_fn(model).values(rows[start:start + batch_size])
        update_cols = {
            col: stmt.excluded[col] for col in rows[0] if col != key
        }
        statements.append(stmt.on_conflict_do_update(index_elements=[key], set_=update_cols))
    return statements


def _price_row(price: TcgPrice, recorded_at: datetime) -> dict[str, Any]:
    return {
        "product_id": price.productId,
        "sub_type_name": price.subTypeName,
        "low_price": price.lowPrice,
        "mid_price": price.midPrice,
        "high_price": price.highPrice,
        "market_price": price.marketPrice,
        "recorded_at": recorded_at,
    }


async def _write(session: AsyncSession, step: str, *statements: Any, params: Any = None) -> None:
    """Execute statements and commit once; any failure rolls the whole step back."""
    try:
        for stmt in statements:
            if params is None:
                await session.execute(stmt)
            else:
                await session.execute(stmt, params)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("sync_store_write_failed", step=step, error=str(e))
        raise StoreWriteError(step, str(e)) from e


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def sync_set(
    abbreviation: str,
    session: AsyncSession,
    client: TcgCsvClient,
    now: datetime | None = None,
) -> SyncResult:
    """
    Sync one set's products and prices from tcgcsv.

    Args:
        abbreviation: Set code, matched case-insensitively (e.g., "eb03").
        session: Async database session.
        client: Open TcgCsvClient.
        now: Sync timestamp; defaults to the current UTC time.

    Returns:
        SyncResult(skipped=True) inside the freshness window, else the
        group name and row counts written.

    Raises:
        SetNotFoundError: no upstream group has this abbreviation.
        UpstreamFetchError: a tcgcsv request failed.
        StoreWriteError: a database write failed.
    """
    now = now or datetime.now(timezone.utc)
    log = logger.bind(abbreviation=abbreviation)

    group: TcgGroup | None = await client.find_group(abbreviation)
    if group is None:
        log.warning("sync_set_not_found")
        raise SetNotFoundError(abbreviation)

    synced_at = await session.scalar(
        select(Group.synced_at).where(Group.group_id == group.groupId)
    )
    ttl = timedelta(hours=settings.SYNC_TTL_HOURS)
    if is_fresh(synced_at, now, ttl):
        log.info("sync_skipped_fresh", group_id=group.groupId, synced_at=str(synced_at))
        return SyncResult(skipped=True)

    log.info("sync_started", group_id=group.groupId, group_name=group.name)

    products = await client.fetch_products(group.groupId)
    product_rows = [build_product_row(p, group.groupId, now) for p in products]

    group_row = {
        "group_id": group.groupId,
        "name": group.name,
        "abbreviation": group.abbreviation,
        "synced_at": now,
    }
    await _write(
        session,
        "Groups upsert",
        *_upsert(session, "Groups upsert", Group, "group_id", [group_row]),
    )

    if product_rows:
        await _write(
            session,
            "Products upsert",
            *_upsert(session, "Products upsert", Product, "product_id", product_rows),
        )

    prices = await client.fetch_prices(group.groupId)
    price_rows = [_price_row(p, now) for p in prices]

    if price_rows:
        # Append-only: a plain INSERT, never an upsert
        await _write(session, "Prices insert", insert(Price), params=price_rows)

    log.info(
        "sync_complete",
        group_id=group.groupId,
        products_upserted=len(product_rows),
        prices_inserted=len(price_rows),
    )
    return SyncResult(
        skipped=False,
        group=group.name,
        products_upserted=len(product_rows),
        prices_inserted=len(price_rows),
    )
