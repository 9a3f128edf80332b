"""
OPTCG Price Lookup — HTTP Routes

Thin adapters from query parameters to sync/search calls:

    GET  /groups                      upstream set list
    GET  /search?q=<cardNumber>       exact card-number search
    GET  /search?name=<n>&set=<abbr>  name search in one set (auto-sync on empty)
    GET  /search?name=<n>             name search across all synced sets
    POST /sync?set=<abbr>             sync one set now

Errors are raised as CatalogError subclasses and rendered by the handlers
registered in main.create_app.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import structlog
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from optcg_prices.engine.search import (
    CardResult,
    search_by_card_number,
    search_by_name,
    search_by_name_global,
)
from optcg_prices.errors import InvalidRequestError, SetNotFoundError
from optcg_prices.pipeline.sync import SyncResult, sync_set
from optcg_prices.pipeline.tcgcsv import TcgCsvClient

logger = structlog.get_logger(__name__)

router = APIRouter()


class GroupSummary(BaseModel):
    groupId: int
    name: str
    abbreviation: str


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request from the app's session factory."""
    async with request.app.state.session_factory() as session:
        yield session


async def get_tcgcsv_client() -> AsyncGenerator[TcgCsvClient, None]:
    async with TcgCsvClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/groups", response_model=list[GroupSummary])
async def list_groups(client: TcgCsvClient = Depends(get_tcgcsv_client)) -> list[GroupSummary]:
    """Every set known upstream, trimmed to what the UI needs."""
    groups = await client.fetch_groups()
    return [
        GroupSummary(groupId=g.groupId, name=g.name, abbreviation=g.abbreviation)
        for g in groups
    ]


async def _search_set_with_auto_sync(
    session: AsyncSession,
    client: TcgCsvClient,
    name: str,
    set_abbreviation: str,
) -> list[CardResult]:
    """
    Scoped name search; on zero results, sync the set and search once more.

    A set that was never synced locally counts as zero results. Sync failures
    are logged and swallowed, and a set still unknown locally on the retry
    yields [] rather than an error.
    """
    try:
        results = await search_by_name(session, name, set_abbreviation)
    except SetNotFoundError:
        results = []

    if results:
        return results

    try:
        outcome = await sync_set(set_abbreviation, session, client)
        logger.info(
            "search_auto_sync_done",
            set=set_abbreviation,
            skipped=outcome.skipped,
        )
    except Exception as e:
        await session.rollback()
        logger.warning(
            "search_auto_sync_failed",
            set=set_abbreviation,
            error=str(e),
            error_type=type(e).__name__,
        )

    try:
        return await search_by_name(session, name, set_abbreviation)
    except SetNotFoundError:
        return []


@router.get("/search", response_model=list[CardResult])
async def search(
    q: str | None = Query(default=None, description="Card number, e.g. EB03-001"),
    name: str | None = Query(default=None, description="Card name substring"),
    set_abbreviation: str | None = Query(
        default=None, alias="set", description="Set abbreviation, e.g. EB03"
    ),
    session: AsyncSession = Depends(get_session),
    client: TcgCsvClient = Depends(get_tcgcsv_client),
) -> list[CardResult]:
    if q:
        return await search_by_card_number(session, q)

    if set_abbreviation is not None and not set_abbreviation.strip():
        raise InvalidRequestError("Blank ?set= param")

    if name and set_abbreviation:
        return await _search_set_with_auto_sync(session, client, name, set_abbreviation)

    if name:
        return await search_by_name_global(session, name)

    raise InvalidRequestError("Provide either ?q= or ?name= (optionally with ?set=)")


@router.post(
    "/sync",
    response_model=SyncResult,
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
async def trigger_sync(
    set_abbreviation: str | None = Query(
        default=None, alias="set", description="Set abbreviation, e.g. EB03"
    ),
    session: AsyncSession = Depends(get_session),
    client: TcgCsvClient = Depends(get_tcgcsv_client),
) -> SyncResult:
    if not set_abbreviation or not set_abbreviation.strip():
        raise InvalidRequestError("Missing ?set= param")

    return await sync_set(set_abbreviation, session, client)
