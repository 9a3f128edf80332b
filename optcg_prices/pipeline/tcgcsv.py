"""
OPTCG Price Lookup — tcgcsv.com API Client

Read-only JSON source for the TCGplayer One Piece catalog. Three endpoints,
each returning {"results": [...]}:

    GET /{category}/groups               — every released set
    GET /{category}/{groupId}/products   — cards in a set, with extendedData
    GET /{category}/{groupId}/prices     — current prices per sub-type

This module handles only fetching and response validation. Parsing cards
into rows is in pipeline/parsing.py; writing them is in pipeline/sync.py.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from optcg_prices.config import settings
from optcg_prices.errors import UpstreamFetchError

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Pydantic Response Models
# ---------------------------------------------------------------------------


class TcgGroup(BaseModel):
    """A set as listed by tcgcsv."""

    groupId: int = Field(..., description="Upstream group id")
    name: str = Field(..., description="Set name")
    abbreviation: str = Field(default="", description="Set code (e.g., 'EB03')")

    @field_validator("abbreviation", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        # Some promo groups ship without an abbreviation
        return "" if v is None else str(v)


class ExtendedDataItem(BaseModel):
    """One key-value attribute from a product's extendedData list."""

    name: str
    displayName: str = ""
    value: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)


class TcgProduct(BaseModel):
    """A card listing from tcgcsv."""

    productId: int
    name: str
    cleanName: str | None = None
    imageUrl: str | None = None
    url: str | None = None
    extendedData: list[ExtendedDataItem] = Field(default_factory=list)


class TcgPrice(BaseModel):
    """Current price figures for one sub-type of a product."""

    productId: int
    subTypeName: str
    lowPrice: Decimal | None = None
    midPrice: Decimal | None = None
    highPrice: Decimal | None = None
    marketPrice: Decimal | None = None

    @field_validator("lowPrice", "midPrice", "highPrice", "marketPrice", mode="before")
    @classmethod
    def parse_decimal(cls, v: Any) -> Decimal | None:
        """Safely convert price values to Decimal. Never use float for money."""
        if v is None or v == "":
            return None
        try:
            return Decimal(str(v))
        except (InvalidOperation, ValueError):
            return None


class GroupListResponse(BaseModel):
    results: list[TcgGroup] = Field(default_factory=list)


class ProductListResponse(BaseModel):
    results: list[TcgProduct] = Field(default_factory=list)


class PriceListResponse(BaseModel):
    results: list[TcgPrice] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# API Client
# ---------------------------------------------------------------------------


class TcgCsvClient:
    """
    Async client for the tcgcsv.com TCGplayer mirror.

    Usage:
        async with TcgCsvClient() as client:
            groups = await client.fetch_groups()
            products = await client.fetch_products(groups[0].groupId)
    """

    def __init__(
        self,
        base_url: str | None = None,
        max_retries: int | None = None,
        base_backoff: float | None = None,
        timeout: float | None = None,
    ):
        self._base_url = base_url or settings.tcgcsv_category_url
        self._max_retries = (
            settings.TCGCSV_MAX_RETRIES if max_retries is None else max_retries
        )
        self._base_backoff = (
            settings.TCGCSV_BASE_BACKOFF_SECONDS if base_backoff is None else base_backoff
        )
        self._timeout = timeout or settings.TCGCSV_TIMEOUT_SECONDS
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TcgCsvClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    async def _request(self, path: str) -> dict[str, Any]:
        """
        GET a tcgcsv path and return the decoded JSON body.

        Retries 429/5xx/transport errors with exponential backoff when
        max_retries > 0. Any failure that survives the retry budget is
        raised as UpstreamFetchError.
        """
        assert self._client is not None, "Client not initialized. Use 'async with'."

        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            try:
                response = await self._client.get(path)

                if response.status_code == 429 and attempt < self._max_retries:
                    wait_time = self._base_backoff * (2 ** attempt)
                    logger.warning(
                        "tcgcsv_rate_limited",
                        attempt=attempt + 1,
                        wait_seconds=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                    continue

                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                last_error = e
                logger.error(
                    "tcgcsv_http_error",
                    status_code=e.response.status_code,
                    attempt=attempt + 1,
                    path=path,
                )
                if e.response.status_code >= 500 and attempt < self._max_retries:
                    await asyncio.sleep(self._base_backoff * (2 ** attempt))
                    continue
                raise UpstreamFetchError(path, f"HTTP {e.response.status_code}") from e

            except httpx.RequestError as e:
                last_error = e
                logger.error(
                    "tcgcsv_request_error",
                    error=str(e),
                    attempt=attempt + 1,
                    path=path,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(self._base_backoff * (2 ** attempt))
                    continue
                raise UpstreamFetchError(path, str(e) or type(e).__name__) from e

            except ValueError as e:
                # Body was not JSON
                raise UpstreamFetchError(path, "invalid JSON body") from e

        raise UpstreamFetchError(
            path, f"gave up after {self._max_retries + 1} attempts"
        ) from last_error

    @staticmethod
    def _validate(model: type[BaseModel], data: Any, path: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("tcgcsv_invalid_payload", path=path, errors=e.error_count())
            raise UpstreamFetchError(path, "unexpected payload shape") from e

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def fetch_groups(self) -> list[TcgGroup]:
        """Fetch every set in the category."""
        data = await self._request("/groups")
        response = self._validate(GroupListResponse, data, "/groups")

        logger.info("tcgcsv_fetch_groups_complete", results_count=len(response.results))
        return response.results

    async def find_group(self, abbreviation: str) -> TcgGroup | None:
        """
        Resolve a set abbreviation to its upstream group.

        Matching is case-insensitive; returns None when nothing matches.
        Groups without an abbreviation are never matched.
        """
        wanted = abbreviation.strip().lower()
        if not wanted:
            return None
        for group in await self.fetch_groups():
            if group.abbreviation and group.abbreviation.lower() == wanted:
                return group
        return None

    async def fetch_products(self, group_id: int) -> list[TcgProduct]:
        """Fetch every product (card listing) in a group."""
        path = f"/{group_id}/products"
        data = await self._request(path)
        response = self._validate(ProductListResponse, data, path)

        logger.info(
            "tcgcsv_fetch_products_complete",
            group_id=group_id,
            results_count=len(response.results),
        )
        return response.results

    async def fetch_prices(self, group_id: int) -> list[TcgPrice]:
        """Fetch current prices for every product/sub-type in a group."""
        path = f"/{group_id}/prices"
        data = await self._request(path)
        response = self._validate(PriceListResponse, data, path)

        logger.info(
            "tcgcsv_fetch_prices_complete",
            group_id=group_id,
            results_count=len(response.results),
        )
        return response.results
