"""
Tests for the tcgcsv API client (optcg_prices/pipeline/tcgcsv.py).

Covers:
- Client initialization and configuration
- fetch_groups / find_group (case-insensitive, missing abbreviation)
- fetch_products / fetch_prices parsing
- Failure mapping to UpstreamFetchError (HTTP error, transport error, bad JSON)
- Optional retry on 5xx when max_retries > 0
"""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
import respx

from optcg_prices.config import settings
from optcg_prices.errors import UpstreamFetchError
from optcg_prices.pipeline.tcgcsv import TcgCsvClient, TcgPrice

TCGCSV_URL = settings.tcgcsv_category_url
EB03_GROUP_ID = 23890


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------


def test_client_init_defaults() -> None:
    client = TcgCsvClient()

    assert client._base_url == "https://tcgcsv.com/tcgplayer/68"
    assert client._max_retries == settings.TCGCSV_MAX_RETRIES == 0
    assert client._client is None  # Not yet opened


def test_client_custom_url() -> None:
    client = TcgCsvClient(base_url="https://mirror.example/tcgplayer/68", max_retries=2)

    assert client._base_url == "https://mirror.example/tcgplayer/68"
    assert client._max_retries == 2


@pytest.mark.asyncio
async def test_request_without_context_manager_fails() -> None:
    client = TcgCsvClient()
    with pytest.raises(AssertionError):
        await client.fetch_groups()


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_groups(tcgcsv_mock: respx.MockRouter) -> None:
    async with TcgCsvClient() as client:
        groups = await client.fetch_groups()

    assert [g.groupId for g in groups] == [3188, EB03_GROUP_ID, 17675]
    # Null abbreviation normalized to ""
    assert groups[2].abbreviation == ""


@pytest.mark.asyncio
async def test_find_group_is_case_insensitive(tcgcsv_mock: respx.MockRouter) -> None:
    async with TcgCsvClient() as client:
        group = await client.find_group("eb03")

    assert group is not None
    assert group.groupId == EB03_GROUP_ID
    assert group.abbreviation == "EB03"


@pytest.mark.asyncio
async def test_find_group_unknown_returns_none(tcgcsv_mock: respx.MockRouter) -> None:
    async with TcgCsvClient() as client:
        assert await client.find_group("ZZ99") is None


@pytest.mark.asyncio
async def test_find_group_blank_never_matches_unabbreviated_group(
    tcgcsv_mock: respx.MockRouter,
) -> None:
    # The promo group's null abbreviation is stored as ""
    async with TcgCsvClient() as client:
        assert await client.find_group(" ") is None
        assert await client.find_group("") is None


# ---------------------------------------------------------------------------
# Products & Prices
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_products(tcgcsv_mock: respx.MockRouter) -> None:
    async with TcgCsvClient() as client:
        products = await client.fetch_products(EB03_GROUP_ID)

    assert len(products) == 3
    vivi = products[0]
    assert vivi.productId == 600001
    assert {item.name for item in vivi.extendedData} >= {"Number", "Color", "Description"}


@pytest.mark.asyncio
async def test_fetch_prices_uses_decimal(tcgcsv_mock: respx.MockRouter) -> None:
    async with TcgCsvClient() as client:
        prices = await client.fetch_prices(EB03_GROUP_ID)

    assert len(prices) == 4
    assert prices[0].marketPrice == Decimal("1.5")
    assert prices[2].highPrice is None


def test_price_model_tolerates_garbage() -> None:
    price = TcgPrice.model_validate(
        {"productId": 1, "subTypeName": "Normal", "lowPrice": "", "marketPrice": "n/a"}
    )
    assert price.lowPrice is None
    assert price.marketPrice is None


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_http_error_raises_upstream_fetch_error() -> None:
    with respx.mock(base_url=TCGCSV_URL) as mock:
        route = mock.get("/groups").mock(return_value=httpx.Response(503))

        with pytest.raises(UpstreamFetchError) as exc_info:
            async with TcgCsvClient() as client:
                await client.fetch_groups()

    assert str(exc_info.value).startswith("Upstream fetch failed")
    assert "503" in str(exc_info.value)
    assert route.call_count == 1  # No retry by default


@pytest.mark.asyncio
async def test_transport_error_raises_upstream_fetch_error() -> None:
    with respx.mock(base_url=TCGCSV_URL) as mock:
        mock.get(f"/{EB03_GROUP_ID}/products").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UpstreamFetchError):
            async with TcgCsvClient() as client:
                await client.fetch_products(EB03_GROUP_ID)


@pytest.mark.asyncio
async def test_invalid_json_raises_upstream_fetch_error() -> None:
    with respx.mock(base_url=TCGCSV_URL) as mock:
        mock.get("/groups").mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(UpstreamFetchError):
            async with TcgCsvClient() as client:
                await client.fetch_groups()


@pytest.mark.asyncio
async def test_unexpected_payload_shape_raises_upstream_fetch_error() -> None:
    with respx.mock(base_url=TCGCSV_URL) as mock:
        mock.get("/groups").mock(
            return_value=httpx.Response(200, json={"results": [{"name": "no id"}]})
        )

        with pytest.raises(UpstreamFetchError):
            async with TcgCsvClient() as client:
                await client.fetch_groups()


@pytest.mark.asyncio
async def test_retries_server_error_when_enabled(groups_payload: dict) -> None:
    with respx.mock(base_url=TCGCSV_URL) as mock:
        route = mock.get("/groups").mock(
            side_effect=[
                httpx.Response(500),
                httpx.Response(200, json=groups_payload),
            ]
        )

        async with TcgCsvClient(max_retries=1, base_backoff=0) as client:
            groups = await client.fetch_groups()

    assert len(groups) == 3
    assert route.call_count == 2
