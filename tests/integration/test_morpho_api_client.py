"""Integration tests for the Morpho GraphQL client with a mocked session."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from morpho_monitor.config import MORPHO_API_URL
from morpho_monitor.errors import FetchError
from morpho_monitor.protocols.morpho_api.client import VAULTS_QUERY, MorphoApiClient


@pytest.fixture()
def client() -> MorphoApiClient:
    return MorphoApiClient(MORPHO_API_URL, page_size=50)


def _mock_session(status: int = 200, payload: dict | None = None, body: str = ""):
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload or {})
    mock_response.text = AsyncMock(return_value=body)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestFetchVaults:
    @pytest.mark.asyncio
    async def test_returns_items(self, client: MorphoApiClient, sample_vault_items) -> None:
        mock_session = _mock_session(
            payload={
                "data": {
                    "vaults": {
                        "items": sample_vault_items,
                        "pageInfo": {"countTotal": 3, "count": 3, "skip": 0, "limit": 50},
                    }
                }
            }
        )

        with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.TCPConnector"):
                items = await client.fetch_vaults(8453)

        assert len(items) == 3
        url = mock_session.post.call_args[0][0]
        body = mock_session.post.call_args.kwargs["json"]
        assert url == MORPHO_API_URL
        assert body["query"] == VAULTS_QUERY
        assert body["variables"] == {"chainIds": [8453], "first": 50}

    @pytest.mark.asyncio
    async def test_truncated_page_still_returns_items(
        self, client: MorphoApiClient, sample_vault_items, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_session = _mock_session(
            payload={
                "data": {
                    "vaults": {
                        "items": sample_vault_items,
                        "pageInfo": {"countTotal": 120, "limit": 50},
                    }
                }
            }
        )

        with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.TCPConnector"):
                items = await client.fetch_vaults(8453)

        assert len(items) == 3
        assert "only 50 were returned" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_data(self, client: MorphoApiClient) -> None:
        mock_session = _mock_session(payload={"data": None})

        with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.TCPConnector"):
                assert await client.fetch_vaults(8453) == []


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_raises(self, client: MorphoApiClient) -> None:
        mock_session = _mock_session(status=502, body="Bad Gateway")

        with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.TCPConnector"):
                with pytest.raises(FetchError, match="HTTP 502: Bad Gateway"):
                    await client.fetch_vaults(8453)

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self, client: MorphoApiClient) -> None:
        mock_session = _mock_session(payload={"errors": [{"message": "bad query"}]})

        with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.TCPConnector"):
                with pytest.raises(FetchError, match="bad query"):
                    await client.fetch_vaults(8453)

    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self, client: MorphoApiClient) -> None:
        mock_session = _mock_session()
        mock_session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))

        with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.ClientSession", return_value=mock_session):
            with patch("morpho_monitor.protocols.morpho_api.client.aiohttp.TCPConnector"):
                with pytest.raises(FetchError, match="request failed"):
                    await client.fetch_vaults(8453)
