"""Morpho GraphQL API client."""
import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...errors import FetchError

logger = logging.getLogger(__name__)

VAULTS_QUERY = """
query Vaults($chainIds: [Int!], $first: Int!) {
  vaults(where: { chainId_in: $chainIds }, first: $first) {
    items {
      address
      symbol
      name
      asset {
        address
        symbol
        decimals
      }
      chain {
        id
        network
      }
      state {
        apy
        netApy
        totalAssets
        totalAssetsUsd
        fee
        timelock
        rewards {
          asset {
            address
            symbol
            name
          }
          supplyApr
          yearlySupplyTokens
          amountPerSuppliedToken
        }
        allocation {
          supplyAssets
          supplyAssetsUsd
          market {
            uniqueKey
            loanAsset {
              symbol
              name
              address
            }
            collateralAsset {
              symbol
              name
              address
            }
            lltv
            state {
              supplyApy
              borrowApy
              netSupplyApy
              rewards {
                supplyApr
                amountPerSuppliedToken
                asset {
                  address
                  symbol
                  name
                }
              }
            }
          }
        }
      }
    }
    pageInfo {
      countTotal
      count
      skip
      limit
    }
  }
}
"""


class MorphoApiClient:
    """Fetch vault data from the Morpho Blue GraphQL API."""

    def __init__(self, api_url: str, page_size: int = 200, timeout: int = 30) -> None:
        self.api_url = api_url
        self.page_size = page_size
        self.timeout = timeout

    async def query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a GraphQL query and return its ``data`` object."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.api_url,
                    json={"query": query, "variables": variables},
                    headers={"Content-Type": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise FetchError(
                            f"Morpho API returned HTTP {response.status}: {body[:200]}"
                        )
                    payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"Morpho API request failed: {e}") from e

        if payload.get("errors"):
            raise FetchError(f"Morpho API errors: {payload['errors']}")
        return payload.get("data") or {}

    async def fetch_vaults(self, chain_id: int) -> list[dict[str, Any]]:
        """Fetch raw vault items for ``chain_id``."""
        data = await self.query(
            VAULTS_QUERY, {"chainIds": [chain_id], "first": self.page_size}
        )
        vaults = data.get("vaults") or {}
        items = vaults.get("items") or []
        page_info = vaults.get("pageInfo") or {}

        logger.info("Found %d vaults on chain %s", len(items), chain_id)
        count_total = page_info.get("countTotal")
        limit = page_info.get("limit")
        if count_total is not None and limit is not None and count_total > limit:
            logger.warning(
                "There are %d vaults in total but only %d were returned",
                count_total,
                limit,
            )
        return items
