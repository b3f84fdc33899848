"""DexScreener pricing service for contract token USD prices."""

import logging
from typing import Any

import httpx

from wallet_analytics.core.models import PriceQuote

logger = logging.getLogger(__name__)


def _pair_liquidity(pair: dict[str, Any]) -> float:
    liquidity = pair.get("liquidity") or {}
    try:
        return float(liquidity.get("usd") or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _pair_price(pair: dict[str, Any]) -> float | None:
    try:
        return float(pair["priceUsd"])
    except (KeyError, TypeError, ValueError):
        return None


def select_best_pair(pairs: list[dict[str, Any]], chain_slug: str) -> dict[str, Any] | None:
    """
    Pick the authoritative trading pair for a token on one chain.

    Pairs on other chains or without a USD price are ignored; among the
    rest the pair with the highest USD liquidity wins. Missing liquidity
    counts as 0, and ties keep the first pair in response order.

    Parameters
    ----------
    pairs : list[dict[str, Any]]
        Raw DexScreener pair objects
    chain_slug : str
        DexScreener chain ID (e.g., 'bsc', 'ethereum')

    Returns
    -------
    dict[str, Any] | None
        Selected pair, or None if no pair matches

    """
    candidates = [pair for pair in pairs if pair.get("chainId") == chain_slug and _pair_price(pair) is not None]
    if not candidates:
        return None
    return max(candidates, key=_pair_liquidity)


class DexScreenerPricing:
    """
    Fetches token prices from DexScreener trading pairs.

    Parameters
    ----------
    base_url : str
        DexScreener API base URL
    client : httpx.Client | None
        HTTP client to use; one is created (and owned) when None

    """

    def __init__(
        self,
        base_url: str = "https://api.dexscreener.com/latest/dex",
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=30.0)

    def get_pairs(self, contract_address: str) -> list[dict[str, Any]]:
        """
        Fetch every trading pair that involves a token.

        Parameters
        ----------
        contract_address : str
            Token contract address

        Returns
        -------
        list[dict[str, Any]]
            Raw pair objects (empty on failure)

        """
        try:
            response = self.client.get(f"{self.base_url}/tokens/{contract_address}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("DexScreener lookup failed for %s: %s", contract_address, e)
            return []

        if not isinstance(data, dict):
            return []
        return data.get("pairs") or []

    def get_quote(self, contract_address: str, chain_slug: str) -> PriceQuote | None:
        """
        Get the price of a token from its most liquid pair on a chain.

        Parameters
        ----------
        contract_address : str
            Token contract address
        chain_slug : str
            DexScreener chain ID

        Returns
        -------
        PriceQuote | None
            Quote from the selected pair, or None if no pair matches

        """
        pair = select_best_pair(self.get_pairs(contract_address), chain_slug)
        if pair is None:
            return None

        price_change = pair.get("priceChange") or {}
        info = pair.get("info") or {}
        try:
            change = float(price_change.get("h24") or 0.0)
        except (TypeError, ValueError):
            change = 0.0

        return PriceQuote(
            usd_price=_pair_price(pair),
            change_24h_percent=change,
            logo_url=info.get("imageUrl"),
        )

    def close(self) -> None:
        """Close HTTP client."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "DexScreenerPricing":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
