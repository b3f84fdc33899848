"""CoinGecko pricing service for native asset USD prices."""

import logging

import httpx

from wallet_analytics.core.models import PriceQuote

logger = logging.getLogger(__name__)


class CoinGeckoPricing:
    """
    Fetches native asset prices from the CoinGecko simple price API.

    CoinGecko's free tier needs no key; prices come with the 24h change.

    Parameters
    ----------
    base_url : str
        CoinGecko API base URL
    client : httpx.Client | None
        HTTP client to use; one is created (and owned) when None

    """

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=30.0)

    def get_native_price(self, coin_id: str) -> PriceQuote | None:
        """
        Fetch the USD price of a coin.

        Parameters
        ----------
        coin_id : str
            CoinGecko coin ID (e.g., 'ethereum', 'binancecoin')

        Returns
        -------
        PriceQuote | None
            Quote with 24h change, or None if the price is unavailable

        """
        try:
            response = self.client.get(
                f"{self.base_url}/simple/price",
                params={"ids": coin_id, "vs_currencies": "usd", "include_24hr_change": "true"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("CoinGecko price lookup failed for %s: %s", coin_id, e)
            return None

        coin = data.get(coin_id) if isinstance(data, dict) else None
        if not coin or coin.get("usd") is None:
            logger.warning("CoinGecko returned no USD price for %s", coin_id)
            return None

        return PriceQuote(
            usd_price=float(coin["usd"]),
            change_24h_percent=float(coin.get("usd_24h_change") or 0.0),
        )

    def close(self) -> None:
        """Close HTTP client."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "CoinGeckoPricing":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
