"""Pricing services for token USD value enrichment."""

from wallet_analytics.pricing.coingecko import CoinGeckoPricing
from wallet_analytics.pricing.dexscreener import DexScreenerPricing, select_best_pair
from wallet_analytics.pricing.engine import PriceResolution, PriceResolver, PriceStage
from wallet_analytics.pricing.ratelimit import RateLimitedQueue

__all__ = [
    "CoinGeckoPricing",
    "DexScreenerPricing",
    "PriceResolution",
    "PriceResolver",
    "PriceStage",
    "RateLimitedQueue",
    "select_best_pair",
]
