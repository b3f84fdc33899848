"""Tiered USD price resolution for a wallet's tokens."""

import logging
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, Field

from wallet_analytics.core.models import ChainDescriptor, NormalizedToken, PriceQuote
from wallet_analytics.data import get_pricing_config, get_stablecoin_addresses
from wallet_analytics.pricing.ratelimit import RateLimitedQueue

logger = logging.getLogger(__name__)

STABLECOIN_QUOTE = PriceQuote(usd_price=1.0, change_24h_percent=0.0)


class NativePriceSource(Protocol):
    """Source of native asset prices (e.g., CoinGecko)."""

    def get_native_price(self, coin_id: str) -> PriceQuote | None: ...


class PairPriceSource(Protocol):
    """Liquidity-aware per-contract price search (e.g., DexScreener)."""

    def get_quote(self, contract_address: str, chain_slug: str) -> PriceQuote | None: ...


class PriceStage(StrEnum):
    """Stages of one price resolution run, in order."""

    INIT = "init"
    NATIVE_PRICED = "native_priced"
    STABLECOINS_PRICED = "stablecoins_priced"
    CONTRACTS_PRICED = "contracts_priced"
    DONE = "done"


class PriceResolution(BaseModel):
    """
    Result of one price resolution run.

    Attributes
    ----------
    quotes : dict[str, PriceQuote]
        Quotes keyed by uppercase native symbol or lowercase contract address
    stages : list[PriceStage]
        Stages passed through, in order
    queried : list[str]
        Contract addresses sent to the pair price source, in query order

    """

    quotes: dict[str, PriceQuote] = Field(default_factory=dict)
    stages: list[PriceStage] = Field(default_factory=list)
    queried: list[str] = Field(default_factory=list)


class PriceResolver:
    """
    Resolves USD prices through a fixed sequence of tiers.

    1. Native asset price from the native source, or the chain's fallback
       constant when the source fails.
    2. Stablecoin table: listed contracts are priced at exactly 1.0.
    3. Per-contract pair search for the top ``top_n`` remaining tokens by
       balance, issued sequentially through a rate-limited queue.

    Tokens not priced by any tier keep a price of 0.

    Parameters
    ----------
    native_source : NativePriceSource
        Native asset price source
    pair_source : PairPriceSource
        Per-contract price source
    stablecoins : frozenset[str] | None
        Lowercase stablecoin contract addresses (default: bundled table)
    top_n : int | None
        Maximum number of contracts queried per run (default: config, 20)
    request_delay : float | None
        Seconds between pair source requests (default: config, 0.2)
    sleep : Callable[[float], None]
        Sleep function used by the rate-limited queue

    """

    def __init__(
        self,
        native_source: NativePriceSource,
        pair_source: PairPriceSource,
        stablecoins: frozenset[str] | None = None,
        top_n: int | None = None,
        request_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        config = get_pricing_config()
        self.native_source = native_source
        self.pair_source = pair_source
        self.stablecoins = stablecoins if stablecoins is not None else get_stablecoin_addresses()
        self.top_n = top_n if top_n is not None else int(config["top_n"])
        self.request_delay = request_delay if request_delay is not None else float(config["request_delay"])
        self.sleep = sleep

    def resolve(self, tokens: list[NormalizedToken], chain: ChainDescriptor) -> PriceResolution:
        """
        Resolve quotes for every tier, in order.

        Parameters
        ----------
        tokens : list[NormalizedToken]
            Normalized tokens of one chain
        chain : ChainDescriptor
            Chain the tokens live on

        Returns
        -------
        PriceResolution
            Quotes, stage trail and the contracts that were queried

        """
        resolution = PriceResolution(stages=[PriceStage.INIT])

        self._price_native(chain, resolution)
        resolution.stages.append(PriceStage.NATIVE_PRICED)

        self._price_stablecoins(tokens, resolution)
        resolution.stages.append(PriceStage.STABLECOINS_PRICED)

        self._price_contracts(tokens, chain, resolution)
        resolution.stages.append(PriceStage.CONTRACTS_PRICED)

        resolution.stages.append(PriceStage.DONE)
        logger.debug(
            "Resolved %d quotes on %s (%d contracts queried)",
            len(resolution.quotes),
            chain.key,
            len(resolution.queried),
        )
        return resolution

    def _price_native(self, chain: ChainDescriptor, resolution: PriceResolution) -> None:
        quote = None
        try:
            quote = self.native_source.get_native_price(chain.native_coin_id)
        except Exception as e:
            logger.warning("Native price source failed for %s: %s", chain.native_coin_id, e)

        if quote is None:
            logger.info("Using fallback price %.2f for %s", chain.native_price_fallback, chain.native_symbol)
            quote = PriceQuote(usd_price=chain.native_price_fallback, change_24h_percent=0.0)

        resolution.quotes[chain.native_symbol.upper()] = quote

    def _price_stablecoins(self, tokens: list[NormalizedToken], resolution: PriceResolution) -> None:
        for token in tokens:
            if token.is_native or not token.contract_address:
                continue
            if token.contract_address.lower() in self.stablecoins:
                resolution.quotes[token.price_key] = STABLECOIN_QUOTE

    def select_contracts(self, tokens: list[NormalizedToken], priced: set[str] | None = None) -> list[str]:
        """
        Choose which contracts the pair source is queried for.

        Parameters
        ----------
        tokens : list[NormalizedToken]
            Normalized tokens
        priced : set[str] | None
            Price keys already resolved by earlier tiers

        Returns
        -------
        list[str]
            Up to ``top_n`` lowercase contract addresses, largest balance
            first, ties broken by address

        """
        priced = priced or set()
        balances: dict[str, float] = {}
        for token in tokens:
            if token.is_native or not token.contract_address:
                continue
            key = token.price_key
            if key in priced or key in self.stablecoins:
                continue
            balances[key] = max(balances.get(key, 0.0), token.balance)

        ranked = sorted(balances, key=lambda key: (-balances[key], key))
        return ranked[: self.top_n]

    def _price_contracts(
        self,
        tokens: list[NormalizedToken],
        chain: ChainDescriptor,
        resolution: PriceResolution,
    ) -> None:
        selected = self.select_contracts(tokens, set(resolution.quotes))

        queue = RateLimitedQueue(delay=self.request_delay, sleep=self.sleep)
        for address in selected:
            queue.submit(self._lookup_contract, address, chain)

        for address, quote in zip(selected, queue.run(), strict=True):
            resolution.queried.append(address)
            if quote is not None:
                resolution.quotes[address] = quote

    def _lookup_contract(self, address: str, chain: ChainDescriptor) -> PriceQuote | None:
        try:
            return self.pair_source.get_quote(address, chain.dexscreener_id)
        except Exception as e:
            logger.warning("Price lookup failed for %s on %s: %s", address, chain.key, e)
            return None
