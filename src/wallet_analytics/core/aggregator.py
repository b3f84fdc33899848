"""Wallet analyzer orchestrating fetch, pricing, valuation, scoring and reporting."""

import logging
import re
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

import httpx

from wallet_analytics.core.models import ChainDescriptor, ChainScanResult, ScanSummary, WalletReport
from wallet_analytics.core.normalizer import normalize_tokens
from wallet_analytics.core.registry import ChainRegistry
from wallet_analytics.core.report import assemble_report, summarize_scan
from wallet_analytics.core.risk import assess_risk, compute_statistics
from wallet_analytics.core.scanner import ChainScanner, ProviderFactory
from wallet_analytics.core.valuator import value_portfolio
from wallet_analytics.data import get_pricing_config, get_provider_api_key
from wallet_analytics.exceptions import InvalidAddressError, ProviderRequestError, WalletDataUnavailableError
from wallet_analytics.pricing import CoinGeckoPricing, DexScreenerPricing, PriceResolver
from wallet_analytics.rpc import AlchemyProvider, RetryConfig

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def validate_address(address: str) -> str:
    """
    Check that a wallet address is 0x-prefixed with 40 hex digits.

    Raises
    ------
    InvalidAddressError
        If the address does not match

    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(address)
    return address


class WalletAnalyzer:
    """
    Runs the wallet analytics pipeline.

    Workflow for a single-chain report:
    1. Validate the address and resolve the chain selector
    2. Fetch token balances, native balance, transfers and block number
       concurrently
    3. Normalize balances into token records
    4. Resolve USD prices through the tiered resolver
    5. Value the portfolio, compute statistics and the risk score
    6. Assemble the report

    Parameters
    ----------
    registry : ChainRegistry | None
        Supported chains; built from the bundled configuration and the
        ``ALCHEMY_API_KEY`` environment variable when None
    client : httpx.Client | None
        Shared HTTP client; one is created (and owned) when None
    price_resolver : PriceResolver | None
        Price resolver (default: CoinGecko + DexScreener)
    provider_factory : ProviderFactory | None
        Builds provider clients per chain (default: ``AlchemyProvider``)
    retry_config : RetryConfig | None
        Retry behavior for provider calls
    max_count : int
        Maximum transfers per direction for single-chain reports
    scan_max_count : int
        Maximum transfers per direction and chain for multi-chain scans
    sleep : Callable[[float], None]
        Sleep function for retries and price rate limiting

    Raises
    ------
    MissingCredentialError
        If no registry is given and the provider API key is not configured

    """

    def __init__(
        self,
        registry: ChainRegistry | None = None,
        client: httpx.Client | None = None,
        price_resolver: PriceResolver | None = None,
        provider_factory: ProviderFactory | None = None,
        retry_config: RetryConfig | None = None,
        *,
        max_count: int = 100,
        scan_max_count: int = 50,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry or ChainRegistry.from_config(get_provider_api_key())
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=30.0)
        self.retry_config = retry_config or RetryConfig()
        self.max_count = max_count
        self.sleep = sleep
        self.provider_factory = provider_factory or self._default_provider
        self.price_resolver = price_resolver or self._default_price_resolver()
        self.scanner = ChainScanner(self.registry, self.provider_factory, max_count=scan_max_count)

    def _default_provider(self, chain: ChainDescriptor) -> AlchemyProvider:
        return AlchemyProvider(chain, client=self.client, retry_config=self.retry_config, sleep=self.sleep)

    def _default_price_resolver(self) -> PriceResolver:
        config = get_pricing_config()
        return PriceResolver(
            native_source=CoinGeckoPricing(config["coingecko_url"], client=self.client),
            pair_source=DexScreenerPricing(config["dexscreener_url"], client=self.client),
            sleep=self.sleep,
        )

    def analyze(self, address: str, chain: str | None = None, now: datetime | None = None) -> WalletReport:
        """
        Build the full report for one wallet on one chain.

        Parameters
        ----------
        address : str
            Wallet address
        chain : str | None
            Chain selector (alias, case-insensitive); default chain when None
            or unrecognized
        now : datetime | None
            Reference time for activity windows (default: now, UTC)

        Returns
        -------
        WalletReport
            Portfolio, activity, risk, insights and metadata

        Raises
        ------
        InvalidAddressError
            If the address is malformed (no network call is made)
        WalletDataUnavailableError
            If balances or transfers cannot be fetched

        """
        validate_address(address)
        descriptor = self.registry.resolve(chain)
        now = now or datetime.now(UTC)
        logger.info("Analyzing %s on %s", address, descriptor.name)

        with self.provider_factory(descriptor) as provider, ThreadPoolExecutor(max_workers=4) as executor:
            tokens_future = executor.submit(provider.get_token_balances, address)
            native_future = executor.submit(provider.get_native_balance, address)
            transfers_future = executor.submit(provider.get_transaction_history, address, self.max_count)
            block_future = executor.submit(provider.get_block_number)

            try:
                raw_tokens = tokens_future.result()
                transfers = transfers_future.result()
            except ProviderRequestError as e:
                raise WalletDataUnavailableError(descriptor.key, e) from e

            native_balance = native_future.result()
            block_number = _parse_block_number(block_future.result())

        tokens = normalize_tokens(raw_tokens, native_balance, descriptor)
        resolution = self.price_resolver.resolve(tokens, descriptor)
        valuation = value_portfolio(tokens, resolution.quotes)
        statistics = compute_statistics(transfers)
        risk = assess_risk(len(valuation.tokens), statistics, now)

        logger.info(
            "Report for %s on %s: %d tokens, $%.2f, %d transfers, risk %d (%s)",
            address,
            descriptor.key,
            len(valuation.tokens),
            valuation.total_value,
            statistics.total_transactions,
            risk.score,
            risk.level,
        )

        return assemble_report(
            address,
            descriptor,
            valuation,
            transfers,
            statistics,
            risk,
            native_balance=native_balance,
            block_number=block_number,
            now=now,
        )

    def scan(self, address: str, chains: list[str] | None = None, *, value: bool = True) -> ScanSummary:
        """
        Scan a wallet across several chains.

        Successful chains are priced through the same resolver as single-chain
        reports so the summary can rank chains by USD value.

        Parameters
        ----------
        address : str
            Wallet address
        chains : list[str] | None
            Chain keys in output order (default: every registered chain)
        value : bool
            Price each successful chain's holdings

        Returns
        -------
        ScanSummary
            Per-chain results (failures included) and cross-chain totals

        Raises
        ------
        InvalidAddressError
            If the address is malformed (no network call is made)

        """
        validate_address(address)
        results = self.scanner.scan(address, chains)
        if value:
            results = [self._value_chain(result) if result.success else result for result in results]
        return summarize_scan(address, results)

    def _value_chain(self, result: ChainScanResult) -> ChainScanResult:
        descriptor = self.registry.get(result.chain)
        tokens = normalize_tokens(result.tokens, result.native_balance or "0x0", descriptor)
        resolution = self.price_resolver.resolve(tokens, descriptor)
        valuation = value_portfolio(tokens, resolution.quotes)
        logger.debug("Valued %d tokens on %s at $%.2f", len(tokens), result.chain, valuation.total_value)
        return result.model_copy(update={"total_value_usd": valuation.total_value})

    def close(self) -> None:
        """Close the HTTP client if this analyzer created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "WalletAnalyzer":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()


def _parse_block_number(block_hex: str) -> int | None:
    try:
        block = int(block_hex, 16)
    except (TypeError, ValueError):
        return None
    return block or None
