"""Multi-chain scanner fanning the provider client out across chains."""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from wallet_analytics.core.models import ChainDescriptor, ChainScanResult
from wallet_analytics.core.registry import ChainRegistry
from wallet_analytics.exceptions import UnsupportedChainError
from wallet_analytics.rpc.provider import AlchemyProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ChainDescriptor], AlchemyProvider]


class ChainScanner:
    """
    Fetches balances, native balance and transfers on several chains at once.

    Each chain runs in its own worker and every outcome is collected: a
    failing chain yields a ``success=False`` record and never affects the
    others. The result list always matches the requested chains in length
    and order.

    Parameters
    ----------
    registry : ChainRegistry
        Supported chains
    provider_factory : ProviderFactory
        Builds a provider client for a chain
    max_count : int
        Maximum transfers fetched per direction and chain
    max_workers : int | None
        Chain-level concurrency (default: one worker per chain)

    """

    def __init__(
        self,
        registry: ChainRegistry,
        provider_factory: ProviderFactory,
        max_count: int = 50,
        max_workers: int | None = None,
    ) -> None:
        self.registry = registry
        self.provider_factory = provider_factory
        self.max_count = max_count
        self.max_workers = max_workers

    def scan(self, address: str, chain_keys: list[str] | None = None) -> list[ChainScanResult]:
        """
        Scan a wallet on several chains concurrently.

        Parameters
        ----------
        address : str
            Wallet address (already validated)
        chain_keys : list[str] | None
            Chains to scan, in output order (default: every registered chain)

        Returns
        -------
        list[ChainScanResult]
            One result per requested chain, positionally aligned

        """
        keys = list(chain_keys) if chain_keys is not None else self.registry.keys()
        if not keys:
            return []

        workers = min(len(keys), self.max_workers or len(keys))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self.scan_chain, address, key) for key in keys]

            results = []
            for key, future in zip(keys, futures, strict=True):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning("Scan of %s failed unexpectedly: %s", key, e)
                    results.append(ChainScanResult(chain=key, success=False, error=str(e) or "Unknown error"))

        succeeded = sum(1 for result in results if result.success)
        logger.info("Scanned %s on %d chains (%d succeeded)", address, len(results), succeeded)
        return results

    def scan_chain(self, address: str, chain_key: str) -> ChainScanResult:
        """
        Fetch one chain's balances, native balance and transfers concurrently.

        Parameters
        ----------
        address : str
            Wallet address
        chain_key : str
            Chain key

        Returns
        -------
        ChainScanResult
            Success record, or a failure record carrying the error message

        """
        try:
            chain = self.registry.get(chain_key)
        except UnsupportedChainError as e:
            return ChainScanResult(chain=chain_key, success=False, error=str(e))

        try:
            with self.provider_factory(chain) as provider, ThreadPoolExecutor(max_workers=3) as executor:
                tokens_future = executor.submit(provider.get_token_balances, address)
                native_future = executor.submit(provider.get_native_balance, address)
                transfers_future = executor.submit(provider.get_transaction_history, address, self.max_count)

                tokens = tokens_future.result()
                transactions = transfers_future.result()
                native_balance = native_future.result()
        except Exception as e:
            logger.warning("Chain %s unavailable for %s: %s", chain.key, address, e)
            return ChainScanResult(
                chain=chain_key,
                chain_id=chain.chain_id,
                chain_name=chain.name,
                success=False,
                error=str(e) or "Unknown error",
            )

        return ChainScanResult(
            chain=chain_key,
            chain_id=chain.chain_id,
            chain_name=chain.name,
            success=True,
            native_balance=native_balance,
            tokens=tokens,
            transactions=transactions,
        )
