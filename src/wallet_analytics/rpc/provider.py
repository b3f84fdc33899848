"""JSON-RPC provider client for Alchemy-compatible chain endpoints."""

import itertools
import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import httpx
from pydantic import ValidationError

from wallet_analytics.core.models import ChainDescriptor, RawTokenBalance, Transfer
from wallet_analytics.core.normalizer import is_zero_balance
from wallet_analytics.exceptions import ProviderRequestError
from wallet_analytics.rpc.retry import RetryConfig, retry_call

logger = logging.getLogger(__name__)

TRANSFER_CATEGORIES = ["external", "internal", "erc20", "erc721", "erc1155"]

UNKNOWN_TOKEN_METADATA = {
    "decimals": 18,
    "symbol": "UNKNOWN",
    "name": "Unknown Token",
}


class AlchemyProvider:
    """
    Retrying JSON-RPC client bound to one chain.

    Every operation issues a JSON-RPC call to the chain's endpoint. Non-2xx
    responses and transport failures are retried with linear backoff; the
    last failure surfaces as ``ProviderRequestError``. Native balance and
    block number degrade to ``"0x0"`` instead of raising.

    Parameters
    ----------
    chain : ChainDescriptor
        Chain whose endpoint receives the calls
    client : httpx.Client | None
        HTTP client to use; one is created (and owned) when None
    retry_config : RetryConfig | None
        Retry behavior (default: 3 attempts, 0.5s linear backoff)
    max_workers : int
        Concurrency for per-token metadata lookups
    sleep : Callable[[float], None]
        Sleep function used between retries

    """

    def __init__(
        self,
        chain: ChainDescriptor,
        client: httpx.Client | None = None,
        retry_config: RetryConfig | None = None,
        *,
        max_workers: int = 8,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.chain = chain
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=30.0, headers={"Content-Type": "application/json"})
        self.retry_config = retry_config or RetryConfig()
        self.max_workers = max_workers
        self.sleep = sleep
        self._ids = itertools.count(1)

    def make_request(self, method: str, params: list[Any]) -> Any:
        """
        Make a JSON-RPC request with retry logic and linear backoff.

        Parameters
        ----------
        method : str
            RPC method name (e.g., 'eth_getBalance')
        params : list[Any]
            Method parameters

        Returns
        -------
        Any
            The ``result`` member of the JSON-RPC response

        Raises
        ------
        ProviderRequestError
            If every attempt failed, the body is not JSON, or the provider
            returned a JSON-RPC error object

        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        def send() -> httpx.Response:
            response = self.client.post(self.chain.endpoint_url, json=payload)
            response.raise_for_status()
            return response

        try:
            response = retry_call(
                send,
                self.retry_config,
                (httpx.HTTPError,),
                label=f"{method} on {self.chain.key}",
                sleep=self.sleep,
            )
        except httpx.HTTPStatusError as e:
            msg = f"HTTP {e.response.status_code}"
            raise ProviderRequestError(self.chain.key, method, msg, self.retry_config.max_attempts) from e
        except httpx.HTTPError as e:
            raise ProviderRequestError(self.chain.key, method, str(e), self.retry_config.max_attempts) from e

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderRequestError(self.chain.key, method, "invalid JSON response") from e

        if not isinstance(body, dict):
            raise ProviderRequestError(self.chain.key, method, "unexpected response shape")

        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ProviderRequestError(self.chain.key, method, message)

        return body.get("result")

    def _request_object(self, method: str, params: list[Any]) -> dict[str, Any]:
        result = self.make_request(method, params)
        if result is None:
            return {}
        if not isinstance(result, dict):
            raise ProviderRequestError(self.chain.key, method, f"unexpected result type {type(result).__name__}")
        return result

    def get_token_balances(self, address: str) -> list[RawTokenBalance]:
        """
        Fetch non-zero contract token balances with their metadata.

        Metadata lookups run concurrently. A token whose record cannot be
        built is dropped without failing the whole call.

        Parameters
        ----------
        address : str
            Wallet address

        Returns
        -------
        list[RawTokenBalance]
            Non-zero balances in provider order

        Raises
        ------
        ProviderRequestError
            If the balances call fails or returns an unexpected shape

        """
        result = self._request_object("alchemy_getTokenBalances", [address])
        balances = result.get("tokenBalances") or []

        non_zero = [
            entry for entry in balances if isinstance(entry, dict) and not is_zero_balance(entry.get("tokenBalance"))
        ]
        if not non_zero:
            return []

        with ThreadPoolExecutor(max_workers=min(len(non_zero), self.max_workers)) as executor:
            tokens = list(executor.map(self._with_metadata, non_zero))

        return [token for token in tokens if token is not None]

    def _with_metadata(self, entry: dict[str, Any]) -> RawTokenBalance | None:
        contract_address = entry.get("contractAddress")
        try:
            metadata = self.get_token_metadata(contract_address)
            return RawTokenBalance(
                contract_address=contract_address,
                balance_hex=entry["tokenBalance"],
                decimals=metadata.get("decimals"),
                symbol=metadata.get("symbol"),
                name=metadata.get("name"),
                logo_url=metadata.get("logo"),
            )
        except Exception as e:
            logger.warning("Dropping token %s on %s: %s", contract_address, self.chain.key, e)
            return None

    def get_token_metadata(self, contract_address: str) -> dict[str, Any]:
        """
        Fetch token metadata (decimals, symbol, name, logo).

        Parameters
        ----------
        contract_address : str
            Token contract address

        Returns
        -------
        dict[str, Any]
            Provider metadata, or the unknown-token defaults when the lookup fails

        """
        try:
            return self.make_request("alchemy_getTokenMetadata", [contract_address]) or {}
        except ProviderRequestError as e:
            logger.warning("Metadata lookup failed for %s on %s: %s", contract_address, self.chain.key, e)
            return dict(UNKNOWN_TOKEN_METADATA)

    def get_native_balance(self, address: str) -> str:
        """
        Fetch the native asset balance.

        Returns
        -------
        str
            Balance in wei as hex; ``"0x0"`` if the call fails

        """
        try:
            return self.make_request("eth_getBalance", [address, "latest"]) or "0x0"
        except ProviderRequestError as e:
            logger.warning("Native balance unavailable on %s: %s", self.chain.key, e)
            return "0x0"

    def get_block_number(self) -> str:
        """
        Fetch the latest block number.

        Returns
        -------
        str
            Block number as hex; ``"0x0"`` if the call fails

        """
        try:
            return self.make_request("eth_blockNumber", []) or "0x0"
        except ProviderRequestError as e:
            logger.warning("Block number unavailable on %s: %s", self.chain.key, e)
            return "0x0"

    def get_transaction_history(self, address: str, max_count: int = 100) -> list[Transfer]:
        """
        Fetch transfers sent from and received by a wallet.

        Two calls are issued (wallet as source, wallet as destination), each
        bounded by ``max_count`` and excluding zero-value transfers. Results
        are concatenated without deduplication and sorted newest first.

        Parameters
        ----------
        address : str
            Wallet address
        max_count : int
            Maximum transfers per direction

        Returns
        -------
        list[Transfer]
            Transfers sorted descending by block timestamp

        Raises
        ------
        ProviderRequestError
            If either call fails or returns an unexpected shape

        """
        outgoing = self._get_asset_transfers({"fromAddress": address}, max_count)
        incoming = self._get_asset_transfers({"toAddress": address}, max_count)

        return sorted(outgoing + incoming, key=lambda transfer: transfer.timestamp, reverse=True)

    def _get_asset_transfers(self, direction: dict[str, str], max_count: int) -> list[Transfer]:
        params = {
            "fromBlock": "0x0",
            "toBlock": "latest",
            **direction,
            "category": TRANSFER_CATEGORIES,
            "maxCount": hex(max_count),
            "withMetadata": True,
            "excludeZeroValue": True,
        }
        result = self._request_object("alchemy_getAssetTransfers", [params])
        try:
            return [Transfer.model_validate(item) for item in result.get("transfers") or []]
        except ValidationError as e:
            raise ProviderRequestError(self.chain.key, "alchemy_getAssetTransfers", "malformed transfer record") from e

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "AlchemyProvider":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
