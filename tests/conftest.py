"""Pytest configuration and shared fixtures for wallet-analytics tests."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from wallet_analytics.core.models import ChainDescriptor
from wallet_analytics.core.registry import ChainRegistry

WALLET = "0x" + "ab" * 20


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class RpcBackend:
    """
    MockTransport handler answering JSON-RPC calls from a method table.

    Table values are returned as the ``result`` member; a callable value is
    called with the request params and may return either a result or a
    complete ``httpx.Response``.
    """

    def __init__(self, results: dict[str, Any] | None = None) -> None:
        self.results = results or {}
        self.calls: list[tuple[str, str, list[Any]]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        self.calls.append((request.url.host, method, body["params"]))

        result = self.results.get(method)
        if callable(result):
            result = result(body["params"])
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def methods(self) -> list[str]:
        return [method for _, method, _ in self.calls]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def make_chain(key: str = "bsc", **overrides: Any) -> ChainDescriptor:
    """Build a chain descriptor pointing at a fake endpoint."""
    fields = {
        "key": key,
        "chain_id": 56,
        "name": "BSC",
        "endpoint_url": f"https://{key}.rpc.test/v2/key",
        "explorer_url": "https://bscscan.com",
        "native_symbol": "BNB",
        "native_name": "BNB",
        "native_coin_id": "binancecoin",
        "native_price_fallback": 600.0,
        "dexscreener_id": "bsc",
    }
    fields.update(overrides)
    return ChainDescriptor(**fields)


def make_transfer(timestamp: str | None, contract: str | None = None, error: Any = None, **fields: Any) -> dict:
    """Build a transfer in the provider's wire format."""
    return {
        "hash": fields.pop("hash", "0x" + "0" * 64),
        "from": fields.pop("from", WALLET),
        "to": fields.pop("to", "0x" + "cd" * 20),
        "value": fields.pop("value", 1.0),
        "asset": fields.pop("asset", "BNB"),
        "category": fields.pop("category", "external"),
        "metadata": {"blockTimestamp": timestamp, "error": error},
        "rawContract": {"address": contract},
        **fields,
    }


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def chain() -> ChainDescriptor:
    return make_chain()


@pytest.fixture
def registry() -> ChainRegistry:
    """Registry of the bundled chains with a dummy API key."""
    return ChainRegistry.from_config("test-key")


@pytest.fixture
def rpc_backend() -> Callable[..., RpcBackend]:
    return RpcBackend
