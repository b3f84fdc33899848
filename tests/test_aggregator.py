"""End-to-end tests for the wallet analyzer with mocked HTTP backends."""

from datetime import UTC, datetime

import httpx
import pytest

from wallet_analytics import WalletAnalyzer, validate_address
from wallet_analytics.exceptions import (
    InvalidAddressError,
    MissingCredentialError,
    WalletDataUnavailableError,
)

from conftest import WALLET, RpcBackend, make_transfer

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

CAKE = "0x0e09fabb73bd3ade0a17ecc321fd13a19e81ce82"
USDT = "0x55d398326f99059ff775485246999027b3197955"

METADATA = {
    CAKE: {"decimals": 18, "symbol": "Cake", "name": "PancakeSwap Token", "logo": None},
    USDT: {"decimals": 18, "symbol": "USDT", "name": "Tether USD", "logo": None},
}


def _rpc_table(**overrides):
    table = {
        "alchemy_getTokenBalances": {
            "tokenBalances": [
                {"contractAddress": CAKE, "tokenBalance": hex(5 * 10**18)},
                {"contractAddress": USDT, "tokenBalance": hex(100 * 10**18)},
                {"contractAddress": "0x" + "9" * 40, "tokenBalance": "0x0"},
            ]
        },
        "alchemy_getTokenMetadata": lambda params: METADATA[params[0]],
        "eth_getBalance": "0xde0b6b3a7640000",
        "eth_blockNumber": "0x2625a00",
        "alchemy_getAssetTransfers": lambda params: {
            "transfers": [
                make_transfer("2024-05-30T10:00:00Z", contract=CAKE),
                make_transfer("2024-05-20T10:00:00Z", contract=USDT, error="reverted"),
            ]
            if "fromAddress" in params[0]
            else [make_transfer("2024-05-25T10:00:00Z", to=WALLET)]
        },
    }
    table.update(overrides)
    return table


class Backend:
    """Routes JSON-RPC posts to an RpcBackend and price GETs to canned payloads."""

    def __init__(self, rpc_table):
        self.rpc = RpcBackend(rpc_table)
        self.requests: list[httpx.Request] = []

    def __call__(self, request):
        self.requests.append(request)
        if request.method == "POST":
            return self.rpc(request)
        if "coingecko" in request.url.host:
            coin_id = request.url.params["ids"]
            return httpx.Response(200, json={coin_id: {"usd": 620.0, "usd_24h_change": 0.0}})
        if request.url.path.endswith(f"/tokens/{CAKE}"):
            return httpx.Response(
                200,
                json={"pairs": [{"chainId": "bsc", "priceUsd": "2.0", "liquidity": {"usd": 1e6}}]},
            )
        return httpx.Response(200, json={"pairs": None})


@pytest.fixture
def analyzer_for(registry, sleep):
    def build(backend):
        client = httpx.Client(transport=httpx.MockTransport(backend))
        return WalletAnalyzer(registry=registry, client=client, sleep=sleep)

    return build


def test_validate_address():
    """Test address format checks."""
    assert validate_address(WALLET) == WALLET
    assert validate_address("0x" + "AbCdEf0123" * 4)

    for bad in ["", "0x123", WALLET[2:], "0x" + "g" * 40, WALLET + "0", None]:
        with pytest.raises(InvalidAddressError):
            validate_address(bad)


def test_invalid_address_makes_no_network_call(analyzer_for):
    """Test malformed addresses are rejected before any request."""
    backend = Backend(_rpc_table())
    analyzer = analyzer_for(backend)

    with pytest.raises(InvalidAddressError):
        analyzer.analyze("0xnotanaddress")
    with pytest.raises(InvalidAddressError):
        analyzer.scan("0x1234")

    assert backend.requests == []


def test_analyze(analyzer_for):
    """Test a full single-chain report."""
    backend = Backend(_rpc_table())
    analyzer = analyzer_for(backend)

    report = analyzer.analyze(WALLET, now=NOW)

    assert report.metadata.chain == "bsc"
    assert report.metadata.chain_id == 56
    assert report.metadata.block_number == 40_000_000
    assert report.metadata.fetched_at == NOW

    portfolio = report.portfolio
    assert [token.symbol for token in portfolio.tokens] == ["BNB", "USDT", "Cake"]
    assert portfolio.total_tokens == 3
    prices = {token.symbol: token.price_usd for token in portfolio.tokens}
    assert prices == {"BNB": 620.0, "Cake": 2.0, "USDT": 1.0}
    assert portfolio.total_value == pytest.approx(620.0 + 10.0 + 100.0)
    assert [entry.symbol for entry in portfolio.top_tokens] == ["BNB", "USDT", "Cake"]
    assert portfolio.top_tokens[0].percentage == pytest.approx(620.0 / 730.0 * 100)
    assert portfolio.profitable_tokens == 0

    activity = report.activity
    assert activity.total_transactions == 3
    assert activity.failed_transactions == 1
    assert activity.unique_contracts == 2
    assert [transfer.timestamp.day for transfer in activity.recent_transactions] == [30, 25, 20]

    assert report.insights.is_active
    # One of three transfers failed
    assert report.risk.score == 65
    assert report.risk.factors == [
        "Low transaction activity",
        "High failure rate on transactions",
        "Recently active",
    ]

    # The stablecoin never reaches the pair search
    dex_paths = [request.url.path for request in backend.requests if "dexscreener" in request.url.host]
    assert dex_paths == [f"/latest/dex/tokens/{CAKE}"]


def test_analyze_resolves_chain_alias(analyzer_for):
    """Test selector aliases and the per-chain native asset."""
    backend = Backend(_rpc_table())
    analyzer = analyzer_for(backend)

    report = analyzer.analyze(WALLET, "MATIC", now=NOW)

    assert report.metadata.chain == "polygon"
    assert report.portfolio.tokens[0].symbol == "MATIC"
    hosts = {host for host, _, _ in backend.rpc.calls}
    assert hosts == {"polygon-mainnet.g.alchemy.com"}
    coin_ids = [request.url.params["ids"] for request in backend.requests if "coingecko" in request.url.host]
    assert coin_ids == ["matic-network"]


def test_analyze_degrades_native_balance(analyzer_for):
    """Test native balance and block number failures do not fail the report."""
    backend = Backend(
        _rpc_table(
            eth_getBalance=lambda params: httpx.Response(500),
            eth_blockNumber=lambda params: httpx.Response(500),
        )
    )
    analyzer = analyzer_for(backend)

    report = analyzer.analyze(WALLET, "bsc", now=NOW)

    assert report.metadata.native_balance == "0x0"
    assert report.metadata.block_number is None
    assert [token.symbol for token in report.portfolio.tokens] == ["USDT", "Cake"]


@pytest.mark.parametrize("method", ["alchemy_getTokenBalances", "alchemy_getAssetTransfers"])
def test_analyze_wallet_data_unavailable(analyzer_for, method):
    """Test balances or transfers failures are reported distinctly."""
    backend = Backend(_rpc_table(**{method: lambda params: httpx.Response(503)}))
    analyzer = analyzer_for(backend)

    with pytest.raises(WalletDataUnavailableError) as exc_info:
        analyzer.analyze(WALLET, "eth", now=NOW)

    assert exc_info.value.chain == "eth"
    assert "ALCHEMY_API_KEY" in str(exc_info.value)


@pytest.mark.parametrize(
    "overrides",
    [
        {"alchemy_getTokenBalances": [{"contractAddress": CAKE, "tokenBalance": "0x1"}]},
        {"alchemy_getAssetTransfers": ["0xnot-an-object"]},
    ],
)
def test_analyze_malformed_result(analyzer_for, overrides):
    """Test a well-formed response with the wrong result shape gets the configuration hint."""
    backend = Backend(_rpc_table(**overrides))
    analyzer = analyzer_for(backend)

    with pytest.raises(WalletDataUnavailableError) as exc_info:
        analyzer.analyze(WALLET, "bsc", now=NOW)

    assert exc_info.value.chain == "bsc"
    assert "unexpected result type" in str(exc_info.value)


def test_scan(analyzer_for):
    """Test the multi-chain scan summary."""
    tables = _rpc_table()
    backend = Backend(tables)
    analyzer = analyzer_for(backend)

    summary = analyzer.scan(WALLET, ["eth", "bsc", "fantom"])

    assert summary.scanned_chains == 3
    assert summary.successful_chains == 2
    assert summary.active_chains == 2
    assert summary.total_tokens == 4
    assert summary.total_transactions == 6
    assert [result.chain for result in summary.results] == ["eth", "bsc", "fantom"]

    # Both bsc tokens are priced; on eth only the native asset is
    assert [result.total_value_usd for result in summary.results] == [
        pytest.approx(620.0),
        pytest.approx(730.0),
        None,
    ]
    assert summary.total_value == pytest.approx(1350.0)
    assert [entry.chain for entry in summary.chain_distribution] == ["bsc", "eth"]
    assert summary.chain_distribution[0].value_percentage == pytest.approx(730.0 / 1350.0 * 100)

    queries = [params[0] for _, method, params in backend.rpc.calls if method == "alchemy_getAssetTransfers"]
    assert {query["maxCount"] for query in queries} == {"0x32"}


def test_scan_without_valuation(analyzer_for):
    """Test an unpriced scan falls back to holdings for the active count."""
    backend = Backend(_rpc_table())
    analyzer = analyzer_for(backend)

    summary = analyzer.scan(WALLET, ["eth", "bsc"], value=False)

    assert summary.active_chains == 2
    assert summary.total_value == 0.0
    assert all(result.total_value_usd is None for result in summary.results)
    assert not [request for request in backend.requests if request.method == "GET"]


def test_missing_credential(monkeypatch):
    """Test the analyzer needs the provider key when no registry is given."""
    monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)

    with pytest.raises(MissingCredentialError):
        WalletAnalyzer()


def test_close_only_owned_client(registry):
    """Test a caller-supplied client stays open."""
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    with WalletAnalyzer(registry=registry, client=client):
        pass
    assert not client.is_closed

    with WalletAnalyzer(registry=registry) as analyzer:
        owned = analyzer.client
    assert owned.is_closed
