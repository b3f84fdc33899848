"""Tests for data loading and configuration."""

import pytest

from wallet_analytics.data import (
    get_all_supported_chains,
    get_chain_aliases,
    get_chain_config,
    get_chain_id,
    get_default_chain,
    get_pricing_config,
    get_provider_api_key,
    get_stablecoin_addresses,
)
from wallet_analytics.exceptions import MissingCredentialError, UnsupportedChainError


def test_get_all_supported_chains():
    """Test getting all supported chain keys."""
    chains = get_all_supported_chains()

    assert isinstance(chains, list)
    assert chains == ["eth", "bsc", "polygon", "arbitrum", "optimism", "base"]


def test_get_chain_config():
    """Test getting chain configuration."""
    config = get_chain_config("eth")

    assert config["chain_id"] == 1
    assert config["native_symbol"] == "ETH"
    assert "{api_key}" in config["endpoint"]
    assert config["endpoint"].startswith("https://")


def test_get_chain_config_unknown():
    """Test that unknown chains are rejected."""
    with pytest.raises(UnsupportedChainError):
        get_chain_config("solana")


def test_get_chain_id():
    """Test getting chain ID."""
    assert get_chain_id("eth") == 1
    assert get_chain_id("bsc") == 56
    assert get_chain_id("base") == 8453


def test_default_chain():
    """Test the default chain is registered."""
    assert get_default_chain() == "bsc"
    assert get_default_chain() in get_all_supported_chains()


def test_aliases_point_at_registered_chains():
    """Test every alias resolves to a configured chain."""
    aliases = get_chain_aliases()
    chains = set(get_all_supported_chains())

    assert aliases["ethereum"] == "eth"
    assert aliases["matic"] == "polygon"
    assert aliases["bnb"] == "bsc"
    assert set(aliases.values()) <= chains
    assert all(alias == alias.lower() for alias in aliases)


def test_stablecoin_addresses():
    """Test stablecoin table is lowercase and covers major tokens."""
    stablecoins = get_stablecoin_addresses()

    assert isinstance(stablecoins, frozenset)
    assert "0xdac17f958d2ee523a2206206994597c13d831ec7" in stablecoins  # USDT on Ethereum
    assert "0x55d398326f99059ff775485246999027b3197955" in stablecoins  # USDT on BSC
    assert all(address == address.lower() for address in stablecoins)


def test_pricing_config():
    """Test price source settings."""
    config = get_pricing_config()

    assert config["top_n"] == 20
    assert config["request_delay"] == pytest.approx(0.2)
    assert config["coingecko_url"].startswith("https://")
    assert config["dexscreener_url"].startswith("https://")


def test_provider_api_key(monkeypatch):
    """Test reading the API key from the environment."""
    monkeypatch.setenv("ALCHEMY_API_KEY", "  secret  ")

    assert get_provider_api_key() == "secret"


@pytest.mark.parametrize("value", [None, "", "   "])
def test_provider_api_key_missing(monkeypatch, value):
    """Test that a missing or blank key is a precondition failure."""
    if value is None:
        monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)
    else:
        monkeypatch.setenv("ALCHEMY_API_KEY", value)

    with pytest.raises(MissingCredentialError) as exc_info:
        get_provider_api_key()

    assert "ALCHEMY_API_KEY" in str(exc_info.value)
