"""Chain, alias, stablecoin and credential configuration loader."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from wallet_analytics.exceptions import MissingCredentialError, UnsupportedChainError

API_KEY_ENV_VAR = "ALCHEMY_API_KEY"


@lru_cache(maxsize=1)
def load_chains() -> dict[str, Any]:
    """
    Load the chain configuration from chains.yaml.

    The file is parsed once per process; callers must treat the result as
    read-only.

    Returns
    -------
    dict[str, Any]
        Configuration including chains, aliases, stablecoins and pricing

    """
    path = Path(__file__).parent / "chains.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def get_chain_config(chain: str) -> dict[str, Any]:
    """
    Get configuration for a specific chain.

    Parameters
    ----------
    chain : str
        Chain key (e.g., 'eth', 'bsc')

    Returns
    -------
    dict[str, Any]
        Chain configuration including endpoint template and native asset

    Raises
    ------
    UnsupportedChainError
        If chain is not found in configuration

    """
    try:
        return load_chains()["chains"][chain]
    except KeyError:
        raise UnsupportedChainError(chain) from None


def get_all_supported_chains() -> list[str]:
    """
    Get list of all supported chain keys, in configuration order.

    Returns
    -------
    list[str]
        List of chain keys

    """
    return list(load_chains()["chains"].keys())


def get_chain_id(chain: str) -> int:
    """Get numeric chain ID."""
    return get_chain_config(chain)["chain_id"]


def get_default_chain() -> str:
    """Chain key used when no (or an unrecognized) selector is given."""
    return load_chains()["default_chain"]


def get_chain_aliases() -> dict[str, str]:
    """
    Get the selector alias table.

    Returns
    -------
    dict[str, str]
        Mapping of lowercase selector to chain key

    """
    return {alias.lower(): key for alias, key in load_chains()["aliases"].items()}


def get_stablecoin_addresses() -> frozenset[str]:
    """
    Get every stablecoin contract address across all chains.

    Returns
    -------
    frozenset[str]
        Lowercase contract addresses priced at 1.0 USD

    """
    addresses = set()
    for chain_addresses in load_chains()["stablecoins"].values():
        addresses.update(address.lower() for address in chain_addresses)
    return frozenset(addresses)


def get_pricing_config() -> dict[str, Any]:
    """Get price source URLs and rate-limit settings."""
    return dict(load_chains()["pricing"])


def get_provider_api_key(env_var: str = API_KEY_ENV_VAR) -> str:
    """
    Read the chain-data provider API key from the environment.

    Parameters
    ----------
    env_var : str
        Environment variable holding the key

    Returns
    -------
    str
        The API key

    Raises
    ------
    MissingCredentialError
        If the variable is unset or blank

    """
    api_key = os.environ.get(env_var, "").strip()
    if not api_key:
        raise MissingCredentialError(env_var)
    return api_key
