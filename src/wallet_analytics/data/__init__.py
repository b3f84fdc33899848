"""Data loading and configuration management."""

from wallet_analytics.data.loader import (
    API_KEY_ENV_VAR,
    get_all_supported_chains,
    get_chain_aliases,
    get_chain_config,
    get_chain_id,
    get_default_chain,
    get_pricing_config,
    get_provider_api_key,
    get_stablecoin_addresses,
    load_chains,
)

__all__ = [
    "API_KEY_ENV_VAR",
    "get_all_supported_chains",
    "get_chain_aliases",
    "get_chain_config",
    "get_chain_id",
    "get_default_chain",
    "get_pricing_config",
    "get_provider_api_key",
    "get_stablecoin_addresses",
    "load_chains",
]
