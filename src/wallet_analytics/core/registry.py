"""Chain registry: supported chains and selector aliases."""

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from wallet_analytics.core.models import ChainDescriptor
from wallet_analytics.data import (
    get_all_supported_chains,
    get_chain_aliases,
    get_chain_config,
    get_default_chain,
)
from wallet_analytics.exceptions import UnsupportedChainError


class ChainRegistry:
    """
    Read-only table of supported chains.

    Built once from ``chains.yaml`` with the provider API key substituted
    into each endpoint template. Selectors are mapped to chain keys through
    a case-insensitive alias table.

    Parameters
    ----------
    chains : Mapping[str, ChainDescriptor]
        Chain descriptors keyed by chain key, in display order
    aliases : Mapping[str, str]
        Lowercase selector to chain key
    default_chain : str
        Chain key used when no or an unknown selector is given

    """

    def __init__(
        self,
        chains: Mapping[str, ChainDescriptor],
        aliases: Mapping[str, str],
        default_chain: str,
    ) -> None:
        if default_chain not in chains:
            raise UnsupportedChainError(default_chain)
        self._chains = MappingProxyType(dict(chains))
        self._aliases = MappingProxyType({alias.lower(): key for alias, key in aliases.items()})
        self.default_chain = default_chain

    @classmethod
    def from_config(cls, api_key: str = "") -> "ChainRegistry":
        """
        Build the registry from the bundled configuration.

        Parameters
        ----------
        api_key : str
            Provider API key substituted into endpoint templates

        Returns
        -------
        ChainRegistry
            Registry of all configured chains

        """
        chains = {}
        for key in get_all_supported_chains():
            config = get_chain_config(key)
            chains[key] = ChainDescriptor(
                key=key,
                chain_id=config["chain_id"],
                name=config["name"],
                endpoint_url=config["endpoint"].format(api_key=api_key),
                explorer_url=config["explorer"],
                native_symbol=config["native_symbol"],
                native_name=config["native_name"],
                native_coin_id=config["native_coin_id"],
                native_price_fallback=float(config["native_price_fallback"]),
                dexscreener_id=config["dexscreener_id"],
            )
        return cls(chains, get_chain_aliases(), get_default_chain())

    @property
    def chains(self) -> Mapping[str, ChainDescriptor]:
        """All chain descriptors keyed by chain key."""
        return self._chains

    def keys(self) -> list[str]:
        """Chain keys in configuration order."""
        return list(self._chains)

    def get(self, key: str) -> ChainDescriptor:
        """
        Look up a chain by its exact key.

        Raises
        ------
        UnsupportedChainError
            If the key is not registered

        """
        try:
            return self._chains[key]
        except KeyError:
            raise UnsupportedChainError(key) from None

    def resolve(self, selector: str | None) -> ChainDescriptor:
        """
        Map a user-facing chain selector to a chain descriptor.

        Parameters
        ----------
        selector : str | None
            Selector such as 'Ethereum', 'matic' or 'bsc'

        Returns
        -------
        ChainDescriptor
            Matching chain, or the default chain when the selector is
            missing or not recognized

        """
        if not selector:
            return self._chains[self.default_chain]
        key = self._aliases.get(selector.strip().lower(), self.default_chain)
        return self._chains.get(key, self._chains[self.default_chain])

    def __contains__(self, key: object) -> bool:
        return key in self._chains

    def __iter__(self) -> Iterator[ChainDescriptor]:
        return iter(self._chains.values())

    def __len__(self) -> int:
        return len(self._chains)
