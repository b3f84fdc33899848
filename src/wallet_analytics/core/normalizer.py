"""Conversion of raw provider balances into normalized token records."""

import logging
from decimal import Decimal

from wallet_analytics.core.models import ChainDescriptor, NormalizedToken, RawTokenBalance

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18
DEFAULT_DECIMALS = 18
UNKNOWN_SYMBOL = "UNKNOWN"
UNKNOWN_NAME = "Unknown Token"


def is_zero_balance(balance_hex: str | None) -> bool:
    """Whether a hex balance is missing or encodes zero (``0x0``, ``0x000...``)."""
    if not balance_hex:
        return True
    digits = balance_hex[2:] if balance_hex.lower().startswith("0x") else balance_hex
    return not digits.strip("0")


def hex_to_decimal(balance_hex: str, decimals: int = DEFAULT_DECIMALS) -> float:
    """
    Convert an on-chain integer balance to a human-scale quantity.

    The division by ``10**decimals`` is done on the exact integer before
    converting to float, so large balances keep their precision.

    Parameters
    ----------
    balance_hex : str
        Integer balance as hex (with or without ``0x``)
    decimals : int
        Token decimal precision

    Returns
    -------
    float
        Decimal-adjusted balance

    Raises
    ------
    ValueError
        If the hex string is malformed or decimals is negative

    """
    if decimals < 0:
        msg = f"decimals must be non-negative, got {decimals}"
        raise ValueError(msg)
    raw = int(balance_hex, 16)
    return float(Decimal(raw).scaleb(-decimals))


def normalize_tokens(
    raw_tokens: list[RawTokenBalance],
    native_balance_hex: str,
    chain: ChainDescriptor,
) -> list[NormalizedToken]:
    """
    Build the normalized token list for one chain.

    The native asset comes first when its balance is positive, followed by
    contract tokens in provider order. Zero balances are dropped and a token
    that fails conversion is logged and skipped.

    Parameters
    ----------
    raw_tokens : list[RawTokenBalance]
        Contract token balances with metadata
    native_balance_hex : str
        Native balance in wei as hex
    chain : ChainDescriptor
        Chain the balances were read from

    Returns
    -------
    list[NormalizedToken]
        Tokens with positive decimal balances

    """
    tokens = []

    native = _normalize_native(native_balance_hex, chain)
    if native is not None:
        tokens.append(native)

    for raw in raw_tokens:
        decimals = raw.decimals if raw.decimals is not None else DEFAULT_DECIMALS
        try:
            balance = hex_to_decimal(raw.balance_hex, decimals)
        except (TypeError, ValueError) as e:
            logger.warning("Skipping token %s on %s: %s", raw.contract_address, chain.key, e)
            continue

        if balance <= 0:
            continue

        tokens.append(
            NormalizedToken(
                symbol=raw.symbol or UNKNOWN_SYMBOL,
                name=raw.name or UNKNOWN_NAME,
                balance=balance,
                raw_balance_hex=raw.balance_hex,
                decimals=decimals,
                is_native=False,
                contract_address=raw.contract_address,
                logo_url=raw.logo_url,
            )
        )

    return tokens


def _normalize_native(native_balance_hex: str, chain: ChainDescriptor) -> NormalizedToken | None:
    try:
        balance = hex_to_decimal(native_balance_hex or "0x0", NATIVE_DECIMALS)
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring malformed native balance on %s: %s", chain.key, e)
        return None

    if balance <= 0:
        return None

    return NormalizedToken(
        symbol=chain.native_symbol,
        name=chain.native_name,
        balance=balance,
        raw_balance_hex=native_balance_hex,
        decimals=NATIVE_DECIMALS,
        is_native=True,
        contract_address=None,
    )
