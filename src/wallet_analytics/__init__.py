"""Wallet analytics: portfolio valuation, transaction statistics and risk scoring for EVM wallets."""

from wallet_analytics.core.aggregator import WalletAnalyzer, validate_address

__version__ = "0.1.0"

__all__ = [
    "WalletAnalyzer",
    "__version__",
    "validate_address",
]
