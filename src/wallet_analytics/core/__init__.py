"""Core functionality: models, chain registry, normalization, valuation, scoring and reporting."""

from wallet_analytics.core.models import (
    ChainDescriptor,
    ChainScanResult,
    NormalizedToken,
    PortfolioValuation,
    PriceQuote,
    RawTokenBalance,
    RiskAssessment,
    RiskLevel,
    ScanSummary,
    Statistics,
    Transfer,
    WalletReport,
)
from wallet_analytics.core.normalizer import hex_to_decimal, normalize_tokens
from wallet_analytics.core.registry import ChainRegistry
from wallet_analytics.core.report import assemble_report, summarize_scan
from wallet_analytics.core.risk import assess_risk, compute_statistics
from wallet_analytics.core.valuator import value_portfolio

__all__ = [
    "ChainDescriptor",
    "ChainRegistry",
    "ChainScanResult",
    "NormalizedToken",
    "PortfolioValuation",
    "PriceQuote",
    "RawTokenBalance",
    "RiskAssessment",
    "RiskLevel",
    "ScanSummary",
    "Statistics",
    "Transfer",
    "WalletReport",
    "assemble_report",
    "assess_risk",
    "compute_statistics",
    "hex_to_decimal",
    "normalize_tokens",
    "summarize_scan",
    "value_portfolio",
]
