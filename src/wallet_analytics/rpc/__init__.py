"""RPC layer with the chain-data provider client and retry logic."""

from wallet_analytics.rpc.provider import AlchemyProvider
from wallet_analytics.rpc.retry import RetryConfig, retry_call

__all__ = [
    "AlchemyProvider",
    "RetryConfig",
    "retry_call",
]
