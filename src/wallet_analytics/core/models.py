"""Data models for chains, tokens, transfers, prices and wallet reports."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

EPOCH = datetime.fromtimestamp(0, tz=UTC)


class RiskLevel(StrEnum):
    """
    Risk level derived from the risk score.

    ``LOW`` means low risk, i.e. a favorable (high) score.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ExperienceLevel(StrEnum):
    """Wallet experience label derived from transaction count."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class ChainDescriptor(BaseModel):
    """
    Immutable description of a supported chain.

    Attributes
    ----------
    key : str
        Short chain key (e.g., 'eth', 'bsc')
    chain_id : int
        Numeric EVM chain ID
    name : str
        Display name
    endpoint_url : str
        Provider JSON-RPC endpoint
    explorer_url : str
        Block explorer base URL
    native_symbol : str
        Symbol of the gas-paying asset
    native_name : str
        Name of the gas-paying asset
    native_coin_id : str
        CoinGecko coin ID of the native asset
    native_price_fallback : float
        USD price used when the native price source is unavailable
    dexscreener_id : str
        DexScreener chain slug used to filter trading pairs

    """

    model_config = ConfigDict(frozen=True)

    key: str
    chain_id: int
    name: str
    endpoint_url: str
    explorer_url: str
    native_symbol: str = "ETH"
    native_name: str = "Ether"
    native_coin_id: str = "ethereum"
    native_price_fallback: float = 0.0
    dexscreener_id: str = ""


class RawTokenBalance(BaseModel):
    """
    Contract token balance as reported by the provider, plus metadata.

    Metadata fields are None when the provider knows nothing about the token.
    """

    contract_address: str
    balance_hex: str
    decimals: int | None = None
    symbol: str | None = None
    name: str | None = None
    logo_url: str | None = None


class NormalizedToken(BaseModel):
    """
    Decimal-adjusted token holding.

    Attributes
    ----------
    symbol : str
        Token symbol
    name : str
        Token name
    balance : float
        Decimal-adjusted balance, always > 0
    raw_balance_hex : str
        On-chain integer balance as hex
    decimals : int
        Decimal precision used for the adjustment
    is_native : bool
        Whether this is the chain's gas asset
    contract_address : str | None
        Token contract address (None for the native asset)
    logo_url : str | None
        Token logo
    price_usd : float
        Resolved USD price (0 until priced)
    value_usd : float
        balance x price_usd (0 until priced)
    change_24h_percent : float
        24h price change in percent

    """

    symbol: str
    name: str
    balance: float
    raw_balance_hex: str
    decimals: int
    is_native: bool = False
    contract_address: str | None = None
    logo_url: str | None = None
    price_usd: float = 0.0
    value_usd: float = 0.0
    change_24h_percent: float = 0.0

    @property
    def price_key(self) -> str:
        """Key used to look up this token's quote."""
        if self.is_native or not self.contract_address:
            return self.symbol.upper()
        return self.contract_address.lower()


class TransferMetadata(BaseModel):
    """Transfer metadata; ``error`` is set only for failed transactions."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    block_timestamp: str | None = Field(default=None, alias="blockTimestamp")
    error: Any = None


class RawContract(BaseModel):
    """Contract details of a transferred asset."""

    model_config = ConfigDict(extra="allow")

    address: str | None = None
    value: str | None = None
    decimal: str | None = None


class Transfer(BaseModel):
    """
    On-chain asset transfer in the provider's format.

    Direction-agnostic: the same record type is used for incoming and
    outgoing transfers. Unknown provider fields are preserved.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    hash: str | None = None
    from_address: str | None = Field(default=None, alias="from")
    to_address: str | None = Field(default=None, alias="to")
    value: float | None = None
    asset: str | None = None
    category: str | None = None
    block_num: str | None = Field(default=None, alias="blockNum")
    metadata: TransferMetadata = Field(default_factory=TransferMetadata)
    raw_contract: RawContract = Field(default_factory=RawContract, alias="rawContract")

    @field_validator("metadata", "raw_contract", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def timestamp(self) -> datetime:
        """Block timestamp as an aware datetime; epoch when missing or unparsable."""
        raw = self.metadata.block_timestamp
        if not raw:
            return EPOCH
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    @property
    def failed(self) -> bool:
        """Whether the metadata carries an explicit error indicator."""
        return bool(self.metadata.error)


class PriceQuote(BaseModel):
    """USD price and 24h change for one asset."""

    usd_price: float
    change_24h_percent: float = 0.0
    logo_url: str | None = None


class PortfolioValuation(BaseModel):
    """Priced tokens and portfolio totals."""

    tokens: list[NormalizedToken]
    total_value: float = 0.0
    total_change_24h: float = 0.0
    total_change_percent: float = 0.0


class Statistics(BaseModel):
    """Transaction statistics for one wallet."""

    total_transactions: int = 0
    successful_count: int = 0
    failed_count: int = 0
    success_rate_percent: float = 0.0
    unique_contract_count: int = 0
    first_tx_timestamp: datetime | None = None
    last_tx_timestamp: datetime | None = None


class RiskAssessment(BaseModel):
    """Heuristic risk score in [0, 100] with its level and contributing factors."""

    score: int = Field(ge=0, le=100)
    level: RiskLevel
    factors: list[str] = Field(default_factory=list)


class ChainScanResult(BaseModel):
    """
    Outcome of fetching one chain during a multi-chain scan.

    Attributes
    ----------
    chain : str
        Chain key, positionally matching the requested chain
    chain_id : int | None
        Numeric chain ID (None for unknown chain keys)
    chain_name : str | None
        Display name
    success : bool
        Whether balances and transfers were fetched
    native_balance : str | None
        Native balance hex
    tokens : list[RawTokenBalance]
        Contract token balances
    transactions : list[Transfer]
        Transfers, newest first
    error : str | None
        Failure message when success is False
    total_value_usd : float | None
        USD value of the chain's holdings; None when the chain was not valued

    """

    chain: str
    chain_id: int | None = None
    chain_name: str | None = None
    success: bool
    native_balance: str | None = None
    tokens: list[RawTokenBalance] = Field(default_factory=list)
    transactions: list[Transfer] = Field(default_factory=list)
    error: str | None = None
    total_value_usd: float | None = None


class TokenAllocation(BaseModel):
    """Share of the portfolio value held in one token."""

    symbol: str
    name: str
    contract_address: str | None = None
    value_usd: float = 0.0
    percentage: float = 0.0


class PortfolioSection(BaseModel):
    """
    Portfolio part of a wallet report.

    Tokens are ranked by USD value, highest first. ``top_tokens`` holds the
    largest positions with their share of ``total_value`` and
    ``profitable_tokens`` counts tokens whose price rose over 24 hours.
    """

    total_tokens: int
    tokens: list[NormalizedToken]
    total_value: float = 0.0
    total_change_24h: float = 0.0
    total_change_percent: float = 0.0
    top_tokens: list[TokenAllocation] = Field(default_factory=list)
    profitable_tokens: int = 0


class ActivityDay(BaseModel):
    """Transfer count for one calendar day."""

    date: str
    transactions: int = 0


class ActivitySection(BaseModel):
    """Activity part of a wallet report."""

    total_transactions: int
    successful_transactions: int
    failed_transactions: int
    success_rate: float
    unique_contracts: int
    first_transaction: datetime | None = None
    last_transaction: datetime | None = None
    recent_transactions: list[Transfer] = Field(default_factory=list)
    timeline: list[ActivityDay] = Field(default_factory=list)


class WalletInsights(BaseModel):
    """Derived wallet insights."""

    wallet_age_days: int = 0
    is_active: bool = False
    experience_level: ExperienceLevel = ExperienceLevel.BEGINNER


class ReportMetadata(BaseModel):
    """Request metadata attached to a report."""

    address: str
    chain: str
    chain_name: str
    chain_id: int
    fetched_at: datetime
    block_number: int | None = None
    native_balance: str = "0x0"


class WalletReport(BaseModel):
    """Structured report returned to the caller of the pipeline."""

    portfolio: PortfolioSection
    activity: ActivitySection
    risk: RiskAssessment
    insights: WalletInsights
    metadata: ReportMetadata


class ChainDistribution(BaseModel):
    """Share of a wallet's value and transfers on one chain."""

    chain: str
    chain_name: str | None = None
    value_usd: float = 0.0
    value_percentage: float = 0.0
    transactions: int = 0
    percentage: float = 0.0
    token_count: int = 0


class ScanSummary(BaseModel):
    """Cross-chain roll-up of a multi-chain scan."""

    address: str
    scanned_chains: int
    successful_chains: int
    active_chains: int
    total_tokens: int
    total_transactions: int
    total_value: float = 0.0
    chain_distribution: list[ChainDistribution] = Field(default_factory=list)
    results: list[ChainScanResult] = Field(default_factory=list)
