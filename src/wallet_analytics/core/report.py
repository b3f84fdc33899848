"""Report assembly for single-chain reports and multi-chain scans."""

from datetime import UTC, datetime, timedelta

from wallet_analytics.core.models import (
    EPOCH,
    ActivityDay,
    ActivitySection,
    ChainDescriptor,
    ChainDistribution,
    ChainScanResult,
    ExperienceLevel,
    NormalizedToken,
    PortfolioSection,
    PortfolioValuation,
    ReportMetadata,
    RiskAssessment,
    ScanSummary,
    Statistics,
    TokenAllocation,
    Transfer,
    WalletInsights,
    WalletReport,
)
from wallet_analytics.core.normalizer import is_zero_balance
from wallet_analytics.core.risk import is_recently_active

RECENT_TRANSACTIONS = 10
TIMELINE_DAYS = 30
TOP_TOKENS = 10

# Chains worth less than this are not counted as active once valued
ACTIVE_CHAIN_MIN_VALUE = 0.01


def experience_level(total_transactions: int) -> ExperienceLevel:
    """Label a wallet by its transaction count."""
    if total_transactions > 100:
        return ExperienceLevel.EXPERT
    if total_transactions > 50:
        return ExperienceLevel.ADVANCED
    if total_transactions > 10:
        return ExperienceLevel.INTERMEDIATE
    return ExperienceLevel.BEGINNER


def build_insights(statistics: Statistics, now: datetime | None = None) -> WalletInsights:
    """Derive wallet age, activity flag and experience level."""
    now = now or datetime.now(UTC)
    age_days = 0
    if statistics.first_tx_timestamp is not None:
        age_days = max(0, (now - statistics.first_tx_timestamp).days)

    return WalletInsights(
        wallet_age_days=age_days,
        is_active=is_recently_active(statistics, now),
        experience_level=experience_level(statistics.total_transactions),
    )


def build_timeline(
    transfers: list[Transfer],
    now: datetime | None = None,
    days: int = TIMELINE_DAYS,
) -> list[ActivityDay]:
    """
    Count transfers per UTC day over the trailing window, oldest day first.

    Parameters
    ----------
    transfers : list[Transfer]
        Wallet transfers
    now : datetime | None
        End of the window (default: now, UTC)
    days : int
        Number of days in the window, including today

    Returns
    -------
    list[ActivityDay]
        One entry per day, zero-filled

    """
    now = now or datetime.now(UTC)
    today = now.astimezone(UTC).date()
    counts = {(today - timedelta(days=offset)).isoformat(): 0 for offset in range(days - 1, -1, -1)}

    for transfer in transfers:
        if transfer.timestamp == EPOCH:
            continue
        day = transfer.timestamp.astimezone(UTC).date().isoformat()
        if day in counts:
            counts[day] += 1

    return [ActivityDay(date=day, transactions=count) for day, count in counts.items()]


def rank_tokens(tokens: list[NormalizedToken]) -> list[NormalizedToken]:
    """Sort tokens by USD value, highest first, keeping ties in input order."""
    return sorted(tokens, key=lambda token: token.value_usd, reverse=True)


def build_allocation(
    tokens: list[NormalizedToken],
    total_value: float,
    limit: int = TOP_TOKENS,
) -> list[TokenAllocation]:
    """
    Share of the portfolio held by the largest positions.

    Parameters
    ----------
    tokens : list[NormalizedToken]
        Tokens ranked by value
    total_value : float
        Portfolio total in USD; every percentage is 0 when it is 0
    limit : int
        Number of positions to keep

    Returns
    -------
    list[TokenAllocation]
        At most ``limit`` entries in the order of ``tokens``

    """
    return [
        TokenAllocation(
            symbol=token.symbol,
            name=token.name,
            contract_address=token.contract_address,
            value_usd=token.value_usd,
            percentage=token.value_usd / total_value * 100 if total_value > 0 else 0.0,
        )
        for token in tokens[:limit]
    ]


def assemble_report(
    address: str,
    chain: ChainDescriptor,
    valuation: PortfolioValuation,
    transfers: list[Transfer],
    statistics: Statistics,
    risk: RiskAssessment,
    *,
    native_balance: str = "0x0",
    block_number: int | None = None,
    now: datetime | None = None,
) -> WalletReport:
    """
    Compose the structured wallet report.

    Pure function of the pipeline's intermediate results; performs no I/O.

    Parameters
    ----------
    address : str
        Queried wallet address
    chain : ChainDescriptor
        Chain the report covers
    valuation : PortfolioValuation
        Priced tokens and totals
    transfers : list[Transfer]
        Transfers sorted newest first
    statistics : Statistics
        Transaction statistics
    risk : RiskAssessment
        Risk assessment
    native_balance : str
        Native balance hex
    block_number : int | None
        Latest block number at fetch time
    now : datetime | None
        Fetch time (default: now, UTC)

    Returns
    -------
    WalletReport
        Portfolio, activity, risk, insights and metadata

    """
    now = now or datetime.now(UTC)
    tokens = rank_tokens(valuation.tokens)

    portfolio = PortfolioSection(
        total_tokens=len(tokens),
        tokens=tokens,
        total_value=valuation.total_value,
        total_change_24h=valuation.total_change_24h,
        total_change_percent=valuation.total_change_percent,
        top_tokens=build_allocation(tokens, valuation.total_value),
        profitable_tokens=sum(1 for token in tokens if token.change_24h_percent > 0),
    )

    activity = ActivitySection(
        total_transactions=statistics.total_transactions,
        successful_transactions=statistics.successful_count,
        failed_transactions=statistics.failed_count,
        success_rate=statistics.success_rate_percent,
        unique_contracts=statistics.unique_contract_count,
        first_transaction=statistics.first_tx_timestamp,
        last_transaction=statistics.last_tx_timestamp,
        recent_transactions=transfers[:RECENT_TRANSACTIONS],
        timeline=build_timeline(transfers, now),
    )

    metadata = ReportMetadata(
        address=address,
        chain=chain.key,
        chain_name=chain.name,
        chain_id=chain.chain_id,
        fetched_at=now,
        block_number=block_number,
        native_balance=native_balance,
    )

    return WalletReport(
        portfolio=portfolio,
        activity=activity,
        risk=risk,
        insights=build_insights(statistics, now),
        metadata=metadata,
    )


def summarize_scan(address: str, results: list[ChainScanResult]) -> ScanSummary:
    """
    Roll up multi-chain scan results.

    A valued chain is active when its holdings are worth at least one cent;
    a chain without a valuation is active when it holds tokens or a non-zero
    native balance. The distribution covers successful chains, sorted by
    USD value and then by transaction count.

    Parameters
    ----------
    address : str
        Scanned wallet address
    results : list[ChainScanResult]
        Per-chain results in request order

    Returns
    -------
    ScanSummary
        Counts, per-chain distribution and the untouched results

    """
    successful = [result for result in results if result.success]
    total_transactions = sum(len(result.transactions) for result in successful)
    total_value = sum(result.total_value_usd or 0.0 for result in successful)

    distribution = []
    for result in successful:
        value = result.total_value_usd or 0.0
        distribution.append(
            ChainDistribution(
                chain=result.chain,
                chain_name=result.chain_name,
                value_usd=value,
                value_percentage=value / total_value * 100 if total_value > 0 else 0.0,
                transactions=len(result.transactions),
                percentage=len(result.transactions) / total_transactions * 100 if total_transactions else 0.0,
                token_count=len(result.tokens),
            )
        )
    distribution.sort(key=lambda entry: (entry.value_usd, entry.transactions), reverse=True)

    active = [result for result in successful if _is_active(result)]

    return ScanSummary(
        address=address,
        scanned_chains=len(results),
        successful_chains=len(successful),
        active_chains=len(active),
        total_tokens=sum(len(result.tokens) for result in successful),
        total_transactions=total_transactions,
        total_value=total_value,
        chain_distribution=distribution,
        results=results,
    )


def _is_active(result: ChainScanResult) -> bool:
    if result.total_value_usd is not None:
        return result.total_value_usd >= ACTIVE_CHAIN_MIN_VALUE
    return bool(result.tokens) or not is_zero_balance(result.native_balance)
