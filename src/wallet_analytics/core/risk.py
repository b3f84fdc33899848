"""Transaction statistics and heuristic wallet risk scoring."""

from datetime import UTC, datetime, timedelta

from wallet_analytics.core.models import EPOCH, RiskAssessment, RiskLevel, Statistics, Transfer

RECENT_ACTIVITY_WINDOW = timedelta(days=30)

# The success-rate bonus needs a minimum sample; the penalty applies to any history.
MIN_SUCCESS_RATE_SAMPLE = 10

LOW_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40


def compute_statistics(transfers: list[Transfer]) -> Statistics:
    """
    Derive transaction statistics from a wallet's transfers.

    A transfer is failed only when its metadata carries an error indicator.
    First and last timestamps come from an ascending sort of the dated
    transfers, independent of the display order of ``transfers``.

    Parameters
    ----------
    transfers : list[Transfer]
        Wallet transfers in any order

    Returns
    -------
    Statistics
        Counts, success rate, unique contracts and first/last timestamps

    """
    total = len(transfers)
    failed = sum(1 for transfer in transfers if transfer.failed)
    successful = total - failed
    success_rate = successful / total * 100 if total else 0.0

    contracts = {
        transfer.raw_contract.address.lower() for transfer in transfers if transfer.raw_contract.address
    }

    dated = sorted(transfer.timestamp for transfer in transfers if transfer.timestamp != EPOCH)

    return Statistics(
        total_transactions=total,
        successful_count=successful,
        failed_count=failed,
        success_rate_percent=success_rate,
        unique_contract_count=len(contracts),
        first_tx_timestamp=dated[0] if dated else None,
        last_tx_timestamp=dated[-1] if dated else None,
    )


def risk_level(score: int) -> RiskLevel:
    """Map a score to its level; a high score means low risk."""
    if score >= LOW_RISK_THRESHOLD:
        return RiskLevel.LOW
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def is_recently_active(statistics: Statistics, now: datetime | None = None) -> bool:
    """Whether the last transaction falls within the trailing 30 days."""
    if statistics.last_tx_timestamp is None:
        return False
    now = now or datetime.now(UTC)
    return now - statistics.last_tx_timestamp <= RECENT_ACTIVITY_WINDOW


def assess_risk(
    token_count: int,
    statistics: Statistics,
    now: datetime | None = None,
) -> RiskAssessment:
    """
    Score a wallet from 100 with ordered, independent adjustments.

    Parameters
    ----------
    token_count : int
        Number of normalized tokens held
    statistics : Statistics
        Transaction statistics
    now : datetime | None
        Reference time for the recent-activity window (default: now, UTC)

    Returns
    -------
    RiskAssessment
        Score clamped to [0, 100], level and factors in adjustment order

    """
    score = 100
    factors = []

    if token_count < 3:
        score -= 20
        factors.append("Low portfolio diversification")
    elif token_count > 10:
        score += 10
        factors.append("Good portfolio diversification")

    tx_count = statistics.total_transactions
    if tx_count < 10:
        score -= 15
        factors.append("Low transaction activity")
    elif tx_count > 50:
        score += 10
        factors.append("Active wallet")

    if tx_count > 0 and statistics.success_rate_percent < 80:
        score -= 25
        factors.append("High failure rate on transactions")
    elif tx_count >= MIN_SUCCESS_RATE_SAMPLE and statistics.success_rate_percent > 95:
        score += 5
        factors.append("Excellent transaction success rate")

    if is_recently_active(statistics, now):
        score += 5
        factors.append("Recently active")
    else:
        score -= 15
        factors.append("No recent activity (30 days)")

    score = max(0, min(100, score))
    return RiskAssessment(score=score, level=risk_level(score), factors=factors)
