"""Tests for report assembly and scan summaries."""

from datetime import UTC, datetime, timedelta

import pytest

from wallet_analytics.core.models import (
    ChainScanResult,
    ExperienceLevel,
    NormalizedToken,
    PortfolioValuation,
    RawTokenBalance,
    Transfer,
)
from wallet_analytics.core.report import (
    assemble_report,
    build_allocation,
    build_insights,
    build_timeline,
    experience_level,
    rank_tokens,
    summarize_scan,
)
from wallet_analytics.core.risk import assess_risk, compute_statistics

from conftest import WALLET, make_transfer

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _history(count, last=NOW, spacing=timedelta(hours=6)):
    return [
        Transfer.model_validate(
            make_transfer((last - spacing * index).isoformat().replace("+00:00", "Z"), hash=f"0x{index:x}")
        )
        for index in range(count)
    ]


@pytest.mark.parametrize(
    ("transactions", "level"),
    [
        (0, ExperienceLevel.BEGINNER),
        (10, ExperienceLevel.BEGINNER),
        (11, ExperienceLevel.INTERMEDIATE),
        (50, ExperienceLevel.INTERMEDIATE),
        (51, ExperienceLevel.ADVANCED),
        (100, ExperienceLevel.ADVANCED),
        (101, ExperienceLevel.EXPERT),
    ],
)
def test_experience_level(transactions, level):
    """Test experience thresholds."""
    assert experience_level(transactions) == level


def test_build_insights():
    """Test wallet age and activity flag."""
    statistics = compute_statistics(_history(3, last=NOW - timedelta(days=5), spacing=timedelta(days=100)))

    insights = build_insights(statistics, NOW)

    assert insights.wallet_age_days == 205
    assert insights.is_active
    assert insights.experience_level == ExperienceLevel.BEGINNER


def test_build_insights_without_history():
    """Test a wallet with no transfers."""
    insights = build_insights(compute_statistics([]), NOW)

    assert insights.wallet_age_days == 0
    assert not insights.is_active


def test_build_timeline():
    """Test zero-filled daily counts, oldest day first."""
    transfers = _history(4, spacing=timedelta(hours=8))
    transfers.append(Transfer.model_validate(make_transfer((NOW - timedelta(days=45)).isoformat())))
    transfers.append(Transfer.model_validate(make_transfer(None)))

    timeline = build_timeline(transfers, NOW)

    assert len(timeline) == 30
    assert timeline[0].date == "2024-05-03"
    assert timeline[-1].date == "2024-06-01"
    # 12:00 and 04:00 today, 20:00 and 12:00 yesterday
    assert timeline[-1].transactions == 2
    assert timeline[-2].transactions == 2
    assert sum(day.transactions for day in timeline) == 4


def test_assemble_report(chain):
    """Test every report section is populated."""
    transfers = _history(15)
    statistics = compute_statistics(transfers)
    risk = assess_risk(0, statistics, NOW)
    valuation = PortfolioValuation(tokens=[], total_value=0.0)

    report = assemble_report(
        WALLET,
        chain,
        valuation,
        transfers,
        statistics,
        risk,
        native_balance="0x0",
        block_number=39_000_000,
        now=NOW,
    )

    assert report.portfolio.total_tokens == 0
    assert report.activity.total_transactions == 15
    assert len(report.activity.recent_transactions) == 10
    assert report.activity.recent_transactions[0].hash == "0x0"
    assert report.activity.last_transaction == NOW
    assert len(report.activity.timeline) == 30
    assert report.risk == risk
    assert report.insights.experience_level == ExperienceLevel.INTERMEDIATE
    assert report.metadata.address == WALLET
    assert report.metadata.chain == "bsc"
    assert report.metadata.chain_id == 56
    assert report.metadata.fetched_at == NOW
    assert report.metadata.block_number == 39_000_000


def test_report_serializes_to_json(chain):
    """Test the report dumps to plain JSON types."""
    transfers = _history(2)
    statistics = compute_statistics(transfers)
    report = assemble_report(
        WALLET,
        chain,
        PortfolioValuation(tokens=[]),
        transfers,
        statistics,
        assess_risk(0, statistics, NOW),
        now=NOW,
    )

    data = report.model_dump(mode="json")

    assert data["risk"]["level"] in ("Low", "Medium", "High")
    assert data["metadata"]["fetched_at"].startswith("2024-06-01T12:00:00")
    assert data["activity"]["recent_transactions"][0]["metadata"]["block_timestamp"] == "2024-06-01T12:00:00Z"


def _token(symbol, value, change=0.0):
    return NormalizedToken(
        symbol=symbol,
        name=symbol.title(),
        balance=1.0,
        raw_balance_hex="0x1",
        decimals=18,
        contract_address=f"0x{symbol.lower():0>40}",
        price_usd=value,
        value_usd=value,
        change_24h_percent=change,
    )


def test_assemble_report_ranks_holdings(chain):
    """Test tokens are ranked by value with allocation and profitable count."""
    tokens = [_token("DUST", 0.0), _token("CAKE", 25.0, change=3.5), _token("USDT", 75.0), _token("DOGE", 0.0, -2.0)]
    statistics = compute_statistics([])

    report = assemble_report(
        WALLET,
        chain,
        PortfolioValuation(tokens=tokens, total_value=100.0),
        [],
        statistics,
        assess_risk(len(tokens), statistics, NOW),
        now=NOW,
    )

    portfolio = report.portfolio
    assert [token.symbol for token in portfolio.tokens] == ["USDT", "CAKE", "DUST", "DOGE"]
    assert [(entry.symbol, entry.percentage) for entry in portfolio.top_tokens] == [
        ("USDT", pytest.approx(75.0)),
        ("CAKE", pytest.approx(25.0)),
        ("DUST", 0.0),
        ("DOGE", 0.0),
    ]
    assert portfolio.top_tokens[0].contract_address == tokens[2].contract_address
    assert portfolio.profitable_tokens == 1


def test_build_allocation_limit():
    """Test the allocation keeps only the largest positions."""
    tokens = rank_tokens([_token(f"T{index}", float(index)) for index in range(12)])

    allocation = build_allocation(tokens, total_value=66.0)

    assert len(allocation) == 10
    assert allocation[0].symbol == "T11"
    assert allocation[-1].symbol == "T2"


def test_build_allocation_without_value():
    """Test percentages stay at zero for an unpriced portfolio."""
    allocation = build_allocation([_token("CAKE", 0.0)], total_value=0.0)

    assert allocation[0].percentage == 0.0



def _result(chain, transactions=0, tokens=0, native_balance="0x0", success=True):
    return ChainScanResult(
        chain=chain,
        chain_name=chain.upper(),
        success=success,
        native_balance=native_balance if success else None,
        tokens=[RawTokenBalance(contract_address=f"0x{i:040x}", balance_hex="0x1") for i in range(tokens)],
        transactions=_history(transactions),
        error=None if success else "HTTP 503",
    )


def test_summarize_scan():
    """Test cross-chain totals and the chain distribution."""
    results = [
        _result("eth", transactions=1, tokens=2),
        _result("bsc", transactions=3, native_balance="0x1"),
        _result("polygon", success=False),
        _result("base"),
    ]

    summary = summarize_scan(WALLET, results)

    assert summary.scanned_chains == 4
    assert summary.successful_chains == 3
    assert summary.active_chains == 2
    assert summary.total_tokens == 2
    assert summary.total_transactions == 4
    assert [entry.chain for entry in summary.chain_distribution] == ["bsc", "eth", "base"]
    assert summary.chain_distribution[0].percentage == pytest.approx(75.0)
    assert summary.results == results


def test_summarize_scan_by_value():
    """Test valued chains are ranked and counted as active by USD value."""
    results = [
        _result("eth", transactions=5, tokens=1).model_copy(update={"total_value_usd": 0.004}),
        _result("bsc", transactions=1, tokens=2).model_copy(update={"total_value_usd": 300.0}),
        _result("base", native_balance="0x1").model_copy(update={"total_value_usd": 100.0}),
        _result("polygon", success=False),
    ]

    summary = summarize_scan(WALLET, results)

    assert summary.total_value == pytest.approx(400.004)
    assert summary.active_chains == 2
    assert [entry.chain for entry in summary.chain_distribution] == ["bsc", "base", "eth"]
    bsc = summary.chain_distribution[0]
    assert bsc.value_usd == 300.0
    assert bsc.value_percentage == pytest.approx(300.0 / 400.004 * 100)
    assert bsc.percentage == pytest.approx(100 / 6)
    assert bsc.token_count == 2



def test_summarize_scan_without_transfers():
    """Test percentages stay at zero when nothing was transferred."""
    summary = summarize_scan(WALLET, [_result("eth"), _result("bsc", native_balance="0x" + "0" * 64)])

    assert summary.total_transactions == 0
    assert summary.active_chains == 0
    assert all(entry.percentage == 0.0 for entry in summary.chain_distribution)
