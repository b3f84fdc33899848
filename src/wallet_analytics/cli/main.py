"""CLI for wallet analytics."""

import json
import logging
from enum import StrEnum

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from wallet_analytics.core.aggregator import WalletAnalyzer
from wallet_analytics.core.models import RiskLevel, ScanSummary, WalletReport
from wallet_analytics.core.registry import ChainRegistry
from wallet_analytics.exceptions import PreconditionError, WalletAnalyticsError, WalletDataUnavailableError

# Install rich traceback handler
install(show_locals=False)

app = typer.Typer(
    name="wallet-analytics",
    help="Portfolio valuation, transaction statistics and risk scoring for EVM wallets",
    add_completion=False,
)

console = Console()

RISK_STYLES = {
    RiskLevel.LOW: "bold green",
    RiskLevel.MEDIUM: "bold yellow",
    RiskLevel.HIGH: "bold red",
}


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=debug)],
        force=True,
    )


def _create_analyzer() -> WalletAnalyzer:
    """
    Build the analyzer, turning precondition failures into a clean exit.

    Raises
    ------
    typer.Exit
        If the provider credential is missing

    """
    try:
        return WalletAnalyzer()
    except PreconditionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        console.print("[dim]  Example: export ALCHEMY_API_KEY='your_api_key'[/dim]")
        raise typer.Exit(code=1)


@app.command()
def report(
    address: str = typer.Argument(..., help="Wallet address to analyze"),
    chain: str | None = typer.Option(None, "--chain", "-c", help="Chain selector (e.g. eth, bsc, matic)"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Build a portfolio, activity and risk report for a wallet on one chain.

    Examples:

        wallet-analytics report 0xABC... --chain eth

        wallet-analytics report 0xABC... --format json
    """
    _configure_logging(debug)
    analyzer = _create_analyzer()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Analyzing {address}...", total=None)
            wallet_report = analyzer.analyze(address, chain)

        if format == OutputFormat.JSON:
            _output_json(wallet_report.model_dump(mode="json"))
        else:
            _output_report_table(wallet_report)

    except WalletDataUnavailableError as e:
        console.print(f"[bold red]Error:[/bold red] {e.cause}")
        console.print(f"[yellow]{e.HINT}[/yellow]")
        raise typer.Exit(code=1)
    except WalletAnalyticsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if debug:
            raise
        raise typer.Exit(code=1)
    finally:
        analyzer.close()


@app.command()
def scan(
    address: str = typer.Argument(..., help="Wallet address to scan"),
    chains: str | None = typer.Option(
        None,
        "--chains",
        help="Comma-separated chain keys (default: all supported chains)",
    ),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Scan a wallet across several chains; unavailable chains are reported, not skipped."""
    _configure_logging(debug)
    chain_keys = [key.strip() for key in chains.split(",") if key.strip()] if chains else None
    analyzer = _create_analyzer()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            count = len(chain_keys) if chain_keys else len(analyzer.registry)
            progress.add_task(f"Scanning {count} chains...", total=None)
            summary = analyzer.scan(address, chain_keys)

        if format == OutputFormat.JSON:
            _output_json(summary.model_dump(mode="json"))
        else:
            _output_scan_table(summary)

    except WalletAnalyticsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if debug:
            raise
        raise typer.Exit(code=1)
    finally:
        analyzer.close()


@app.command()
def list_chains() -> None:
    """List all supported chains."""
    registry = ChainRegistry.from_config()

    table = Table(title="Supported Chains", show_header=True, header_style="bold magenta")
    table.add_column("Key", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Chain ID", justify="right")
    table.add_column("Native", style="yellow")
    table.add_column("Explorer", style="dim")

    for chain in registry:
        name = f"{chain.name} (default)" if chain.key == registry.default_chain else chain.name
        table.add_row(chain.key, name, str(chain.chain_id), chain.native_symbol, chain.explorer_url)

    console.print(table)


def _output_report_table(wallet_report: WalletReport) -> None:
    """Output a wallet report as rich tables."""
    meta = wallet_report.metadata
    portfolio = wallet_report.portfolio

    if portfolio.tokens:
        table = Table(
            title=f"Holdings for {meta.address[:10]}...{meta.address[-8:]} on {meta.chain_name}",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Token", style="cyan")
        table.add_column("Balance", style="white", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Value", style="bold green", justify="right")
        table.add_column("24h", justify="right")

        for token in portfolio.tokens:
            change_style = "green" if token.change_24h_percent >= 0 else "red"
            table.add_row(
                token.symbol,
                f"{token.balance:,.4f}",
                f"${token.price_usd:,.4f}" if token.price_usd else "-",
                f"${token.value_usd:,.2f}" if token.value_usd else "-",
                f"[{change_style}]{token.change_24h_percent:+.2f}%[/{change_style}]" if token.price_usd else "-",
            )

        console.print("\n")
        console.print(table)
    else:
        console.print("\n[yellow]No token holdings found[/yellow]")

    activity = wallet_report.activity
    risk = wallet_report.risk
    insights = wallet_report.insights

    summary_table = Table(show_header=False, box=None)
    summary_table.add_column("Label", style="bold")
    summary_table.add_column("Value")

    summary_table.add_row("Total Value:", f"[bold green]${portfolio.total_value:,.2f}[/bold green]")
    summary_table.add_row(
        "24h Change:",
        f"${portfolio.total_change_24h:,.2f} ({portfolio.total_change_percent:+.2f}%)",
    )
    summary_table.add_row("Tokens:", str(portfolio.total_tokens))
    if portfolio.top_tokens:
        top = portfolio.top_tokens[0]
        summary_table.add_row("Top Holding:", f"{top.symbol} ({top.percentage:.1f}%)")
    summary_table.add_row("Gainers (24h):", str(portfolio.profitable_tokens))
    summary_table.add_row("", "")
    summary_table.add_row("Transactions:", str(activity.total_transactions))
    summary_table.add_row("Success Rate:", f"{activity.success_rate:.1f}%")
    summary_table.add_row("Unique Contracts:", str(activity.unique_contracts))
    summary_table.add_row("Wallet Age:", f"{insights.wallet_age_days} days")
    summary_table.add_row("Experience:", insights.experience_level.value)
    summary_table.add_row("Active (30d):", "yes" if insights.is_active else "no")
    summary_table.add_row("", "")
    style = RISK_STYLES[risk.level]
    summary_table.add_row("Risk Score:", f"[{style}]{risk.score} ({risk.level.value} risk)[/{style}]")
    for factor in risk.factors:
        summary_table.add_row("", f"- {factor}")

    console.print("\n")
    console.print(summary_table)
    console.print("\n")


def _output_scan_table(summary: ScanSummary) -> None:
    """Output a multi-chain scan as a rich table."""
    table = Table(
        title=f"Chains for {summary.address[:10]}...{summary.address[-8:]}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Chain", style="cyan")
    table.add_column("Status")
    table.add_column("Tokens", justify="right")
    table.add_column("Transfers", justify="right")
    table.add_column("Value", style="bold green", justify="right")
    table.add_column("Error", style="dim")

    for result in summary.results:
        status = "[green]✓[/green]" if result.success else "[red]✗[/red]"
        table.add_row(
            result.chain_name or result.chain,
            status,
            str(len(result.tokens)) if result.success else "-",
            str(len(result.transactions)) if result.success else "-",
            f"${result.total_value_usd:,.2f}" if result.total_value_usd is not None else "-",
            result.error or "",
        )

    console.print("\n")
    console.print(table)
    console.print(
        f"\n[bold]{summary.successful_chains}/{summary.scanned_chains}[/bold] chains scanned, "
        f"[bold]{summary.active_chains}[/bold] active, "
        f"{summary.total_tokens} tokens, {summary.total_transactions} transfers, "
        f"[bold green]${summary.total_value:,.2f}[/bold green]\n"
    )


def _output_json(data: dict) -> None:
    """Output data as JSON."""
    console.print_json(json.dumps(data))


if __name__ == "__main__":
    app()
