"""Portfolio valuation from normalized tokens and resolved price quotes."""

from collections.abc import Mapping

from wallet_analytics.core.models import NormalizedToken, PortfolioValuation, PriceQuote


def value_portfolio(
    tokens: list[NormalizedToken],
    quotes: Mapping[str, PriceQuote],
) -> PortfolioValuation:
    """
    Price each token and compute portfolio totals.

    The 24h change is rebuilt from each token's implied price a day ago,
    ``price / (1 + change / 100)``. Tokens without a quote stay in the list
    with zero price and value and do not contribute to the totals.

    Parameters
    ----------
    tokens : list[NormalizedToken]
        Normalized tokens (not modified)
    quotes : Mapping[str, PriceQuote]
        Quotes keyed by ``NormalizedToken.price_key``

    Returns
    -------
    PortfolioValuation
        Priced token copies plus total value and 24h change

    """
    priced_tokens = []
    total_value = 0.0
    total_change = 0.0

    for token in tokens:
        quote = quotes.get(token.price_key)
        if quote is None:
            priced_tokens.append(token.model_copy())
            continue

        value = token.balance * quote.usd_price
        priced_tokens.append(
            token.model_copy(
                update={
                    "price_usd": quote.usd_price,
                    "value_usd": value,
                    "change_24h_percent": quote.change_24h_percent,
                    "logo_url": token.logo_url or quote.logo_url,
                }
            )
        )
        total_value += value

        # A -100% move has no finite prior price
        growth = 1 + quote.change_24h_percent / 100
        if growth > 0:
            prior_value = token.balance * (quote.usd_price / growth)
            total_change += value - prior_value

    total_change_percent = total_change / total_value * 100 if total_value > 0 else 0.0

    return PortfolioValuation(
        tokens=priced_tokens,
        total_value=total_value,
        total_change_24h=total_change,
        total_change_percent=total_change_percent,
    )
