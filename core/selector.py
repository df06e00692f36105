"""
core/selector.py
----------------
Which markets are worth pricing this cycle: everything held, a fixed
baseline, and whatever the headlines talk about.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Sequence, Tuple

from models.news import NewsItem
from models.portfolio import Portfolio

QUOTE_CURRENCIES: FrozenSet[str] = frozenset({"INR", "USDT"})
BASELINE_SYMBOLS: FrozenSet[str] = frozenset({"BTCINR", "ETHINR"})

# keyword group (matched against upper-cased titles) -> market
NEWS_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("BTC", "BITCOIN"), "BTCINR"),
    (("ETH", "ETHEREUM"), "ETHINR"),
    (("SOL", "SOLANA"), "SOLINR"),
)


def identify_relevant_symbols(
    portfolio: Portfolio,
    news: Iterable[NewsItem],
    *,
    quote_currency: str = "INR",
    quote_currencies: FrozenSet[str] = QUOTE_CURRENCIES,
    baseline: FrozenSet[str] = BASELINE_SYMBOLS,
    keywords: Sequence[Tuple[Tuple[str, ...], str]] = NEWS_KEYWORDS,
) -> FrozenSet[str]:
    """Return the set of exchange symbols to price; independent of input order."""
    held = {
        f"{asset}{quote_currency}"
        for asset in portfolio.balances
        if asset not in quote_currencies
    }

    mentioned = set()
    for item in news:
        title = (item.title or "").upper()
        for words, symbol in keywords:
            if any(word in title for word in words):
                mentioned.add(symbol)

    return frozenset(held | baseline | mentioned)
