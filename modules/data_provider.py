"""
data_provider.py
-----------------

This module provides a simple `DataProvider` class responsible for
normalising raw ticker responses from the CoinDCX REST API into clean
Pandas DataFrames.  The API returns a JSON list of objects, one per
market, each carrying at least ``market`` and ``last_price`` (a decimal
string).  The `DataProvider` hides these details from the rest of the
system so callers can work with consistent column names and dtypes.

If the API response is malformed or missing, an empty DataFrame is
returned to allow the caller to handle the failure gracefully.  No
exceptions are raised from within this class; the caller should
inspect the DataFrame size to determine if any rows were returned.

Example usage::

    provider = DataProvider()
    raw = await request_json(session, "GET", ticker_url)
    df = provider.create_dataframe_from_ticker(raw)
    prices = provider.prices_for(df, {"BTCINR", "ETHINR"})

"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

from utils.logger import setup_logger

logger = setup_logger(__name__)


class DataProvider:
    """Convert raw ticker JSON into a Pandas DataFrame.

    The resulting DataFrame has the following columns:

    - ``market``: exchange symbol, e.g. ``BTCINR``
    - ``last_price``: float last traded price

    Prices that cannot be parsed, or parse to infinity, become ``0.0``
    so that downstream consumers treat them as "no usable price".  When
    a market appears more than once the first row wins.
    """

    columns: List[str] = ["market", "last_price"]

    def _empty(self) -> pd.DataFrame:
        return pd.DataFrame({"market": pd.Series(dtype="object"),
                             "last_price": pd.Series(dtype="float64")})

    def create_dataframe_from_ticker(self, data: Any) -> pd.DataFrame:
        """Return a DataFrame from a raw ticker response.

        Parameters
        ----------
        data: Any
            The decoded JSON response.  The expected shape is::

                [
                    {"market": "BTCINR", "last_price": "5000000.0", ...},
                    ...
                ]

        Returns
        -------
        pd.DataFrame
            A DataFrame with the standard columns.  An empty DataFrame
            is returned if the input does not match the expected shape.
        """
        if not isinstance(data, list):
            return self._empty()

        rows = [row for row in data if isinstance(row, dict)]
        if not rows:
            return self._empty()

        df = pd.DataFrame(rows)
        if not set(self.columns).issubset(df.columns):
            return self._empty()

        df = df[self.columns]
        df = df[df["market"].notna() & df["last_price"].notna()].copy()

        parsed = pd.to_numeric(df["last_price"].astype(str), errors="coerce")
        # "inf" and overflowing literals parse but are not prices
        parsed = parsed.replace([float("inf"), float("-inf")], float("nan"))
        bad = df.loc[parsed.isna(), "market"].tolist()
        if bad:
            logger.warning("Failed to parse last_price for %s; defaulting to 0.0", bad)
        df["last_price"] = parsed.fillna(0.0).astype("float64")
        df["market"] = df["market"].astype(str)

        return df.drop_duplicates(subset="market", keep="first").reset_index(drop=True)

    def prices_for(self, df: pd.DataFrame, symbols: Iterable[str]) -> Dict[str, float]:
        """Map market -> last_price, restricted to ``symbols`` unless empty."""
        wanted = set(symbols)
        if wanted:
            df = df[df["market"].isin(wanted)]
        return {market: float(price) for market, price in zip(df["market"], df["last_price"])}
