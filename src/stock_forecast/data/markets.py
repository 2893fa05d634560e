"""Market classification for the dashboard's ticker universe."""

from __future__ import annotations

from stock_forecast.core.models import Market

US_SYMBOLS = ("AAPL", "GOOGL", "MSFT", "TSLA", "NVDA", "AMZN", "META", "NFLX")

INDIAN_SYMBOLS = (
    "RELIANCE.NS",
    "TCS.NS",
    "INFY.NS",
    "HDFCBANK.NS",
    "ICICIBANK.NS",
    "SBIN.NS",
    "BHARTIARTL.NS",
    "ITC.NS",
    "LT.NS",
    "HCLTECH.NS",
    "WIPRO.NS",
    "MARUTI.NS",
    "ADANIPORTS.NS",
    "ASIANPAINT.NS",
    "AXISBANK.NS",
    "BAJFINANCE.NS",
    "KOTAKBANK.NS",
)

DEFAULT_SYMBOLS = US_SYMBOLS + INDIAN_SYMBOLS

_INDIAN_SUFFIXES = (".NS", ".BO")
_CURRENCIES = {Market.US: "USD", Market.IN: "INR"}


def determine_market(symbol: str) -> Market:
    """NSE/BSE suffixes and the known Indian tickers map to IN, the rest to US."""
    upper = symbol.upper()
    if upper.endswith(_INDIAN_SUFFIXES) or upper in INDIAN_SYMBOLS:
        return Market.IN
    return Market.US


def currency_for(market: Market) -> str:
    return _CURRENCIES[market]


def currency_symbol(currency: str) -> str:
    return "₹" if currency == "INR" else "$"
