"""Market data fetching layer with retry and caching hooks."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import Retrying, stop_after_attempt, wait_exponential

from stock_forecast.core.config import DataConfig
from stock_forecast.core.errors import DataFetchError, InvalidSeriesError
from stock_forecast.core.models import PriceBar, PriceSeries, StockQuote
from stock_forecast.data.cache import TTLCache
from stock_forecast.data.markets import currency_for, determine_market

logger = logging.getLogger(__name__)


class MarketDataFetcher:
    """Retrieve quotes and OHLCV history from Yahoo Finance.

    Quotes fall back to Alpha Vantage's GLOBAL_QUOTE when Yahoo has nothing
    usable, and are cached for ``cache_ttl_seconds``. History is never cached
    here; callers decide how fresh it must be.
    """

    def __init__(
        self,
        config: DataConfig | None = None,
        client: httpx.Client | None = None,
        cache: TTLCache[str, StockQuote] | None = None,
    ) -> None:
        self._cfg = config or DataConfig()
        self._client = client or httpx.Client(
            timeout=self._cfg.timeout_seconds,
            headers={"User-Agent": self._cfg.user_agent},
        )
        self._cache: TTLCache[str, StockQuote] = cache or TTLCache(
            self._cfg.cache_ttl_seconds, self._cfg.cache_max_entries
        )

    def __enter__(self) -> "MarketDataFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _retrying(self) -> Retrying:
        wait = self._cfg.retry_wait_seconds
        return Retrying(
            wait=wait_exponential(multiplier=wait, min=wait, max=8),
            stop=stop_after_attempt(max(self._cfg.retry_attempts, 1)),
            reraise=True,
        )

    def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        for attempt in self._retrying():
            with attempt:
                response = self._client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        raise RuntimeError("Unreachable _get_json")

    def fetch_quote(self, symbol: str) -> StockQuote:
        cached = self._cache.get(symbol)
        if cached is not None:
            return cached

        quote = self._fetch_yahoo_quote(symbol) or self._fetch_alpha_vantage_quote(symbol)
        if quote is None:
            raise DataFetchError(symbol, "no quote available from any provider")
        self._cache.set(symbol, quote)
        return quote

    def fetch_quotes(self, symbols: List[str]) -> List[StockQuote]:
        """Quotes for every symbol that resolves; failures are logged and skipped."""
        quotes: List[StockQuote] = []
        for symbol in symbols:
            try:
                quotes.append(self.fetch_quote(symbol))
            except DataFetchError as exc:
                logger.warning("Skipping quote: %s", exc)
        return quotes

    def fetch_history(
        self, symbol: str, interval: str | None = None, range_: str | None = None
    ) -> PriceSeries:
        params = {
            "interval": interval or self._cfg.history_interval,
            "range": range_ or self._cfg.history_range,
        }
        try:
            payload = self._get_json(f"{self._cfg.yahoo_chart_url}/{symbol}", params)
        except (httpx.HTTPError, ValueError) as exc:
            raise DataFetchError(symbol, f"history request failed: {exc}") from exc

        result = _chart_result(payload)
        if result is None:
            raise DataFetchError(symbol, "history payload has no chart result")
        try:
            return self.parse_history(result)
        except InvalidSeriesError as exc:
            raise DataFetchError(symbol, str(exc)) from exc

    def _fetch_yahoo_quote(self, symbol: str) -> Optional[StockQuote]:
        try:
            payload = self._get_json(f"{self._cfg.yahoo_chart_url}/{symbol}", {})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Yahoo Finance quote failed for %s: %s", symbol, exc)
            return None
        result = _chart_result(payload)
        if result is None:
            return None
        return self.parse_yahoo_quote(result)

    def _fetch_alpha_vantage_quote(self, symbol: str) -> Optional[StockQuote]:
        params = {
            "function": "GLOBAL_QUOTE",
            "symbol": symbol,
            "apikey": self._cfg.alpha_vantage_api_key or "demo",
        }
        try:
            payload = self._get_json(self._cfg.alpha_vantage_url, params)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Alpha Vantage quote failed for %s: %s", symbol, exc)
            return None
        raw = payload.get("Global Quote") if isinstance(payload, dict) else None
        if not raw:
            return None
        try:
            return self.parse_alpha_vantage_quote(symbol, raw)
        except (KeyError, ValueError) as exc:
            logger.warning("Malformed Alpha Vantage quote for %s: %s", symbol, exc)
            return None

    @staticmethod
    def parse_yahoo_quote(result: Dict[str, Any]) -> Optional[StockQuote]:
        meta = result.get("meta")
        if not meta:
            return None
        previous_close = meta.get("previousClose") or meta.get("chartPreviousClose")
        price = meta.get("regularMarketPrice") or previous_close
        if not price:
            return None
        previous_close = previous_close or price
        change = price - previous_close
        symbol = meta.get("symbol", "")
        market = determine_market(symbol)
        return StockQuote(
            symbol=symbol,
            name=meta.get("longName") or meta.get("shortName") or symbol,
            price=round(price, 2),
            change=round(change, 2),
            change_percent=round(change / previous_close * 100, 2),
            market=market,
            currency="INR" if meta.get("currency") == "INR" else "USD",
            volume=meta.get("regularMarketVolume"),
            market_cap=meta.get("marketCap"),
            high=meta.get("regularMarketDayHigh"),
            low=meta.get("regularMarketDayLow"),
            open=meta.get("regularMarketOpen"),
        )

    @staticmethod
    def parse_alpha_vantage_quote(symbol: str, raw: Dict[str, str]) -> StockQuote:
        market = determine_market(symbol)
        return StockQuote(
            symbol=raw["01. symbol"],
            name=raw["01. symbol"],
            price=round(float(raw["05. price"]), 2),
            change=round(float(raw["09. change"]), 2),
            change_percent=round(float(raw["10. change percent"].replace("%", "")), 2),
            market=market,
            currency=currency_for(market),
            volume=int(raw["06. volume"]),
            high=float(raw["03. high"]),
            low=float(raw["04. low"]),
            open=float(raw["02. open"]),
        )

    @staticmethod
    def parse_history(result: Dict[str, Any]) -> PriceSeries:
        """Turn a chart result into bars, dropping rows with missing prices."""
        timestamps = result.get("timestamp") or []
        quotes = (result.get("indicators") or {}).get("quote") or [{}]
        quote = quotes[0]
        columns = [quote.get(key) or [] for key in ("open", "high", "low", "close", "volume")]

        bars: List[PriceBar] = []
        last_ts: Optional[int] = None
        for index, ts in enumerate(timestamps):
            row = [column[index] if index < len(column) else None for column in columns]
            open_, high, low, close, volume = row
            if None in (open_, high, low, close):
                continue
            timestamp = int(ts) * 1000
            if last_ts is not None and timestamp <= last_ts:
                logger.debug("Dropping out-of-order bar at %s", timestamp)
                continue
            bars.append(
                PriceBar(
                    timestamp=timestamp,
                    open=float(open_),
                    high=float(high),
                    low=float(low),
                    close=float(close),
                    volume=int(volume or 0),
                )
            )
            last_ts = timestamp
        return PriceSeries(bars)

    def close(self) -> None:
        self._client.close()


def _chart_result(payload: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return None
    results = (payload.get("chart") or {}).get("result") or []
    return results[0] if results else None
