"""Yahoo Finance chart API async client.

Fetches daily OHLCV history and index levels from the public
``/v8/finance/chart/{symbol}`` endpoint.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Optional

import httpx

from swingscan.errors import EmptyDataError, FetchError, SymbolNotFoundError
from swingscan.market.models import IndexQuote, VolatilityQuote
from swingscan.market.retry import RetryPolicy, compute_backoff
from swingscan.strategy.models import PriceBar

logger = logging.getLogger("swingscan.market")

DEFAULT_BASE_URL = "https://query1.finance.yahoo.com"

_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}

# Friendly names for the market context instruments
INDEX_ALIASES = {
    "NIFTY": "^NSEI",
    "NIFTY50": "^NSEI",
    "BANKNIFTY": "^NSEBANK",
    "SENSEX": "^BSESN",
    "VIX": "^INDIAVIX",
    "INDIAVIX": "^INDIAVIX",
}

# Calendar days requested per wanted bar, so weekends and holidays
# still leave enough trading sessions
_CALENDAR_PADDING = 1.6


class YahooChartClient:
    """Async market data provider backed by the Yahoo chart endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 15.0,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_s
        self._retry = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._headers = {
            "User-Agent": "Mozilla/5.0 (compatible; swingscan)",
            "Accept": "application/json",
        }

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _get_with_retry(
        self, url: str, params: dict, symbol: str, max_attempts: Optional[int] = None
    ) -> httpx.Response:
        """GET with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504), rate limits
        (429) and transport errors.  A 404 raises ``SymbolNotFoundError``;
        any other error status raises ``FetchError`` immediately.
        """
        attempts = max(max_attempts or self._retry.max_attempts, 1)
        last_error = ""

        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(
                        url,
                        headers=self._headers,
                        params=params,
                        timeout=self._timeout,
                    )
            except httpx.TransportError as exc:
                last_error = f"transport error ({exc})"
            except httpx.HTTPError as exc:
                raise FetchError(
                    f"HTTP error fetching {symbol}: {exc}", symbol=symbol
                ) from exc
            else:
                if resp.status_code == 404:
                    raise SymbolNotFoundError(symbol)
                if resp.status_code not in _RETRYABLE_STATUS_CODES:
                    if resp.status_code >= 400:
                        raise FetchError(
                            f"HTTP {resp.status_code} fetching {symbol}",
                            symbol=symbol,
                        )
                    return resp
                last_error = f"HTTP {resp.status_code}"

            if attempt < attempts - 1:
                delay = compute_backoff(attempt, self._retry)
                logger.warning(
                    "GET %s %s — retry %d/%d in %.1fs",
                    url, last_error, attempt + 1, attempts, delay,
                )
                await self._sleep(delay)

        raise FetchError(
            f"Failed to fetch {symbol} after {attempts} attempts: {last_error}",
            symbol=symbol,
        )

    async def _chart(
        self, symbol: str, params: dict, max_attempts: Optional[int] = None
    ) -> dict:
        url = f"{self._base_url}/v8/finance/chart/{symbol}"
        resp = await self._get_with_retry(url, params, symbol, max_attempts)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise FetchError(
                f"Malformed response for {symbol}: {exc}", symbol=symbol
            ) from exc

        try:
            chart = payload.get("chart") or {}
            results = chart.get("result") or []
            error = chart.get("error") or {}
            code = error.get("code") if isinstance(error, dict) else None
        except AttributeError as exc:
            raise FetchError(
                f"Malformed response for {symbol}: {exc}", symbol=symbol
            ) from exc

        if not results:
            if code == "Not Found":
                raise SymbolNotFoundError(symbol)
            raise EmptyDataError(symbol)
        if not isinstance(results, list) or not isinstance(results[0], dict):
            raise FetchError(
                f"Malformed response for {symbol}: unexpected chart result",
                symbol=symbol,
            )
        return results[0]

    # ── OHLCV history ────────────────────────────────────────────────────

    async def fetch_ohlcv(
        self, symbol: str, days: int, interval: str = "1d"
    ) -> list[PriceBar]:
        """Fetch the most recent *days* bars for *symbol*, oldest first.

        Rows with any missing OHLCV value (non-trading days, partial
        sessions) are skipped.
        """
        now = int(time.time())
        lookback_s = int(math.ceil(days * _CALENDAR_PADDING) + 10) * 86400
        params = {
            "period1": now - lookback_s,
            "period2": now,
            "interval": interval,
            "includePrePost": "false",
        }

        result = await self._chart(symbol, params)
        try:
            bars = _parse_bars(result)
        except (TypeError, ValueError, AttributeError, KeyError, OverflowError) as exc:
            raise FetchError(
                f"Malformed price data for {symbol}: {exc}", symbol=symbol
            ) from exc

        if not bars:
            raise EmptyDataError(symbol)

        logger.debug("Fetched %d bars for %s", len(bars), symbol)
        return bars[-days:]

    # ── Market context ───────────────────────────────────────────────────

    async def _meta(self, name: str) -> tuple[str, dict]:
        # Single attempt: the scanner wraps context quotes in its own retry
        symbol = INDEX_ALIASES.get(name.upper(), name)
        result = await self._chart(
            symbol, {"range": "5d", "interval": "1d"}, max_attempts=1
        )
        meta = result.get("meta") or {}
        if not isinstance(meta, dict):
            raise FetchError(
                f"Malformed response for {symbol}: unexpected meta", symbol=symbol
            )
        return symbol, meta

    async def fetch_index_quote(self, name: str) -> IndexQuote:
        """Latest index level and percent change from the previous close."""
        symbol, meta = await self._meta(name)
        if meta.get("regularMarketPrice") is None:
            raise EmptyDataError(symbol)
        try:
            price = float(meta["regularMarketPrice"])
            previous = float(
                meta.get("chartPreviousClose") or meta.get("previousClose") or 0
            )
        except (TypeError, ValueError) as exc:
            raise FetchError(
                f"Malformed quote for {symbol}: {exc}", symbol=symbol
            ) from exc
        change = (price - previous) / previous * 100 if previous else 0.0
        return IndexQuote(
            name=name, symbol=symbol, price=price, change_percent=change
        )

    async def fetch_volatility_index(self, name: str) -> VolatilityQuote:
        symbol, meta = await self._meta(name)
        if meta.get("regularMarketPrice") is None:
            raise EmptyDataError(symbol)
        try:
            value = float(meta["regularMarketPrice"])
        except (TypeError, ValueError) as exc:
            raise FetchError(
                f"Malformed quote for {symbol}: {exc}", symbol=symbol
            ) from exc
        return VolatilityQuote(name=name, symbol=symbol, value=value)


def _parse_bars(result: dict) -> list[PriceBar]:
    """Chart result → bars; rows with any missing OHLCV value are skipped."""
    timestamps = result.get("timestamp") or []
    quotes = (result.get("indicators") or {}).get("quote") or [{}]
    quote = quotes[0]

    bars: list[PriceBar] = []
    for i, ts in enumerate(timestamps):
        row = {
            key: _at(quote.get(key), i)
            for key in ("open", "high", "low", "close", "volume")
        }
        if any(row[k] is None for k in ("high", "low", "close", "volume")):
            continue
        bars.append(
            PriceBar(
                time=time.strftime("%Y-%m-%d", time.gmtime(ts)),
                open=float(row["open"]) if row["open"] is not None else None,
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=float(row["volume"]),
            )
        )
    return bars


def _at(values: Optional[list], index: int):
    if not values or index >= len(values):
        return None
    return values[index]
