"""Scanner — fetches, scores and ranks a list of symbols.

Symbols are processed in fixed-size batches: batches run one after
another, the symbols inside a batch run concurrently.  The batch size is
the only limit on how many fetches are outstanding at once.  A failure
for one symbol becomes an error record in the report; only bad input
(empty list, invalid options, unknown universe) aborts a scan.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from swingscan.errors import (
    EmptyDataError,
    FetchError,
    FetchTimeoutError,
    InvalidOptionError,
    SwingScanError,
    SymbolNotFoundError,
    TypeMismatchError,
)
from swingscan.market.base import MarketDataProvider, UniverseResolver
from swingscan.market.retry import RetryPolicy, retry_with_backoff
from swingscan.models.scan import (
    MarketContext,
    ScanOptions,
    ScanReport,
    StockError,
    StockResult,
)
from swingscan.strategy.scoring import ScoringOptions, score_stock

logger = logging.getLogger("swingscan.scanner")

ProgressCallback = Callable[[int, int], None]

_EXCHANGE_SUFFIXES = (".NS", ".BO")

# Retrying these cannot change the answer
_PERMANENT_ERRORS = (SymbolNotFoundError, EmptyDataError)


@dataclass(frozen=True)
class ScannerSettings:
    batch_size: int = 5
    symbol_timeout_s: float = 30.0
    market_index: str = "NIFTY"
    volatility_index: str = "VIX"


def _cancelled(symbol: str) -> StockError:
    return StockError(symbol=symbol, error="Scan cancelled", kind="cancelled")


def display_name(symbol: str) -> str:
    """Symbol without its exchange suffix (``RELIANCE.NS`` → ``RELIANCE``)."""
    for suffix in _EXCHANGE_SUFFIXES:
        if symbol.endswith(suffix):
            return symbol[: -len(suffix)]
    return symbol


class Scanner:
    """Scan orchestrator.

    Args:
        provider:           Market data provider (OHLCV + context quotes).
        universe_resolver:  Maps universe names to member lists.
        settings:           Batch size, per-symbol timeout, context symbols.
        retry_policy:       Backoff used for the market context fetches.
        scoring_options:    Indicator periods handed to the scoring engine.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        universe_resolver: UniverseResolver,
        settings: Optional[ScannerSettings] = None,
        retry_policy: Optional[RetryPolicy] = None,
        scoring_options: Optional[ScoringOptions] = None,
    ) -> None:
        self._provider = provider
        self._universes = universe_resolver
        self._settings = settings or ScannerSettings()
        self._retry = retry_policy or RetryPolicy()
        self._scoring = scoring_options or ScoringOptions()

    # ── Public API ───────────────────────────────────────────────────────

    async def scan(
        self,
        stocks: Union[str, list[str]],
        options: Optional[ScanOptions] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScanReport:
        """Scan a universe name or an explicit list of symbols."""
        opts = (options or ScanOptions()).validate()
        started = time.monotonic()
        scan_time = datetime.now(timezone.utc).isoformat()

        symbols, names = self._resolve(stocks)
        logger.info(
            "Scan started: %d symbol(s), days=%d interval=%s min_score=%s",
            len(symbols), opts.days, opts.interval, opts.min_score,
        )

        context = await self._market_context()

        results: list[StockResult] = []
        errors: list[StockError] = []
        batch_size = max(self._settings.batch_size, 1)
        processed = 0

        for start in range(0, len(symbols), batch_size):
            if cancel_event is not None and cancel_event.is_set():
                remaining = symbols[start:]
                logger.warning("Scan cancelled, %d symbol(s) skipped", len(remaining))
                errors.extend(_cancelled(s) for s in remaining)
                break

            batch = symbols[start : start + batch_size]
            outcomes = await self._run_batch(batch, names, opts, cancel_event)
            for outcome in outcomes:
                if isinstance(outcome, StockResult):
                    results.append(outcome)
                else:
                    errors.append(outcome)

            processed += len(batch)
            logger.info("Progress: %d/%d symbols processed", processed, len(symbols))
            if progress is not None:
                progress(processed, len(symbols))

        ranked = sorted(results, key=lambda r: r.score, reverse=True)
        qualified = [r for r in ranked if r.score >= opts.min_score]
        stock_list = qualified[: opts.max_results]

        elapsed = time.monotonic() - started
        logger.info(
            "Scan complete in %.2fs: %d scanned, %d ok, %d failed, %d qualified",
            elapsed, len(symbols), len(results), len(errors), len(qualified),
        )

        parameters = opts.to_dict()
        parameters["stocks"] = stocks if isinstance(stocks, str) else list(symbols)

        return ScanReport(
            scan_time=scan_time,
            execution_time_s=elapsed,
            market_context=context,
            total_scanned=len(symbols),
            successful=len(results),
            failed=len(errors),
            qualified_stocks=len(qualified),
            stock_list=stock_list,
            errors=errors,
            parameters=parameters,
        )

    async def quick_scan(self, universe: str = "NIFTY50", **overrides) -> ScanReport:
        return await self.scan(universe, ScanOptions.quick(**overrides))

    async def deep_scan(self, universe: str = "NIFTY50", **overrides) -> ScanReport:
        return await self.scan(universe, ScanOptions.deep(**overrides))

    # ── Internals ────────────────────────────────────────────────────────

    def _resolve(
        self, stocks: Union[str, list[str]]
    ) -> tuple[list[str], dict[str, str]]:
        """Symbols to scan plus a symbol → display-name map."""
        if isinstance(stocks, str):
            members = self._universes.get_universe(stocks)
            logger.info("Universe %s resolved to %d stocks", stocks, len(members))
            return [m.symbol for m in members], {m.symbol: m.name for m in members}

        if not isinstance(stocks, (list, tuple)):
            raise TypeMismatchError(
                "Stocks must be a universe name or a list of symbols",
                field="stocks",
                value=stocks,
            )
        if not stocks:
            raise InvalidOptionError(
                "Stock list cannot be empty", option="stocks", value=stocks
            )
        for s in stocks:
            if not isinstance(s, str) or not s.strip():
                raise TypeMismatchError(
                    "Symbol must be a non-empty string", field="stocks", value=s
                )
        return [s.strip() for s in stocks], {}

    async def _market_context(self) -> MarketContext:
        """Index and volatility quotes; failures become warnings."""
        index_name = self._settings.market_index
        vol_name = self._settings.volatility_index
        index_quote, vol_quote = await asyncio.gather(
            retry_with_backoff(
                lambda: self._provider.fetch_index_quote(index_name),
                self._retry,
                context=f"fetch {index_name} quote",
                retry_on=(FetchError,),
                give_up_on=_PERMANENT_ERRORS,
            ),
            retry_with_backoff(
                lambda: self._provider.fetch_volatility_index(vol_name),
                self._retry,
                context=f"fetch {vol_name} quote",
                retry_on=(FetchError,),
                give_up_on=_PERMANENT_ERRORS,
            ),
            return_exceptions=True,
        )

        warnings: list[str] = []
        for label, outcome in ((index_name, index_quote), (vol_name, vol_quote)):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, SwingScanError):
                    raise outcome
                warnings.append(f"Could not fetch {label}: {outcome}")
                logger.warning("Could not fetch market data for %s: %s", label, outcome)

        return MarketContext(
            index=None if isinstance(index_quote, BaseException) else index_quote,
            volatility=None if isinstance(vol_quote, BaseException) else vol_quote,
            warnings=warnings,
        )

    async def _fetch_and_score(
        self, symbol: str, name: Optional[str], opts: ScanOptions
    ) -> StockResult:
        bars = await self._provider.fetch_ohlcv(symbol, opts.days, opts.interval)
        if not bars:
            raise EmptyDataError(symbol)

        breakdown = score_stock(bars, self._scoring)
        return StockResult(
            symbol=symbol,
            name=name or display_name(symbol),
            score=breakdown.total_score,
            classification=breakdown.classification,
            setup_type=breakdown.setup_type,
            current_price=bars[-1].close,
            score_breakdown=breakdown.components(),
            reasoning=breakdown.reasoning,
            indicators=breakdown.indicators if opts.include_indicators else None,
        )

    async def _run_batch(
        self,
        batch: list[str],
        names: dict[str, str],
        opts: ScanOptions,
        cancel_event: Optional[asyncio.Event],
    ) -> list[Union[StockResult, StockError]]:
        """Run one batch concurrently.

        Setting *cancel_event* cancels the fetches still in flight; their
        symbols come back as ``cancelled`` error records.  An unexpected
        exception cancels the rest of the batch and propagates.
        """
        tasks = [
            asyncio.create_task(self._scan_symbol(s, names.get(s), opts))
            for s in batch
        ]
        stopper = (
            asyncio.create_task(cancel_event.wait()) if cancel_event is not None else None
        )
        pending = set(tasks)
        try:
            while pending:
                waiting = pending | {stopper} if stopper is not None else pending
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task is not stopper:
                        task.result()
                pending -= done
                if stopper is not None and stopper.done():
                    break
        finally:
            leftovers = [*pending, stopper] if stopper is not None else list(pending)
            for task in leftovers:
                task.cancel()
            await asyncio.gather(*leftovers, return_exceptions=True)

        if pending:
            logger.warning("Scan cancelled, %d in-flight fetch(es) stopped", len(pending))
        return [
            _cancelled(symbol) if task.cancelled() else task.result()
            for symbol, task in zip(batch, tasks)
        ]

    async def _scan_symbol(
        self, symbol: str, name: Optional[str], opts: ScanOptions
    ) -> Union[StockResult, StockError]:
        timeout = self._settings.symbol_timeout_s
        try:
            return await asyncio.wait_for(
                self._fetch_and_score(symbol, name, opts), timeout
            )
        except asyncio.TimeoutError:
            exc: SwingScanError = FetchTimeoutError(symbol, timeout)
        except SwingScanError as caught:
            exc = caught
        logger.warning("Failed to process %s: %s", symbol, exc)
        return StockError(symbol=symbol, error=str(exc), kind=exc.kind)
