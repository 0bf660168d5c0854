"""Scan request and report models."""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from swingscan.errors import InvalidOptionError
from swingscan.market.models import IndexQuote, VolatilityQuote
from swingscan.strategy.models import (
    Classification,
    IndicatorSnapshot,
    SetupType,
)

VALID_INTERVALS = ("1m", "5m", "15m", "30m", "1h", "4h", "1d", "1wk", "1mo")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ScanOptions:
    """Parameters of one scan."""

    days: int = 50
    interval: str = "1d"
    min_score: float = 50
    max_results: int = 20
    include_indicators: bool = True

    def validate(self) -> "ScanOptions":
        """Raise ``InvalidOptionError`` on the first bad option."""
        if not isinstance(self.interval, str):
            raise InvalidOptionError(
                "Interval must be a string", option="interval", value=self.interval
            )
        if self.interval not in VALID_INTERVALS:
            raise InvalidOptionError(
                f"Invalid interval: {self.interval}. "
                f"Valid intervals: {', '.join(VALID_INTERVALS)}",
                option="interval",
                value=self.interval,
            )
        if not _is_int(self.days) or self.days <= 0:
            raise InvalidOptionError(
                'Scan option "days" must be a positive integer',
                option="days",
                value=self.days,
            )
        if (
            isinstance(self.min_score, bool)
            or not isinstance(self.min_score, (int, float))
            or not 0 <= self.min_score <= 100
        ):
            raise InvalidOptionError(
                'Scan option "minScore" must be a number between 0 and 100',
                option="min_score",
                value=self.min_score,
            )
        if not _is_int(self.max_results) or self.max_results <= 0:
            raise InvalidOptionError(
                'Scan option "maxResults" must be a positive integer',
                option="max_results",
                value=self.max_results,
            )
        return self

    @classmethod
    def quick(cls, **overrides: Any) -> "ScanOptions":
        """Preset: fewer, higher-quality results."""
        return replace(cls(days=100, min_score=65, max_results=10), **overrides)

    @classmethod
    def deep(cls, **overrides: Any) -> "ScanOptions":
        """Preset: long lookback, wide net, indicators included."""
        return replace(
            cls(days=250, min_score=50, max_results=50, include_indicators=True),
            **overrides,
        )

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "interval": self.interval,
            "minScore": self.min_score,
            "maxResults": self.max_results,
            "includeIndicators": self.include_indicators,
        }


@dataclass(frozen=True)
class StockResult:
    """A successfully scored symbol."""

    symbol: str
    name: str
    score: float
    classification: Classification
    setup_type: SetupType
    current_price: float
    score_breakdown: dict[str, float]
    reasoning: tuple[str, ...]
    indicators: Optional[IndicatorSnapshot] = None

    def to_dict(self) -> dict:
        out = {
            "symbol": self.symbol,
            "name": self.name,
            "score": self.score,
            "classification": self.classification.value,
            "setupType": self.setup_type.value,
            "currentPrice": round(self.current_price, 2),
            "scoreBreakdown": dict(self.score_breakdown),
            "reasoning": list(self.reasoning),
        }
        if self.indicators is not None:
            out["indicators"] = self.indicators.to_dict()
        return out


@dataclass(frozen=True)
class StockError:
    """A symbol that could not be scored."""

    symbol: str
    error: str
    kind: str

    def to_dict(self) -> dict:
        return {"symbol": self.symbol, "error": self.error, "kind": self.kind}


@dataclass(frozen=True)
class MarketContext:
    """Best-effort market backdrop captured at scan time."""

    index: Optional[IndexQuote] = None
    volatility: Optional[VolatilityQuote] = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "index": self.index.to_dict() if self.index else None,
            "volatility": self.volatility.to_dict() if self.volatility else None,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ScanReport:
    scan_time: str
    execution_time_s: float
    market_context: MarketContext
    total_scanned: int
    successful: int
    failed: int
    qualified_stocks: int
    stock_list: list[StockResult]
    errors: list[StockError]
    parameters: dict

    def to_dict(self) -> dict:
        out = {
            "scanTime": self.scan_time,
            "executionTime": f"{self.execution_time_s:.2f}s",
            "marketContext": self.market_context.to_dict(),
            "summary": {
                "totalScanned": self.total_scanned,
                "successful": self.successful,
                "failed": self.failed,
                "qualifiedStocks": self.qualified_stocks,
            },
            "stockList": [r.to_dict() for r in self.stock_list],
            "parameters": dict(self.parameters),
        }
        if self.errors:
            out["errors"] = [e.to_dict() for e in self.errors]
        return out
