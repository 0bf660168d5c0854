"""Strategy data models — typed representations for indicator and score outputs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class PriceBar:
    """A single OHLCV observation. The last bar of a series is "now"."""

    high: float
    low: float
    close: float
    volume: float
    time: str = ""
    open: Optional[float] = None  # carried for display, never scored


# ── Indicator values ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class MACDValue:
    """Latest MACD line, signal line and histogram."""

    macd_line: float
    signal_line: float
    histogram: float


@dataclass(frozen=True)
class MACDSeries:
    """Full MACD output aligned index-for-index with the input prices."""

    macd_line: list[Optional[float]]
    signal_line: list[Optional[float]]
    histogram: list[Optional[float]]


@dataclass(frozen=True)
class ADXValue:
    """Latest ADX with its directional indicators."""

    adx: float
    plus_di: float
    minus_di: float


@dataclass(frozen=True)
class ADXSeries:
    adx: list[Optional[float]]
    plus_di: list[Optional[float]]
    minus_di: list[Optional[float]]


@dataclass(frozen=True)
class BollingerValue:
    """Latest Bollinger Bands plus the derived %B and bandwidth."""

    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float


@dataclass(frozen=True)
class BollingerSeries:
    upper: list[Optional[float]]
    middle: list[Optional[float]]
    lower: list[Optional[float]]
    bandwidth: list[Optional[float]]
    percent_b: list[Optional[float]]


# ── Scores ───────────────────────────────────────────────────────────────


class SetupType(str, Enum):
    """Setup pattern, in detection priority order."""

    PULLBACK_IN_TREND = "PULLBACK_IN_TREND"
    BREAKOUT = "BREAKOUT"
    MEAN_REVERSION = "MEAN_REVERSION"
    NONE = "NONE"


class Classification(str, Enum):
    STRONG = "STRONG"
    GOOD = "GOOD"
    MARGINAL = "MARGINAL"
    DO_NOT_TRADE = "DO_NOT_TRADE"


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Latest indicator values a score was computed from."""

    ema20: float
    ema50: float
    ema200: float
    rsi14: float
    macd: MACDValue
    adx: ADXValue
    bollinger: BollingerValue
    atr14: float

    def to_dict(self) -> dict:
        """Rounded, JSON-friendly view (2 dp, 4 dp for bandwidth)."""
        return {
            "ema20": round(self.ema20, 2),
            "ema50": round(self.ema50, 2),
            "ema200": round(self.ema200, 2),
            "rsi14": round(self.rsi14, 2),
            "macd": {
                "macdLine": round(self.macd.macd_line, 2),
                "signalLine": round(self.macd.signal_line, 2),
                "histogram": round(self.macd.histogram, 2),
            },
            "adx": round(self.adx.adx, 2),
            "plusDI": round(self.adx.plus_di, 2),
            "minusDI": round(self.adx.minus_di, 2),
            "bollingerBands": {
                "upper": round(self.bollinger.upper, 2),
                "middle": round(self.bollinger.middle, 2),
                "lower": round(self.bollinger.lower, 2),
                "bandwidth": round(self.bollinger.bandwidth, 4),
                "percentB": round(self.bollinger.percent_b, 2),
            },
            "atr14": round(self.atr14, 2),
        }


@dataclass(frozen=True)
class ScoreBreakdown:
    """Composite 0-100 score with its seven components.

    ``total_score`` is the exact sum of the components; every component
    is a multiple of 0.5 so no rounding is involved.
    """

    total_score: float
    classification: Classification
    trend_score: float
    setup_score: float
    setup_type: SetupType
    rsi_score: float
    macd_score: float
    volume_score: float
    bollinger_score: float
    market_regime_score: float
    reasoning: tuple[str, ...] = field(default_factory=tuple)
    indicators: Optional[IndicatorSnapshot] = None

    def components(self) -> dict[str, float]:
        """The seven component scores keyed by short name."""
        return {
            "trend": self.trend_score,
            "setup": self.setup_score,
            "rsi": self.rsi_score,
            "macd": self.macd_score,
            "volume": self.volume_score,
            "bollinger": self.bollinger_score,
            "marketRegime": self.market_regime_score,
        }

    def to_dict(self) -> dict:
        return {
            "totalScore": self.total_score,
            "classification": self.classification.value,
            "trendScore": self.trend_score,
            "setupScore": self.setup_score,
            "setupType": self.setup_type.value,
            "rsiScore": self.rsi_score,
            "macdScore": self.macd_score,
            "volumeScore": self.volume_score,
            "bollingerScore": self.bollinger_score,
            "marketRegimeScore": self.market_regime_score,
            "reasoning": list(self.reasoning),
            "indicators": self.indicators.to_dict() if self.indicators else None,
        }
