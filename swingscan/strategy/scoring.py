"""Swing-trade scoring engine — turns one OHLCV series into a 0-100 score.

Components (max points):
    trend alignment   17.5   7 checks × 2.5
    setup pattern     15     see ``setups.py``
    RSI               10
    MACD              10
    volume            10
    Bollinger          7.5
    market regime     15     ADX tier + directional bonus

The engine is stateless: every call validates its input, computes the
indicators from scratch and returns a fresh ``ScoreBreakdown``.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

from swingscan.errors import (
    InsufficientDataError,
    MissingFieldError,
    TypeMismatchError,
)
from swingscan.strategy import indicators
from swingscan.strategy.models import (
    ADXValue,
    BollingerValue,
    Classification,
    IndicatorSnapshot,
    MACDValue,
    PriceBar,
    ScoreBreakdown,
    SetupType,
)
from swingscan.strategy.setups import SetupResult, detect_setup

logger = logging.getLogger("swingscan.scoring")

TREND_CHECK_POINTS = 2.5
REQUIRED_FIELDS = ("high", "low", "close", "volume")

BarLike = Union[PriceBar, Mapping[str, Any]]


@dataclass(frozen=True)
class ScoringOptions:
    """Indicator periods used by the rubric. Defaults reproduce it exactly."""

    ema_short: int = 20
    ema_medium: int = 50
    ema_long: int = 200
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    adx_period: int = 14
    bollinger_period: int = 20
    bollinger_std_dev: float = 2.0
    atr_period: int = 14
    min_bars: int = 50


# ── Input coercion ───────────────────────────────────────────────────────


def _field(bar: BarLike, name: str) -> Any:
    if isinstance(bar, Mapping):
        return bar.get(name)
    return getattr(bar, name, None)


def coerce_bars(bars: Any, min_bars: int = 50) -> list[PriceBar]:
    """Validate raw bars and return them as ``PriceBar`` objects.

    Raises ``TypeMismatchError`` for a non-sequence or a non-numeric
    field, ``InsufficientDataError`` for fewer than *min_bars* bars and
    ``MissingFieldError`` when a bar lacks high / low / close / volume.
    """
    if isinstance(bars, (str, bytes, Mapping)) or not isinstance(bars, Sequence):
        raise TypeMismatchError(
            f"Price data must be a sequence of bars, got {type(bars).__name__}",
            field="bars",
            value=type(bars).__name__,
        )
    if len(bars) < min_bars:
        raise InsufficientDataError(min_bars, len(bars), noun="bars")

    out: list[PriceBar] = []
    for i, bar in enumerate(bars):
        if isinstance(bar, PriceBar):
            values = {name: getattr(bar, name) for name in REQUIRED_FIELDS}
        else:
            values = {name: _field(bar, name) for name in REQUIRED_FIELDS}
        for name, value in values.items():
            if value is None:
                raise MissingFieldError(i, name)
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
            ):
                raise TypeMismatchError(
                    f"Bar {i} field '{name}' must be a finite number, got {value!r}",
                    field=name,
                    value=value,
                )
        if isinstance(bar, PriceBar):
            out.append(bar)
        else:
            out.append(
                PriceBar(
                    high=float(values["high"]),
                    low=float(values["low"]),
                    close=float(values["close"]),
                    volume=float(values["volume"]),
                    time=str(_field(bar, "time") or ""),
                    open=_field(bar, "open"),
                )
            )
    return out


# ── Component scores ─────────────────────────────────────────────────────


def trend_alignment_score(
    price: float, ema20: float, ema50: float, ema200: float, macd: MACDValue
) -> float:
    """2.5 points for each bullish alignment check that holds."""
    checks = (
        price > ema20,
        ema20 > ema50,
        ema50 > ema200,
        macd.macd_line > macd.signal_line,
        macd.macd_line > 0,
        macd.histogram > 0,
        abs(macd.histogram) > 2,
    )
    return sum(checks) * TREND_CHECK_POINTS


def rsi_score(value: float) -> float:
    if 45 <= value <= 65:
        return 10.0
    if 40 <= value <= 70:
        return 7.0
    if 35 <= value <= 75:
        return 4.0
    if value > 80 or value < 25:
        return 0.0
    return 2.0


def macd_score(macd: MACDValue) -> float:
    score = 0.0
    if macd.macd_line > macd.signal_line:
        score += 5
    if macd.macd_line > 0:
        score += 3
    if abs(macd.histogram) > 1:
        score += 2
    return min(score, 10.0)


def volume_ratio(volumes: list[float]) -> float:
    """Mean of the last 5 volumes over the mean of the last 20."""
    recent = volumes[-5:]
    baseline = volumes[-20:]
    baseline_mean = sum(baseline) / len(baseline)
    if baseline_mean == 0:
        return 0.0
    return (sum(recent) / len(recent)) / baseline_mean


def volume_score(volumes: list[float]) -> float:
    ratio = volume_ratio(volumes)
    if ratio > 1.5:
        return 10.0
    if ratio > 1.2:
        return 7.0
    if ratio > 1.0:
        return 5.0
    if ratio > 0.8:
        return 3.0
    return 0.0


def bollinger_score(bollinger: BollingerValue) -> float:
    pb = bollinger.percent_b
    if 0.5 <= pb <= 0.8:
        return 7.5
    if 0.4 <= pb <= 0.9:
        return 5.0
    if 0.3 <= pb <= 0.95:
        return 3.0
    if pb > 1.0 or pb < 0.1:
        return 0.0
    return 2.0


def market_regime_score(adx: ADXValue) -> float:
    """ADX strength tier plus 5 points when +DI leads, capped at 15."""
    value = adx.adx
    if 25 <= value <= 50:
        score = 10.0
    elif 20 <= value <= 60:
        score = 7.0
    elif 15 <= value <= 70:
        score = 4.0
    elif value < 15:
        score = 0.0
    else:
        score = 2.0
    if adx.plus_di > adx.minus_di:
        score += 5
    return min(score, 15.0)


def classify(total_score: float) -> Classification:
    if total_score >= 80:
        return Classification.STRONG
    if total_score >= 65:
        return Classification.GOOD
    if total_score >= 50:
        return Classification.MARGINAL
    return Classification.DO_NOT_TRADE


# ── Reasoning ────────────────────────────────────────────────────────────


def build_reasoning(
    *,
    total_score: float,
    classification: Classification,
    trend_score: float,
    setup_type: SetupType,
    volume_points: float,
    price: float,
    ema20: float,
    rsi14: float,
    macd: MACDValue,
    adx: ADXValue,
) -> tuple[str, ...]:
    """Human-readable explanation, one line per factor."""
    lines = [f"Overall Score: {total_score:.1f}/100 ({classification.value})"]

    if trend_score >= 15:
        lines.append("✓ STRONG UPTREND: Price above key EMAs with bullish MACD alignment")
    elif trend_score >= 10:
        lines.append("✓ Moderate uptrend: Some bullish EMA alignment")
    elif trend_score >= 5:
        lines.append("⚠ Weak trend: Mixed EMA signals")
    else:
        lines.append("✗ NO CLEAR TREND: EMAs not aligned, avoid trend trading")

    if setup_type is SetupType.PULLBACK_IN_TREND:
        lines.append("✓ PULLBACK SETUP: Healthy pullback in uptrend, potential entry zone")
    elif setup_type is SetupType.BREAKOUT:
        lines.append("✓ BREAKOUT SETUP: Volatility squeeze resolving, momentum building")
    elif setup_type is SetupType.MEAN_REVERSION:
        lines.append("⚠ MEAN REVERSION: Oversold bounce opportunity, higher risk")
    else:
        lines.append("✗ No clear setup pattern detected")

    if 45 <= rsi14 <= 65:
        lines.append(f"✓ RSI optimal at {rsi14:.1f} (not overbought/oversold)")
    elif indicators.interpret_rsi(rsi14) == "OVERBOUGHT":
        lines.append(f"⚠ RSI overbought at {rsi14:.1f} (potential pullback risk)")
    elif indicators.interpret_rsi(rsi14) == "OVERSOLD":
        lines.append(f"⚠ RSI oversold at {rsi14:.1f} (catching falling knife risk)")
    else:
        lines.append(f"• RSI at {rsi14:.1f} (neutral zone)")

    if macd.histogram > 0 and macd.macd_line > 0:
        lines.append("✓ MACD bullish: Above signal and centerline, momentum positive")
    elif macd.histogram > 0:
        lines.append("✓ MACD turning bullish: Crossed above signal line")
    elif macd.macd_line > 0:
        lines.append("⚠ MACD weakening: Above centerline but below signal")
    else:
        lines.append("✗ MACD bearish: Below signal line and centerline")

    if volume_points >= 7:
        lines.append("✓ Volume confirming: Above average participation")
    elif volume_points >= 5:
        lines.append("• Volume average: Moderate participation")
    else:
        lines.append("✗ Volume weak: Below average participation")

    if adx.adx >= 25:
        lines.append(f"✓ Strong trend (ADX: {adx.adx:.1f}), good for swing trading")
    elif adx.adx >= 20:
        lines.append(f"⚠ Emerging trend (ADX: {adx.adx:.1f}), watch for development")
    else:
        lines.append(f"✗ Weak trend (ADX: {adx.adx:.1f}), ranging market - avoid")

    if ema20 != 0:
        distance = (price - ema20) / ema20 * 100
        if abs(distance) < 2:
            lines.append(f"✓ Price near EMA20 support/resistance ({distance:.1f}%)")
        elif distance > 5:
            lines.append(f"⚠ Price extended above EMA20 (+{distance:.1f}%)")

    return tuple(lines)


# ── Entry point ──────────────────────────────────────────────────────────


def compute_snapshot(
    bars: list[PriceBar], options: ScoringOptions
) -> IndicatorSnapshot:
    """Latest value of every indicator the rubric reads."""
    closes = [b.close for b in bars]
    long_period = min(options.ema_long, len(closes))
    return IndicatorSnapshot(
        ema20=indicators.ema(closes, options.ema_short),
        ema50=indicators.ema(closes, options.ema_medium),
        ema200=indicators.ema(closes, long_period),
        rsi14=indicators.rsi(closes, options.rsi_period),
        macd=indicators.macd(
            closes, options.macd_fast, options.macd_slow, options.macd_signal
        ),
        adx=indicators.adx(bars, options.adx_period),
        bollinger=indicators.bollinger(
            closes, options.bollinger_period, options.bollinger_std_dev
        ),
        atr14=indicators.atr(bars, options.atr_period),
    )


def score_stock(
    bars: Sequence[BarLike], options: Optional[ScoringOptions] = None
) -> ScoreBreakdown:
    """Score one OHLCV series (oldest first, last bar is "now")."""
    opts = options or ScoringOptions()
    series = coerce_bars(bars, opts.min_bars)

    closes = [b.close for b in series]
    volumes = [b.volume for b in series]
    price = closes[-1]
    snap = compute_snapshot(series, opts)

    trend = trend_alignment_score(price, snap.ema20, snap.ema50, snap.ema200, snap.macd)
    setup: SetupResult = detect_setup(
        closes, volumes, snap.ema20, snap.ema50, snap.rsi14, snap.macd, snap.bollinger
    )
    rsi_pts = rsi_score(snap.rsi14)
    macd_pts = macd_score(snap.macd)
    volume_pts = volume_score(volumes)
    bollinger_pts = bollinger_score(snap.bollinger)
    regime_pts = market_regime_score(snap.adx)

    total = trend + setup.score + rsi_pts + macd_pts + volume_pts + bollinger_pts + regime_pts
    classification = classify(total)

    reasoning = build_reasoning(
        total_score=total,
        classification=classification,
        trend_score=trend,
        setup_type=setup.setup_type,
        volume_points=volume_pts,
        price=price,
        ema20=snap.ema20,
        rsi14=snap.rsi14,
        macd=snap.macd,
        adx=snap.adx,
    )

    logger.debug(
        "Scored %d bars: total=%.1f class=%s setup=%s",
        len(series), total, classification.value, setup.setup_type.value,
    )

    return ScoreBreakdown(
        total_score=total,
        classification=classification,
        trend_score=trend,
        setup_score=setup.score,
        setup_type=setup.setup_type,
        rsi_score=rsi_pts,
        macd_score=macd_pts,
        volume_score=volume_pts,
        bollinger_score=bollinger_pts,
        market_regime_score=regime_pts,
        reasoning=reasoning,
        indicators=snap,
    )
