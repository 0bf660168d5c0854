"""Indicator readings — turn raw indicator values into labelled signals.

Pure functions over the values produced by ``swingscan.strategy.indicators``.
None of these feed the score; they annotate it.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from swingscan.errors import InvalidOptionError
from swingscan.strategy import indicators
from swingscan.strategy.models import (
    ADXValue,
    BollingerValue,
    IndicatorSnapshot,
    MACDValue,
    PriceBar,
)


@dataclass(frozen=True)
class ADXReading:
    signal: str  # TREND_LONG, TREND_SHORT, WAIT or NO_TRADE
    trend_strength: str
    strength_description: str
    direction: str
    direction_description: str
    adx: float
    plus_di: float
    minus_di: float


@dataclass(frozen=True)
class ATRReading:
    """ATR as a percentage of price, bucketed LOW / MEDIUM / HIGH."""

    percent: float
    category: str
    description: str


@dataclass(frozen=True)
class MACDReading:
    signal: str
    description: str
    strength: str


@dataclass(frozen=True)
class BollingerReading:
    signal: str
    position: str
    description: str
    volatility: str
    percent_b: float
    bandwidth: float


# ── ADX ──────────────────────────────────────────────────────────────────


def interpret_adx(value: ADXValue) -> ADXReading:
    """Trend strength tier, +DI/-DI direction and the trade signal they imply."""
    if value.adx < 20:
        strength, strength_text = (
            "WEAK", "Weak trend or ranging market - avoid trend trading"
        )
    elif value.adx < 25:
        strength, strength_text = (
            "EMERGING", "Trend starting to develop - watch for confirmation"
        )
    elif value.adx < 50:
        strength, strength_text = "STRONG", "Strong trend - good for trend trading"
    elif value.adx < 75:
        strength, strength_text = (
            "VERY_STRONG", "Very strong trend - momentum trading opportunity"
        )
    else:
        strength, strength_text = (
            "EXTREME", "Extremely strong trend - caution: may be overextended"
        )

    if value.plus_di > value.minus_di:
        direction, direction_text = "BULLISH", "+DI > -DI indicates uptrend"
    elif value.minus_di > value.plus_di:
        direction, direction_text = "BEARISH", "-DI > +DI indicates downtrend"
    else:
        direction, direction_text = "NEUTRAL", "+DI = -DI indicates no clear direction"

    if strength == "WEAK":
        signal = "NO_TRADE"
    elif direction == "BULLISH":
        signal = "TREND_LONG"
    elif direction == "BEARISH":
        signal = "TREND_SHORT"
    else:
        signal = "WAIT"

    return ADXReading(
        signal=signal,
        trend_strength=strength,
        strength_description=strength_text,
        direction=direction,
        direction_description=direction_text,
        adx=round(value.adx, 2),
        plus_di=round(value.plus_di, 2),
        minus_di=round(value.minus_di, 2),
    )


def is_trend_tradeable(adx_value: float, threshold: float = 20.0) -> bool:
    return adx_value >= threshold


def detect_di_crossover(
    current: ADXValue, previous: Optional[ADXValue]
) -> Optional[str]:
    """BULLISH_CROSSOVER / BEARISH_CROSSOVER when +DI and -DI swap lead."""
    if previous is None:
        return None
    if previous.plus_di <= previous.minus_di and current.plus_di > current.minus_di:
        return "BULLISH_CROSSOVER"
    if previous.minus_di <= previous.plus_di and current.minus_di > current.plus_di:
        return "BEARISH_CROSSOVER"
    return None


# ── ATR ──────────────────────────────────────────────────────────────────


def interpret_atr(atr_value: float, price: float) -> ATRReading:
    if price <= 0:
        raise InvalidOptionError(
            f"price must be positive, got {price!r}", option="price", value=price
        )
    percent = atr_value / price * 100
    if percent < 2:
        category, description = "LOW", "Low volatility - tight trading range"
    elif percent < 5:
        category, description = "MEDIUM", "Medium volatility - normal trading conditions"
    else:
        category, description = "HIGH", "High volatility - wide price swings"
    return ATRReading(percent=round(percent, 2), category=category, description=description)


def atr_stop_loss(
    entry_price: float,
    atr_value: float,
    multiplier: float = 2.0,
    direction: str = "LONG",
) -> float:
    """Stop *multiplier* ATRs below a long entry, or above a short one."""
    side = direction.upper()
    if side == "LONG":
        return entry_price - atr_value * multiplier
    if side == "SHORT":
        return entry_price + atr_value * multiplier
    raise InvalidOptionError(
        f"direction must be LONG or SHORT, got {direction!r}",
        option="direction",
        value=direction,
    )


# ── MACD ─────────────────────────────────────────────────────────────────


def interpret_macd(
    current: MACDValue, previous: Optional[MACDValue] = None
) -> MACDReading:
    """Crossover when *previous* is given and the histogram changed sign,
    otherwise the line/histogram quadrant with a histogram-size strength.
    """
    if previous is not None:
        if previous.histogram < 0 < current.histogram:
            return MACDReading(
                "BULLISH_CROSSOVER",
                "MACD line crossed above signal line - bullish signal",
                "STRONG",
            )
        if previous.histogram > 0 > current.histogram:
            return MACDReading(
                "BEARISH_CROSSOVER",
                "MACD line crossed below signal line - bearish signal",
                "STRONG",
            )

    size = abs(current.histogram)
    if size > 2:
        strength = "STRONG"
    elif size > 0.5:
        strength = "MODERATE"
    else:
        strength = "WEAK"

    line, hist = current.macd_line, current.histogram
    if line > 0 and hist > 0:
        signal, description = (
            "BULLISH", "MACD positive and above signal line - strong uptrend"
        )
    elif line > 0 and hist < 0:
        signal, description = (
            "BULLISH_WEAKENING",
            "MACD positive but below signal line - uptrend losing momentum",
        )
    elif line < 0 and hist < 0:
        signal, description = (
            "BEARISH", "MACD negative and below signal line - strong downtrend"
        )
    elif line < 0 and hist > 0:
        signal, description = (
            "BEARISH_WEAKENING",
            "MACD negative but above signal line - downtrend losing momentum",
        )
    else:
        signal, description = "NEUTRAL", "MACD near zero - no clear trend"
    return MACDReading(signal, description, strength)


def macd_momentum(histogram: Sequence[Optional[float]], periods: int = 3) -> str:
    """EXPANDING, CONTRACTING or FLAT by the last *periods* changes in |histogram|."""
    recent = [v for v in histogram[-periods - 1 :] if v is not None]
    if len(histogram) < periods + 1 or len(recent) < periods + 1:
        return "INSUFFICIENT_DATA"

    sizes = [abs(v) for v in recent]
    expanding = sum(1 for a, b in zip(sizes, sizes[1:]) if b > a)
    contracting = sum(1 for a, b in zip(sizes, sizes[1:]) if b < a)
    if expanding > contracting:
        return "EXPANDING"
    if contracting > expanding:
        return "CONTRACTING"
    return "FLAT"


def _divergence(
    prices: Sequence[float], oscillator: Sequence[Optional[float]], lookback: int
) -> Optional[str]:
    recent_prices = prices[-lookback:]
    recent_osc = [v for v in oscillator[-lookback:] if v is not None]
    current_price = prices[-1]
    current_osc = oscillator[-1]
    if current_osc is None:
        return None

    # Price at the window extreme while the oscillator is not
    if current_price <= min(recent_prices) and current_osc > min(recent_osc):
        return "BULLISH_DIVERGENCE"
    if current_price >= max(recent_prices) and current_osc < max(recent_osc):
        return "BEARISH_DIVERGENCE"
    return None


def detect_macd_divergence(
    prices: Sequence[float],
    histogram: Sequence[Optional[float]],
    lookback: int = 14,
) -> Optional[str]:
    """Requires *lookback* defined histogram values at the tail."""
    if len(prices) < lookback or len(histogram) < lookback:
        return None
    if sum(1 for v in histogram[-lookback:] if v is not None) < lookback:
        return None
    return _divergence(prices, histogram, lookback)


# ── RSI ──────────────────────────────────────────────────────────────────


def check_rsi_divergence(
    prices: Sequence[float],
    rsi_values: Sequence[Optional[float]],
    lookback: int = 14,
) -> Optional[str]:
    if len(prices) < lookback or len(rsi_values) < lookback:
        return None
    return _divergence(prices, rsi_values, lookback)


# ── Bollinger Bands ──────────────────────────────────────────────────────


def interpret_bollinger(value: BollingerValue) -> BollingerReading:
    """Position of price within the bands plus a bandwidth volatility tier."""
    if value.bandwidth < 0.04:
        volatility = "SQUEEZE"
    elif value.bandwidth < 0.10:
        volatility = "NORMAL"
    else:
        volatility = "EXPANSION"

    pb = value.percent_b
    if pb > 1:
        position, signal, description = (
            "ABOVE_UPPER",
            "OVERBOUGHT_EXTREME",
            "Price above upper band - extremely overbought or strong trend",
        )
    elif pb > 0.8:
        position, signal, description = (
            "UPPER_BAND",
            "OVERBOUGHT",
            "Price near upper band - overbought or strong uptrend",
        )
    elif pb > 0.5:
        position, signal, description = (
            "UPPER_HALF", "BULLISH", "Price in upper half - bullish"
        )
    elif pb > 0.2:
        position, signal, description = (
            "LOWER_HALF", "BEARISH", "Price in lower half - bearish"
        )
    elif pb > 0:
        position, signal, description = (
            "LOWER_BAND",
            "OVERSOLD",
            "Price near lower band - oversold or strong downtrend",
        )
    else:
        position, signal, description = (
            "BELOW_LOWER",
            "OVERSOLD_EXTREME",
            "Price below lower band - extremely oversold or strong downtrend",
        )

    return BollingerReading(
        signal=signal,
        position=position,
        description=description,
        volatility=volatility,
        percent_b=round(pb, 2),
        bandwidth=round(value.bandwidth, 4),
    )


def detect_bollinger_squeeze(
    bandwidths: Sequence[Optional[float]], lookback: int = 125
) -> bool:
    """True when the latest bandwidth is the narrowest of the last *lookback*."""
    if len(bandwidths) < lookback:
        return False
    recent = [v for v in bandwidths[-lookback:] if v is not None]
    if len(recent) < lookback:
        return False
    return recent[-1] == min(recent)


def detect_band_walk(
    percent_b: Sequence[Optional[float]], periods: int = 5
) -> Optional[str]:
    """UPPER_WALK / LOWER_WALK when %B hugged one band for *periods* bars."""
    if len(percent_b) < periods:
        return None
    recent = [v for v in percent_b[-periods:] if v is not None]
    if len(recent) < periods:
        return None
    if all(v > 0.8 for v in recent):
        return "UPPER_WALK"
    if all(v < 0.2 for v in recent):
        return "LOWER_WALK"
    return None


# ── Summary ──────────────────────────────────────────────────────────────


def describe_signals(bars: Sequence[PriceBar], snapshot: IndicatorSnapshot) -> dict:
    """JSON-friendly readings for a scored series, keyed like the score payload."""
    closes = [b.close for b in bars]
    price = closes[-1]
    macd_full = indicators.macd_series(closes)
    adx_full = indicators.adx_series(bars)
    bands = indicators.bollinger_series(closes)

    # Previous-bar values for the crossover checks
    previous_macd = previous_adx = None
    if macd_full.histogram[-2] is not None:
        previous_macd = MACDValue(
            macd_line=macd_full.macd_line[-2],
            signal_line=macd_full.signal_line[-2],
            histogram=macd_full.histogram[-2],
        )
    if adx_full.adx[-2] is not None:
        previous_adx = ADXValue(
            adx=adx_full.adx[-2],
            plus_di=adx_full.plus_di[-2],
            minus_di=adx_full.minus_di[-2],
        )

    adx_reading = interpret_adx(snapshot.adx)
    atr_reading = interpret_atr(snapshot.atr14, price)
    macd_reading = interpret_macd(snapshot.macd, previous_macd)
    bb_reading = interpret_bollinger(snapshot.bollinger)

    return {
        "adx": {
            "signal": adx_reading.signal,
            "trendStrength": adx_reading.trend_strength,
            "direction": adx_reading.direction,
            "tradeable": is_trend_tradeable(snapshot.adx.adx),
            "diCrossover": detect_di_crossover(snapshot.adx, previous_adx),
        },
        "atr": {
            "percent": atr_reading.percent,
            "category": atr_reading.category,
            "stopLoss": round(atr_stop_loss(price, snapshot.atr14), 2),
        },
        "macd": {
            "signal": macd_reading.signal,
            "strength": macd_reading.strength,
            "momentum": macd_momentum(macd_full.histogram),
            "divergence": detect_macd_divergence(closes, macd_full.histogram),
        },
        "rsi": {
            "zone": indicators.interpret_rsi(snapshot.rsi14),
            "divergence": check_rsi_divergence(closes, indicators.rsi_series(closes)),
        },
        "bollinger": {
            "signal": bb_reading.signal,
            "position": bb_reading.position,
            "volatility": bb_reading.volatility,
            "squeeze": detect_bollinger_squeeze(bands.bandwidth),
            "bandWalk": detect_band_walk(bands.percent_b),
        },
    }
