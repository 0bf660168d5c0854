"""Swing setup pattern detection — pure functions, no I/O.

Three patterns are checked in priority order; the first match wins:

    1. Pullback in trend  (15 pts)
    2. Breakout           (12 pts)
    3. Mean reversion     (10 pts)
"""

from dataclasses import dataclass
from typing import Optional

from swingscan.strategy.models import BollingerValue, MACDValue, SetupType

PULLBACK_SCORE = 15.0
BREAKOUT_SCORE = 12.0
MEAN_REVERSION_SCORE = 10.0

SETUP_SCORES: dict[SetupType, float] = {
    SetupType.PULLBACK_IN_TREND: PULLBACK_SCORE,
    SetupType.BREAKOUT: BREAKOUT_SCORE,
    SetupType.MEAN_REVERSION: MEAN_REVERSION_SCORE,
    SetupType.NONE: 0.0,
}


@dataclass(frozen=True)
class PullbackCheck:
    """Every condition evaluated by the pullback detector.

    ``volume_declining`` is reported but does not take part in
    ``detected``.
    """

    uptrend: bool
    pullback_percent: float
    pullback_in_range: bool
    rsi_cooled: bool
    macd_bullish: bool
    volume_declining: bool

    @property
    def detected(self) -> bool:
        return (
            self.uptrend
            and self.pullback_in_range
            and self.rsi_cooled
            and self.macd_bullish
        )


@dataclass(frozen=True)
class SetupResult:
    setup_type: SetupType
    score: float
    pullback: Optional[PullbackCheck] = None


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def detect_pullback_in_trend(
    closes: list[float],
    volumes: list[float],
    ema20: float,
    ema50: float,
    rsi14: float,
    macd: MACDValue,
    *,
    lookback: int = 10,
) -> PullbackCheck:
    """Healthy retracement inside an established uptrend.

    Conditions:
        1. price > EMA20 > EMA50
        2. 1% < retracement from the *lookback*-bar closing high < 10%
        3. 30 < RSI < 60
        4. MACD line above signal, or above zero
    """
    price = closes[-1]
    recent_high = max(closes[-lookback:])
    pullback_percent = (recent_high - price) / recent_high * 100 if recent_high else 0.0

    recent_vol = _mean(volumes[-3:])
    previous_vol = _mean(volumes[-6:-3])

    return PullbackCheck(
        uptrend=price > ema20 and ema20 > ema50,
        pullback_percent=pullback_percent,
        pullback_in_range=1 < pullback_percent < 10,
        rsi_cooled=30 < rsi14 < 60,
        macd_bullish=macd.macd_line > macd.signal_line or macd.macd_line > 0,
        volume_declining=recent_vol < previous_vol,
    )


def detect_breakout(volumes: list[float], bollinger: BollingerValue) -> bool:
    """Volatility squeeze resolving upward on rising volume.

    Bandwidth < 0.04, %B > 0.9, and the last 3 bars' mean volume above
    1.2× the mean of the 7 bars before them.
    """
    squeeze = bollinger.bandwidth < 0.04
    near_upper = bollinger.percent_b > 0.9
    volume_surge = _mean(volumes[-3:]) > _mean(volumes[-10:-3]) * 1.2
    return squeeze and near_upper and volume_surge


def detect_mean_reversion(bollinger: BollingerValue, rsi14: float) -> bool:
    """Oversold stretch below the lower band: %B < 0.2 and 20 < RSI < 35."""
    return bollinger.percent_b < 0.2 and 20 < rsi14 < 35


def detect_setup(
    closes: list[float],
    volumes: list[float],
    ema20: float,
    ema50: float,
    rsi14: float,
    macd: MACDValue,
    bollinger: BollingerValue,
) -> SetupResult:
    """Return the highest-priority setup present, or ``SetupType.NONE``."""
    pullback = detect_pullback_in_trend(closes, volumes, ema20, ema50, rsi14, macd)
    if pullback.detected:
        setup = SetupType.PULLBACK_IN_TREND
    elif detect_breakout(volumes, bollinger):
        setup = SetupType.BREAKOUT
    elif detect_mean_reversion(bollinger, rsi14):
        setup = SetupType.MEAN_REVERSION
    else:
        setup = SetupType.NONE
    return SetupResult(setup_type=setup, score=SETUP_SCORES[setup], pullback=pullback)
