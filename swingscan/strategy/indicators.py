"""Technical indicators — EMA, SMA, RSI, MACD, ATR, ADX, Bollinger Bands. Pure functions, no I/O.

Every indicator comes in two forms: ``<name>_series`` returns a list aligned
index-for-index with the input, with ``None`` in the warm-up slots, and
``<name>`` returns the latest value of that series.
"""

import math
from collections.abc import Sequence
from typing import Any, Optional

from swingscan.errors import (
    InsufficientDataError,
    InvalidPeriodError,
    TypeMismatchError,
)
from swingscan.strategy.models import (
    ADXSeries,
    ADXValue,
    BollingerSeries,
    BollingerValue,
    MACDSeries,
    MACDValue,
    PriceBar,
)


# ── Validation ───────────────────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _check_container(values: Any, name: str) -> None:
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise TypeMismatchError(
            f"{name} must be a sequence, got {type(values).__name__}",
            field=name,
            value=values,
        )


def _check_period(period: Any, name: str = "period") -> None:
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidPeriodError(
            f"{name} must be a positive integer, got {period!r}",
            name=name,
            value=period,
        )


def _check_prices(prices: Any) -> list[float]:
    for i, p in enumerate(prices):
        if not _is_number(p):
            raise TypeMismatchError(
                f"All prices must be finite numbers (index {i} is {p!r})",
                field=f"prices[{i}]",
                value=p,
            )
    return [float(p) for p in prices]


def _check_bars(bars: Any) -> None:
    for i, bar in enumerate(bars):
        for attr in ("high", "low", "close"):
            value = getattr(bar, attr, None)
            if not _is_number(value):
                raise TypeMismatchError(
                    f"Bar {i} has a non-numeric {attr}: {value!r}",
                    field=attr,
                    value=value,
                )


def _check_length(actual: int, required: int, noun: str = "prices") -> None:
    if actual < required:
        raise InsufficientDataError(required, actual, noun=noun)


# ── Moving averages ──────────────────────────────────────────────────────


def _ema_unchecked(values: list[float], period: int) -> list[Optional[float]]:
    k = 2.0 / (period + 1)
    out: list[Optional[float]] = [None] * len(values)

    # Seed: SMA of first *period* values
    current = sum(values[:period]) / period
    out[period - 1] = current

    for i in range(period, len(values)):
        current = values[i] * k + current * (1 - k)
        out[i] = current
    return out


def ema_series(prices: Sequence[float], period: int) -> list[Optional[float]]:
    """Exponential Moving Average series.

    ``EMA_today = price × k + EMA_yesterday × (1 - k)`` with
    ``k = 2 / (period + 1)``, seeded with the SMA of the first *period*
    prices.  The first ``period - 1`` entries are ``None``.
    """
    _check_container(prices, "prices")
    _check_period(period)
    values = _check_prices(prices)
    _check_length(len(values), period)
    return _ema_unchecked(values, period)


def ema(prices: Sequence[float], period: int) -> float:
    """Latest EMA value."""
    return ema_series(prices, period)[-1]


def sma_series(prices: Sequence[float], period: int) -> list[Optional[float]]:
    _check_container(prices, "prices")
    _check_period(period)
    values = _check_prices(prices)
    _check_length(len(values), period)

    out: list[Optional[float]] = [None] * len(values)
    for i in range(period - 1, len(values)):
        out[i] = sum(values[i - period + 1 : i + 1]) / period
    return out


def sma(prices: Sequence[float], period: int) -> float:
    """Mean of the most recent *period* prices."""
    return sma_series(prices, period)[-1]


# ── RSI ──────────────────────────────────────────────────────────────────


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # Flat window is neutral; gains with no losses saturate
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_series(prices: Sequence[float], period: int = 14) -> list[Optional[float]]:
    """Wilder's Relative Strength Index.

    Algorithm (Wilder-smoothed):
        1. delta = price[i] - price[i-1]
        2. Separate gains (positive) and losses (|negative|).
        3. Seed average gain/loss = SMA of first *period* deltas.
        4. Subsequent: avg = (prev_avg × (period-1) + current) / period
        5. RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    A window with no losses reads 100, one with no gains reads 0, and a
    flat window reads 50.  Requires ``period + 1`` prices; the first
    *period* entries are ``None``.
    """
    _check_container(prices, "prices")
    _check_period(period)
    values = _check_prices(prices)
    _check_length(len(values), period + 1)

    deltas = [values[i] - values[i - 1] for i in range(1, len(values))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [abs(min(d, 0.0)) for d in deltas]

    out: list[Optional[float]] = [None] * len(values)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    out[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        # deltas are offset by one from prices
        out[i + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return out


def rsi(prices: Sequence[float], period: int = 14) -> float:
    """Latest RSI value."""
    return rsi_series(prices, period)[-1]


def interpret_rsi(value: float) -> str:
    """Map an RSI reading to OVERBOUGHT / OVERSOLD / NEUTRAL."""
    if value > 70:
        return "OVERBOUGHT"
    if value < 30:
        return "OVERSOLD"
    return "NEUTRAL"


# ── MACD ─────────────────────────────────────────────────────────────────


def macd_series(
    prices: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDSeries:
    """Moving Average Convergence Divergence.

    Algorithm:
        1. line = EMA(fast) - EMA(slow), ``None`` until both exist.
        2. signal = EMA(signal) over the defined line values only,
           re-aligned onto the original indices.
        3. histogram = line - signal.

    Requires ``fast < slow`` and ``slow + signal`` prices.  The line is
    defined from index ``slow - 1``; signal and histogram from
    ``slow + signal - 2``.
    """
    _check_container(prices, "prices")
    _check_period(fast, "fast")
    _check_period(slow, "slow")
    _check_period(signal, "signal")
    if fast >= slow:
        raise InvalidPeriodError(
            "Fast period must be less than slow period",
            name="fast",
            value=(fast, slow),
        )
    values = _check_prices(prices)
    _check_length(len(values), slow + signal)

    fast_ema = _ema_unchecked(values, fast)
    slow_ema = _ema_unchecked(values, slow)

    line: list[Optional[float]] = [
        None if f is None or s is None else f - s
        for f, s in zip(fast_ema, slow_ema)
    ]

    start = slow - 1
    defined = [v for v in line if v is not None]
    compact_signal = _ema_unchecked(defined, signal)

    signal_line: list[Optional[float]] = [None] * len(values)
    histogram: list[Optional[float]] = [None] * len(values)
    for j, sig in enumerate(compact_signal):
        if sig is None:
            continue
        signal_line[start + j] = sig
        histogram[start + j] = line[start + j] - sig

    return MACDSeries(macd_line=line, signal_line=signal_line, histogram=histogram)


def macd(
    prices: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDValue:
    """Latest MACD line, signal and histogram."""
    series = macd_series(prices, fast, slow, signal)
    return MACDValue(
        macd_line=series.macd_line[-1],
        signal_line=series.signal_line[-1],
        histogram=series.histogram[-1],
    )


# ── ATR ──────────────────────────────────────────────────────────────────


def _true_ranges(bars: Sequence[PriceBar]) -> list[float]:
    out = [bars[0].high - bars[0].low]
    for i in range(1, len(bars)):
        high = bars[i].high
        low = bars[i].low
        prev_close = bars[i - 1].close
        out.append(max(high - low, abs(high - prev_close), abs(low - prev_close)))
    return out


def true_range_series(bars: Sequence[PriceBar]) -> list[float]:
    """True Range per bar.

    ``TR[0] = high - low``; afterwards
    ``TR = max(high - low, |high - prev_close|, |low - prev_close|)``.
    """
    _check_container(bars, "bars")
    _check_bars(bars)
    _check_length(len(bars), 1, noun="bars")
    return _true_ranges(bars)


def atr_series(bars: Sequence[PriceBar], period: int = 14) -> list[Optional[float]]:
    """Average True Range, seeded by the mean of the first *period* TRs
    and Wilder-smoothed afterwards.  First ``period - 1`` entries are ``None``.
    """
    _check_container(bars, "bars")
    _check_period(period)
    _check_bars(bars)
    _check_length(len(bars), period, noun="bars")

    return _wilder_average(_true_ranges(bars), period)


def _wilder_average(values: list[float], period: int) -> list[Optional[float]]:
    out: list[Optional[float]] = [None] * len(values)
    current = sum(values[:period]) / period
    out[period - 1] = current
    for i in range(period, len(values)):
        current = (current * (period - 1) + values[i]) / period
        out[i] = current
    return out


def atr(bars: Sequence[PriceBar], period: int = 14) -> float:
    return atr_series(bars, period)[-1]


# ── ADX ──────────────────────────────────────────────────────────────────


def adx_series(bars: Sequence[PriceBar], period: int = 14) -> ADXSeries:
    """Average Directional Index with +DI / -DI.

    Algorithm:
        1. +DM / -DM directional movement per bar (larger move wins,
           zero when negative or tied).
        2. Wilder-smooth +DM and -DM as running sums over *period*,
           seeded with the plain sum of bars ``1..period``.
        3. +DI = 100 × smoothed_+DM / (ATR × period), likewise -DI.  ATR
           is seeded from TR of bars ``0..period-1``.
        4. DX = 100 × |+DI − −DI| / (+DI + −DI), from bar *period* on.
        5. ADX = mean of the first *period* DX values, then
           Wilder-smoothed.

    Requires ``2 × period`` bars.  ADX, +DI and -DI are all ``None``
    before index ``2 × period - 1``.
    """
    _check_container(bars, "bars")
    _check_period(period)
    _check_bars(bars)
    _check_length(len(bars), 2 * period, noun="bars")

    n = len(bars)

    # Step 1: raw +DM, -DM per bar (index 0 unused)
    plus_dm_raw: list[float] = [0.0]
    minus_dm_raw: list[float] = [0.0]
    atr_values = _wilder_average(_true_ranges(bars), period)

    for i in range(1, n):
        up_move = bars[i].high - bars[i - 1].high
        down_move = bars[i - 1].low - bars[i].low
        plus_dm_raw.append(up_move if (up_move > down_move and up_move > 0) else 0.0)
        minus_dm_raw.append(
            down_move if (down_move > up_move and down_move > 0) else 0.0
        )

    # Step 2: seed running sums with bars 1..period
    smoothed_plus_dm = sum(plus_dm_raw[1 : period + 1])
    smoothed_minus_dm = sum(minus_dm_raw[1 : period + 1])

    plus_di: list[Optional[float]] = [None] * n
    minus_di: list[Optional[float]] = [None] * n
    dx_values: list[float] = []

    def _record(i: int) -> None:
        tr_sum = atr_values[i] * period
        if tr_sum == 0:
            p_di = m_di = 0.0
        else:
            p_di = 100.0 * smoothed_plus_dm / tr_sum
            m_di = 100.0 * smoothed_minus_dm / tr_sum
        if i >= 2 * period - 1:
            plus_di[i] = p_di
            minus_di[i] = m_di
        di_sum = p_di + m_di
        dx_values.append(0.0 if di_sum == 0 else 100.0 * abs(p_di - m_di) / di_sum)

    _record(period)
    for i in range(period + 1, n):
        smoothed_plus_dm = smoothed_plus_dm - smoothed_plus_dm / period + plus_dm_raw[i]
        smoothed_minus_dm = (
            smoothed_minus_dm - smoothed_minus_dm / period + minus_dm_raw[i]
        )
        _record(i)

    # Step 5: dx_values[0] belongs to bar *period*, so the seed lands on
    # bar 2*period - 1
    adx_out: list[Optional[float]] = [None] * n
    current = sum(dx_values[:period]) / period
    adx_out[2 * period - 1] = current
    for j in range(period, len(dx_values)):
        current = (current * (period - 1) + dx_values[j]) / period
        adx_out[period + j] = current

    return ADXSeries(adx=adx_out, plus_di=plus_di, minus_di=minus_di)


def adx(bars: Sequence[PriceBar], period: int = 14) -> ADXValue:
    """Latest ADX, +DI and -DI."""
    series = adx_series(bars, period)
    return ADXValue(
        adx=series.adx[-1],
        plus_di=series.plus_di[-1],
        minus_di=series.minus_di[-1],
    )


# ── Bollinger Bands ──────────────────────────────────────────────────────


def bollinger_series(
    prices: Sequence[float],
    period: int = 20,
    std_dev_multiplier: float = 2.0,
) -> BollingerSeries:
    """Bollinger Bands with bandwidth and %B.

    Middle = SMA(price, *period*)
    Upper  = middle + multiplier × σ (population σ)
    Lower  = middle − multiplier × σ
    Bandwidth = (upper − lower) / middle
    %B = (price − lower) / (upper − lower), or 0.5 when the bands touch.
    """
    _check_container(prices, "prices")
    _check_period(period)
    if not _is_number(std_dev_multiplier) or std_dev_multiplier <= 0:
        raise InvalidPeriodError(
            f"std_dev_multiplier must be a positive number, got {std_dev_multiplier!r}",
            name="std_dev_multiplier",
            value=std_dev_multiplier,
        )
    values = _check_prices(prices)
    _check_length(len(values), period)

    n = len(values)
    upper: list[Optional[float]] = [None] * n
    middle: list[Optional[float]] = [None] * n
    lower: list[Optional[float]] = [None] * n
    bandwidth: list[Optional[float]] = [None] * n
    percent_b: list[Optional[float]] = [None] * n

    for i in range(period - 1, n):
        window = values[i - period + 1 : i + 1]
        mid = sum(window) / period
        sigma = math.sqrt(sum((x - mid) ** 2 for x in window) / period)
        up = mid + sigma * std_dev_multiplier
        lo = mid - sigma * std_dev_multiplier

        upper[i] = up
        middle[i] = mid
        lower[i] = lo
        bandwidth[i] = (up - lo) / mid if mid != 0 else 0.0
        percent_b[i] = 0.5 if up == lo else (values[i] - lo) / (up - lo)

    return BollingerSeries(
        upper=upper,
        middle=middle,
        lower=lower,
        bandwidth=bandwidth,
        percent_b=percent_b,
    )


def bollinger(
    prices: Sequence[float],
    period: int = 20,
    std_dev_multiplier: float = 2.0,
) -> BollingerValue:
    """Latest Bollinger Bands."""
    series = bollinger_series(prices, period, std_dev_multiplier)
    return BollingerValue(
        upper=series.upper[-1],
        middle=series.middle[-1],
        lower=series.lower[-1],
        bandwidth=series.bandwidth[-1],
        percent_b=series.percent_b[-1],
    )
