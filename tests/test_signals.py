"""Tests for swingscan.strategy.signals — labelled indicator readings."""

import pytest

from swingscan.errors import InvalidOptionError
from swingscan.strategy import indicators as ind
from swingscan.strategy import signals as sig
from swingscan.strategy.models import ADXValue, BollingerValue, MACDValue
from swingscan.strategy.scoring import score_stock


def _make_adx(adx: float, plus_di: float = 30.0, minus_di: float = 15.0) -> ADXValue:
    return ADXValue(adx=adx, plus_di=plus_di, minus_di=minus_di)


def _make_macd(line: float, hist: float) -> MACDValue:
    return MACDValue(macd_line=line, signal_line=line - hist, histogram=hist)


def _make_bands(percent_b: float, bandwidth: float = 0.06) -> BollingerValue:
    return BollingerValue(
        upper=110.0, middle=100.0, lower=90.0, bandwidth=bandwidth, percent_b=percent_b
    )


# ── ADX ──────────────────────────────────────────────────────────────────


class TestInterpretADX:
    @pytest.mark.parametrize(
        "value, strength",
        [
            (19.99, "WEAK"),
            (20.0, "EMERGING"),
            (25.0, "STRONG"),
            (49.9, "STRONG"),
            (50.0, "VERY_STRONG"),
            (75.0, "EXTREME"),
        ],
    )
    def test_strength_tiers(self, value, strength):
        assert sig.interpret_adx(_make_adx(value)).trend_strength == strength

    def test_bullish_trend_is_long(self):
        reading = sig.interpret_adx(_make_adx(30.0, 28.456, 12.0))
        assert reading.direction == "BULLISH"
        assert reading.signal == "TREND_LONG"
        assert reading.plus_di == 28.46

    def test_bearish_trend_is_short(self):
        reading = sig.interpret_adx(_make_adx(30.0, 10.0, 25.0))
        assert reading.direction == "BEARISH"
        assert reading.signal == "TREND_SHORT"

    def test_weak_trend_is_no_trade_regardless_of_direction(self):
        assert sig.interpret_adx(_make_adx(12.0, 40.0, 5.0)).signal == "NO_TRADE"

    def test_tied_di_waits(self):
        reading = sig.interpret_adx(_make_adx(30.0, 20.0, 20.0))
        assert reading.direction == "NEUTRAL"
        assert reading.signal == "WAIT"


class TestTrendTradeable:
    def test_threshold_inclusive(self):
        assert sig.is_trend_tradeable(20.0)
        assert not sig.is_trend_tradeable(19.9)
        assert sig.is_trend_tradeable(26.0, threshold=25)


class TestDICrossover:
    def test_no_previous(self):
        assert sig.detect_di_crossover(_make_adx(25, 20, 10), None) is None

    def test_bullish(self):
        previous = _make_adx(25, 15, 20)
        assert sig.detect_di_crossover(_make_adx(25, 22, 18), previous) == "BULLISH_CROSSOVER"

    def test_bearish_from_tie(self):
        previous = _make_adx(25, 18, 18)
        assert sig.detect_di_crossover(_make_adx(25, 15, 20), previous) == "BEARISH_CROSSOVER"

    def test_no_change_in_lead(self):
        previous = _make_adx(25, 25, 10)
        assert sig.detect_di_crossover(_make_adx(25, 30, 12), previous) is None


# ── ATR ──────────────────────────────────────────────────────────────────


class TestInterpretATR:
    @pytest.mark.parametrize(
        "atr, category, percent",
        [(15, "LOW", 0.6), (50, "MEDIUM", 2.0), (125, "HIGH", 5.0)],
    )
    def test_categories(self, atr, category, percent):
        reading = sig.interpret_atr(atr, 2500)
        assert reading.category == category
        assert reading.percent == percent

    def test_non_positive_price(self):
        with pytest.raises(InvalidOptionError):
            sig.interpret_atr(10, 0)


class TestATRStopLoss:
    def test_long_stop_below_entry(self):
        assert sig.atr_stop_loss(2500, 15) == 2470

    def test_short_stop_above_entry(self):
        assert sig.atr_stop_loss(2500, 15, multiplier=3, direction="short") == 2545

    def test_unknown_direction(self):
        with pytest.raises(InvalidOptionError) as exc_info:
            sig.atr_stop_loss(2500, 15, direction="sideways")
        assert exc_info.value.option == "direction"


# ── MACD ─────────────────────────────────────────────────────────────────


class TestInterpretMACD:
    def test_bullish_crossover_wins_over_quadrant(self):
        reading = sig.interpret_macd(_make_macd(-1.0, 0.2), _make_macd(-1.2, -0.3))
        assert reading.signal == "BULLISH_CROSSOVER"
        assert reading.strength == "STRONG"

    def test_bearish_crossover(self):
        reading = sig.interpret_macd(_make_macd(1.0, -0.1), _make_macd(1.1, 0.4))
        assert reading.signal == "BEARISH_CROSSOVER"

    @pytest.mark.parametrize(
        "line, hist, signal, strength",
        [
            (3.0, 2.5, "BULLISH", "STRONG"),
            (3.0, -1.0, "BULLISH_WEAKENING", "MODERATE"),
            (-3.0, -0.2, "BEARISH", "WEAK"),
            (-3.0, 0.7, "BEARISH_WEAKENING", "MODERATE"),
            (0.0, 0.3, "NEUTRAL", "WEAK"),
        ],
    )
    def test_quadrants(self, line, hist, signal, strength):
        reading = sig.interpret_macd(_make_macd(line, hist))
        assert (reading.signal, reading.strength) == (signal, strength)

    def test_same_sign_previous_falls_through(self):
        reading = sig.interpret_macd(_make_macd(3.0, 2.5), _make_macd(2.9, 2.0))
        assert reading.signal == "BULLISH"


class TestMACDMomentum:
    def test_expanding(self):
        assert sig.macd_momentum([0.1, -0.2, 0.3, 0.5]) == "EXPANDING"

    def test_contracting(self):
        assert sig.macd_momentum([None, 1.0, 0.8, -0.5, 0.2]) == "CONTRACTING"

    def test_flat(self):
        assert sig.macd_momentum([0.5, 0.5, 0.5, 0.5]) == "FLAT"

    def test_insufficient(self):
        assert sig.macd_momentum([0.1, 0.2, 0.3]) == "INSUFFICIENT_DATA"
        assert sig.macd_momentum([None, 0.1, 0.2, 0.3]) == "INSUFFICIENT_DATA"


class TestMACDDivergence:
    def test_bullish(self):
        # Price closes at a new low while the histogram holds above its low
        prices = [110 - i for i in range(14)]
        hist = [-1.0 + 0.05 * i for i in range(14)]
        assert sig.detect_macd_divergence(prices, hist) == "BULLISH_DIVERGENCE"

    def test_bearish(self):
        prices = [100 + i for i in range(14)]
        hist = [1.0 - 0.05 * i for i in range(14)]
        assert sig.detect_macd_divergence(prices, hist) == "BEARISH_DIVERGENCE"

    def test_confirmed_trend_has_none(self):
        prices = [100 + i for i in range(14)]
        hist = [0.1 * i for i in range(14)]
        assert sig.detect_macd_divergence(prices, hist) is None

    def test_undefined_histogram_tail(self):
        prices = [100 + i for i in range(14)]
        hist = [None] + [1.0 - 0.05 * i for i in range(13)]
        assert sig.detect_macd_divergence(prices, hist) is None


# ── RSI ──────────────────────────────────────────────────────────────────


class TestRSIDivergence:
    def test_bullish(self):
        prices = [110 - i for i in range(14)]
        rsi = [20 + i for i in range(14)]
        assert sig.check_rsi_divergence(prices, rsi) == "BULLISH_DIVERGENCE"

    def test_bearish_ignores_warm_up(self):
        prices = [100 + i for i in range(14)]
        rsi = [None, None] + [80 - i for i in range(12)]
        assert sig.check_rsi_divergence(prices, rsi) == "BEARISH_DIVERGENCE"

    def test_short_input(self):
        assert sig.check_rsi_divergence([1, 2, 3], [50, 51, 52]) is None


# ── Bollinger Bands ──────────────────────────────────────────────────────


class TestInterpretBollinger:
    @pytest.mark.parametrize(
        "percent_b, position, signal",
        [
            (1.2, "ABOVE_UPPER", "OVERBOUGHT_EXTREME"),
            (0.9, "UPPER_BAND", "OVERBOUGHT"),
            (0.6, "UPPER_HALF", "BULLISH"),
            (0.3, "LOWER_HALF", "BEARISH"),
            (0.1, "LOWER_BAND", "OVERSOLD"),
            (0.0, "BELOW_LOWER", "OVERSOLD_EXTREME"),
        ],
    )
    def test_positions(self, percent_b, position, signal):
        reading = sig.interpret_bollinger(_make_bands(percent_b))
        assert (reading.position, reading.signal) == (position, signal)

    @pytest.mark.parametrize(
        "bandwidth, volatility",
        [(0.03, "SQUEEZE"), (0.04, "NORMAL"), (0.10, "EXPANSION")],
    )
    def test_volatility(self, bandwidth, volatility):
        assert sig.interpret_bollinger(_make_bands(0.5, bandwidth)).volatility == volatility

    def test_rounding(self):
        reading = sig.interpret_bollinger(_make_bands(0.4567, 0.123456))
        assert reading.percent_b == 0.46
        assert reading.bandwidth == 0.1235


class TestBollingerSqueeze:
    def test_latest_is_narrowest(self):
        assert sig.detect_bollinger_squeeze([0.1, 0.08, 0.05, 0.03], lookback=4)

    def test_not_narrowest(self):
        assert not sig.detect_bollinger_squeeze([0.1, 0.02, 0.05, 0.03], lookback=4)

    def test_needs_full_window(self):
        assert not sig.detect_bollinger_squeeze([0.05, 0.03], lookback=4)
        assert not sig.detect_bollinger_squeeze([None, 0.08, 0.05, 0.03], lookback=4)


class TestBandWalk:
    def test_upper(self):
        assert sig.detect_band_walk([0.5, 0.85, 0.9, 1.1, 0.95, 0.82]) == "UPPER_WALK"

    def test_lower(self):
        assert sig.detect_band_walk([0.1, 0.0, -0.2, 0.15, 0.05]) == "LOWER_WALK"

    def test_broken_walk(self):
        assert sig.detect_band_walk([0.85, 0.9, 0.7, 0.95, 0.82]) is None

    def test_warm_up_nulls(self):
        assert sig.detect_band_walk([None, 0.9, 0.9, 0.9, 0.9]) is None


# ── Summary ──────────────────────────────────────────────────────────────


class TestDescribeSignals:
    def test_pullback_series(self, pullback_bars):
        breakdown = score_stock(pullback_bars)
        result = sig.describe_signals(pullback_bars, breakdown.indicators)

        assert set(result) == {"adx", "atr", "macd", "rsi", "bollinger"}
        price = pullback_bars[-1].close
        atr14 = ind.atr(pullback_bars)
        assert result["atr"]["stopLoss"] == pytest.approx(price - 2 * atr14, abs=0.01)
        assert result["adx"]["tradeable"] == (breakdown.indicators.adx.adx >= 20)
        assert result["rsi"]["zone"] == ind.interpret_rsi(breakdown.indicators.rsi14)
        assert result["macd"]["momentum"] in {"EXPANDING", "CONTRACTING", "FLAT"}
