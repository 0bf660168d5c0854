"""Deterministic tests for the scoring engine.

Fixture series come from ``conftest.py``; the expected component scores
were worked out by hand from the rubric tiers.
"""

import pytest

from swingscan.errors import (
    InsufficientDataError,
    MissingFieldError,
    TypeMismatchError,
)
from swingscan.strategy.models import (
    ADXValue,
    BollingerValue,
    Classification,
    MACDValue,
    SetupType,
)
from swingscan.strategy.scoring import (
    ScoringOptions,
    bollinger_score,
    classify,
    macd_score,
    market_regime_score,
    rsi_score,
    score_stock,
    trend_alignment_score,
    volume_ratio,
    volume_score,
)
from swingscan.strategy.setups import detect_pullback_in_trend


def _make_macd(line: float, signal: float) -> MACDValue:
    return MACDValue(macd_line=line, signal_line=signal, histogram=line - signal)


def _make_bb(percent_b: float) -> BollingerValue:
    return BollingerValue(upper=1, middle=0.5, lower=0, bandwidth=0.1, percent_b=percent_b)


def _sum_components(result) -> float:
    return sum(result.components().values())


# ── End-to-end ───────────────────────────────────────────────────────────


class TestPullbackFixture:
    def test_strong_pullback(self, pullback_bars):
        result = score_stock(pullback_bars)
        assert result.setup_type is SetupType.PULLBACK_IN_TREND
        assert result.total_score >= 80
        assert result.classification is Classification.STRONG

    def test_components(self, pullback_bars):
        result = score_stock(pullback_bars)
        assert result.trend_score == 17.5
        assert result.setup_score == 15
        assert result.rsi_score == 10
        assert result.macd_score == 10
        assert result.volume_score == 10
        assert result.bollinger_score == 7.5
        assert result.market_regime_score == 15
        assert result.total_score == 85

    def test_indicator_snapshot(self, pullback_bars):
        snap = score_stock(pullback_bars).indicators
        assert snap.ema20 == pytest.approx(2703.65, abs=0.01)
        assert snap.ema50 == pytest.approx(2600.21, abs=0.01)
        # Only 55 bars: the long EMA collapses to the 55-bar SMA
        assert snap.ema200 == pytest.approx(2581.93, abs=0.01)
        assert snap.rsi14 == pytest.approx(55.36, abs=0.01)
        assert snap.macd.macd_line == pytest.approx(53.47, abs=0.01)
        assert snap.macd.signal_line == pytest.approx(50.70, abs=0.01)
        assert snap.macd.histogram == pytest.approx(2.77, abs=0.01)
        assert snap.bollinger.middle == pytest.approx(2700.1, abs=0.01)
        assert snap.bollinger.percent_b == pytest.approx(0.7615, abs=0.0001)

    def test_volume_rising_into_pullback_still_detected(self, pullback_bars):
        closes = [b.close for b in pullback_bars]
        volumes = [b.volume for b in pullback_bars]
        snap = score_stock(pullback_bars).indicators
        check = detect_pullback_in_trend(
            closes, volumes, snap.ema20, snap.ema50, snap.rsi14, snap.macd
        )
        assert check.pullback_percent == pytest.approx(1.78, abs=0.01)
        assert not check.volume_declining
        assert check.detected

    def test_reasoning(self, pullback_bars):
        lines = score_stock(pullback_bars).reasoning
        assert lines[0] == "Overall Score: 85.0/100 (STRONG)"
        assert lines[1].startswith("✓ STRONG UPTREND")
        assert lines[2].startswith("✓ PULLBACK SETUP")
        assert lines[3] == "✓ RSI optimal at 55.4 (not overbought/oversold)"
        assert lines[4].startswith("✓ MACD bullish")
        assert lines[5].startswith("✓ Volume confirming")
        assert lines[6] == "✓ Strong trend (ADX: 28.5), good for swing trading"
        # 2.1% above EMA20: neither "near" nor "extended"
        assert len(lines) == 7

    def test_mapping_bars_score_identically(self, pullback_bars):
        raw = [
            {"high": b.high, "low": b.low, "close": b.close, "volume": b.volume}
            for b in pullback_bars
        ]
        assert score_stock(raw).to_dict() == score_stock(pullback_bars).to_dict()

    def test_thirty_bars_rejected(self, pullback_bars):
        with pytest.raises(InsufficientDataError) as exc_info:
            score_stock(pullback_bars[:30])
        assert exc_info.value.required == 50
        assert exc_info.value.actual == 30


class TestOtherFixtures:
    def test_strict_downtrend(self, downtrend_bars):
        result = score_stock(downtrend_bars)
        assert result.indicators.rsi14 == 0.0
        assert result.setup_type is SetupType.NONE
        assert result.trend_score == 0
        assert result.rsi_score == 0
        assert result.macd_score == 0
        assert result.volume_score == 3
        assert result.bollinger_score == 0
        assert result.market_regime_score == 2
        assert result.total_score == 5
        assert result.classification is Classification.DO_NOT_TRADE

    def test_mean_reversion_in_downtrend(self, zigzag_downtrend_bars):
        result = score_stock(zigzag_downtrend_bars)
        assert result.setup_type is SetupType.MEAN_REVERSION
        assert result.setup_score == 10
        assert result.total_score == 37
        assert "⚠ MEAN REVERSION" in result.reasoning[2]

    def test_breakout(self, breakout_bars):
        result = score_stock(breakout_bars)
        assert result.setup_type is SetupType.BREAKOUT
        assert result.indicators.bollinger.bandwidth < 0.04
        assert result.indicators.bollinger.percent_b > 1.0
        assert result.bollinger_score == 0
        assert result.total_score == 51.5
        assert result.classification is Classification.MARGINAL

    def test_sharp_selloff_mean_reversion(self, mean_reversion_bars):
        result = score_stock(mean_reversion_bars)
        assert result.setup_type is SetupType.MEAN_REVERSION
        assert result.indicators.bollinger.percent_b < 0
        assert result.total_score == 19.5

    def test_flat_series(self, flat_bars):
        result = score_stock(flat_bars)
        snap = result.indicators
        assert snap.rsi14 == 50.0
        assert snap.bollinger.bandwidth == 0.0
        assert snap.bollinger.percent_b == 0.5
        assert snap.macd.macd_line == pytest.approx(0.0)
        assert snap.adx.adx == 0.0
        assert result.setup_type is SetupType.NONE
        assert result.total_score == 20.5

    def test_total_is_sum_of_components(
        self, pullback_bars, downtrend_bars, zigzag_downtrend_bars,
        breakout_bars, mean_reversion_bars, flat_bars,
    ):
        for bars in (
            pullback_bars, downtrend_bars, zigzag_downtrend_bars,
            breakout_bars, mean_reversion_bars, flat_bars,
        ):
            result = score_stock(bars)
            assert result.total_score == _sum_components(result)
            assert 0 <= result.total_score <= 100


# ── Component tiers ──────────────────────────────────────────────────────


class TestTrendAlignment:
    def test_all_checks(self):
        assert trend_alignment_score(110, 105, 100, 95, _make_macd(5, 2)) == 17.5

    def test_none(self):
        assert trend_alignment_score(90, 95, 100, 105, _make_macd(-2, -1)) == 0

    def test_small_histogram_misses_one_check(self):
        assert trend_alignment_score(110, 105, 100, 95, _make_macd(3, 2)) == 15


class TestRSIScore:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (45, 10), (55, 10), (65, 10),
            (40, 7), (70, 7), (44.9, 7),
            (35, 4), (75, 4),
            (34.9, 2), (25, 2), (78, 2), (80, 2),
            (80.1, 0), (24.9, 0), (0, 0), (100, 0),
        ],
    )
    def test_tiers(self, value, expected):
        assert rsi_score(value) == expected


class TestMACDScore:
    @pytest.mark.parametrize(
        "line,signal,expected",
        [(3, 1, 10), (0.5, 0.2, 8), (-1, -3, 7), (1, 2, 3), (-3, -1, 2), (-0.5, -0.2, 0)],
    )
    def test_additive(self, line, signal, expected):
        assert macd_score(_make_macd(line, signal)) == expected


class TestVolumeScore:
    @staticmethod
    def _volumes(recent: float) -> list[float]:
        return [100.0] * 15 + [recent] * 5

    @pytest.mark.parametrize(
        "recent,expected",
        [(400, 10), (150, 7), (120, 5), (100, 3), (60, 0)],
    )
    def test_tiers(self, recent, expected):
        assert volume_score(self._volumes(recent)) == expected

    def test_ratio(self):
        # last 5 = 400, last 20 mean = (1500 + 2000) / 20
        assert volume_ratio(self._volumes(400)) == pytest.approx(400 / 175)

    def test_zero_volume_scores_zero(self):
        assert volume_score([0.0] * 20) == 0


class TestBollingerScore:
    @pytest.mark.parametrize(
        "percent_b,expected",
        [
            (0.5, 7.5), (0.8, 7.5),
            (0.4, 5), (0.9, 5),
            (0.3, 3), (0.95, 3),
            (0.2, 2), (0.1, 2), (0.97, 2), (1.0, 2),
            (1.01, 0), (0.05, 0), (-0.5, 0),
        ],
    )
    def test_tiers(self, percent_b, expected):
        assert bollinger_score(_make_bb(percent_b)) == expected


class TestMarketRegime:
    @pytest.mark.parametrize(
        "adx,plus_di,minus_di,expected",
        [
            (30, 25, 15, 15),
            (30, 15, 25, 10),
            (50, 25, 15, 15),
            (55, 10, 20, 7),
            (18, 10, 20, 4),
            (10, 30, 10, 5),
            (10, 10, 30, 0),
            (75, 10, 30, 2),
            (75, 30, 10, 7),
        ],
    )
    def test_tiers(self, adx, plus_di, minus_di, expected):
        value = ADXValue(adx=adx, plus_di=plus_di, minus_di=minus_di)
        assert market_regime_score(value) == expected


class TestClassification:
    @pytest.mark.parametrize(
        "total,expected",
        [
            (85, Classification.STRONG),
            (80, Classification.STRONG),
            (79.5, Classification.GOOD),
            (65, Classification.GOOD),
            (64.5, Classification.MARGINAL),
            (50, Classification.MARGINAL),
            (49.5, Classification.DO_NOT_TRADE),
            (0, Classification.DO_NOT_TRADE),
        ],
    )
    def test_boundaries_inclusive(self, total, expected):
        assert classify(total) is expected

    def test_component_maxima_stay_under_100(self):
        assert 17.5 + 15 + 10 + 10 + 10 + 7.5 + 15 == 85


# ── Input validation ─────────────────────────────────────────────────────


class TestValidation:
    def test_not_a_sequence(self):
        with pytest.raises(TypeMismatchError):
            score_stock(None)
        with pytest.raises(TypeMismatchError):
            score_stock({"high": 1})
        with pytest.raises(TypeMismatchError):
            score_stock("bars")

    def test_missing_field(self, pullback_bars):
        raw = [
            {"high": b.high, "low": b.low, "close": b.close, "volume": b.volume}
            for b in pullback_bars
        ]
        del raw[7]["volume"]
        with pytest.raises(MissingFieldError) as exc_info:
            score_stock(raw)
        assert exc_info.value.index == 7
        assert exc_info.value.field == "volume"
        assert exc_info.value.kind == "missing_field"

    def test_null_field_is_missing(self, pullback_bars):
        raw = [
            {"high": b.high, "low": b.low, "close": b.close, "volume": b.volume}
            for b in pullback_bars
        ]
        raw[0]["close"] = None
        with pytest.raises(MissingFieldError):
            score_stock(raw)

    def test_non_numeric_field(self, pullback_bars):
        raw = [
            {"high": b.high, "low": b.low, "close": b.close, "volume": b.volume}
            for b in pullback_bars
        ]
        raw[3]["high"] = "2500"
        with pytest.raises(TypeMismatchError):
            score_stock(raw)

    def test_zero_volume_is_valid(self, flat_bars):
        raw = [{"high": 101, "low": 99, "close": 100, "volume": 0} for _ in flat_bars]
        result = score_stock(raw)
        assert result.volume_score == 0

    def test_custom_min_bars(self, pullback_bars):
        with pytest.raises(InsufficientDataError):
            score_stock(pullback_bars, ScoringOptions(min_bars=60))


def test_to_dict_shape(pullback_bars):
    data = score_stock(pullback_bars).to_dict()
    assert data["setupType"] == "PULLBACK_IN_TREND"
    assert data["classification"] == "STRONG"
    assert data["indicators"]["ema20"] == pytest.approx(2703.65, abs=0.01)
    assert set(data["indicators"]["macd"]) == {"macdLine", "signalLine", "histogram"}
    assert isinstance(data["reasoning"], list)
