"""Shared OHLCV fixtures.

Every series is deterministic: same input = same output, always.
"""

import pytest

from swingscan.strategy.models import PriceBar


def _make_bar(h: float, l: float, c: float, v: float, i: int = 0) -> PriceBar:
    return PriceBar(time=f"bar-{i:02d}", high=h, low=l, close=c, volume=v)


# Accelerating uptrend (2420 → 2761) that zigzags close-to-close and ends
# on a down bar, 1.78% below the 10-bar closing high.  Volume rises
# throughout and the last 5 bars trade 1.8× heavier.
PULLBACK_ROWS = [
    (2478, 2398, 2420, 1000000), (2504, 2424, 2482, 1010000),
    (2482, 2402, 2424, 1020000), (2509, 2429, 2487, 1030000),
    (2487, 2407, 2429, 1040000), (2514, 2434, 2492, 1050000),
    (2493, 2413, 2435, 1060000), (2520, 2440, 2498, 1070000),
    (2499, 2419, 2441, 1080000), (2526, 2446, 2504, 1090000),
    (2506, 2426, 2448, 1100000), (2534, 2454, 2512, 1110000),
    (2514, 2434, 2456, 1120000), (2542, 2462, 2520, 1130000),
    (2522, 2442, 2464, 1140000), (2550, 2470, 2528, 1150000),
    (2530, 2450, 2472, 1160000), (2559, 2479, 2537, 1170000),
    (2540, 2460, 2482, 1180000), (2569, 2489, 2547, 1190000),
    (2550, 2470, 2492, 1200000), (2579, 2499, 2557, 1210000),
    (2561, 2481, 2503, 1220000), (2590, 2510, 2568, 1230000),
    (2572, 2492, 2514, 1240000), (2602, 2522, 2580, 1250000),
    (2584, 2504, 2526, 1260000), (2614, 2534, 2592, 1270000),
    (2597, 2517, 2539, 1280000), (2627, 2547, 2605, 1290000),
    (2610, 2530, 2552, 1300000), (2641, 2561, 2619, 1310000),
    (2624, 2544, 2566, 1320000), (2655, 2575, 2633, 1330000),
    (2638, 2558, 2580, 1340000), (2670, 2590, 2648, 1350000),
    (2654, 2574, 2596, 1360000), (2686, 2606, 2664, 1370000),
    (2670, 2590, 2612, 1380000), (2702, 2622, 2680, 1390000),
    (2686, 2606, 2628, 1400000), (2718, 2638, 2696, 1410000),
    (2703, 2623, 2645, 1420000), (2736, 2656, 2714, 1430000),
    (2721, 2641, 2663, 1440000), (2754, 2674, 2732, 1450000),
    (2739, 2659, 2681, 1460000), (2773, 2693, 2751, 1470000),
    (2758, 2678, 2700, 1480000), (2792, 2712, 2770, 1490000),
    (2778, 2698, 2720, 2700000), (2812, 2732, 2790, 2718000),
    (2798, 2718, 2740, 2736000), (2833, 2753, 2811, 2754000),
    (2819, 2739, 2761, 2772000),
]


def make_pullback_bars() -> list[PriceBar]:
    return [_make_bar(h, l, c, v, i) for i, (h, l, c, v) in enumerate(PULLBACK_ROWS)]


def make_downtrend_bars(n: int = 60) -> list[PriceBar]:
    """Closes fall 3 per bar with no up days; volume fades."""
    bars = []
    for i in range(n):
        c = 2450 - 3 * i
        bars.append(_make_bar(c + 6, c - 6, c, 1000000 - 10000 * i, i))
    return bars


def make_zigzag_downtrend_bars(n: int = 60) -> list[PriceBar]:
    """Downtrend with alternating ±4 closes: oversold but not washed out."""
    bars = []
    for i in range(n):
        c = 2450 - 3 * i + (4 if i % 2 else -4)
        bars.append(_make_bar(c + 6, c - 6, c, 1000000 - 10000 * i, i))
    return bars


def make_breakout_bars(n: int = 50) -> list[PriceBar]:
    """Tight ±1 range, then a close at the top on a volume surge."""
    bars = []
    for i in range(n):
        c = 1000 + (1 if i % 2 else -1)
        if i == n - 1:
            c = 1012
        v = 900000 if i >= n - 3 else 500000
        bars.append(_make_bar(c + 2, c - 2, c, v, i))
    return bars


def make_mean_reversion_bars(n: int = 60) -> list[PriceBar]:
    """Choppy drift up, then an eight-bar slide below the lower band."""
    bars = []
    for i in range(n):
        if i >= 52:
            c = 1026 - (i - 51) * 9
        else:
            c = 1000 + (6 if i % 2 else -6) + 0.5 * i
        bars.append(_make_bar(c + 5, c - 5, c, 800000, i))
    return bars


def make_flat_bars(n: int = 60) -> list[PriceBar]:
    return [_make_bar(101, 99, 100, 1000, i) for i in range(n)]


@pytest.fixture
def pullback_bars() -> list[PriceBar]:
    return make_pullback_bars()


@pytest.fixture
def downtrend_bars() -> list[PriceBar]:
    return make_downtrend_bars()


@pytest.fixture
def zigzag_downtrend_bars() -> list[PriceBar]:
    return make_zigzag_downtrend_bars()


@pytest.fixture
def breakout_bars() -> list[PriceBar]:
    return make_breakout_bars()


@pytest.fixture
def mean_reversion_bars() -> list[PriceBar]:
    return make_mean_reversion_bars()


@pytest.fixture
def flat_bars() -> list[PriceBar]:
    return make_flat_bars()
