"""
buckets.py — Colour thresholds for the choropleth and city bubbles.

USAGE
─────
    from flock.geo.buckets import ThresholdScale, buckets

    scale = ThresholdScale(buckets(max_count=37))   # [10, 20, 30, 40, 50]
    scale.color(10)    # → first colour  (10 is the upper bound of bucket 0)
    scale.color(11)    # → second colour
    scale.color(999)   # → last colour   (top bucket is open-ended)
    scale.legend()     # → [LegendItem("#fc9272", "1-10"), ..., LegendItem("#701013", "41+")]

Scale semantics
───────────────
The thresholds returned by buckets() are sized to the colour ramp: n
thresholds ↔ n colours. The first n-1 thresholds are the breaks; a value
v falls into bucket i when breaks[i-1] < v <= breaks[i]. Anything at or
below the first break is bucket 0 and anything above the last break is
the final bucket, so the scale never raises for any integer.
"""

import math
from bisect import bisect_left
from dataclasses import dataclass

# ── Colour ramps (light → dark reds) ──────────────────────────────────────────

COLOR_SCHEMES: dict[int, list[str]] = {
    2: ["#fb6a4a", "#de2d26"],
    3: ["#fc9272", "#fb6a4a", "#de2d26"],
    4: ["#fc9272", "#fb6a4a", "#de2d26", "#a50f15"],
    5: ["#fc9272", "#fb6a4a", "#de2d26", "#a50f15", "#701013"],
}

NO_DATA_COLOR = "#cccccc"

# ── Staircase ─────────────────────────────────────────────────────────────────

# (inclusive upper bound on max_count, thresholds)
_FIXED_BUCKETS: list[tuple[int, list[int]]] = [
    (5,   [1, 2, 3, 4, 5]),
    (10,  [2, 4, 6, 8, 10]),
    (20,  [5, 10, 15, 20]),
    (50,  [10, 20, 30, 40, 50]),
    (100, [20, 40, 60, 80, 100]),
    (500, [100, 200, 300, 400, 500]),
]


def buckets(max_count: int) -> list[int]:
    """
    Return strictly increasing thresholds for a data set whose largest count is *max_count*.

    Above 500 the range is split into five equal steps of ceil(max/5),
    with the last threshold clamped to max_count.
    """
    if max_count <= 0:
        return [0, 1]

    for upper, thresholds in _FIXED_BUCKETS:
        if max_count <= upper:
            return list(thresholds)

    step = math.ceil(max_count / 5)
    return [step, step * 2, step * 3, step * 4, max_count]


def color_ramp(size: int) -> list[str]:
    """Fixed palette with *size* colours; unknown sizes fall back to the 5-colour ramp."""
    return list(COLOR_SCHEMES.get(size, COLOR_SCHEMES[5]))


# ── Threshold scale ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LegendItem:
    color: str
    label: str


class ThresholdScale:
    """Step scale from a count to a ramp colour."""

    def __init__(self, thresholds: list[int], colors: list[str] | None = None) -> None:
        if len(thresholds) < 2:
            raise ValueError("a threshold scale needs at least two thresholds")
        if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError(f"thresholds must be strictly increasing: {thresholds}")

        self.thresholds = list(thresholds)
        self.colors = list(colors) if colors is not None else color_ramp(len(thresholds))
        self.breaks = self.thresholds[:len(self.colors) - 1]

    @classmethod
    def for_max(cls, max_count: int) -> "ThresholdScale":
        return cls(buckets(max_count))

    def bucket_index(self, value: float) -> int:
        # bisect_left keeps a value equal to a break in the lower bucket
        return min(bisect_left(self.breaks, value), len(self.colors) - 1)

    def color(self, value: float) -> str:
        return self.colors[self.bucket_index(value)]

    def legend(self) -> list[LegendItem]:
        """
        Legend rows: "{lower}-{upper}" for closed buckets, "{last+1}+" for the top one.

        The first row always starts at 1; regions with no one are not coloured.
        """
        if not self.breaks:
            return [LegendItem(self.colors[-1], "1+")]

        first = self.breaks[0]
        items = [LegendItem(self.colors[0], f"1-{first}")]
        for i in range(len(self.breaks) - 1):
            items.append(LegendItem(self.colors[i + 1], f"{self.breaks[i] + 1}-{self.breaks[i + 1]}"))
        items.append(LegendItem(self.colors[-1], f"{self.breaks[-1] + 1}+"))
        return items
