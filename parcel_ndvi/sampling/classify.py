"""
Rule-based land cover classification from proxy-NDVI statistics.

The rules form an ordered decision table: each entry is a predicate over the
histogram shares and the mean, paired with the classification it produces.
The first matching entry wins. Thresholds here are design parameters; changing
one changes what the labels mean.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from fractions import Fraction

from parcel_ndvi.sampling.stats import Statistics

FOREST = "Forest / Dense Vegetation"
AGRICULTURE = "Agriculture / Cropland"
GRASSLAND = "Grassland / Shrubland"
WATER = "Water / Wet Surface"
BARREN = "Barren / Built-up"
UNAVAILABLE = "Unavailable"

LABELS = (FOREST, AGRICULTURE, GRASSLAND, WATER, BARREN, UNAVAILABLE)

UNAVAILABLE_REASON = (
    "Unable to process NDVI for this area. Try SAT layer or a smaller selection."
)


@dataclass(frozen=True)
class Classification:
    label: str
    confidence: int
    reason: str


@dataclass(frozen=True)
class HistogramShares:
    """Percentages (0-100) of samples in the bucket ranges the rules look at.

    Shares are exact fractions, so a threshold such as "more than 55%" is
    decided on the counts themselves rather than on a rounded float.
    """

    mean: float
    high: Fraction  # buckets 7-9, proxy >= 0.4
    combined: Fraction  # buckets 6-9, proxy >= 0.2
    negative: Fraction  # buckets 0-4, proxy < 0

    @classmethod
    def from_statistics(cls, stats: Statistics) -> "HistogramShares":
        counts = [bucket.count for bucket in stats.histogram]
        counts += [0] * (10 - len(counts))
        total = sum(counts) or 1
        return cls(
            mean=stats.mean,
            high=Fraction(sum(counts[7:10]) * 100, total),
            combined=Fraction(sum(counts[6:10]) * 100, total),
            negative=Fraction(sum(counts[0:5]) * 100, total),
        )


def _round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


Rule = tuple[Callable[[HistogramShares], bool], Callable[[HistogramShares], Classification]]

RULES: list[Rule] = [
    (
        lambda s: s.mean >= 0.45 and s.high >= 35,
        lambda s: Classification(
            FOREST,
            min(95, _round_half_up(60 + s.high * Fraction(3, 5))),
            "High NDVI concentration indicates dense, healthy vegetation.",
        ),
    ),
    (
        lambda s: s.mean >= 0.25 and s.combined >= 40,
        lambda s: Classification(
            AGRICULTURE,
            min(92, _round_half_up(55 + s.combined / 2)),
            "Moderate-to-high NDVI suggests managed vegetation and crop cover.",
        ),
    ),
    (
        lambda s: s.mean >= 0.08,
        lambda s: Classification(
            GRASSLAND, 72, "NDVI indicates sparse to medium vegetation cover."
        ),
    ),
    (
        lambda s: s.mean < -0.08 and s.negative > 55,
        lambda s: Classification(
            WATER,
            78,
            "Predominantly negative NDVI values are typical of water or wet surfaces.",
        ),
    ),
]

DEFAULT = Classification(
    BARREN,
    70,
    "Low NDVI indicates weak vegetation response, usually soil, built-up land, or dry surfaces.",
)


def classify_land(stats: Statistics) -> Classification:
    shares = HistogramShares.from_statistics(stats)
    for predicate, result in RULES:
        if predicate(shares):
            return result(shares)
    return DEFAULT


def unavailable(reason: str = UNAVAILABLE_REASON) -> Classification:
    return Classification(UNAVAILABLE, 0, reason)
