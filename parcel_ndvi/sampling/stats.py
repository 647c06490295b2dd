import math
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np

HISTOGRAM_BINS = 10
HISTOGRAM_MIN = -1.0
HISTOGRAM_MAX = 1.0
BIN_WIDTH = (HISTOGRAM_MAX - HISTOGRAM_MIN) / HISTOGRAM_BINS


@dataclass(frozen=True)
class HistogramBucket:
    bin_lower_bound: float
    count: int


@dataclass(frozen=True)
class Statistics:
    min: float
    max: float
    mean: float
    std_dev: float
    histogram: tuple[HistogramBucket, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return sum(bucket.count for bucket in self.histogram)

    def to_summary(self) -> dict:
        """Rounded, JSON friendly view used for prompts and reports."""
        return {
            "min": round(self.min, 3),
            "max": round(self.max, 3),
            "mean": round(self.mean, 3),
            "stdDev": round(self.std_dev, 3),
            "samples": self.total,
            "histogram": [
                {"bin": f"{b.bin_lower_bound:.1f}", "count": b.count}
                for b in self.histogram
            ],
        }


def _bucket_lower_bounds() -> list[float]:
    return [round(HISTOGRAM_MIN + i * BIN_WIDTH, 1) for i in range(HISTOGRAM_BINS)]


def empty_statistics() -> Statistics:
    return Statistics(
        min=0.0,
        max=0.0,
        mean=0.0,
        std_dev=0.0,
        histogram=tuple(HistogramBucket(b, 0) for b in _bucket_lower_bounds()),
    )


def compute_statistics(values: Iterable[float]) -> Statistics:
    """Summarise proxy values: min, max, mean, population std-dev and histogram.

    The input order does not matter. An empty input gives all-zero statistics
    with ten empty buckets, so callers should check ``total`` before trusting
    anything derived from it.
    """
    arr = np.fromiter(values, dtype=np.float64)
    if arr.size == 0:
        return empty_statistics()

    lo, hi = float(arr.min()), float(arr.max())
    # fsum is exactly rounded, so the result does not depend on input order
    mean = min(max(math.fsum(arr) / arr.size, lo), hi)
    # Two-pass population variance (divide by n, not n - 1)
    std_dev = math.sqrt(math.fsum((arr - mean) ** 2) / arr.size)

    indices = np.floor(
        ((arr - HISTOGRAM_MIN) / (HISTOGRAM_MAX - HISTOGRAM_MIN)) * HISTOGRAM_BINS
    )
    indices = np.clip(indices, 0, HISTOGRAM_BINS - 1).astype(np.int64)
    counts = np.bincount(indices, minlength=HISTOGRAM_BINS)

    return Statistics(
        min=lo,
        max=hi,
        mean=mean,
        std_dev=std_dev,
        histogram=tuple(
            HistogramBucket(bound, int(count))
            for bound, count in zip(_bucket_lower_bounds(), counts)
        ),
    )
