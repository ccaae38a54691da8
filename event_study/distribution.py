"""
Distribution of event trade returns: histogram, percentiles, outliers and shape.
"""
import math
from typing import List, Sequence

import numpy as np
import pandas as pd

from event_study import stats
from event_study.types import Distribution, HistogramBin, Outlier, Percentiles, Trade

__all__ = ["analyze_distribution", "create_histogram", "nearest_rank_percentile"]

HISTOGRAM_BINS = 20
OUTLIER_STD_DEVS = 2.0


def create_histogram(values: Sequence[float], bin_count: int = HISTOGRAM_BINS) -> List[HistogramBin]:
    """
    Even-width histogram between the smallest and largest value.

    The maximum falls into the last bin. When all values are equal every
    value is counted in the first bin.
    """
    if len(values) == 0:
        return []

    low, high = min(values), max(values)
    bin_size = (high - low) / bin_count
    edges = [low + i * bin_size for i in range(bin_count + 1)]

    counts = [0] * bin_count
    for value in values:
        index = int(math.floor((value - low) / bin_size)) if bin_size > 0 else 0
        counts[min(index, bin_count - 1)] += 1

    return [
        HistogramBin(
            label=f"{edges[i]:.1f} to {edges[i + 1]:.1f}",
            count=counts[i],
            range_min=edges[i],
            range_max=edges[i + 1],
        )
        for i in range(bin_count)
    ]


def nearest_rank_percentile(sorted_values: Sequence[float], fraction: float) -> float:
    """Value at index ``floor(n * fraction)`` of an ascending sequence, clamped to the last element."""
    if len(sorted_values) == 0:
        return 0.0
    index = min(int(math.floor(len(sorted_values) * fraction)), len(sorted_values) - 1)
    return float(sorted_values[index])


def _shape(value: float) -> float:
    # pandas returns NaN for too few observations or zero variance.
    return 0.0 if pd.isna(value) else float(value)


def analyze_distribution(trades: Sequence[Trade]) -> Distribution:
    """
    Analyses the spread of trade returns.

    Outliers are trades more than two population standard deviations from
    the mean. Skewness and excess kurtosis are the bias-corrected sample
    estimates (as computed by pandas).
    """
    returns = [t.return_percentage for t in trades]
    mean = stats.mean(returns)
    std_dev = stats.std_dev(returns)

    outliers = [
        Outlier(event_date=t.event_date, event_name=t.event_name, return_pct=t.return_percentage)
        for t in trades
        if abs(t.return_percentage - mean) > OUTLIER_STD_DEVS * std_dev
    ]

    ordered = np.sort(np.asarray(returns, dtype=float))
    percentiles = Percentiles(
        p10=nearest_rank_percentile(ordered, 0.10),
        p25=nearest_rank_percentile(ordered, 0.25),
        p50=nearest_rank_percentile(ordered, 0.50),
        p75=nearest_rank_percentile(ordered, 0.75),
        p90=nearest_rank_percentile(ordered, 0.90),
    )

    series = pd.Series(returns, dtype=float)
    return Distribution(
        histogram=create_histogram(returns),
        outliers=outliers,
        percentiles=percentiles,
        skewness=_shape(series.skew()),
        kurtosis=_shape(series.kurt()),
    )
