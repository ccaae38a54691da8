"""
Small statistics helpers shared by the curve, metrics and distribution modules.

Standard deviations are population deviations (divisor N) throughout. Empty
input yields 0.0 rather than NaN so that downstream records stay numeric.
"""
from typing import Sequence

import numpy as np

__all__ = ["mean", "median", "std_dev", "win_rate"]


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def median(values: Sequence[float]) -> float:
    """Median; even-length input averages the two middle values."""
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def std_dev(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.std(values, ddof=0))


def win_rate(values: Sequence[float]) -> float:
    """Percentage of strictly positive values."""
    if len(values) == 0:
        return 0.0
    return 100.0 * sum(1 for v in values if v > 0) / len(values)
