"""
Average event curve: cross-event statistics of daily returns per relative day.
"""
from typing import List, Sequence

import pandas as pd

from event_study.config import WindowConfig
from event_study.types import AverageCurvePoint, EventWindow

__all__ = ["build_average_curve"]


def build_average_curve(
    windows: Sequence[EventWindow], window_cfg: WindowConfig
) -> List[AverageCurvePoint]:
    """
    Aggregates the daily returns of all valid windows by relative day.

    Every relative day in ``[-days_before, days_after]`` is a bucket; each
    window contributes its daily return at that day. Buckets that receive no
    returns are left out of the curve instead of being zero-filled. When the
    window excludes the event day, relative day 0 is left out as well.

    Args:
        windows: Validated event windows.
        window_cfg: Bounds of the curve and the event-day switch.

    Returns:
        Curve points sorted by relative day. Standard deviations are
        population deviations.
    """
    records = [
        (point.relative_day, point.return_percentage)
        for window in windows
        for point in window.price_data
        if -window_cfg.days_before <= point.relative_day <= window_cfg.days_after
        and (window_cfg.include_event_day or point.relative_day != 0)
    ]
    if not records:
        return []

    df = pd.DataFrame(records, columns=["relative_day", "return_pct"])
    grouped = df.groupby("relative_day", sort=True)["return_pct"]
    stats = grouped.agg(["mean", "median", "count", "min", "max"])
    stats["std"] = grouped.std(ddof=0)

    return [
        AverageCurvePoint(
            relative_day=int(relative_day),
            avg_return=float(row["mean"]),
            median_return=float(row["median"]),
            std_dev=float(row["std"]),
            count=int(row["count"]),
            min_return=float(row["min"]),
            max_return=float(row["max"]),
            is_event_day=bool(relative_day == 0),
        )
        for relative_day, row in stats.iterrows()
    ]
