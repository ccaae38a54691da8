"""
Performance metrics and evaluation.

This module provides the segment statistics of the daily returns around the
events and the trade-level portfolio metrics: win rate, profit factor,
Sharpe and Sortino ratios, the equity curve and its maximum drawdown.
"""
from datetime import date
from typing import Iterable, List, Optional, Sequence

from event_study import stats
from event_study.calendar import date_key
from event_study.types import (
    AggregatedMetrics,
    DateRange,
    DrawdownInfo,
    EquityPoint,
    EventWindow,
    SegmentedStats,
    SegmentStats,
    Trade,
    TradeExtreme,
    TradingSession,
)

__all__ = [
    "PROFIT_FACTOR_NO_LOSS",
    "INITIAL_EQUITY",
    "calculate_segment_stats",
    "calculate_segmented_statistics",
    "calculate_equity_curve",
    "calculate_max_drawdown",
    "calculate_aggregated_metrics",
    "compare_event_days",
]

# Reported as the profit factor when there are gains but no losses.
PROFIT_FACTOR_NO_LOSS = 999.0
INITIAL_EQUITY = 100.0

_DAYS_PER_YEAR = 365.25


def calculate_segment_stats(returns: Sequence[float], label: str) -> SegmentStats:
    """Count, mean, median, stdev and win rate of one segment; all zero when empty."""
    return SegmentStats(
        label=label,
        count=len(returns),
        avg_return=stats.mean(returns),
        median_return=stats.median(returns),
        std_dev=stats.std_dev(returns),
        win_rate=stats.win_rate(returns),
    )


def calculate_segmented_statistics(
    windows: Sequence[EventWindow], include_event_day: bool = True
) -> SegmentedStats:
    """
    Splits every daily return of the valid windows into pre-event, event-day
    and post-event segments by the sign of its relative day.
    """
    pre_event: List[float] = []
    event_day: List[float] = []
    post_event: List[float] = []

    for window in windows:
        for point in window.price_data:
            if point.relative_day < 0:
                pre_event.append(point.return_percentage)
            elif point.relative_day == 0:
                if include_event_day:
                    event_day.append(point.return_percentage)
            else:
                post_event.append(point.return_percentage)

    return SegmentedStats(
        pre_event=calculate_segment_stats(pre_event, "Pre-Event"),
        event_day=calculate_segment_stats(event_day, "Event Day"),
        post_event=calculate_segment_stats(post_event, "Post-Event"),
    )


def _sorted_by_event_date(trades: Iterable[Trade]) -> List[Trade]:
    return sorted(trades, key=lambda t: t.event_date)


def calculate_equity_curve(trades: Sequence[Trade]) -> List[EquityPoint]:
    """
    Compounds trade returns sequentially, in event-date order, from 100.

    Trades are applied back to back regardless of the gaps or overlaps
    between their holding periods. The first point is the starting equity
    and carries no event date.

    Returns:
        ``len(trades) + 1`` points.
    """
    equity = INITIAL_EQUITY
    curve = [EquityPoint(event_date=None, equity=equity)]

    for trade in _sorted_by_event_date(trades):
        equity = equity * (1 + trade.return_percentage / 100)
        curve.append(
            EquityPoint(
                event_date=trade.event_date,
                equity=equity,
                event_name=trade.event_name,
                exit_date=trade.exit_date,
                return_pct=trade.return_percentage,
            )
        )
    return curve


def calculate_max_drawdown(curve: Sequence[EquityPoint]) -> DrawdownInfo:
    """
    Largest peak-to-trough decline of an equity curve, in positive percent.

    The range is reported in exit dates, when the equity change is realised:
    the start is the exit date of the most recent point at the running peak
    before the deepest trough, the end is the exit date of the trough. A peak
    at the starting equity has no date.
    """
    if not curve:
        return DrawdownInfo(max_drawdown=0.0, final_equity=INITIAL_EQUITY)

    peak = curve[0].equity
    max_drawdown = 0.0
    drawdown_start: Optional[date] = None
    drawdown_end: Optional[date] = None

    for index, point in enumerate(curve):
        if point.equity > peak:
            peak = point.equity

        drawdown = (peak - point.equity) / peak * 100
        if drawdown > max_drawdown:
            max_drawdown = drawdown
            drawdown_end = point.exit_date
            for earlier in reversed(curve[:index]):
                if earlier.equity == peak:
                    drawdown_start = earlier.exit_date
                    break

    return DrawdownInfo(
        max_drawdown=max_drawdown,
        drawdown_start=drawdown_start,
        drawdown_end=drawdown_end,
        final_equity=curve[-1].equity,
    )


def calculate_aggregated_metrics(trades: Sequence[Trade]) -> Optional[AggregatedMetrics]:
    """
    Calculates summary metrics over a set of event trades.

    Args:
        trades: Trades of one analysis, in any order.

    Returns:
        The metrics, or None if there are no trades. Returns are in percent.
        Sharpe and Sortino assume a zero risk-free rate and are not annualised.
    """
    if not trades:
        return None

    returns = [t.return_percentage for t in trades]
    winners = [t for t in trades if t.is_profitable]

    avg_return = stats.mean(returns)
    std_dev = stats.std_dev(returns)

    gross_profit = sum(r for r in returns if r > 0)
    gross_loss = abs(sum(r for r in returns if r <= 0))
    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    else:
        profit_factor = PROFIT_FACTOR_NO_LOSS if gross_profit > 0 else 0.0

    sharpe_ratio = avg_return / std_dev if std_dev > 0 else 0.0

    downside = [r for r in returns if r < 0]
    downside_deviation = stats.std_dev(downside) if downside else std_dev
    sortino_ratio = avg_return / downside_deviation if downside_deviation > 0 else 0.0

    best = max(trades, key=lambda t: t.return_percentage)
    worst = min(trades, key=lambda t: t.return_percentage)

    curve = calculate_equity_curve(trades)
    drawdown = calculate_max_drawdown(curve)
    final_equity = drawdown.final_equity

    ordered = _sorted_by_event_date(trades)
    first_date, last_date = ordered[0].event_date, ordered[-1].event_date
    years = (last_date - first_date).days / _DAYS_PER_YEAR
    cagr = ((final_equity / INITIAL_EQUITY) ** (1 / years) - 1) * 100 if years > 0 else 0.0

    return AggregatedMetrics(
        total_events=len(trades),
        winning_events=len(winners),
        losing_events=len(trades) - len(winners),
        win_rate=100.0 * len(winners) / len(trades),
        avg_return=avg_return,
        median_return=stats.median(returns),
        std_dev=std_dev,
        best_event=TradeExtreme(event_date=best.event_date, return_pct=best.return_percentage),
        worst_event=TradeExtreme(event_date=worst.event_date, return_pct=worst.return_percentage),
        profit_factor=profit_factor,
        sharpe_ratio=sharpe_ratio,
        sortino_ratio=sortino_ratio,
        max_drawdown=drawdown.max_drawdown,
        expectancy=avg_return,
        total_return=final_equity - INITIAL_EQUITY,
        cagr=cagr,
        date_range=DateRange(start=first_date, end=last_date),
        drawdown_start=drawdown.drawdown_start,
        drawdown_end=drawdown.drawdown_end,
    )


def compare_event_days(
    sessions: Iterable[TradingSession], event_dates: Iterable[date]
) -> dict:
    """
    Compares the daily returns of event days with those of all other days.

    Returns:
        A dictionary with ``event_days`` and ``non_event_days`` statistics
        (count, avg_return, std_dev, win_rate) and a ``comparison`` of their
        differences.
    """
    event_keys = {date_key(d) for d in event_dates}
    event_returns: List[float] = []
    other_returns: List[float] = []
    for session in sessions:
        value = session.return_percentage or 0.0
        if date_key(session.date) in event_keys:
            event_returns.append(value)
        else:
            other_returns.append(value)

    def _summary(values: List[float]) -> dict:
        return {
            "count": len(values),
            "avg_return": stats.mean(values),
            "std_dev": stats.std_dev(values),
            "win_rate": stats.win_rate(values),
        }

    event_stats = _summary(event_returns)
    other_stats = _summary(other_returns)
    return {
        "event_days": event_stats,
        "non_event_days": other_stats,
        "comparison": {
            "return_difference": event_stats["avg_return"] - other_stats["avg_return"],
            "win_rate_difference": event_stats["win_rate"] - other_stats["win_rate"],
        },
    }
