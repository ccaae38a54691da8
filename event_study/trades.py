"""
Per-occurrence trade simulation for event windows.
"""
import logging
from typing import List, Sequence

from event_study.config import TradeConfig
from event_study.types import EntryPoint, EventWindow, Trade

__all__ = ["compute_trade", "compute_trades"]

log = logging.getLogger(__name__)


def compute_trade(window: EventWindow, entry: EntryPoint, exit_day: int) -> Trade:
    """
    Simulates one long trade inside a validated window.

    Entry is at the configured price field of the entry day, exit at the close
    of `exit_day`. MFE and MAE use the intraday highs and lows of every
    session from entry to exit inclusive, relative to the entry price.
    """
    entry_point = window.point_at(entry.relative_day)
    exit_point = window.point_at(exit_day)

    entry_price = getattr(entry_point, entry.field.value)
    exit_price = exit_point.close

    absolute_return = exit_price - entry_price
    return_percentage = absolute_return / entry_price * 100

    holding = [p for p in window.price_data if entry.relative_day <= p.relative_day <= exit_day]
    max_price = max(p.high for p in holding)
    min_price = min(p.low for p in holding)

    return Trade(
        event_name=window.event.name,
        event_date=window.event.date,
        year=window.event.year,
        category=window.event.category,
        entry_date=entry_point.date,
        entry_price=entry_price,
        exit_date=exit_point.date,
        exit_price=exit_price,
        absolute_return=absolute_return,
        return_percentage=return_percentage,
        mfe=(max_price - entry_price) / entry_price * 100,
        mae=(min_price - entry_price) / entry_price * 100,
        holding_days=exit_day - entry.relative_day,
        # A flat trade is not a win.
        is_profitable=return_percentage > 0,
    )


def compute_trades(
    windows: Sequence[EventWindow], trade_cfg: TradeConfig, entry: EntryPoint
) -> List[Trade]:
    """
    Computes one trade per validated window.

    Args:
        windows: Windows that passed ``validate_windows``; the entry and exit
                 days are guaranteed to be present.
        trade_cfg: Supplies the exit day (``days_after``).
        entry: The parsed entry point.

    Returns:
        Trades in the order of `windows`.
    """
    trades = [compute_trade(w, entry, trade_cfg.days_after) for w in windows]
    log.info(f"Computed {len(trades)} event trades.")
    return trades
