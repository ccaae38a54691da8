"""
Event window construction with hard T0 anchoring.
"""
import logging
from typing import List, Sequence

from event_study.calendar import TradingCalendarIndex
from event_study.config import WindowConfig
from event_study.types import EventOccurrence, EventWindow, PricePoint

__all__ = ["build_event_windows", "NOT_A_TRADING_DAY"]

log = logging.getLogger(__name__)

NOT_A_TRADING_DAY = "Event day is not a trading day"


def _insufficient_data(window_cfg: WindowConfig) -> str:
    return (
        f"Insufficient data: need {window_cfg.days_before} days before "
        f"and {window_cfg.days_after} days after"
    )


def build_event_windows(
    raw_events: Sequence[EventOccurrence],
    calendar: TradingCalendarIndex,
    window_cfg: WindowConfig,
) -> List[EventWindow]:
    """
    Anchors each event at its trading session and slices the surrounding window.

    The event date itself must be a session in the calendar; a holiday or
    weekend never anchors T0, even when neighbouring sessions exist. The
    window bounds are positions in the calendar, so relative day N is the
    Nth session from T0.

    Args:
        raw_events: Event occurrences, typically ascending by date.
        calendar: Indexed trading sessions covering the events.
        window_cfg: Number of sessions before and after T0.

    Returns:
        One EventWindow per event, in input order. Events that cannot be
        anchored or whose window runs off the calendar are returned invalid
        with an exclusion reason and no price data.
    """
    windows = []
    for event in raw_events:
        t0_index = calendar.index_of(event.date)
        if t0_index is None:
            log.debug(f"{event.name} on {event.date}: not a trading day")
            windows.append(
                EventWindow(event=event, is_valid=False, exclusion_reason=NOT_A_TRADING_DAY)
            )
            continue

        window_start = t0_index - window_cfg.days_before
        window_end = t0_index + window_cfg.days_after
        if window_start < 0 or window_end >= len(calendar):
            log.debug(f"{event.name} on {event.date}: window [{window_start}, {window_end}] out of range")
            windows.append(
                EventWindow(
                    event=event,
                    is_valid=False,
                    exclusion_reason=_insufficient_data(window_cfg),
                )
            )
            continue

        price_data = []
        for position in range(window_start, window_end + 1):
            session = calendar[position]
            relative_day = position - t0_index
            price_data.append(
                PricePoint(
                    relative_day=relative_day,
                    date=session.date,
                    open=session.open,
                    high=session.high,
                    low=session.low,
                    close=session.close,
                    volume=session.volume,
                    return_percentage=session.return_percentage or 0.0,
                    is_event_day=relative_day == 0,
                )
            )

        windows.append(
            EventWindow(
                event=event,
                t0_index=t0_index,
                price_data=tuple(price_data),
                is_valid=True,
            )
        )

    log.info(f"Built {len(windows)} event windows, {sum(w.is_valid for w in windows)} anchored.")
    return windows
