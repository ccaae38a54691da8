"""
Trading calendar index: the ordered trading sessions of one symbol.

Relative days are positions in this index, never calendar-day offsets, so
T+3 always means the third session after the event regardless of weekends
or holidays in between.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterator, Optional, Sequence, Tuple, Union

import pandas as pd

from event_study.errors import DataUnavailable
from event_study.types import TradingSession

__all__ = ["TradingCalendarIndex", "build_calendar", "date_key", "expand_range"]

log = logging.getLogger(__name__)

BUFFER_DAYS = 60

DateLike = Union[date, datetime, pd.Timestamp, str]


def date_key(value: DateLike) -> str:
    """
    Normalises a date-like value to its ``YYYY-MM-DD`` calendar string.

    Keys are calendar dates rather than timestamps so that a session stored at
    midnight UTC and an event stored in local time still match.
    """
    if isinstance(value, str):
        return date.fromisoformat(value[:10]).isoformat()
    if isinstance(value, datetime):  # also covers pd.Timestamp
        return value.date().isoformat()
    return value.isoformat()


def expand_range(start: date, end: date, buffer_days: int = BUFFER_DAYS) -> Tuple[date, date]:
    """Widens a date range by `buffer_days` calendar days on each side."""
    return start - timedelta(days=buffer_days), end + timedelta(days=buffer_days)


class TradingCalendarIndex:
    """
    Read-only, date-ordered sequence of sessions with an O(1) date lookup.
    """

    def __init__(self, sessions: Sequence[TradingSession]):
        self._sessions: Tuple[TradingSession, ...] = tuple(sessions)
        self._positions: Dict[str, int] = {}
        for position, session in enumerate(self._sessions):
            if position > 0 and session.date <= self._sessions[position - 1].date:
                raise ValueError(
                    f"Trading sessions must have strictly increasing dates: "
                    f"{session.date} follows {self._sessions[position - 1].date}"
                )
            self._positions[date_key(session.date)] = position

    def __len__(self) -> int:
        return len(self._sessions)

    def __getitem__(self, position: int) -> TradingSession:
        return self._sessions[position]

    def __iter__(self) -> Iterator[TradingSession]:
        return iter(self._sessions)

    def index_of(self, value: DateLike) -> Optional[int]:
        """Position of the session on the given date, or None if it was not a trading day."""
        return self._positions.get(date_key(value))

    @property
    def first_date(self) -> Optional[date]:
        return self._sessions[0].date if self._sessions else None

    @property
    def last_date(self) -> Optional[date]:
        return self._sessions[-1].date if self._sessions else None


def build_calendar(
    provider,
    symbol: str,
    start_date: date,
    end_date: date,
    buffer_days: int = BUFFER_DAYS,
) -> TradingCalendarIndex:
    """
    Loads the sessions for `symbol` over the buffered range and indexes them.

    Args:
        provider: A price-series provider (see ``event_study.data``).
        symbol: Ticker symbol.
        start_date: First requested date.
        end_date: Last requested date.
        buffer_days: Calendar days added on both sides so that windows of
            events near the range edges can still be resolved.

    Raises:
        DataUnavailable: if the provider returns no sessions.
    """
    expanded_start, expanded_end = expand_range(start_date, end_date, buffer_days)
    sessions = provider.get_trading_sessions(symbol, expanded_start, expanded_end)
    if not sessions:
        raise DataUnavailable(
            f"No trading data available for {symbol} between {expanded_start} and {expanded_end}"
        )

    calendar = TradingCalendarIndex(sessions)
    log.info(
        f"Indexed {len(calendar)} trading sessions for {symbol} "
        f"({calendar.first_date} to {calendar.last_date})."
    )
    return calendar
