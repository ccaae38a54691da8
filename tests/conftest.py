"""
Shared fixtures: synthetic trading sessions, events and trades.
"""
from datetime import date
from typing import Callable, List, Optional, Sequence

import pandas as pd
import pytest

from event_study.types import EventOccurrence, Trade, TradingSession


@pytest.fixture
def make_sessions() -> Callable[..., List[TradingSession]]:
    """
    Factory for business-day sessions starting on Monday 2023-01-02.

    Close at position i is ``100 + i`` unless `closes` is given; the daily
    return at position i is ``returns[i]`` or ``i / 10``.
    """
    def _make(
        periods: int = 10,
        start: str = "2023-01-02",
        closes: Optional[Sequence[float]] = None,
        returns: Optional[Sequence[float]] = None,
    ) -> List[TradingSession]:
        dates = pd.bdate_range(start=start, periods=periods)
        sessions = []
        for i, ts in enumerate(dates):
            close = closes[i] if closes is not None else 100.0 + i
            sessions.append(
                TradingSession(
                    date=ts.date(),
                    open=close - 0.5,
                    high=close + 1.0,
                    low=close - 1.0,
                    close=close,
                    volume=1000.0,
                    return_percentage=returns[i] if returns is not None else i / 10,
                )
            )
        return sessions
    return _make


@pytest.fixture
def make_event() -> Callable[..., EventOccurrence]:
    def _make(day: date, name: str = "UNION BUDGET", category: str = "BUDGET") -> EventOccurrence:
        return EventOccurrence(name=name, date=day, year=day.year, category=category, country="INDIA")
    return _make


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """Factory for a trade with the given return on the given event date."""
    def _make(event_date: date, return_pct: float, name: str = "UNION BUDGET") -> Trade:
        entry_price = 100.0
        exit_price = entry_price * (1 + return_pct / 100)
        return Trade(
            event_name=name,
            event_date=event_date,
            year=event_date.year,
            category="BUDGET",
            entry_date=event_date,
            entry_price=entry_price,
            exit_date=event_date,
            exit_price=exit_price,
            absolute_return=exit_price - entry_price,
            return_percentage=return_pct,
            mfe=max(return_pct, 0.0),
            mae=min(return_pct, 0.0),
            holding_days=3,
            is_profitable=return_pct > 0,
        )
    return _make
