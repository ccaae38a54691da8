"""
Tests for the average event curve.
"""
import pytest

from event_study.calendar import TradingCalendarIndex
from event_study.config import WindowConfig
from event_study.curve import build_average_curve
from event_study.windows import build_event_windows


@pytest.fixture
def windows(make_sessions, make_event):
    """Two 1/1 windows whose daily returns are [1, 2, 3] and [3, 6, -1]."""
    returns = [0.0, 1.0, 2.0, 3.0, 0.0, 3.0, 6.0, -1.0, 0.0]
    calendar = TradingCalendarIndex(make_sessions(periods=9, returns=returns))
    events = [make_event(calendar[2].date), make_event(calendar[6].date)]
    return build_event_windows(events, calendar, WindowConfig(days_before=1, days_after=1))


def test_curve_statistics_per_relative_day(windows):
    curve = build_average_curve(windows, WindowConfig(days_before=1, days_after=1))

    assert [p.relative_day for p in curve] == [-1, 0, 1]
    before, event_day, after = curve

    assert before.avg_return == pytest.approx(2.0)
    assert before.median_return == pytest.approx(2.0)
    assert before.std_dev == pytest.approx(1.0)  # population deviation
    assert before.count == 2
    assert (before.min_return, before.max_return) == (1.0, 3.0)
    assert not before.is_event_day

    assert event_day.avg_return == pytest.approx(4.0)
    assert event_day.is_event_day

    assert after.avg_return == pytest.approx(1.0)
    assert after.std_dev == pytest.approx(2.0)


def test_curve_stays_within_window_and_counts(windows):
    window_cfg = WindowConfig(days_before=1, days_after=1)
    curve = build_average_curve(windows, window_cfg)

    for point in curve:
        assert -window_cfg.days_before <= point.relative_day <= window_cfg.days_after
        assert point.count <= len(windows)


def test_curve_omits_days_without_data(windows):
    """A wider configured window does not zero-fill days that have no returns."""
    curve = build_average_curve(windows, WindowConfig(days_before=3, days_after=3))
    assert [p.relative_day for p in curve] == [-1, 0, 1]


def test_curve_can_leave_out_the_event_day(windows):
    curve = build_average_curve(windows, WindowConfig(days_before=1, days_after=1, include_event_day=False))
    assert [p.relative_day for p in curve] == [-1, 1]


def test_curve_of_no_windows_is_empty():
    assert build_average_curve([], WindowConfig()) == []


def test_curve_is_deterministic(windows):
    window_cfg = WindowConfig(days_before=1, days_after=1)
    assert build_average_curve(windows, window_cfg) == build_average_curve(windows, window_cfg)
