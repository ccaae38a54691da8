"""
Tests for the end-to-end event study with in-memory providers.
"""
from dataclasses import replace
from datetime import date
from unittest.mock import MagicMock

import pytest

from event_study.config import FilterConfig, StudyConfig, TradeConfig, WindowConfig
from event_study.engine import analyze_events
from event_study.errors import ConfigurationError, DataUnavailable, InsufficientEvents


@pytest.fixture
def sessions(make_sessions):
    # 40 business days, 2023-01-02 to 2023-02-24.
    return make_sessions(periods=40)


@pytest.fixture
def events(sessions, make_event):
    return [
        make_event(sessions[10].date),
        make_event(date(2023, 1, 22)),  # Sunday
        make_event(sessions[20].date),
        make_event(sessions[30].date),
        make_event(sessions[38].date),  # window runs past the last session
    ]


@pytest.fixture
def price_provider(sessions):
    provider = MagicMock()
    provider.get_trading_sessions.return_value = sessions
    return provider


@pytest.fixture
def event_provider(events):
    provider = MagicMock()
    provider.get_event_occurrences.return_value = events
    return provider


@pytest.fixture
def study() -> StudyConfig:
    return StudyConfig(
        symbol="^nsei",
        start_date=date(2023, 1, 2),
        end_date=date(2023, 2, 24),
        event_names=["Union Budget"],
        window=WindowConfig(days_before=3, days_after=3),
        trade=TradeConfig(entry_type="T-1_CLOSE", days_after=3),
        filters=FilterConfig(min_occurrences=3),
    )


def test_analyze_events_summary(study, price_provider, event_provider) -> None:
    result = analyze_events(study, price_provider, event_provider)

    assert result.symbol == "^NSEI"
    summary = result.event_summary
    assert summary.total_events_found == 5
    assert summary.valid_events == 3
    assert summary.excluded_events == 2
    assert summary.exclusion_reasons == {
        "Event day is not a trading day": 1,
        "Insufficient data: need 3 days before and 3 days after": 1,
    }
    assert summary.date_range.start == date(2023, 1, 2)
    assert summary.date_range.end == date(2023, 2, 24)


def test_analyze_events_loads_buffered_range(study, price_provider, event_provider) -> None:
    analyze_events(study, price_provider, event_provider, buffer_days=60)

    price_provider.get_trading_sessions.assert_called_once_with(
        "^NSEI", date(2022, 11, 3), date(2023, 4, 25)
    )
    event_filter = event_provider.get_event_occurrences.call_args.args[0]
    assert event_filter.names == ["Union Budget"]
    assert event_filter.start_date == date(2023, 1, 2)


def test_analyze_events_trades_and_curves(study, sessions, price_provider, event_provider) -> None:
    result = analyze_events(study, price_provider, event_provider)

    trades = result.event_occurrences
    assert [t.event_date for t in trades] == [sessions[i].date for i in (10, 20, 30)]
    first = trades[0]
    assert first.entry_date == sessions[9].date
    assert first.entry_price == pytest.approx(109.0)
    assert first.exit_date == sessions[13].date
    assert first.exit_price == pytest.approx(113.0)
    assert first.return_percentage == pytest.approx(4 / 109 * 100)
    assert first.holding_days == 4

    assert [p.relative_day for p in result.average_event_curve] == list(range(-3, 4))
    assert all(p.count == 3 for p in result.average_event_curve)

    # Close-to-close returns at positions 10, 20 and 30 are 1.0, 2.0 and 3.0.
    assert result.segmented_stats.event_day.count == 3
    assert result.segmented_stats.event_day.avg_return == pytest.approx(2.0)

    assert len(result.equity_curve) == 4
    assert result.equity_curve[0].equity == 100.0
    assert result.aggregated_metrics is not None
    assert result.aggregated_metrics.total_events == 3
    assert result.aggregated_metrics.win_rate == 100.0
    assert result.distribution is None


def test_analyze_events_meta(study, price_provider, event_provider) -> None:
    result = analyze_events(study, price_provider, event_provider)

    assert result.meta["processingTimeMs"] >= 0
    assert result.meta["windowConfig"] == {"days_before": 3, "days_after": 3, "include_event_day": True}
    assert result.meta["tradeConfig"] == {"entry_type": "T-1_CLOSE", "days_after": 3}


def test_analyze_events_with_distribution(study, price_provider, event_provider) -> None:
    result = analyze_events(study, price_provider, event_provider, include_distribution=True)

    assert result.distribution is not None
    assert sum(b.count for b in result.distribution.histogram) == 3


def test_analyze_events_is_repeatable(study, price_provider, event_provider) -> None:
    first = analyze_events(study, price_provider, event_provider)
    second = analyze_events(study, price_provider, event_provider)

    assert first.model_dump(exclude={"meta"}) == second.model_dump(exclude={"meta"})


def test_insufficient_valid_windows(study, price_provider, event_provider) -> None:
    study = replace(study, filters=FilterConfig(min_occurrences=4))

    with pytest.raises(InsufficientEvents) as exc_info:
        analyze_events(study, price_provider, event_provider)

    err = exc_info.value
    assert (err.events_found, err.valid_events, err.min_required, err.excluded_events) == (5, 3, 4, 2)
    assert "Found 5 events, 3 valid, minimum 4 required" in str(err)
    assert "2 events were excluded" in str(err)


def test_no_events_found(study, price_provider) -> None:
    event_provider = MagicMock()
    event_provider.get_event_occurrences.return_value = []

    with pytest.raises(InsufficientEvents, match="No events found"):
        analyze_events(study, price_provider, event_provider)


def test_invalid_request_fails_before_data_access(study, price_provider, event_provider) -> None:
    with pytest.raises(ConfigurationError, match="Symbol is required"):
        analyze_events(replace(study, symbol=""), price_provider, event_provider)

    price_provider.get_trading_sessions.assert_not_called()
    event_provider.get_event_occurrences.assert_not_called()


def test_no_price_data(study, event_provider) -> None:
    price_provider = MagicMock()
    price_provider.get_trading_sessions.return_value = []

    with pytest.raises(DataUnavailable, match="No trading data available"):
        analyze_events(study, price_provider, event_provider)
