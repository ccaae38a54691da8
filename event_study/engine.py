"""
The event-study pipeline.

This module provides a single entry point that runs one analysis request
end to end: calendar, windows, validation, trades, curve and metrics.
"""
import logging
import time
from dataclasses import asdict

from event_study.calendar import BUFFER_DAYS, build_calendar
from event_study.config import StudyConfig, validate_request
from event_study.curve import build_average_curve
from event_study.data import EventFilter, EventOccurrenceProvider, PriceSeriesProvider
from event_study.distribution import analyze_distribution
from event_study.errors import InsufficientEvents
from event_study.metrics import (
    calculate_aggregated_metrics,
    calculate_equity_curve,
    calculate_segmented_statistics,
)
from event_study.trades import compute_trades
from event_study.types import DateRange, EventStudyResult, EventSummary
from event_study.validation import count_exclusions, valid_windows, validate_windows
from event_study.windows import build_event_windows

__all__ = ["analyze_events"]

log = logging.getLogger(__name__)


def analyze_events(
    study: StudyConfig,
    price_provider: PriceSeriesProvider,
    event_provider: EventOccurrenceProvider,
    buffer_days: int = BUFFER_DAYS,
    include_distribution: bool = False,
) -> EventStudyResult:
    """
    Runs one event study.

    Args:
        study: The analysis request.
        price_provider: Source of the symbol's trading sessions.
        event_provider: Source of the event occurrences.
        buffer_days: Calendar days loaded beyond each end of the date range.
        include_distribution: Also analyse the distribution of trade returns.

    Returns:
        The full result. Occurrences that cannot be analysed are counted in
        ``event_summary.exclusion_reasons`` rather than failing the run.

    Raises:
        ConfigurationError: the request is invalid; raised before any data access.
        DataUnavailable: the symbol has no price data in the buffered range.
        InsufficientEvents: fewer valid windows than ``filters.min_occurrences``.
    """
    started = time.perf_counter()
    entry = validate_request(study)
    symbol = study.symbol.upper()

    calendar = build_calendar(price_provider, symbol, study.start_date, study.end_date, buffer_days)
    raw_events = event_provider.get_event_occurrences(EventFilter.for_study(study))
    log.info(f"Found {len(raw_events)} event occurrences for {symbol}.")

    windows = build_event_windows(raw_events, calendar, study.window)
    results = validate_windows(windows, study.window, study.trade, entry)
    valid = valid_windows(results)
    excluded_count = len(results) - len(valid)

    min_required = study.filters.min_occurrences
    if not raw_events or len(valid) < min_required:
        raise InsufficientEvents(
            events_found=len(raw_events),
            valid_events=len(valid),
            min_required=min_required,
            excluded_events=excluded_count,
        )

    trades = compute_trades(valid, study.trade, entry)
    average_curve = build_average_curve(valid, study.window)
    segmented = calculate_segmented_statistics(valid, study.window.include_event_day)
    metrics = calculate_aggregated_metrics(trades)
    equity_curve = calculate_equity_curve(trades)
    distribution = analyze_distribution(trades) if include_distribution else None

    elapsed_ms = (time.perf_counter() - started) * 1000
    log.info(
        f"Event study complete: {len(valid)} valid, {excluded_count} excluded "
        f"in {elapsed_ms:.0f} ms."
    )

    return EventStudyResult(
        symbol=symbol,
        event_summary=EventSummary(
            total_events_found=len(raw_events),
            valid_events=len(valid),
            excluded_events=excluded_count,
            exclusion_reasons=count_exclusions(results),
            date_range=DateRange(start=study.start_date, end=study.end_date),
        ),
        average_event_curve=average_curve,
        segmented_stats=segmented,
        event_occurrences=trades,
        aggregated_metrics=metrics,
        equity_curve=equity_curve,
        distribution=distribution,
        meta={
            "processingTimeMs": elapsed_ms,
            "windowConfig": asdict(study.window),
            "tradeConfig": asdict(study.trade),
        },
    )
