"""
Shared data structures for the event-study engine.

Field names are snake_case in Python; every model serialises to the camelCase
wire names (``returnPercentage``, ``relativeDay``...) through its alias
generator, so ``model_dump(by_alias=True)`` yields the API shape directly.
"""
import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "TradingSession",
    "EventOccurrence",
    "PricePoint",
    "EventWindow",
    "PriceField",
    "EntryPoint",
    "ValidWindow",
    "ExcludedWindow",
    "WindowResult",
    "Trade",
    "AverageCurvePoint",
    "SegmentStats",
    "SegmentedStats",
    "TradeExtreme",
    "DateRange",
    "AggregatedMetrics",
    "EquityPoint",
    "DrawdownInfo",
    "HistogramBin",
    "Outlier",
    "Percentiles",
    "Distribution",
    "EventSummary",
    "EventStudyResult",
]


class _Record(BaseModel):
    """Immutable record serialised with camelCase aliases."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# §1. Inputs
# --------------------------------------------------------------------------------------


class TradingSession(_Record):
    """One day of price history for a symbol."""

    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    return_percentage: Optional[float] = Field(None, description="Close-to-close return in percent.")


class EventOccurrence(_Record):
    """One recurrence of a named calendar event, e.g. a budget day."""

    name: str
    date: dt.date
    year: int
    category: str = ""
    country: str = ""


# §2. Windows
# --------------------------------------------------------------------------------------


class PricePoint(_Record):
    relative_day: int
    date: dt.date
    open: float
    high: float
    low: float
    close: float
    volume: float
    return_percentage: float
    is_event_day: bool


class EventWindow(_Record):
    """
    The trading sessions around one event occurrence, anchored at T0.

    Invalid windows carry an empty ``price_data`` and an ``exclusion_reason``.
    """

    event: EventOccurrence
    t0_index: Optional[int] = None
    price_data: Tuple[PricePoint, ...] = ()
    is_valid: bool
    exclusion_reason: Optional[str] = None

    def point_at(self, relative_day: int) -> Optional[PricePoint]:
        """Returns the price point at the given relative day, if present."""
        for point in self.price_data:
            if point.relative_day == relative_day:
                return point
        return None


class PriceField(str, Enum):
    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"


class EntryPoint(NamedTuple):
    """Where a trade is entered, e.g. ``T-1_CLOSE`` -> (-1, CLOSE)."""

    relative_day: int
    field: PriceField


@dataclass(frozen=True)
class ValidWindow:
    window: EventWindow


@dataclass(frozen=True)
class ExcludedWindow:
    event: EventOccurrence
    reason: str


WindowResult = Union[ValidWindow, ExcludedWindow]


# §3. Derived records
# --------------------------------------------------------------------------------------


class Trade(_Record):
    """A hypothetical long trade taken around one event occurrence."""

    event_name: str
    event_date: dt.date
    year: int
    category: str
    entry_date: dt.date
    entry_price: float
    exit_date: dt.date
    exit_price: float
    absolute_return: float
    return_percentage: float
    mfe: float = Field(..., description="Maximum favourable excursion in percent.")
    mae: float = Field(..., description="Maximum adverse excursion in percent.")
    holding_days: int
    is_profitable: bool


class AverageCurvePoint(_Record):
    relative_day: int
    avg_return: float
    median_return: float
    std_dev: float
    count: int
    min_return: float
    max_return: float
    is_event_day: bool


class SegmentStats(_Record):
    label: str
    count: int
    avg_return: float
    median_return: float
    std_dev: float
    win_rate: float


class SegmentedStats(_Record):
    pre_event: SegmentStats
    event_day: SegmentStats
    post_event: SegmentStats


class TradeExtreme(_Record):
    event_date: dt.date = Field(..., alias="date")
    return_pct: float = Field(..., alias="return")


class DateRange(_Record):
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None


class AggregatedMetrics(_Record):
    """Portfolio-style summary over all trades of one analysis."""

    total_events: int
    winning_events: int
    losing_events: int
    win_rate: float
    avg_return: float
    median_return: float
    std_dev: float
    best_event: TradeExtreme
    worst_event: TradeExtreme
    profit_factor: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    expectancy: float
    total_return: float
    cagr: float
    date_range: DateRange
    drawdown_start: Optional[dt.date] = None
    drawdown_end: Optional[dt.date] = None


class EquityPoint(_Record):
    event_date: Optional[dt.date] = None
    equity: float
    event_name: Optional[str] = None
    exit_date: Optional[dt.date] = None
    return_pct: Optional[float] = Field(None, alias="return")


class DrawdownInfo(_Record):
    max_drawdown: float
    drawdown_start: Optional[dt.date] = None
    drawdown_end: Optional[dt.date] = None
    final_equity: float


class HistogramBin(_Record):
    label: str = Field(..., alias="bin")
    count: int
    range_min: float
    range_max: float


class Outlier(_Record):
    event_date: dt.date
    event_name: str
    return_pct: float = Field(..., alias="return")


class Percentiles(_Record):
    p10: float = 0.0
    p25: float = 0.0
    p50: float = 0.0
    p75: float = 0.0
    p90: float = 0.0


class Distribution(_Record):
    histogram: List[HistogramBin]
    outliers: List[Outlier]
    percentiles: Percentiles
    skewness: float
    kurtosis: float


# §4. Engine output
# --------------------------------------------------------------------------------------


class EventSummary(_Record):
    total_events_found: int
    valid_events: int
    excluded_events: int
    exclusion_reasons: Dict[str, int]
    date_range: DateRange


class EventStudyResult(_Record):
    symbol: str
    event_summary: EventSummary
    average_event_curve: List[AverageCurvePoint]
    segmented_stats: SegmentedStats
    event_occurrences: List[Trade]
    aggregated_metrics: Optional[AggregatedMetrics]
    equity_curve: List[EquityPoint]
    distribution: Optional[Distribution] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
