"""
Completeness checks for event windows.

Validation never mutates a window: each window maps to either a ValidWindow
or an ExcludedWindow carrying the first failed check as its reason.
"""
import logging
from collections import Counter
from typing import Dict, List, Sequence

from event_study.config import TradeConfig, WindowConfig
from event_study.types import EntryPoint, EventWindow, ExcludedWindow, ValidWindow, WindowResult

__all__ = ["validate_windows", "validate_window", "valid_windows", "count_exclusions"]

log = logging.getLogger(__name__)


def _has_day(window: EventWindow, relative_day: int) -> bool:
    return any(p.relative_day == relative_day for p in window.price_data)


def validate_window(
    window: EventWindow,
    window_cfg: WindowConfig,
    trade_cfg: TradeConfig,
    entry: EntryPoint,
) -> WindowResult:
    """Applies the checks in order and stops at the first failure."""
    if not window.is_valid:
        return ExcludedWindow(window.event, window.exclusion_reason or "Unknown")

    if not _has_day(window, 0):
        return ExcludedWindow(window.event, "Missing T0 (event day)")
    if not _has_day(window, entry.relative_day):
        return ExcludedWindow(window.event, f"Missing entry day ({trade_cfg.entry_type})")
    if not _has_day(window, trade_cfg.days_after):
        return ExcludedWindow(window.event, f"Missing exit day (T+{trade_cfg.days_after})")

    expected = window_cfg.expected_length
    if len(window.price_data) != expected:
        return ExcludedWindow(
            window.event,
            f"Incomplete window: has {len(window.price_data)} days, needs {expected}",
        )
    return ValidWindow(window)


def validate_windows(
    windows: Sequence[EventWindow],
    window_cfg: WindowConfig,
    trade_cfg: TradeConfig,
    entry: EntryPoint,
) -> List[WindowResult]:
    """
    Classifies every window as valid or excluded.

    Args:
        windows: Output of ``build_event_windows``.
        window_cfg: The window the windows were built with.
        trade_cfg: Entry type (for messages) and exit day.
        entry: The parsed entry point of `trade_cfg`.

    Returns:
        One result per input window, in input order.
    """
    results = [validate_window(w, window_cfg, trade_cfg, entry) for w in windows]
    for result in results:
        if isinstance(result, ExcludedWindow):
            log.warning(f"Excluded {result.event.name} on {result.event.date}: {result.reason}")
    return results


def valid_windows(results: Sequence[WindowResult]) -> List[EventWindow]:
    return [r.window for r in results if isinstance(r, ValidWindow)]


def count_exclusions(results: Sequence[WindowResult]) -> Dict[str, int]:
    """Number of excluded windows per exclusion reason."""
    return dict(Counter(r.reason for r in results if isinstance(r, ExcludedWindow)))
