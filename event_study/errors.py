"""
Typed failures raised by the event-study engine.

Per-occurrence problems are never raised; they are recorded as exclusion
reasons on the individual windows instead.
"""

__all__ = [
    "EventStudyError",
    "ConfigurationError",
    "DataUnavailable",
    "InsufficientEvents",
]


class EventStudyError(Exception):
    """Base class for all engine failures."""


class ConfigurationError(EventStudyError, ValueError):
    """The analysis request is incomplete or inconsistent."""


class DataUnavailable(EventStudyError):
    """The symbol is unknown or has no trading sessions in range."""


class InsufficientEvents(EventStudyError):
    """Too few event windows survived validation."""

    def __init__(
        self,
        events_found: int,
        valid_events: int,
        min_required: int,
        excluded_events: int,
    ) -> None:
        self.events_found = events_found
        self.valid_events = valid_events
        self.min_required = min_required
        self.excluded_events = excluded_events
        if events_found == 0:
            message = (
                "No events found matching the specified criteria "
                f"(minimum {min_required} required)."
            )
        else:
            message = (
                f"Insufficient complete event windows. Found {events_found} events, "
                f"{valid_events} valid, minimum {min_required} required. "
                f"{excluded_events} events were excluded due to incomplete data."
            )
        super().__init__(message)
