"""
Configuration loading and validation for the event-study engine.

This module uses standard library dataclasses for configuration objects.
Validation is done by explicit, pure functions so that a bad request fails
fast, before any data is read.
"""
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type, cast

import yaml

from event_study.errors import ConfigurationError
from event_study.types import EntryPoint, PriceField

__all__ = [
    "load_config",
    "validate_request",
    "parse_entry_type",
    "Config",
    "StudyConfig",
    "WindowConfig",
    "TradeConfig",
    "FilterConfig",
]

DEFAULT_BUFFER_DAYS = 60
DEFAULT_MIN_OCCURRENCES = 3
DEFAULT_ENTRY = EntryPoint(relative_day=-1, field=PriceField.CLOSE)

_ENTRY_PATTERN = re.compile(r"T([+-]?\d+)_(\w+)")


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    name: str
    output_dir: Path


@dataclass(frozen=True)
class DataConfig:
    source: str
    interval: Literal["1d", "1wk", "1mo"]
    snapshot_dir: Path
    events_file: Path
    buffer_days: int = DEFAULT_BUFFER_DAYS


@dataclass(frozen=True)
class WindowConfig:
    days_before: int = 10
    days_after: int = 10
    include_event_day: bool = True

    @property
    def expected_length(self) -> int:
        return self.days_before + self.days_after + 1


@dataclass(frozen=True)
class TradeConfig:
    entry_type: str = "T-1_CLOSE"
    days_after: int = 10


@dataclass(frozen=True)
class FilterConfig:
    exclude_years: List[int] = field(default_factory=list)
    min_occurrences: int = DEFAULT_MIN_OCCURRENCES


@dataclass(frozen=True)
class StudyConfig:
    """One event-study request: which symbol, which events, which window."""
    symbol: str
    start_date: date
    end_date: date
    event_names: List[str] = field(default_factory=list)
    event_categories: List[str] = field(default_factory=list)
    country: Optional[str] = None
    window: WindowConfig = field(default_factory=WindowConfig)
    trade: TradeConfig = field(default_factory=TradeConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)


@dataclass(frozen=True)
class ReportingConfig:
    output_formats: List[Literal["json", "markdown", "csv"]]
    include_distribution: bool = True


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    """The root configuration object, composing all nested sections."""
    run: RunConfig
    data: DataConfig
    study: StudyConfig
    reporting: ReportingConfig


# §3. Request Validation
# --------------------------------------------------------------------------------------


def parse_entry_type(entry_type: str) -> EntryPoint:
    """
    Parses an entry specification such as ``T-1_CLOSE`` or ``T0_OPEN``.

    Strings that do not follow the ``T<day>_<FIELD>`` grammar fall back to the
    previous day's close. A well-formed string naming an unknown price field
    is rejected.
    """
    match = _ENTRY_PATTERN.search(entry_type or "")
    if not match:
        return DEFAULT_ENTRY

    field_name = match.group(2).lower()
    try:
        price_field = PriceField(field_name)
    except ValueError:
        raise ConfigurationError(
            f"Unknown price field '{match.group(2)}' in entry type {entry_type}"
        ) from None
    return EntryPoint(relative_day=int(match.group(1)), field=price_field)


def validate_request(study: StudyConfig) -> EntryPoint:
    """
    Checks a study request before any data access and returns its parsed entry point.
    """
    if not study.symbol:
        raise ConfigurationError("Symbol is required")
    if not study.start_date or not study.end_date:
        raise ConfigurationError("Date range is required")
    if study.start_date > study.end_date:
        raise ConfigurationError("start_date must not be after end_date")
    if not study.event_names and not study.event_categories:
        raise ConfigurationError("Either event_names or event_categories must be provided")

    window = study.window
    if window.days_before < 0 or window.days_after < 0:
        raise ConfigurationError("Window days must be non-negative")
    if study.filters.min_occurrences < 1:
        raise ConfigurationError("filters.min_occurrences must be at least 1")

    entry = parse_entry_type(study.trade.entry_type)
    if study.trade.days_after < entry.relative_day:
        raise ConfigurationError(
            f"Exit day T+{study.trade.days_after} precedes entry day {study.trade.entry_type}"
        )
    return entry


# §4. Loading
# --------------------------------------------------------------------------------------


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    if isinstance(data, dict) and hasattr(data_class, "__dataclass_fields__"):
        field_types = {f.name: f.type for f in data_class.__dataclass_fields__.values()}

        kwargs = {}
        for k, v in data.items():
            field_type = field_types.get(k)
            # Unknown keys are passed through; the constructor rejects them.
            kwargs[k] = _from_dict(field_type, v) if field_type else v
        return data_class(**kwargs)

    if isinstance(data, str) and data_class is date:
        return date.fromisoformat(data)
    if isinstance(data, str) and data_class is Path:
        return Path(data)
    return data


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a YAML object.")

    study = cfg["study"]
    start = study["start_date"]
    end = study["end_date"]
    start = start if isinstance(start, date) else date.fromisoformat(str(start))
    end = end if isinstance(end, date) else date.fromisoformat(str(end))
    if end < start:
        raise ValueError("study.end_date must not be before study.start_date")

    if cfg["data"].get("buffer_days", DEFAULT_BUFFER_DAYS) < 0:
        raise ValueError("data.buffer_days must be non-negative")


# impure
def load_config(config_path: Path) -> Config:
    """
    Loads and validates a YAML configuration file into a Config object.
    #impure: Reads from the filesystem.
    """
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {config_path}: {e}") from e

    try:
        _validate_config(raw_config)
        # _from_dict is too dynamic for mypy to track types.
        return cast(Config, _from_dict(Config, raw_config))
    except (TypeError, KeyError) as e:
        raise ValueError(f"Configuration validation failed: missing or invalid key. Details: {e}") from e
