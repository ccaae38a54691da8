"""
Data access: price snapshots, event occurrence files and yfinance refreshes.

The engine only depends on the two provider protocols below. The concrete
providers read parquet snapshots and a CSV of special days; any other store
can be plugged in by implementing the same two methods.
"""
import logging
import subprocess
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
import yfinance as yf

from event_study.config import Config, DataConfig, StudyConfig
from event_study.errors import DataUnavailable
from event_study.types import EventOccurrence, TradingSession

__all__ = [
    "EventFilter",
    "PriceSeriesProvider",
    "EventOccurrenceProvider",
    "SnapshotPriceProvider",
    "CsvEventProvider",
    "fetch_and_snapshot",
    "import_special_days",
    "list_event_names",
    "list_event_categories",
]

log = logging.getLogger(__name__)

REQUIRED_PRICE_COLUMNS = {"Open", "High", "Low", "Close", "Volume"}
EVENT_COLUMNS = ["name", "date", "year", "category", "country"]


@dataclass(frozen=True)
class EventFilter:
    """Selects event occurrences; names take precedence over categories."""
    start_date: date
    end_date: date
    names: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    country: Optional[str] = None
    exclude_years: List[int] = field(default_factory=list)

    @classmethod
    def for_study(cls, study: StudyConfig) -> "EventFilter":
        return cls(
            start_date=study.start_date,
            end_date=study.end_date,
            names=list(study.event_names),
            categories=list(study.event_categories),
            country=study.country,
            exclude_years=list(study.filters.exclude_years),
        )


class PriceSeriesProvider(Protocol):
    def get_trading_sessions(self, symbol: str, start: date, end: date) -> List[TradingSession]:
        ...


class EventOccurrenceProvider(Protocol):
    def get_event_occurrences(self, event_filter: EventFilter) -> List[EventOccurrence]:
        ...


def _get_snapshot_dir(data_config: DataConfig) -> Path:
    """Constructs the snapshot directory path from config."""
    return Path(data_config.snapshot_dir) / f"{data_config.source}_{data_config.interval}"


# §1. Price snapshots
# --------------------------------------------------------------------------------------


class SnapshotPriceProvider:
    """Serves trading sessions from per-symbol parquet snapshots."""

    def __init__(self, data_config: DataConfig):
        self.snapshot_dir = _get_snapshot_dir(data_config)

    # impure
    def load_frame(self, symbol: str) -> pd.DataFrame:
        """
        Loads the full snapshot of `symbol`, indexed by calendar date.
        #impure: Reads from the filesystem.
        """
        parquet_path = self.snapshot_dir / f"{symbol.upper()}.parquet"
        if not parquet_path.is_file():
            raise DataUnavailable(f"Symbol {symbol} not found (no snapshot at {parquet_path})")

        df = pd.read_parquet(parquet_path)
        if not REQUIRED_PRICE_COLUMNS.issubset(df.columns):
            raise DataUnavailable(f"Data for {symbol} is missing required columns.")

        df = df.sort_index()
        df.index = pd.to_datetime(df.index).normalize()
        if df.index.tz is not None:
            df.index = df.index.tz_localize(None)
        df = df[~df.index.duplicated(keep="last")]

        # Rows without prices (exchange holidays in yfinance output) are not sessions.
        priced = df.dropna(subset=["Open", "High", "Low", "Close"]).copy()
        if len(priced) < len(df):
            log.warning(f"Dropped {len(df) - len(priced)} rows without prices from the {symbol} snapshot.")
        df = priced

        if "returnPercentage" not in df.columns:
            df["returnPercentage"] = df["Close"].pct_change() * 100
        return df

    def get_trading_sessions(self, symbol: str, start: date, end: date) -> List[TradingSession]:
        df = self.load_frame(symbol)
        df = df[(df.index.date >= start) & (df.index.date <= end)]

        sessions = [
            TradingSession(
                date=ts.date(),
                open=float(row.Open),
                high=float(row.High),
                low=float(row.Low),
                close=float(row.Close),
                volume=float(row.Volume),
                return_percentage=None if pd.isna(row.returnPercentage) else float(row.returnPercentage),
            )
            for ts, row in zip(df.index, df.itertuples(index=False))
        ]
        log.debug(f"Loaded {len(sessions)} sessions for {symbol} from {start} to {end}.")
        return sessions


# §2. Event occurrences
# --------------------------------------------------------------------------------------


# impure
def _read_events(events_file: Path) -> pd.DataFrame:
    if not Path(events_file).is_file():
        raise FileNotFoundError(f"Events file not found: {events_file}")
    df = pd.read_csv(events_file, dtype={"name": str, "category": str, "country": str})
    missing = set(EVENT_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Events file {events_file} is missing columns: {sorted(missing)}")
    df["date"] = pd.to_datetime(df["date"]).dt.date
    for column in ("name", "category", "country"):
        df[column] = df[column].fillna("").str.strip().str.upper()
    return df


class CsvEventProvider:
    """Serves event occurrences from a long-format CSV (one row per occurrence)."""

    def __init__(self, events_file: Path):
        self.events_file = Path(events_file)

    def get_event_occurrences(self, event_filter: EventFilter) -> List[EventOccurrence]:
        df = _read_events(self.events_file)
        mask = (df["date"] >= event_filter.start_date) & (df["date"] <= event_filter.end_date)

        if event_filter.names:
            mask &= df["name"].isin([n.upper() for n in event_filter.names])
        elif event_filter.categories:
            mask &= df["category"].isin([c.upper() for c in event_filter.categories])

        if event_filter.country:
            mask &= df["country"] == event_filter.country.upper()
        if event_filter.exclude_years:
            mask &= ~df["year"].isin(event_filter.exclude_years)

        selected = df[mask].sort_values("date", kind="stable")
        return [
            EventOccurrence(
                name=row.name,
                date=row.date,
                year=int(row.year),
                category=row.category,
                country=row.country,
            )
            for row in selected.itertuples(index=False)
        ]


def list_event_names(events_file: Path, category: Optional[str] = None, country: Optional[str] = None) -> pd.DataFrame:
    """Occurrence counts per event name, category and country."""
    df = _read_events(events_file)
    if category:
        df = df[df["category"] == category.upper()]
    if country:
        df = df[df["country"] == country.upper()]
    counts = df.groupby(["name", "category", "country"]).size().rename("occurrences")
    return counts.reset_index().sort_values("name", kind="stable").reset_index(drop=True)


def list_event_categories(events_file: Path) -> pd.DataFrame:
    """Occurrence counts per category and country."""
    df = _read_events(events_file)
    counts = df.groupby(["category", "country"]).size().rename("count")
    return counts.reset_index().sort_values("category", kind="stable").reset_index(drop=True)


def _classify_special_day(name: str) -> Dict[str, str]:
    upper = name.upper()
    if name.startswith("USA :"):
        return {"country": "USA", "category": "HOLIDAY"}
    if "BUDGET" in upper:
        return {"country": "INDIA", "category": "BUDGET"}
    if "ELECTION" in upper:
        return {"country": "INDIA", "category": "ELECTION"}
    if "INDEPENDENCE" in upper or "REPUBLIC" in upper:
        return {"country": "INDIA", "category": "NATIONAL"}
    return {"country": "INDIA", "category": "FESTIVAL"}


# impure
def import_special_days(wide_csv: Path, out_csv: Path) -> int:
    """
    Converts the wide special-days sheet into the long events format.

    The sheet has one column per special day and one row per year, with
    ``DD-MM-YYYY`` cells; empty cells are skipped. Returns the number of
    occurrences written.
    #impure: Reads and writes the filesystem.
    """
    wide = pd.read_csv(wide_csv, dtype=str)
    records = []
    for column in wide.columns:
        name = column.strip()
        for cell in wide[column].dropna():
            cell = cell.strip()
            if not cell:
                continue
            day = datetime.strptime(cell, "%d-%m-%Y").date()
            records.append({"name": name.upper(), "date": day.isoformat(), "year": day.year, **_classify_special_day(name)})

    out = pd.DataFrame(records, columns=EVENT_COLUMNS)
    if not out.empty:
        out = out.sort_values(["date", "name"], kind="stable")
    Path(out_csv).parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(out_csv, index=False)
    log.info(f"Imported {len(out)} special-day occurrences into {out_csv}.")
    return len(out)


# §3. Snapshot refresh
# --------------------------------------------------------------------------------------


def _get_run_metadata(config: Config) -> Dict[str, str]:
    """Generates metadata for the data snapshot."""
    try:
        git_hash = subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL
        ).strip().decode()
    except (subprocess.CalledProcessError, FileNotFoundError):
        git_hash = "unknown"
    return {
        "fetch_utc": datetime.now(timezone.utc).isoformat(),
        "yfinance_version": yf.__version__,
        "git_hash": git_hash,
        "run_name": config.run.name,
    }


# impure
def fetch_and_snapshot(symbols: List[str], config: Config) -> List[str]:
    """
    Fetch daily OHLCV from yfinance and save to parquet snapshots.

    The download covers the study range widened by the calendar buffer.
    Returns a list of symbols that failed to download.
    #impure: Accesses network and filesystem.
    """
    snapshot_dir = _get_snapshot_dir(config.data)
    snapshot_dir.mkdir(parents=True, exist_ok=True)

    buffer = pd.Timedelta(days=config.data.buffer_days)
    start = pd.Timestamp(config.study.start_date) - buffer
    # yfinance treats `end` as exclusive.
    end = pd.Timestamp(config.study.end_date) + buffer + pd.Timedelta(days=1)

    failed_symbols = []
    for symbol in symbols:
        try:
            data = yf.download(
                tickers=symbol,
                start=start.date(),
                end=end.date(),
                interval=config.data.interval,
                auto_adjust=True,
                prepost=False,
                actions=False,
                progress=False,
                multi_level_index=False,
            )
            if data.empty:
                raise ValueError(f"No data returned for symbol {symbol}")

            table = pa.Table.from_pandas(data)
            metadata = _get_run_metadata(config)
            table = table.replace_schema_metadata({
                **(table.schema.metadata or {}),
                **{k.encode(): str(v).encode() for k, v in metadata.items()}
            })
            pq.write_table(table, snapshot_dir / f"{symbol.upper()}.parquet")
            log.info(f"Saved snapshot for {symbol} ({len(data)} rows).")

        except Exception as e:
            log.warning(f"Failed to fetch or save data for {symbol}: {e}")
            failed_symbols.append(symbol)

    return failed_symbols
