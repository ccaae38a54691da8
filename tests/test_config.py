"""Tests for configuration loading and request validation."""
import copy
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from event_study.config import (
    Config,
    FilterConfig,
    StudyConfig,
    TradeConfig,
    WindowConfig,
    _from_dict,
    load_config,
    validate_request,
)
from event_study.errors import ConfigurationError
from event_study.types import PriceField

# A complete and valid dictionary that can be used to construct a Config object.
FULL_CONFIG_DICT: Dict[str, Any] = {
    "run": {"name": "test_run", "output_dir": "test_output"},
    "data": {
        "source": "yfinance", "interval": "1d", "snapshot_dir": "test_snapshots",
        "events_file": "test_events.csv", "buffer_days": 60,
    },
    "study": {
        "symbol": "^NSEI", "event_names": ["UNION BUDGET"], "event_categories": [],
        "country": "INDIA", "start_date": "2015-01-01", "end_date": "2023-12-31",
        "window": {"days_before": 5, "days_after": 5, "include_event_day": True},
        "trade": {"entry_type": "T-1_CLOSE", "days_after": 5},
        "filters": {"exclude_years": [2020], "min_occurrences": 3},
    },
    "reporting": {"output_formats": ["json"], "include_distribution": True},
}


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Pytest fixture to create a temporary, valid config file."""
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(FULL_CONFIG_DICT, f)
    return config_path


@pytest.fixture
def study() -> StudyConfig:
    return StudyConfig(
        symbol="^NSEI",
        start_date=date(2015, 1, 1),
        end_date=date(2023, 12, 31),
        event_names=["UNION BUDGET"],
    )


def test_load_valid_config(temp_config_file: Path) -> None:
    """Test loading a valid configuration file returns a Config object."""
    config = load_config(temp_config_file)
    assert isinstance(config, Config)
    assert config.run.name == "test_run"
    assert config.study.start_date == date(2015, 1, 1)
    assert config.study.window == WindowConfig(days_before=5, days_after=5, include_event_day=True)
    assert config.study.trade == TradeConfig(entry_type="T-1_CLOSE", days_after=5)
    assert config.study.filters == FilterConfig(exclude_years=[2020], min_occurrences=3)
    assert config.data.snapshot_dir == Path("test_snapshots")


def test_load_example_config_file() -> None:
    """Test that the main example config file is valid."""
    config = load_config(Path("config/example.yaml"))
    assert isinstance(config, Config)
    validate_request(config.study)


def test_missing_config_file() -> None:
    """Test error handling for missing config file."""
    with pytest.raises(FileNotFoundError):
        load_config(Path("nonexistent.yaml"))


def test_invalid_yaml_syntax(tmp_path: Path) -> None:
    """Test error handling for invalid YAML syntax."""
    config_path = tmp_path / "invalid.yaml"
    config_path.write_text("run: { name: test")
    with pytest.raises(ValueError, match="Invalid YAML syntax"):
        load_config(config_path)


def test_date_validation_fails(tmp_path: Path) -> None:
    """Test that validation fails if end_date is before start_date."""
    invalid_config = copy.deepcopy(FULL_CONFIG_DICT)
    invalid_config["study"]["start_date"] = "2022-01-01"
    invalid_config["study"]["end_date"] = "2021-01-01"
    config_path = tmp_path / "invalid.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(invalid_config, f)

    with pytest.raises(ValueError, match="study.end_date must not be before study.start_date"):
        load_config(config_path)


def test_missing_section_fails(tmp_path: Path) -> None:
    invalid_config = copy.deepcopy(FULL_CONFIG_DICT)
    del invalid_config["reporting"]
    config_path = tmp_path / "invalid.yaml"
    config_path.write_text(yaml.dump(invalid_config))

    with pytest.raises(ValueError, match="missing or invalid key"):
        load_config(config_path)


def test_from_dict_conversion() -> None:
    """Tests the internal _from_dict helper for creating nested dataclasses."""
    config = _from_dict(Config, copy.deepcopy(FULL_CONFIG_DICT))
    assert isinstance(config, Config)
    assert isinstance(config.study, StudyConfig)
    assert isinstance(config.study.window, WindowConfig)
    assert config.study.end_date == date(2023, 12, 31)
    assert config.study.window.expected_length == 11


def test_validate_request_returns_parsed_entry(study: StudyConfig) -> None:
    entry = validate_request(replace(study, trade=TradeConfig(entry_type="T0_OPEN", days_after=3)))
    assert entry.relative_day == 0
    assert entry.field is PriceField.OPEN


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"symbol": ""}, "Symbol is required"),
        ({"start_date": None}, "Date range is required"),
        ({"start_date": date(2024, 1, 1)}, "start_date must not be after end_date"),
        ({"event_names": [], "event_categories": []}, "Either event_names or event_categories"),
        ({"window": WindowConfig(days_before=-1)}, "Window days must be non-negative"),
        ({"filters": FilterConfig(min_occurrences=0)}, "min_occurrences must be at least 1"),
        ({"trade": TradeConfig(entry_type="T0_VWAP")}, "Unknown price field"),
        ({"trade": TradeConfig(entry_type="T+3_CLOSE", days_after=1)}, "precedes entry day"),
    ],
)
def test_validate_request_rejects(study: StudyConfig, changes: Dict[str, Any], message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        validate_request(replace(study, **changes))


def test_configuration_error_is_a_value_error(study: StudyConfig) -> None:
    with pytest.raises(ValueError):
        validate_request(replace(study, symbol=""))
