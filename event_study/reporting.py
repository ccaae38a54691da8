"""
Generating output reports from an event-study result.
"""
import json
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from rich.console import Console

from event_study.config import Config
from event_study.types import EventStudyResult

__all__ = ["generate_all_reports"]


def _to_json_serializable(data: Any) -> Any:
    """Recursively converts non-serializable types in a dictionary."""
    if isinstance(data, dict):
        return {k: _to_json_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_to_json_serializable(i) for i in data]
    if isinstance(data, (Path, pd.Timestamp, pd.Timedelta)):
        return str(data)
    if data is None:
        return None
    if isinstance(data, (np.integer,)):
        return int(data)
    if isinstance(data, (float, np.floating)):
        return None if np.isnan(data) else float(data)
    if isinstance(data, np.bool_):
        return bool(data)
    return data


# impure
def _generate_trade_ledger_csv(result: EventStudyResult, output_dir: Path) -> None:
    """Writes one row per event trade."""
    if result.event_occurrences:
        trades_df = pd.DataFrame([t.model_dump(by_alias=True) for t in result.event_occurrences])
        trades_df.to_csv(output_dir / "event_occurrences.csv", index=False)


# impure
def _generate_curve_csv(result: EventStudyResult, output_dir: Path) -> None:
    """Writes the average event curve, one row per relative day."""
    if result.average_event_curve:
        curve_df = pd.DataFrame([p.model_dump(by_alias=True) for p in result.average_event_curve])
        curve_df.to_csv(output_dir / "average_curve.csv", index=False)


# impure
def _generate_summary_json(result: EventStudyResult, config: Config, output_dir: Path) -> None:
    """Writes the full result in its camelCase wire form."""
    summary = {
        "run_name": config.run.name,
        "result": _to_json_serializable(result.model_dump(mode="json", by_alias=True)),
    }
    with (output_dir / "summary.json").open("w") as f:
        json.dump(summary, f, indent=2)


# impure
def _generate_summary_markdown(result: EventStudyResult, config: Config, output_dir: Path) -> None:
    """Generates a Markdown file with a human-readable summary."""
    summary = result.event_summary
    md = f"# Event Study: {config.run.name}\n\n"
    md += f"Symbol **{result.symbol}**, {summary.date_range.start} to {summary.date_range.end}.\n\n"
    md += "## Events\n\n"
    md += f"- **Found**: {summary.total_events_found}\n"
    md += f"- **Valid**: {summary.valid_events}\n"
    md += f"- **Excluded**: {summary.excluded_events}\n"
    for reason, count in summary.exclusion_reasons.items():
        md += f"  - {reason}: {count}\n"

    metrics = result.aggregated_metrics
    if metrics is not None:
        md += "\n## Key Metrics\n\n"
        key_metrics = [
            ("Win Rate [%]", metrics.win_rate),
            ("Avg Return [%]", metrics.avg_return),
            ("Median Return [%]", metrics.median_return),
            ("Profit Factor", metrics.profit_factor),
            ("Sharpe Ratio", metrics.sharpe_ratio),
            ("Sortino Ratio", metrics.sortino_ratio),
            ("Max Drawdown [%]", metrics.max_drawdown),
            ("Total Return [%]", metrics.total_return),
            ("CAGR [%]", metrics.cagr),
        ]
        for name, value in key_metrics:
            md += f"- **{name}**: {value:.2f}\n"

    md += "\n## Segments\n\n| Segment | Count | Avg [%] | Median [%] | Std [%] | Win Rate [%] |\n"
    md += "|---|---|---|---|---|---|\n"
    segmented = result.segmented_stats
    for seg in (segmented.pre_event, segmented.event_day, segmented.post_event):
        md += (
            f"| {seg.label} | {seg.count} | {seg.avg_return:.4f} | {seg.median_return:.4f} "
            f"| {seg.std_dev:.4f} | {seg.win_rate:.2f} |\n"
        )

    (output_dir / "summary.md").write_text(md)


# impure
def generate_all_reports(
    config: Config,
    result: EventStudyResult,
    run_dir: Path,
    console: Console,
) -> None:
    """
    Orchestrates the generation of all output reports.
    #impure: Writes to the filesystem.
    """
    formats = config.reporting.output_formats

    if "csv" in formats:
        console.print("Generating trade ledger and curve CSVs...")
        _generate_trade_ledger_csv(result, run_dir)
        _generate_curve_csv(result, run_dir)

    if "json" in formats:
        console.print("Generating summary JSON...")
        _generate_summary_json(result, config, run_dir)

    if "markdown" in formats:
        console.print("Generating summary Markdown...")
        _generate_summary_markdown(result, config, run_dir)

    console.print("All reports generated.")
