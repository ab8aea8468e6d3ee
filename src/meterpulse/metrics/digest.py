"""Fixed-template text digest of the statistics, for language-model prompts.

The digest is read by a model with no access to the raw samples, so field
order and rounding are stable: energy and power to 2 decimals, per-hour and
distribution values to 3, percentages to 1.
"""

from collections.abc import Sequence
from datetime import datetime

import structlog

from meterpulse.ingestion.timezones import try_shift
from meterpulse.metrics.statistics import StatisticsEngine
from meterpulse.models import Sample, StatisticsSummary

log = structlog.get_logger()

NO_DATA = "No data available"
NOT_AVAILABLE = "N/A"

SYSTEM_PROMPT = "You are a helpful energy data analyst. Keep responses short and conversational."
MAX_HISTORY = 10


def _pct(value: float | None) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.1f}%"


def _local_date(timestamp: datetime, offset_hours: float) -> str:
    local = try_shift(timestamp, offset_hours)
    return NOT_AVAILABLE if local is None else local.date().isoformat()


def _period(summary: StatisticsSummary, offset_hours: float) -> str:
    start = _local_date(summary.start_utc, offset_hours)
    end = _local_date(summary.end_utc, offset_hours)
    return f"{start} to {end}"


def build_digest(
    samples: Sequence[Sample],
    offset_hours: float = 0.0,
    engine: StatisticsEngine | None = None,
) -> str:
    """Render the multi-line statistics digest, or ``NO_DATA`` without samples."""
    engine = engine or StatisticsEngine()
    summary = engine.summarize(samples, offset_hours)
    if summary is None:
        return NO_DATA

    q = summary.quartiles
    hourly = ", ".join(
        f"{h.label} ({h.mean_energy_kwh:.3f} kWh)"
        for h in engine.top_hour_aggregates(samples, offset_hours)
    )
    high, low = summary.highest_day, summary.lowest_day
    if high is None or low is None:
        daily = NOT_AVAILABLE
    else:
        daily = (
            f"Highest day: {high.label} ({high.total_energy_kwh:.2f} kWh),"
            f" Lowest: {low.label} ({low.total_energy_kwh:.2f} kWh)"
        )

    lines = [
        "Energy Data Summary:",
        f"- Data points: {summary.data_points}, Period: {_period(summary, offset_hours)}",
        f"- Total energy: {summary.total_energy_kwh:.2f} kWh",
        f"- Power range: {summary.power.min_kw:.2f} kW to {summary.power.max_kw:.2f} kW"
        f" (avg: {summary.power.mean_kw:.2f} kW)",
        f"- Load factor: {_pct(summary.load_factor_pct)}",
        f"- Peak hours: {', '.join(summary.top_hours)}",
        f"- Low usage hours: {', '.join(summary.bottom_hours)}",
        f"- Energy distribution: Q1: {q.q1:.3f} kWh, Median: {q.median:.3f} kWh, Q3: {q.q3:.3f} kWh",
        f"- Variability: Std dev: {summary.variability.std_dev:.3f} kWh,"
        f" CV: {_pct(summary.variability.coefficient_of_variation)}",
        f"- Outliers: {summary.outliers.count} outliers ({summary.outliers.percentage:.1f}% of data)",
        f"- Hourly patterns: Peak hours: {hourly}",
        f"- Daily patterns: {daily}",
    ]
    return "\n".join(lines)


def build_prompt_messages(
    question: str,
    samples: Sequence[Sample],
    history: Sequence[dict[str, str]] = (),
    offset_hours: float = 0.0,
    max_history: int = MAX_HISTORY,
) -> list[dict[str, str]]:
    """Assemble chat messages for a question about the loaded data.

    Order: system prompt, the most recent *max_history* history entries, the
    digest as extra system context (only when there are samples), then the
    user question.
    """
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    if max_history > 0:
        messages.extend(dict(m) for m in list(history)[-max_history:])
    if samples:
        digest = build_digest(samples, offset_hours)
        messages.append(
            {"role": "system", "content": f"You also have access to this energy data: {digest}"}
        )
    messages.append({"role": "user", "content": question})

    log.debug("prompt_built", messages=len(messages), history=len(history))
    return messages
