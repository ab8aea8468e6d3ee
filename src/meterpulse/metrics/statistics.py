"""Descriptive statistics over interval samples."""

import math
import sys
from collections.abc import Sequence
from datetime import date

import structlog

from meterpulse.ingestion.timezones import localize
from meterpulse.models import (
    DailyAggregate,
    DayHourCell,
    EnergyBands,
    HourBand,
    HourlyAggregate,
    OutlierReport,
    PowerStats,
    Quartiles,
    Sample,
    StatisticsSummary,
    Variability,
)

log = structlog.get_logger()

QUARTILE_POINTS = (0.25, 0.5, 0.75)
TUKEY_FENCE = 1.5
RANKED_HOURS = 3

PEAK_HOURS = frozenset(range(6, 10)) | frozenset(range(17, 22))
OFF_PEAK_HOURS = frozenset(range(10, 17))

DAY_LABEL_FORMAT = "%a %b %d %Y"


def classify_hour(hour: int) -> HourBand:
    """Peak 6-9 and 17-21, off-peak 10-16, night otherwise."""
    if hour in PEAK_HOURS:
        return HourBand.PEAK
    if hour in OFF_PEAK_HOURS:
        return HourBand.OFF_PEAK
    return HourBand.NIGHT


def nearest_rank(sorted_values: Sequence[float], p: float) -> float:
    """Value at zero-based index ``floor(n * p)`` of an ascending sequence."""
    index = min(math.floor(len(sorted_values) * p), len(sorted_values) - 1)
    return sorted_values[index]


def _mean(values: Sequence[float]) -> float:
    total = sum(values)
    if math.isfinite(total):
        return total / len(values)
    # Sum overflowed; dividing each term first keeps the mean in range
    return sum(v / len(values) for v in values)


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


class StatisticsEngine:
    """Computes aggregate descriptors from a sample sequence.

    Every method is a pure function of its arguments. Empty input yields the
    documented sentinel (``0.0`` for totals, ``None`` or ``[]`` otherwise)
    instead of raising, and ratios that would leave float range (load factor,
    coefficient of variation) are None rather than NaN or infinity.

    Grouping methods take ``offset_hours`` to read timestamps as wall-clock
    time in the caller's display timezone.
    """

    def summarize(
        self, samples: Sequence[Sample], offset_hours: float = 0.0
    ) -> StatisticsSummary | None:
        """Compute every aggregate at once, or None for an empty sequence."""
        if not samples:
            log.info("statistics_skipped", reason="no_samples")
            return None

        quartiles = self._quartiles(samples)
        days = self.extreme_days(samples, offset_hours)
        highest, lowest = days if days is not None else (None, None)

        summary = StatisticsSummary(
            data_points=len(samples),
            start_utc=min(s.timestamp_utc for s in samples),
            end_utc=max(s.timestamp_utc for s in samples),
            total_energy_kwh=self.total_energy(samples),
            power=self._power(samples),
            load_factor_pct=self.load_factor(samples),
            quartiles=quartiles,
            variability=self._variability(samples),
            outliers=self._outliers(samples, quartiles),
            hourly=self.hourly_aggregates(samples, offset_hours),
            daily=self.daily_aggregates(samples, offset_hours),
            top_hours=self.top_hours(samples, offset_hours),
            bottom_hours=self.bottom_hours(samples, offset_hours),
            highest_day=highest,
            lowest_day=lowest,
            bands=self.energy_bands(samples, offset_hours),
        )
        log.info("statistics_computed", data_points=summary.data_points, offset_hours=offset_hours)
        return summary

    def total_energy(self, samples: Sequence[Sample]) -> float:
        return sum(s.energy_kwh for s in samples)

    def power_stats(self, samples: Sequence[Sample]) -> PowerStats | None:
        return self._power(samples) if samples else None

    def _power(self, samples: Sequence[Sample]) -> PowerStats:
        powers = [s.power_kw for s in samples]
        return PowerStats(min_kw=min(powers), max_kw=max(powers), mean_kw=_mean(powers))

    def load_factor(self, samples: Sequence[Sample]) -> float | None:
        """Mean power as a percentage of peak power.

        Undefined (None) without samples, when peak power is zero, or when
        the ratio does not fit in a float.
        """
        if not samples:
            return None
        power = self._power(samples)
        if power.max_kw == 0:
            return None
        return _finite(power.mean_kw / power.max_kw * 100)

    def quartiles(self, samples: Sequence[Sample]) -> Quartiles | None:
        """Nearest-rank quartiles of interval energy (no interpolation)."""
        return self._quartiles(samples) if samples else None

    def _quartiles(self, samples: Sequence[Sample]) -> Quartiles:
        energies = sorted(s.energy_kwh for s in samples)
        q1, q2, q3 = (nearest_rank(energies, p) for p in QUARTILE_POINTS)
        return Quartiles(q1=q1, median=q2, q3=q3)

    def outliers(self, samples: Sequence[Sample]) -> OutlierReport | None:
        """Tukey's rule on the nearest-rank quartiles."""
        if not samples:
            return None
        return self._outliers(samples, self._quartiles(samples))

    def _outliers(self, samples: Sequence[Sample], quartiles: Quartiles) -> OutlierReport:
        spread = TUKEY_FENCE * quartiles.iqr
        # A fence past the float range is never crossed by a finite value
        lower = max(quartiles.q1 - spread, -sys.float_info.max)
        upper = min(quartiles.q3 + spread, sys.float_info.max)
        flagged = sorted(s.energy_kwh for s in samples if s.energy_kwh < lower or s.energy_kwh > upper)

        return OutlierReport(
            count=len(flagged),
            percentage=len(flagged) / len(samples) * 100,
            lower_bound=lower,
            upper_bound=upper,
            values=flagged,
        )

    def variability(self, samples: Sequence[Sample]) -> Variability | None:
        """Population standard deviation and coefficient of variation of energy.

        The coefficient is None when mean energy is zero or the ratio does not
        fit in a float.
        """
        return self._variability(samples) if samples else None

    def _variability(self, samples: Sequence[Sample]) -> Variability:
        energies = [s.energy_kwh for s in samples]
        mean = _mean(energies)
        # Halved deviations stay finite for any pair of finite floats
        deviations = [e / 2 - mean / 2 for e in energies]
        scale = max(abs(d) for d in deviations)
        if scale == 0:
            std_dev = 0.0
        else:
            # Squares of deviations relative to the largest one are at most 1
            ratio = math.sqrt(sum((d / scale) ** 2 for d in deviations) / len(deviations))
            std_dev = 2 * scale * ratio
        cv = _finite(std_dev / mean * 100) if mean != 0 else None
        return Variability(std_dev=std_dev, coefficient_of_variation=cv)

    def hourly_aggregates(
        self, samples: Sequence[Sample], offset_hours: float = 0.0
    ) -> list[HourlyAggregate]:
        """Mean energy per local hour of day, in order of first appearance."""
        groups: dict[int, list[float]] = {}
        for local, sample in localize(samples, offset_hours):
            groups.setdefault(local.hour, []).append(sample.energy_kwh)

        return [
            HourlyAggregate(hour=hour, mean_energy_kwh=_mean(values), sample_count=len(values))
            for hour, values in groups.items()
        ]

    def _ranked_hours(
        self, samples: Sequence[Sample], offset_hours: float, descending: bool
    ) -> list[HourlyAggregate]:
        # Ascending hour first so the stable sort breaks ties by hour number
        by_hour = sorted(self.hourly_aggregates(samples, offset_hours), key=lambda h: h.hour)
        return sorted(by_hour, key=lambda h: h.mean_energy_kwh, reverse=descending)

    def top_hours(
        self, samples: Sequence[Sample], offset_hours: float = 0.0, n: int = RANKED_HOURS
    ) -> list[str]:
        """Labels of the *n* hours with the highest mean energy, e.g. ``"18:00"``."""
        ranked = self._ranked_hours(samples, offset_hours, descending=True)
        return [h.label for h in ranked[:n]]

    def bottom_hours(
        self, samples: Sequence[Sample], offset_hours: float = 0.0, n: int = RANKED_HOURS
    ) -> list[str]:
        ranked = self._ranked_hours(samples, offset_hours, descending=False)
        return [h.label for h in ranked[:n]]

    def top_hour_aggregates(
        self, samples: Sequence[Sample], offset_hours: float = 0.0, n: int = RANKED_HOURS
    ) -> list[HourlyAggregate]:
        return self._ranked_hours(samples, offset_hours, descending=True)[:n]

    def daily_aggregates(
        self, samples: Sequence[Sample], offset_hours: float = 0.0
    ) -> list[DailyAggregate]:
        """Total energy per local calendar date, in order of first appearance."""
        groups: dict[date, list[float]] = {}
        for local, sample in localize(samples, offset_hours):
            groups.setdefault(local.date(), []).append(sample.energy_kwh)

        return [
            DailyAggregate(
                day=day,
                label=day.strftime(DAY_LABEL_FORMAT),
                total_energy_kwh=sum(values),
                sample_count=len(values),
            )
            for day, values in groups.items()
        ]

    def extreme_days(
        self, samples: Sequence[Sample], offset_hours: float = 0.0
    ) -> tuple[DailyAggregate, DailyAggregate] | None:
        """Highest and lowest day by total energy; ties go to the earlier date."""
        daily = sorted(self.daily_aggregates(samples, offset_hours), key=lambda d: d.day)
        if not daily:
            return None
        highest = max(daily, key=lambda d: d.total_energy_kwh)
        lowest = min(daily, key=lambda d: d.total_energy_kwh)
        return highest, lowest

    def energy_bands(self, samples: Sequence[Sample], offset_hours: float = 0.0) -> EnergyBands:
        totals = {band: 0.0 for band in HourBand}
        for local, sample in localize(samples, offset_hours):
            totals[classify_hour(local.hour)] += sample.energy_kwh
        return EnergyBands(
            peak_kwh=totals[HourBand.PEAK],
            off_peak_kwh=totals[HourBand.OFF_PEAK],
            night_kwh=totals[HourBand.NIGHT],
        )

    def day_hour_matrix(
        self, samples: Sequence[Sample], offset_hours: float = 0.0
    ) -> list[DayHourCell]:
        """Energy totals per (local date, hour), sorted by date then hour."""
        cells: dict[tuple[date, int], float] = {}
        for local, sample in localize(samples, offset_hours):
            key = (local.date(), local.hour)
            cells[key] = cells.get(key, 0.0) + sample.energy_kwh

        return [
            DayHourCell(day=day, hour=hour, energy_kwh=energy)
            for (day, hour), energy in sorted(cells.items())
        ]
