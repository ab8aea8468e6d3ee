"""Data models for the MeterPulse pipeline."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QualityStatus(str, Enum):
    """Quality check result status."""

    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class HourBand(str, Enum):
    """Fixed time-of-day segmentation used for the energy flow summary."""

    PEAK = "peak"
    OFF_PEAK = "off_peak"
    NIGHT = "night"


class Sample(BaseModel):
    """Single 15-minute interval reading."""

    model_config = ConfigDict(frozen=True)

    timestamp_utc: datetime
    energy_kwh: float = Field(allow_inf_nan=False)
    power_kw: float = Field(allow_inf_nan=False)
    position: int = Field(ge=1)


class TimezoneMeta(BaseModel):
    """Timezone the source document was recorded in."""

    model_config = ConfigDict(frozen=True)

    name: str
    offset_hours: float
    short_label: str


class DisplayTimezone(BaseModel):
    """Fixed-offset timezone offered for display."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    offset_hours: float


class ParseResult(BaseModel):
    """Samples extracted from one interchange document."""

    model_config = ConfigDict(frozen=True)

    samples: list[Sample] = Field(default_factory=list)
    timezone: TimezoneMeta

    @property
    def is_empty(self) -> bool:
        return not self.samples


class StructureCheck(BaseModel):
    """Outcome of a minimal structural validation of an XML document."""

    valid: bool
    error: str | None = None
    periods: int = 0


class PowerStats(BaseModel):
    min_kw: float
    max_kw: float
    mean_kw: float


class Quartiles(BaseModel):
    """Nearest-rank quartiles of interval energy."""

    q1: float
    median: float
    q3: float

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1


class OutlierReport(BaseModel):
    """Values outside the Tukey fences (1.5 x IQR)."""

    count: int = Field(ge=0)
    percentage: float = Field(ge=0, le=100)
    lower_bound: float
    upper_bound: float
    values: list[float] = Field(default_factory=list)


class Variability(BaseModel):
    std_dev: float = Field(ge=0)
    coefficient_of_variation: float | None = None


class HourlyAggregate(BaseModel):
    hour: int = Field(ge=0, le=23)
    mean_energy_kwh: float
    sample_count: int = Field(ge=1)

    @property
    def label(self) -> str:
        return f"{self.hour}:00"


class DailyAggregate(BaseModel):
    day: date
    label: str
    total_energy_kwh: float
    sample_count: int = Field(ge=1)


class DayHourCell(BaseModel):
    day: date
    hour: int = Field(ge=0, le=23)
    energy_kwh: float


class EnergyBands(BaseModel):
    """Energy consumed per time-of-day band (kWh)."""

    peak_kwh: float = 0.0
    off_peak_kwh: float = 0.0
    night_kwh: float = 0.0

    @property
    def total_kwh(self) -> float:
        return self.peak_kwh + self.off_peak_kwh + self.night_kwh


class StatisticsSummary(BaseModel):
    """Aggregate view over a sample sequence."""

    data_points: int = Field(ge=1)
    start_utc: datetime
    end_utc: datetime
    total_energy_kwh: float
    power: PowerStats
    load_factor_pct: float | None = None
    quartiles: Quartiles
    variability: Variability
    outliers: OutlierReport
    hourly: list[HourlyAggregate]
    daily: list[DailyAggregate]
    top_hours: list[str]
    bottom_hours: list[str]
    # None when no sample has a representable local date
    highest_day: DailyAggregate | None = None
    lowest_day: DailyAggregate | None = None
    bands: EnergyBands


class QualityCheckResult(BaseModel):
    """Result of a data quality check."""

    check_name: str
    status: QualityStatus
    metric_value: float | None = None
    threshold: float | None = None
    message: str
    checked_at: datetime = Field(default_factory=datetime.now)
