"""MeterPulse: interval XML parsing and consumption statistics."""

from meterpulse.ingestion import InterchangeParser
from meterpulse.metrics import StatisticsEngine, build_digest
from meterpulse.models import ParseResult, Sample, StatisticsSummary, TimezoneMeta

__version__ = "0.1.0"

__all__ = [
    "InterchangeParser",
    "ParseResult",
    "Sample",
    "StatisticsEngine",
    "StatisticsSummary",
    "TimezoneMeta",
    "build_digest",
]
