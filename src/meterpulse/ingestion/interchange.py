"""Parser for MyEnergyData (IEC 62325-351) interval documents."""

import math
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone

import structlog

from meterpulse.ingestion.lookup import find_all, find_first, find_text
from meterpulse.ingestion.timezones import UNKNOWN_TIMEZONE, resolve_timezone
from meterpulse.models import ParseResult, Sample, StructureCheck

log = structlog.get_logger()

# The format encodes fixed 15-minute intervals
INTERVAL_SECONDS = 900


def parse_instant(value: str | None) -> datetime | None:
    """Parse an ISO 8601 instant into an aware UTC datetime.

    Accepts a trailing ``Z`` and minute precision (``2024-01-01T00:00Z``).
    Values without an offset are taken as UTC.
    """
    if not value:
        return None
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Offset pushes the instant outside the representable range
        return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _read_root(xml_text: str | bytes) -> ET.Element | None:
    try:
        return ET.fromstring(xml_text)
    except ET.ParseError as e:
        log.warning("xml_parse_error", error=str(e))
        return None


class InterchangeParser:
    """Converts interchange XML into an ordered list of interval samples."""

    def __init__(self, interval_seconds: int = INTERVAL_SECONDS) -> None:
        self._interval = timedelta(seconds=interval_seconds)
        self._power_factor = 3600 / interval_seconds

    def parse(self, xml_text: str | bytes, country_hint: str | None = None) -> ParseResult:
        """Extract samples and the recording timezone from a document.

        Malformed input never raises: document-level problems return an empty
        result, a bad period or point is skipped and parsing continues.

        Args:
            xml_text: Raw document text
            country_hint: Two-letter country code used when the document
                carries no market identifier

        Returns:
            Samples sorted by UTC timestamp plus timezone metadata
        """
        root = _read_root(xml_text)
        if root is None:
            return ParseResult(samples=[], timezone=UNKNOWN_TIMEZONE)

        series = find_first(root, "TimeSeries", include_self=True)
        if series is None:
            log.warning("timeseries_missing")
            return ParseResult(samples=[], timezone=UNKNOWN_TIMEZONE)

        mrid = None
        market_point = find_first(series, "MarketEvaluationPoint")
        if market_point is not None:
            mrid = find_text(market_point, "mRID")
        tz = resolve_timezone(mrid, country_hint)

        periods = find_all(series, "Period")
        if not periods:
            log.warning("periods_missing", timezone=tz.short_label)
            return ParseResult(samples=[], timezone=tz)

        samples: list[Sample] = []
        for index, period in enumerate(periods):
            start = self._period_start(period)
            if start is None:
                log.warning("period_skipped", period=index, reason="invalid_start")
                continue
            samples.extend(self._period_samples(period, start, index))

        # Source order of periods and points is not guaranteed to be chronological
        samples.sort(key=lambda s: s.timestamp_utc)

        log.info(
            "xml_parsed",
            periods=len(periods),
            samples=len(samples),
            timezone=tz.short_label,
        )
        return ParseResult(samples=samples, timezone=tz)

    def _period_start(self, period: ET.Element) -> datetime | None:
        interval = find_first(period, "timeInterval")
        if interval is None:
            return None
        return parse_instant(find_text(interval, "start"))

    def _period_samples(self, period: ET.Element, start: datetime, index: int) -> list[Sample]:
        samples = []
        skipped = 0
        for point in find_all(period, "Point"):
            position = _parse_int(find_text(point, "position"))
            quantity = _parse_float(find_text(point, "quantity"))
            if position is None or quantity is None or position < 1:
                skipped += 1
                continue
            power = quantity * self._power_factor
            if not math.isfinite(power):
                skipped += 1
                continue
            try:
                timestamp = start + (position - 1) * self._interval
            except OverflowError:
                skipped += 1
                continue
            samples.append(
                Sample(
                    timestamp_utc=timestamp,
                    energy_kwh=quantity,
                    power_kw=power,
                    position=position,
                )
            )

        if skipped:
            log.warning("points_skipped", period=index, skipped=skipped)
        return samples

    def validate_structure(self, xml_text: str | bytes) -> StructureCheck:
        """Check that a document parses and has a TimeSeries with periods."""
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            return StructureCheck(valid=False, error=f"XML parsing failed: {e}")

        series = find_first(root, "TimeSeries", include_self=True)
        if series is None:
            return StructureCheck(valid=False, error="No TimeSeries element found")

        periods = find_all(series, "Period")
        if not periods:
            return StructureCheck(valid=False, error="No Period elements found")

        return StructureCheck(valid=True, periods=len(periods))
