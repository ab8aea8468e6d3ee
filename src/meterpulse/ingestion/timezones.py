"""Timezone tables for interchange documents and display."""

from collections.abc import Sequence
from datetime import datetime, timedelta
from types import MappingProxyType

import structlog

from meterpulse.models import DisplayTimezone, Sample, TimezoneMeta

log = structlog.get_logger()

# Returned when the document itself cannot be read
UNKNOWN_TIMEZONE = TimezoneMeta(name="Unknown", offset_hours=0, short_label="GMT")

# Returned when the country code is missing or not in the table
DEFAULT_TIMEZONE = TimezoneMeta(name="Unknown (assuming GMT)", offset_hours=0, short_label="GMT")

_WET = TimezoneMeta(name="Western European Time (GMT)", offset_hours=0, short_label="GMT")
_CET = TimezoneMeta(name="Central European Time (GMT+1)", offset_hours=1, short_label="GMT+1")
_EET = TimezoneMeta(name="Eastern European Time (GMT+2)", offset_hours=2, short_label="GMT+2")

# The format's installed base is European market exports, so this is a short
# explicit list rather than a timezone database.
COUNTRY_TIMEZONES = MappingProxyType(
    {
        "PT": _WET,
        "GB": _WET,
        "IE": _WET,
        "IS": _WET,
        "DE": _CET,
        "AT": _CET,
        "FR": _CET,
        "EE": _EET,
        "FI": _EET,
    }
)


def country_code(value: str | None) -> str | None:
    """First two characters of *value*, uppercased."""
    if not value:
        return None
    code = value.strip()[:2].upper()
    return code or None


def resolve_timezone(mrid: str | None, country_hint: str | None = None) -> TimezoneMeta:
    """Resolve the recording timezone from a market identifier or a caller hint.

    The identifier wins when present; the hint is only consulted without one.
    """
    code = country_code(mrid) or country_code(country_hint)
    if code is None:
        return DEFAULT_TIMEZONE
    return COUNTRY_TIMEZONES.get(code, DEFAULT_TIMEZONE)


def _display(key: str, label: str, offset: float) -> tuple[str, DisplayTimezone]:
    return key, DisplayTimezone(key=key, label=label, offset_hours=offset)


DISPLAY_TIMEZONES = MappingProxyType(
    dict(
        [
            _display("UTC", "UTC (Coordinated Universal Time)", 0),
            _display("GMT", "GMT (Greenwich Mean Time)", 0),
            _display("EST", "EST (Eastern Standard Time)", -5),
            _display("CST", "CST (Central Standard Time)", -6),
            _display("MST", "MST (Mountain Standard Time)", -7),
            _display("PST", "PST (Pacific Standard Time)", -8),
            _display("CET", "CET (Central European Time)", 1),
            _display("EET", "EET (Eastern European Time)", 2),
            _display("WET", "WET (Western European Time)", 0),
            _display("JST", "JST (Japan Standard Time)", 9),
            _display("CST_CN", "CST (China Standard Time)", 8),
            _display("IST", "IST (India Standard Time)", 5.5),
            _display("AEST", "AEST (Australian Eastern Standard Time)", 10),
            _display("ACST", "ACST (Australian Central Standard Time)", 9.5),
            _display("AWST", "AWST (Australian Western Standard Time)", 8),
            _display("BRT", "BRT (Brasília Time)", -3),
            _display("ART", "ART (Argentina Time)", -3),
            _display("CLT", "CLT (Chile Standard Time)", -3),
            _display("PET", "PET (Peru Time)", -5),
            _display("SAST", "SAST (South Africa Standard Time)", 2),
            _display("EAT", "EAT (East Africa Time)", 3),
            _display("WAT", "WAT (West Africa Time)", 1),
            _display("MSK", "MSK (Moscow Standard Time)", 3),
            _display("GST", "GST (Gulf Standard Time)", 4),
            _display("PKT", "PKT (Pakistan Standard Time)", 5),
            _display("BST", "BST (Bangladesh Standard Time)", 6),
            _display("ICT", "ICT (Indochina Time)", 7),
            _display("KST", "KST (Korea Standard Time)", 9),
            _display("NZST", "NZST (New Zealand Standard Time)", 12),
            _display("FJT", "FJT (Fiji Time)", 12),
            _display("HST", "HST (Hawaii Standard Time)", -10),
            _display("AKST", "AKST (Alaska Standard Time)", -9),
            _display("AST", "AST (Atlantic Standard Time)", -4),
            _display("NST", "NST (Newfoundland Standard Time)", -3.5),
            _display("CHST", "CHST (Chamorro Standard Time)", 10),
            _display("SST", "SST (Samoa Standard Time)", -11),
            _display("CHUT", "CHUT (Chuuk Time)", 10),
            _display("PONT", "PONT (Pohnpei Standard Time)", 11),
            _display("KOST", "KOST (Kosrae Time)", 11),
            _display("MHT", "MHT (Marshall Islands Time)", 12),
            _display("WAKT", "WAKT (Wake Island Time)", 12),
            _display("CHADT", "CHADT (Chatham Daylight Time)", 13.75),
            _display("NZDT", "NZDT (New Zealand Daylight Time)", 13),
            _display("AEDT", "AEDT (Australian Eastern Daylight Time)", 11),
            _display("ACDT", "ACDT (Australian Central Daylight Time)", 10.5),
            _display("AWDT", "AWDT (Australian Western Daylight Time)", 9),
            _display("EDT", "EDT (Eastern Daylight Time)", -4),
            _display("CDT", "CDT (Central Daylight Time)", -5),
            _display("MDT", "MDT (Mountain Daylight Time)", -6),
            _display("PDT", "PDT (Pacific Daylight Time)", -7),
            _display("ADT", "ADT (Atlantic Daylight Time)", -3),
            _display("NDT", "NDT (Newfoundland Daylight Time)", -2.5),
            _display("AKDT", "AKDT (Alaska Daylight Time)", -8),
            _display("HADT", "HADT (Hawaii-Aleutian Daylight Time)", -9),
            _display("BST_UK", "BST (British Summer Time)", 1),
            _display("CEST", "CEST (Central European Summer Time)", 2),
            _display("EEST", "EEST (Eastern European Summer Time)", 3),
            _display("WEST", "WEST (Western European Summer Time)", 1),
            _display("BRST", "BRST (Brasília Summer Time)", -2),
            _display("ARST", "ARST (Argentina Summer Time)", -2),
            _display("CLST", "CLST (Chile Summer Time)", -2),
            _display("PEST", "PEST (Peru Summer Time)", -4),
        ]
    )
)


def get_display_timezone(key: str) -> DisplayTimezone:
    """Look up a display timezone, falling back to UTC for unknown keys."""
    tz = DISPLAY_TIMEZONES.get(key)
    if tz is None:
        log.warning("unknown_display_timezone", key=key, fallback="UTC")
        return DISPLAY_TIMEZONES["UTC"]
    return tz


def format_timezone_label(key: str) -> str:
    tz = get_display_timezone(key)
    offset = f"+{tz.offset_hours:g}" if tz.offset_hours >= 0 else f"{tz.offset_hours:g}"
    return f"{tz.label} (UTC{offset})"


def shift(timestamp: datetime, offset_hours: float) -> datetime:
    """Wall-clock time at a fixed UTC offset, as a naive datetime."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.replace(tzinfo=None) - (timestamp.utcoffset() or timedelta(0))
    return timestamp + timedelta(hours=offset_hours)


def try_shift(timestamp: datetime, offset_hours: float) -> datetime | None:
    """Like :func:`shift`, but None when the wall-clock time is out of range."""
    try:
        return shift(timestamp, offset_hours)
    except OverflowError:
        return None


def to_display_time(timestamp: datetime, key: str) -> datetime | None:
    return try_shift(timestamp, get_display_timezone(key).offset_hours)


def localize(samples: Sequence[Sample], offset_hours: float) -> list[tuple[datetime, Sample]]:
    """Pair samples with their wall-clock time at *offset_hours*.

    Samples whose local time falls outside the datetime range are left out.
    """
    pairs = []
    dropped = 0
    for s in samples:
        local = try_shift(s.timestamp_utc, offset_hours)
        if local is None:
            dropped += 1
            continue
        pairs.append((local, s))
    if dropped:
        log.warning("samples_out_of_range", dropped=dropped, offset_hours=offset_hours)
    return pairs
