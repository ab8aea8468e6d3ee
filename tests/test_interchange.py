"""Tests for the interchange XML parser."""

from datetime import datetime, timezone

import pytest

from meterpulse.ingestion import InterchangeParser
from meterpulse.ingestion.interchange import parse_instant
from meterpulse.ingestion.timezones import DEFAULT_TIMEZONE, UNKNOWN_TIMEZONE


@pytest.fixture
def parser() -> InterchangeParser:
    return InterchangeParser()


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestParse:
    def test_four_points_at_fifteen_minutes(
        self, parser: InterchangeParser, four_point_xml: str
    ) -> None:
        result = parser.parse(four_point_xml)

        assert [s.timestamp_utc for s in result.samples] == [
            utc(2024, 1, 1, 0, 0),
            utc(2024, 1, 1, 0, 15),
            utc(2024, 1, 1, 0, 30),
            utc(2024, 1, 1, 0, 45),
        ]
        assert all(s.energy_kwh == 1.0 for s in result.samples)
        assert all(s.power_kw == 4.0 for s in result.samples)
        assert [s.position for s in result.samples] == [1, 2, 3, 4]

    def test_samples_sorted_across_periods(self, parser: InterchangeParser, document) -> None:
        xml = document(
            [
                ("2024-01-02T00:00Z", [(2, "0.5"), (1, "0.4")]),
                ("2024-01-01T00:00Z", [(3, "0.3"), (1, "0.1"), (2, "0.2")]),
            ]
        )
        result = parser.parse(xml)

        timestamps = [s.timestamp_utc for s in result.samples]
        assert timestamps == sorted(timestamps)
        assert [s.energy_kwh for s in result.samples] == [0.1, 0.2, 0.3, 0.4, 0.5]

    def test_power_is_four_times_energy(self, parser: InterchangeParser, document) -> None:
        xml = document([("2024-03-01T00:00Z", [(1, "0.123"), (2, "7.5"), (3, "0")])])
        result = parser.parse(xml)

        assert len(result.samples) == 3
        for sample in result.samples:
            assert sample.power_kw == sample.energy_kwh * 4

    def test_invalid_xml_returns_empty_result(self, parser: InterchangeParser) -> None:
        result = parser.parse("<TimeSeries><Period></TimeSeries>")

        assert result.samples == []
        assert result.timezone == UNKNOWN_TIMEZONE
        assert result.timezone.short_label == "GMT"

    def test_empty_text_returns_empty_result(self, parser: InterchangeParser) -> None:
        result = parser.parse("")
        assert result.is_empty
        assert result.timezone.short_label == "GMT"

    def test_missing_timeseries_returns_unknown_timezone(self, parser: InterchangeParser) -> None:
        result = parser.parse("<Document><Period/></Document>")
        assert result.is_empty
        assert result.timezone == UNKNOWN_TIMEZONE

    def test_austrian_mrid_resolves_cet(self, parser: InterchangeParser, four_point_xml: str) -> None:
        result = parser.parse(four_point_xml)
        assert result.timezone.offset_hours == 1
        assert result.timezone.short_label == "GMT+1"

    def test_unknown_mrid_defaults_to_gmt(self, parser: InterchangeParser, document) -> None:
        xml = document([("2024-01-01T00:00Z", [(1, "1")])], mrid="XX123")
        result = parser.parse(xml)
        assert result.timezone.offset_hours == 0
        assert result.timezone == DEFAULT_TIMEZONE

    def test_country_hint_used_without_mrid(self, parser: InterchangeParser, document) -> None:
        xml = document([("2024-01-01T00:00Z", [(1, "1")])], mrid=None)
        assert parser.parse(xml, country_hint="fi").timezone.offset_hours == 2
        assert parser.parse(xml, country_hint="Finland").timezone.offset_hours == 2
        assert parser.parse(xml).timezone == DEFAULT_TIMEZONE

    def test_mrid_wins_over_country_hint(self, parser: InterchangeParser, four_point_xml: str) -> None:
        result = parser.parse(four_point_xml, country_hint="EE")
        assert result.timezone.offset_hours == 1

    def test_document_without_namespace(self, parser: InterchangeParser, document) -> None:
        xml = document([("2024-01-01T00:00Z", [(1, "2.0")])], namespace=None)
        result = parser.parse(xml)
        assert len(result.samples) == 1
        assert result.timezone.offset_hours == 1

    def test_document_with_foreign_namespace(self, parser: InterchangeParser, document) -> None:
        xml = document([("2024-01-01T00:00Z", [(1, "2.0")])], namespace="urn:example:other")
        result = parser.parse(xml)
        assert len(result.samples) == 1

    def test_timeseries_as_root_element(self, parser: InterchangeParser) -> None:
        xml = (
            "<TimeSeries><Period><timeInterval><start>2024-01-01T00:00Z</start></timeInterval>"
            "<Point><position>2</position><quantity>1.5</quantity></Point></Period></TimeSeries>"
        )
        result = parser.parse(xml)
        assert [s.timestamp_utc for s in result.samples] == [utc(2024, 1, 1, 0, 15)]

    def test_period_without_start_is_skipped(self, parser: InterchangeParser, document) -> None:
        xml = document(
            [
                (None, [(1, "9.0")]),
                ("not-a-date", [(1, "8.0")]),
                ("2024-01-01T00:00Z", [(1, "1.0")]),
            ]
        )
        result = parser.parse(xml)
        assert [s.energy_kwh for s in result.samples] == [1.0]

    def test_start_outside_datetime_range_skips_period(
        self, parser: InterchangeParser, document
    ) -> None:
        xml = document(
            [
                ("0001-01-01T00:00:00+01:00", [(1, "9.0")]),
                ("2024-01-01T00:00Z", [(1, "1.0")]),
            ]
        )
        result = parser.parse(xml)
        assert [(s.timestamp_utc, s.energy_kwh) for s in result.samples] == [
            (utc(2024, 1, 1), 1.0)
        ]

    def test_invalid_points_are_skipped(self, parser: InterchangeParser, document) -> None:
        xml = document(
            [
                (
                    "2024-01-01T00:00Z",
                    [
                        (1, "1.0"),
                        (None, "2.0"),
                        (3, None),
                        ("x", "4.0"),
                        (5, "abc"),
                        (6, "NaN"),
                        (0, "7.0"),
                        (8, "8.0"),
                    ],
                )
            ]
        )
        result = parser.parse(xml)
        assert [(s.position, s.energy_kwh) for s in result.samples] == [(1, 1.0), (8, 8.0)]

    def test_quantity_with_infinite_power_is_skipped(
        self, parser: InterchangeParser, document
    ) -> None:
        xml = document([("2024-01-01T00:00Z", [(1, "1e308"), (2, "1.0"), (3, "-1e308")])])
        result = parser.parse(xml)
        assert [(s.position, s.power_kw) for s in result.samples] == [(2, 4.0)]

    def test_no_periods_keeps_resolved_timezone(self, parser: InterchangeParser, document) -> None:
        result = parser.parse(document([]))
        assert result.is_empty
        assert result.timezone.offset_hours == 1

    def test_no_valid_points_keeps_resolved_timezone(
        self, parser: InterchangeParser, document
    ) -> None:
        result = parser.parse(document([("2024-01-01T00:00Z", [(None, "1.0")])], mrid="FI123"))
        assert result.is_empty
        assert result.timezone.offset_hours == 2

    def test_accepts_bytes(self, parser: InterchangeParser, four_point_xml: str) -> None:
        result = parser.parse(four_point_xml.encode("utf-8"))
        assert len(result.samples) == 4

    def test_parse_is_deterministic(self, parser: InterchangeParser, document) -> None:
        xml = document(
            [
                ("2024-01-01T23:00Z", [(4, "0.25"), (1, "0.5")]),
                ("2024-01-01T00:00Z", [(1, "1.5")]),
            ]
        )
        first = parser.parse(xml)
        second = InterchangeParser().parse(xml)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()


class TestValidateStructure:
    def test_valid_document(self, parser: InterchangeParser, four_point_xml: str) -> None:
        check = parser.validate_structure(four_point_xml)
        assert check.valid
        assert check.periods == 1

    def test_parse_failure(self, parser: InterchangeParser) -> None:
        check = parser.validate_structure("<broken")
        assert not check.valid
        assert check.error is not None
        assert check.error.startswith("XML parsing failed")

    def test_missing_timeseries(self, parser: InterchangeParser) -> None:
        check = parser.validate_structure("<Document/>")
        assert check.error == "No TimeSeries element found"

    def test_missing_periods(self, parser: InterchangeParser, document) -> None:
        check = parser.validate_structure(document([]))
        assert check.error == "No Period elements found"


class TestParseInstant:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2024-01-01T00:00Z", utc(2024, 1, 1)),
            ("2024-01-01T00:00:00Z", utc(2024, 1, 1)),
            ("2024-01-01T01:00:00+01:00", utc(2024, 1, 1)),
            ("2024-01-01T00:00", utc(2024, 1, 1)),
            (" 2024-06-30T22:00Z ", utc(2024, 6, 30, 22)),
        ],
    )
    def test_valid_instants(self, text: str, expected: datetime) -> None:
        assert parse_instant(text) == expected

    @pytest.mark.parametrize(
        "text",
        [None, "", "yesterday", "2024-13-01T00:00Z", "0001-01-01T00:00:00+01:00"],
    )
    def test_invalid_instants(self, text: str | None) -> None:
        assert parse_instant(text) is None
