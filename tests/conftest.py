"""Shared fixtures for building interchange documents."""

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone

import pytest

from meterpulse.ingestion.lookup import NAMESPACE_URI
from meterpulse.models import Sample

# (position, quantity); None omits the element
PointSpec = tuple[object | None, object | None]
# (start, points); a None start omits the timeInterval element
PeriodSpec = tuple[str | None, Sequence[PointSpec]]

DocumentBuilder = Callable[..., str]

AUSTRIAN_MRID = "AT0010000000000000001000004392134"


def _point(position: object | None, quantity: object | None) -> str:
    parts = []
    if position is not None:
        parts.append(f"<position>{position}</position>")
    if quantity is not None:
        parts.append(f"<quantity>{quantity}</quantity>")
    return f"<Point>{''.join(parts)}</Point>"


def _period(start: str | None, points: Sequence[PointSpec]) -> str:
    interval = ""
    if start is not None:
        interval = f"<timeInterval><start>{start}</start></timeInterval>"
    body = "".join(_point(position, quantity) for position, quantity in points)
    return f"<Period>{interval}<resolution>PT15M</resolution>{body}</Period>"


def build_document(
    periods: Sequence[PeriodSpec],
    mrid: str | None = AUSTRIAN_MRID,
    namespace: str | None = NAMESPACE_URI,
) -> str:
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    market = ""
    if mrid is not None:
        market = f'<MarketEvaluationPoint><mRID codingScheme="A10">{mrid}</mRID></MarketEvaluationPoint>'
    body = "".join(_period(start, points) for start, points in periods)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<MyEnergyData_MarketDocument{xmlns}>"
        "<mRID>doc-1</mRID>"
        f"<TimeSeries><mRID>1</mRID>{market}{body}</TimeSeries>"
        "</MyEnergyData_MarketDocument>"
    )


@pytest.fixture
def document() -> DocumentBuilder:
    return build_document


@pytest.fixture
def four_point_xml() -> str:
    """One period at 2024-01-01T00:00Z with four 1.0 kWh points."""
    return build_document([("2024-01-01T00:00Z", [(p, "1.0") for p in range(1, 5)])])


def make_samples(
    energies: Sequence[float],
    start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
    step: timedelta = timedelta(minutes=15),
) -> list[Sample]:
    return [
        Sample(
            timestamp_utc=start + i * step,
            energy_kwh=energy,
            power_kw=energy * 4,
            position=i + 1,
        )
        for i, energy in enumerate(energies)
    ]


@pytest.fixture
def sample_factory() -> Callable[..., list[Sample]]:
    return make_samples
