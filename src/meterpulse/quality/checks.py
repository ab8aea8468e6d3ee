"""Data quality checks for parsed interval samples."""

from collections.abc import Sequence
from datetime import timedelta

import structlog

from meterpulse.ingestion.interchange import INTERVAL_SECONDS, InterchangeParser
from meterpulse.models import QualityCheckResult, QualityStatus, Sample

log = structlog.get_logger()

SAMPLES_PER_DAY = 24 * 3600 // INTERVAL_SECONDS


class QualityChecker:
    """Runs data quality checks on parsed samples and raw documents."""

    def __init__(self, parser: InterchangeParser | None = None) -> None:
        self._parser = parser or InterchangeParser()

    def check_samples(self, samples: Sequence[Sample]) -> list[QualityCheckResult]:
        """Run all quality checks on a sample sequence."""
        results = []

        results.append(self._check_completeness(samples))
        results.append(self._check_uniqueness(samples))
        results.append(self._check_no_gaps(samples))
        results.append(self._check_energy_range(samples))

        passed = sum(1 for r in results if r.status == QualityStatus.PASS)
        log.info("sample_quality_complete", passed=passed, total=len(results))

        return results

    def check_document(self, xml_text: str | bytes) -> QualityCheckResult:
        structure = self._parser.validate_structure(xml_text)
        if structure.valid:
            return QualityCheckResult(
                check_name="document_structure",
                status=QualityStatus.PASS,
                metric_value=structure.periods,
                message=f"Document has {structure.periods} period(s)",
            )
        return QualityCheckResult(
            check_name="document_structure",
            status=QualityStatus.FAIL,
            metric_value=0,
            message=structure.error or "Invalid document",
        )

    def _check_completeness(self, samples: Sequence[Sample]) -> QualityCheckResult:
        count = len(samples)
        threshold = SAMPLES_PER_DAY  # At least one full day of intervals

        if count >= threshold:
            status = QualityStatus.PASS
            message = f"Found {count} samples (threshold: {threshold})"
        elif count >= threshold // 2:
            status = QualityStatus.WARN
            message = f"Low sample count: {count} samples (threshold: {threshold})"
        else:
            status = QualityStatus.FAIL
            message = f"Insufficient data: {count} samples (threshold: {threshold})"

        return QualityCheckResult(
            check_name="sample_completeness",
            status=status,
            metric_value=count,
            threshold=threshold,
            message=message,
        )

    def _check_uniqueness(self, samples: Sequence[Sample]) -> QualityCheckResult:
        if not samples:
            return QualityCheckResult(
                check_name="uniqueness",
                status=QualityStatus.FAIL,
                message="No samples to check",
            )

        seen = set()
        duplicates = 0
        for s in samples:
            if s.timestamp_utc in seen:
                duplicates += 1
            seen.add(s.timestamp_utc)

        if duplicates == 0:
            status = QualityStatus.PASS
            message = f"All {len(samples)} samples have unique timestamps"
        else:
            pct = duplicates / len(samples) * 100
            status = QualityStatus.FAIL if pct > 1 else QualityStatus.WARN
            message = f"Found {duplicates} duplicate timestamps ({pct:.1f}%)"

        return QualityCheckResult(
            check_name="uniqueness",
            status=status,
            metric_value=duplicates,
            threshold=0,
            message=message,
        )

    def _check_no_gaps(self, samples: Sequence[Sample]) -> QualityCheckResult:
        if len(samples) < 2:
            return QualityCheckResult(
                check_name="no_gaps",
                status=QualityStatus.WARN,
                message="Not enough samples to check for gaps",
            )

        step = timedelta(seconds=INTERVAL_SECONDS)
        timestamps = sorted(s.timestamp_utc for s in samples)
        gaps = sum(1 for prev, curr in zip(timestamps, timestamps[1:], strict=False) if curr - prev > step)

        if gaps == 0:
            status = QualityStatus.PASS
            message = "No gaps detected in 15-minute data"
        elif gaps <= 3:
            status = QualityStatus.WARN
            message = f"Found {gaps} gaps in 15-minute data"
        else:
            status = QualityStatus.FAIL
            message = f"Found {gaps} gaps in 15-minute data (data may be incomplete)"

        return QualityCheckResult(
            check_name="no_gaps",
            status=status,
            metric_value=gaps,
            threshold=0,
            message=message,
        )

    def _check_energy_range(self, samples: Sequence[Sample]) -> QualityCheckResult:
        if not samples:
            return QualityCheckResult(
                check_name="energy_range",
                status=QualityStatus.FAIL,
                message="No samples to check",
            )

        negative = [s.energy_kwh for s in samples if s.energy_kwh < 0]

        if not negative:
            status = QualityStatus.PASS
            message = f"All {len(samples)} energy values are non-negative"
        else:
            pct = len(negative) / len(samples) * 100
            status = QualityStatus.FAIL if pct > 5 else QualityStatus.WARN
            message = f"{len(negative)} energy values ({pct:.1f}%) are negative"

        return QualityCheckResult(
            check_name="energy_range",
            status=status,
            metric_value=len(negative),
            threshold=0,
            message=message,
        )
