"""Tests for coverage and severity computation."""

import pytest

from crack_analysis.errors import ProcessingError
from crack_analysis.metrics import classify_severity, compute_metrics
from crack_analysis.results import CrackRegion, Severity


@pytest.mark.parametrize(
    ("percentage", "expected"),
    [
        (0.0, Severity.LOW),
        (0.999, Severity.LOW),
        (1.0, Severity.MEDIUM),
        (4.999, Severity.MEDIUM),
        (5.0, Severity.HIGH),
        (100.0, Severity.HIGH),
    ],
)
def test_classify_severity_boundaries(percentage: float, expected: Severity) -> None:
    assert classify_severity(percentage) is expected


def test_no_regions_is_low_severity() -> None:
    metrics = compute_metrics([], 100, 100)

    assert metrics.total_area == 0.0
    assert metrics.crack_percentage == 0.0
    assert metrics.severity is Severity.LOW


def test_metrics_sum_region_areas() -> None:
    regions = [
        CrackRegion(x=0, y=0, width=30, height=30, area=400.0),
        CrackRegion(x=50, y=50, width=20, height=20, area=200.0),
    ]

    metrics = compute_metrics(regions, 100, 100)

    assert metrics.total_area == 600.0
    assert metrics.crack_percentage == pytest.approx(6.0)
    assert metrics.severity is Severity.HIGH


def test_small_coverage_on_large_image() -> None:
    metrics = compute_metrics([CrackRegion(x=0, y=0, width=50, height=20, area=500.0)], 1000, 1000)

    assert metrics.crack_percentage == pytest.approx(0.05)
    assert metrics.severity is Severity.LOW


@pytest.mark.parametrize(("width", "height"), [(0, 10), (10, 0), (0, 0)])
def test_zero_area_image_is_a_processing_error(width: int, height: int) -> None:
    with pytest.raises(ProcessingError):
        compute_metrics([], width, height)
