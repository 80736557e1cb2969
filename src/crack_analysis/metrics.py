"""Coverage and severity metrics computed from extracted crack regions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import ProcessingError
from .results import CrackRegion, Severity

MEDIUM_SEVERITY_PERCENTAGE = 1.0
HIGH_SEVERITY_PERCENTAGE = 5.0


@dataclass(frozen=True, slots=True)
class CrackMetrics:
    total_area: float
    crack_percentage: float
    severity: Severity


def classify_severity(crack_percentage: float) -> Severity:
    if crack_percentage < MEDIUM_SEVERITY_PERCENTAGE:
        return Severity.LOW
    if crack_percentage < HIGH_SEVERITY_PERCENTAGE:
        return Severity.MEDIUM
    return Severity.HIGH


def compute_metrics(regions: Sequence[CrackRegion], width: int, height: int) -> CrackMetrics:
    """Aggregate region areas into the share of the image they cover."""

    if width <= 0 or height <= 0:
        raise ProcessingError(f"cannot compute coverage for a {width}x{height} image")
    image_area = width * height
    total_area = float(sum(region.area for region in regions))
    crack_percentage = total_area / image_area * 100.0
    return CrackMetrics(
        total_area=total_area,
        crack_percentage=crack_percentage,
        severity=classify_severity(crack_percentage),
    )
