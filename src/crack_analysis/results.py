"""Value types produced by a crack analysis run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .codec import to_base64


class Severity(str, Enum):
    """Severity label derived from the share of the image covered by cracks."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True, slots=True)
class CrackRegion:
    """Bounding box (top-left origin) and polygon area of one crack contour."""

    x: int
    y: int
    width: int
    height: int
    area: float


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Outcome of analysing one image."""

    cracks_detected: bool
    crack_count: int
    total_crack_area: float
    crack_percentage: float
    severity: Severity
    crack_regions: Tuple[CrackRegion, ...]
    processed_image: bytes
    processing_time_ms: int

    @property
    def processed_image_base64(self) -> str:
        return to_base64(self.processed_image)
