"""
Pydantic models for the crack analysis transport layer.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .results import AnalysisResult, CrackRegion, Severity


class CamelModel(BaseModel):
    """Base model serializing fields under camelCase aliases"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CrackRegionModel(CamelModel):
    """Bounding box and contour area of one crack region"""

    x: int = Field(..., ge=0, description="Left edge in image coordinates")
    y: int = Field(..., ge=0, description="Top edge in image coordinates")
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)
    area: float = Field(..., ge=0, description="Polygon area of the contour in pixels")

    @classmethod
    def from_region(cls, region: CrackRegion) -> "CrackRegionModel":
        return cls(x=region.x, y=region.y, width=region.width, height=region.height, area=region.area)


class AnalysisResponse(CamelModel):
    """Result of analyzing one uploaded image"""

    cracks_detected: bool
    crack_count: int = Field(..., ge=0)
    total_crack_area: float = Field(..., ge=0)
    crack_percentage: float = Field(..., ge=0, description="Share of the image covered by crack regions")
    severity: Severity
    crack_regions: List[CrackRegionModel]
    processed_image_base64: Optional[str] = Field(None, description="Annotated image in the configured output format")
    processing_time_ms: int = Field(..., ge=0)

    @classmethod
    def from_result(cls, result: AnalysisResult, include_image: bool = True) -> "AnalysisResponse":
        return cls(
            cracks_detected=result.cracks_detected,
            crack_count=result.crack_count,
            total_crack_area=result.total_crack_area,
            crack_percentage=result.crack_percentage,
            severity=result.severity,
            crack_regions=[CrackRegionModel.from_region(region) for region in result.crack_regions],
            processed_image_base64=result.processed_image_base64 if include_image else None,
            processing_time_ms=result.processing_time_ms,
        )


class ErrorResponse(CamelModel):
    """Error body returned for rejected or failed analyses"""

    error: str
    supported_formats: Optional[List[str]] = None


class HealthResponse(CamelModel):
    """Service liveness report"""

    status: str
    service: str
    version: str
