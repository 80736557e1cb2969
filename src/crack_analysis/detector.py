"""Crack region extraction strategies."""

from __future__ import annotations

from typing import List, Protocol

import cv2
import numpy as np

from .config import AnalysisConfig
from .errors import ProcessingError
from .results import CrackRegion


class RegionExtractor(Protocol):
    """Protocol for region extractor implementations."""

    def extract(self, mask: np.ndarray) -> List[CrackRegion]:
        ...


class ContourRegionExtractor:
    """Outer-contour extractor that keeps contours whose polygon area is large enough."""

    def __init__(self, config: AnalysisConfig) -> None:
        self._min_area = config.min_crack_area

    def extract(self, mask: np.ndarray) -> List[CrackRegion]:
        if mask.ndim != 2:
            raise ProcessingError(f"region extraction expects a single-channel mask, got shape {mask.shape}")
        binary = mask if mask.dtype == np.uint8 else mask.astype(np.uint8)
        try:
            contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        except cv2.error as exc:
            raise ProcessingError(f"contour search failed: {exc}") from exc

        # Contours are converted to plain values here and not kept past this call.
        regions: List[CrackRegion] = []
        for contour in contours:
            area = float(cv2.contourArea(contour))
            if area < self._min_area:
                continue
            x, y, width, height = cv2.boundingRect(contour)
            regions.append(CrackRegion(x=int(x), y=int(y), width=int(width), height=int(height), area=area))
        return regions
