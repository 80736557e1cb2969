"""Image preprocessing that turns a color image into a binary crack mask."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from .config import AdaptiveThresholdMode, AnalysisConfig
from .errors import ProcessingError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreprocessedImage:
    """Bundle containing intermediate images for downstream processing."""

    gray: np.ndarray
    blurred: np.ndarray
    edges: np.ndarray  # Raw Canny output before closing
    mask: np.ndarray  # Closed binary mask consumed by region extraction
    threshold: Optional[np.ndarray] = None  # Only set when the adaptive branch runs


def _ensure_odd(value: int) -> int:
    if value % 2 == 0:
        return value + 1
    return value


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a BGR image to a single channel."""

    if image.ndim == 2:
        return image.copy()
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ProcessingError(f"expected a color image, got shape {image.shape}")
    code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
    return cv2.cvtColor(image, code)


def gaussian_blur(image: np.ndarray, kernel_size: int, sigma: float) -> np.ndarray:
    """Smooth noise prior to the threshold and edge steps."""

    if kernel_size <= 0 or kernel_size % 2 == 0:
        raise ProcessingError(f"blur kernel size must be a positive odd number, got {kernel_size}")
    if sigma < 0:
        raise ProcessingError(f"gaussian sigma must be non-negative, got {sigma}")
    return cv2.GaussianBlur(image, (kernel_size, kernel_size), sigma)


def adaptive_threshold(image: np.ndarray, block_size: int, offset: float) -> np.ndarray:
    """Inverted Gaussian adaptive threshold; dark pixels below the local mean become 255."""

    block_size = max(3, _ensure_odd(block_size))
    return cv2.adaptiveThreshold(
        image,
        255,
        cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
        cv2.THRESH_BINARY_INV,
        block_size,
        offset,
    )


def detect_edges(image: np.ndarray, low_threshold: int, high_threshold: int) -> np.ndarray:
    """Dual-threshold Canny edge map."""

    if low_threshold < 0 or high_threshold < 0:
        raise ProcessingError("canny thresholds must be non-negative")
    return cv2.Canny(image, low_threshold, high_threshold)


def close_edges(edges: np.ndarray, kernel_size: int, dilation_iterations: int, erosion_iterations: int) -> np.ndarray:
    """Dilate then erode with a square element to bridge broken edge segments."""

    if kernel_size <= 0:
        raise ProcessingError(f"morphology kernel size must be positive, got {kernel_size}")
    if dilation_iterations < 0 or erosion_iterations < 0:
        raise ProcessingError("morphology iterations must be non-negative")
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
    dilated = cv2.dilate(edges, kernel, iterations=dilation_iterations)
    return cv2.erode(dilated, kernel, iterations=erosion_iterations)


def preprocess(image: np.ndarray, config: AnalysisConfig) -> PreprocessedImage:
    """Full preprocessing routine prior to region extraction."""

    if image is None or image.size == 0:
        raise ProcessingError("cannot preprocess an empty image")
    try:
        gray = to_grayscale(image)
        blurred = gaussian_blur(gray, config.blur_kernel_size, config.gaussian_sigma)
        threshold = None
        if config.adaptive_threshold is not AdaptiveThresholdMode.OFF:
            threshold = adaptive_threshold(blurred, config.threshold_block_size, config.threshold_offset)
        edges = detect_edges(blurred, config.canny_low_threshold, config.canny_high_threshold)
        source = edges
        if config.adaptive_threshold is AdaptiveThresholdMode.MERGE:
            source = cv2.bitwise_or(edges, threshold)
        mask = close_edges(source, config.morphology_kernel_size, config.dilation_iterations, config.erosion_iterations)
    except cv2.error as exc:
        raise ProcessingError(f"preprocessing failed: {exc}") from exc
    logger.debug("Preprocessed image: %d mask pixels set", int(np.count_nonzero(mask)))
    return PreprocessedImage(gray=gray, blurred=blurred, edges=edges, mask=mask, threshold=threshold)
