"""Shared fixtures building synthetic images for the crack analysis tests."""

from typing import Callable

import cv2
import numpy as np
import pytest


def encode(image: np.ndarray, extension: str = ".png") -> bytes:
    ok, buffer = cv2.imencode(extension, image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def uniform_image() -> np.ndarray:
    """100x100 image of a single gray level."""
    return np.full((100, 100, 3), 180, dtype=np.uint8)


@pytest.fixture
def stroke_image() -> np.ndarray:
    """1000x1000 white image with one 62x6 dark stroke, about 500 px of crack area."""
    image = np.full((1000, 1000, 3), 255, dtype=np.uint8)
    cv2.rectangle(image, (100, 500), (161, 505), (0, 0, 0), -1)
    return image


@pytest.fixture
def blotch_image() -> np.ndarray:
    """100x100 image whose dark square covers well over 5% of the area."""
    image = np.full((100, 100, 3), 255, dtype=np.uint8)
    cv2.rectangle(image, (30, 30), (69, 69), (0, 0, 0), -1)
    return image


@pytest.fixture
def png_bytes() -> Callable[[np.ndarray], bytes]:
    return encode
