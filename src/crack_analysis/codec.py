"""Decoding uploaded image bytes and encoding annotated results."""

from __future__ import annotations

import base64
import logging
from pathlib import PurePath
from typing import Optional

import cv2
import numpy as np

from .config import FORMAT_ALIASES, AnalysisConfig, normalize_format
from .errors import DecodeError, EncodingError

logger = logging.getLogger(__name__)

# Leading bytes of the raster formats we can recognise without a filename.
_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"BM", "bmp"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
    (b"II*\x00", "tiff"),
    (b"MM\x00*", "tiff"),
)


def sniff_format(data: bytes) -> Optional[str]:
    """Guess the raster format from the payload signature."""

    for signature, fmt in _SIGNATURES:
        if data.startswith(signature):
            return fmt
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    return None


def resolve_format(data: bytes, filename: Optional[str] = None) -> Optional[str]:
    """Declared extension wins; fall back to the signature when there is none."""

    if filename:
        suffix = PurePath(filename).suffix
        if suffix:
            return normalize_format(suffix)
    return sniff_format(data)


def _is_allowed(fmt: str, config: AnalysisConfig) -> bool:
    canonical = FORMAT_ALIASES.get(fmt, fmt)
    spellings = {fmt, canonical} | {alias for alias, target in FORMAT_ALIASES.items() if target == canonical}
    return any(config.is_supported_format(spelling) for spelling in spellings)


def decode_image(data: bytes, config: AnalysisConfig, filename: Optional[str] = None) -> np.ndarray:
    """Decode ``data`` into a 3-channel BGR buffer after checking the allow-list."""

    fmt = resolve_format(data, filename)
    if fmt is None:
        raise DecodeError("Unrecognised image format", config.supported_formats)
    if not _is_allowed(fmt, config):
        raise DecodeError(f"Unsupported image format '{fmt}'", config.supported_formats)

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as exc:
        raise DecodeError(f"Failed to read image: {exc}") from exc
    if image is None or image.size == 0:
        raise DecodeError(f"Failed to read image as {fmt}")
    logger.debug("Decoded %s image of %dx%d", fmt, image.shape[1], image.shape[0])
    return image


def encode_image(image: np.ndarray, fmt: str = "png") -> bytes:
    """Serialize ``image`` into the given raster format."""

    extension = "." + normalize_format(fmt)
    try:
        ok, encoded = cv2.imencode(extension, image)
    except cv2.error as exc:
        raise EncodingError(f"Cannot encode image as {fmt}: {exc}") from exc
    if not ok:
        raise EncodingError(f"Cannot encode image as {fmt}")
    return encoded.tobytes()


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
