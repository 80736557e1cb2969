"""Tests for decoding uploads and encoding annotated images."""

import base64

import cv2
import numpy as np
import pytest

from crack_analysis.codec import decode_image, encode_image, resolve_format, sniff_format, to_base64
from crack_analysis.config import AnalysisConfig
from crack_analysis.errors import DecodeError, EncodingError

from conftest import encode


@pytest.mark.parametrize(
    ("extension", "expected"),
    [(".png", "png"), (".jpg", "jpg"), (".bmp", "bmp")],
)
def test_sniff_format_recognises_encoded_images(uniform_image: np.ndarray, extension: str, expected: str) -> None:
    assert sniff_format(encode(uniform_image, extension)) == expected


def test_sniff_format_handles_gif_and_unknown() -> None:
    assert sniff_format(b"GIF89a\x01\x00") == "gif"
    assert sniff_format(b"not an image") is None


def test_declared_extension_takes_precedence(uniform_image: np.ndarray) -> None:
    data = encode(uniform_image, ".png")

    assert resolve_format(data, "photo.JPEG") == "jpeg"
    assert resolve_format(data, "no_extension") == "png"


def test_decode_returns_color_buffer(uniform_image: np.ndarray) -> None:
    decoded = decode_image(encode(uniform_image), AnalysisConfig(), "sample.PNG")

    assert decoded.shape == (100, 100, 3)
    assert decoded.dtype == np.uint8
    assert np.array_equal(decoded, uniform_image)


def test_decode_expands_grayscale_to_three_channels() -> None:
    gray = np.full((20, 30), 90, dtype=np.uint8)

    decoded = decode_image(encode(gray), AnalysisConfig())

    assert decoded.shape == (20, 30, 3)


def test_decode_rejects_format_outside_allow_list() -> None:
    with pytest.raises(DecodeError) as excinfo:
        decode_image(b"GIF89a\x01\x00\x01\x00", AnalysisConfig(), "animation.gif")

    assert excinfo.value.client_error
    assert excinfo.value.supported_formats == ("jpg", "jpeg", "png", "bmp")
    assert "jpg, jpeg, png, bmp" in str(excinfo.value)


def test_decode_accepts_jpeg_spelling_when_only_jpg_allowed(uniform_image: np.ndarray) -> None:
    config = AnalysisConfig(supported_formats=("jpg",))

    decoded = decode_image(encode(uniform_image, ".jpg"), config, "photo.jpeg")

    assert decoded.shape == (100, 100, 3)


def test_decode_rejects_unparseable_bytes() -> None:
    with pytest.raises(DecodeError):
        decode_image(b"definitely not a png", AnalysisConfig(), "broken.png")


def test_decode_rejects_unknown_signature_without_filename() -> None:
    with pytest.raises(DecodeError):
        decode_image(b"\x00\x01\x02\x03", AnalysisConfig())


def test_png_encoding_is_lossless(stroke_image: np.ndarray) -> None:
    encoded = encode_image(stroke_image, "png")

    restored = cv2.imdecode(np.frombuffer(encoded, dtype=np.uint8), cv2.IMREAD_COLOR)
    assert np.array_equal(restored, stroke_image)


def test_encode_rejects_unknown_format(uniform_image: np.ndarray) -> None:
    with pytest.raises(EncodingError):
        encode_image(uniform_image, "xyz")


def test_to_base64_is_transport_safe() -> None:
    assert base64.b64decode(to_base64(b"\x00\xffabc")) == b"\x00\xffabc"
