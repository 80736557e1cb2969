"""Configuration objects used across the crack analysis package."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple

from .errors import ConfigurationError

ENV_PREFIX = "CRACK_ANALYSIS_"

# cv2 spellings that name the same codec.
FORMAT_ALIASES = {"jpeg": "jpg", "tif": "tiff"}


class AdaptiveThresholdMode(str, Enum):
    """How the adaptive threshold branch of preprocessing is used."""

    OFF = "off"
    COMPUTE = "compute"
    MERGE = "merge"


def normalize_format(fmt: str) -> str:
    """Lowercase a format name or file extension and strip its leading dot."""

    return fmt.strip().lower().lstrip(".")


@dataclass(frozen=True, slots=True)
class AnalysisConfig:
    """Immutable parameters for one crack analysis run."""

    threshold_offset: int = 127
    threshold_block_size: int = 100
    blur_kernel_size: int = 5
    gaussian_sigma: float = 2.0
    canny_low_threshold: int = 50
    canny_high_threshold: int = 150
    morphology_kernel_size: int = 3
    dilation_iterations: int = 2
    erosion_iterations: int = 1
    min_crack_area: int = 100
    supported_formats: Tuple[str, ...] = ("jpg", "jpeg", "png", "bmp")
    output_format: str = "png"
    processing_threads: int = 4
    adaptive_threshold: AdaptiveThresholdMode = AdaptiveThresholdMode.OFF

    def __post_init__(self) -> None:
        formats = self.supported_formats
        if isinstance(formats, str):
            formats = formats.split(",")
        normalized = tuple(dict.fromkeys(normalize_format(fmt) for fmt in formats if fmt.strip()))
        object.__setattr__(self, "supported_formats", normalized)
        object.__setattr__(self, "output_format", normalize_format(self.output_format))
        object.__setattr__(self, "adaptive_threshold", AdaptiveThresholdMode(self.adaptive_threshold))
        if self.processing_threads < 1:
            raise ConfigurationError("processing_threads must be at least 1")

    def is_supported_format(self, fmt: str) -> bool:
        """Case-insensitive membership test against the allow-list."""

        return normalize_format(fmt) in self.supported_formats

    def with_overrides(self, **overrides: Any) -> "AnalysisConfig":
        """Return a copy with the non-``None`` overrides applied."""

        applied = {key: value for key, value in overrides.items() if value is not None}
        if not applied:
            return self
        return replace(self, **applied)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AnalysisConfig":
        """Build a config from loosely typed values such as env vars or form fields."""

        known = {f.name for f in fields(cls)}
        kwargs = {}
        for raw_key, raw_value in values.items():
            key = raw_key.strip().lower()
            if key not in known:
                raise ConfigurationError(f"unknown configuration option: {raw_key}")
            kwargs[key] = _coerce(key, raw_value)
        try:
            return cls(**kwargs)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AnalysisConfig":
        """Read ``CRACK_ANALYSIS_*`` variables, ignoring unrelated ones."""

        environ = os.environ if environ is None else environ
        known = {f.name for f in fields(cls)}
        values = {}
        for name, value in environ.items():
            if not name.startswith(ENV_PREFIX):
                continue
            key = name[len(ENV_PREFIX) :].lower()
            if key in known:
                values[key] = value
        return cls.from_mapping(values)


def _coerce(key: str, raw: Any) -> Any:
    default = getattr(_DEFAULTS, key)
    if not isinstance(raw, str):
        return raw
    text = raw.strip()
    try:
        if isinstance(default, AdaptiveThresholdMode):
            return AdaptiveThresholdMode(text.lower())
        if isinstance(default, int):
            return int(text)
        if isinstance(default, float):
            return float(text)
        if isinstance(default, tuple):
            return tuple(_split_list(text))
    except ValueError as exc:
        raise ConfigurationError(f"invalid value for {key}: {raw!r}") from exc
    return text


def _split_list(text: str) -> Iterable[str]:
    return (part for part in text.split(",") if part.strip())


_DEFAULTS = AnalysisConfig()
