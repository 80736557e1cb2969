"""Pipeline orchestration for a single crack analysis run."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

import numpy as np

from .codec import decode_image, encode_image
from .config import AnalysisConfig
from .detector import ContourRegionExtractor, RegionExtractor
from .errors import CrackAnalysisError, DecodeError, EncodingError, InputError, ProcessingError
from .metrics import compute_metrics
from .preprocessing import PreprocessedImage, preprocess
from .results import AnalysisResult
from .visualization import annotate_regions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageBuffers:
    """Scope owning the intermediate buffers of one run.

    Stages read their inputs back through the scope, so once it exits the
    buffers registered with :meth:`hold` have no other owner in the run.
    They are dropped exactly once, whether the run finished or a stage raised.
    """

    def __init__(self) -> None:
        self._buffers: Dict[str, Any] = {}
        self.released = False

    def hold(self, name: str, buffer: T) -> T:
        if self.released:
            raise RuntimeError("buffer scope already released")
        self._buffers[name] = buffer
        return buffer

    def __getitem__(self, name: str) -> Any:
        return self._buffers[name]

    def __contains__(self, name: str) -> bool:
        return name in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    def release(self) -> None:
        if self.released:
            return
        self._buffers.clear()
        self.released = True

    def __enter__(self) -> "StageBuffers":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


@dataclass(slots=True)
class PipelineArtifact:
    """Intermediate images handed to the caller alongside the result."""

    original: np.ndarray
    preprocessed: PreprocessedImage
    annotated: np.ndarray
    result: AnalysisResult


class CrackAnalyzer:
    """Coordinate decoding, preprocessing, extraction, metrics, annotation and encoding."""

    def __init__(self, config: Optional[AnalysisConfig] = None, extractor: Optional[RegionExtractor] = None) -> None:
        self._config = config or AnalysisConfig()
        self._extractor = extractor or ContourRegionExtractor(self._config)

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    def analyze(self, data: Optional[bytes], filename: Optional[str] = None) -> AnalysisResult:
        """Analyze one encoded image and return its structured result."""

        result, _ = self._run(data, filename, keep_artifacts=False)
        return result

    def inspect(self, data: Optional[bytes], filename: Optional[str] = None) -> PipelineArtifact:
        """Like :meth:`analyze` but also hand over the intermediate images."""

        _, artifact = self._run(data, filename, keep_artifacts=True)
        if artifact is None:
            raise ProcessingError("pipeline finished without keeping its artifacts")
        return artifact

    def _run(
        self, data: Optional[bytes], filename: Optional[str], keep_artifacts: bool
    ) -> Tuple[AnalysisResult, Optional[PipelineArtifact]]:
        if not data:
            raise InputError("Please upload an image file")

        started = time.perf_counter()
        config = self._config
        artifact = None
        with StageBuffers() as buffers:
            buffers.hold("original", _stage("decode", DecodeError, decode_image, data, config, filename))
            height, width = buffers["original"].shape[:2]
            buffers.hold("preprocessed", _stage("preprocess", ProcessingError, preprocess, buffers["original"], config))
            regions = _stage("extract", ProcessingError, self._extractor.extract, buffers["preprocessed"].mask)
            metrics = _stage("metrics", ProcessingError, compute_metrics, regions, width, height)
            buffers.hold(
                "annotated", _stage("annotate", ProcessingError, annotate_regions, buffers["original"], regions)
            )
            encoded = _stage("encode", EncodingError, encode_image, buffers["annotated"], config.output_format)

            elapsed_ms = int(round((time.perf_counter() - started) * 1000))
            result = AnalysisResult(
                cracks_detected=bool(regions),
                crack_count=len(regions),
                total_crack_area=metrics.total_area,
                crack_percentage=metrics.crack_percentage,
                severity=metrics.severity,
                crack_regions=tuple(regions),
                processed_image=encoded,
                processing_time_ms=elapsed_ms,
            )
            if keep_artifacts:
                artifact = PipelineArtifact(
                    original=buffers["original"],
                    preprocessed=buffers["preprocessed"],
                    annotated=buffers["annotated"],
                    result=result,
                )

        logger.info(
            "Analyzed %dx%d image: %d regions, %.4f%% coverage, severity=%s in %d ms",
            width,
            height,
            result.crack_count,
            result.crack_percentage,
            result.severity.value,
            result.processing_time_ms,
        )
        return result, artifact


def _stage(name: str, error: Type[CrackAnalysisError], func: Callable[..., T], *args: Any) -> T:
    """Run one stage, converting unexpected failures into the stage's error type."""

    logger.debug("Running %s stage", name)
    try:
        return func(*args)
    except CrackAnalysisError:
        raise
    except Exception as exc:
        logger.exception("%s stage failed", name)
        raise error(f"{name} stage failed: {exc}") from exc


def analyze(image_bytes: Optional[bytes], config: AnalysisConfig, filename: Optional[str] = None) -> AnalysisResult:
    """Analyze ``image_bytes`` with ``config``; raises a ``CrackAnalysisError`` on failure."""

    return CrackAnalyzer(config).analyze(image_bytes, filename)
