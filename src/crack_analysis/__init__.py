"""Top-level package for crack analysis utilities."""

__version__ = "1.0.0"

from .config import AnalysisConfig
from .errors import CrackAnalysisError, DecodeError, EncodingError, InputError, ProcessingError
from .pipeline import CrackAnalyzer, analyze
from .results import AnalysisResult, CrackRegion, Severity

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "CrackAnalysisError",
    "CrackAnalyzer",
    "CrackRegion",
    "DecodeError",
    "EncodingError",
    "InputError",
    "ProcessingError",
    "Severity",
    "analyze",
]
