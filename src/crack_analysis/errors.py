"""Exception hierarchy raised by the crack analysis pipeline."""

from __future__ import annotations

from typing import Iterable, Optional


class CrackAnalysisError(Exception):
    """Base class for every failure surfaced by an analysis run."""

    client_error = False
    public_message = "Failed to process image"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        """Message suitable for returning to the caller."""

        if self.client_error:
            return self.message
        return self.public_message


class InputError(CrackAnalysisError):
    """The payload is empty or missing."""

    client_error = True


class DecodeError(CrackAnalysisError):
    """The payload is not a decodable image of an allowed format."""

    client_error = True

    def __init__(self, message: str, supported_formats: Optional[Iterable[str]] = None) -> None:
        self.supported_formats = tuple(supported_formats or ())
        if self.supported_formats:
            message = f"{message} (supported formats: {', '.join(self.supported_formats)})"
        super().__init__(message)


class ProcessingError(CrackAnalysisError):
    """Internal failure while preprocessing, extracting or measuring."""

    public_message = "Failed to process image"


class EncodingError(CrackAnalysisError):
    """The annotated image could not be serialized."""

    public_message = "Failed to encode the processed image"


class ConfigurationError(ValueError):
    """An option set could not be turned into a valid configuration."""
