from __future__ import annotations

from typing import List, Optional


class AgriAssistError(Exception):
    """Base class for every error raised by a flow stage."""


class FlowValidationError(AgriAssistError, ValueError):
    """Raised when a request lacks a field its flow requires."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None):
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])


class GenerationError(AgriAssistError):
    """No usable structured answer came back from the generation capability."""


class TranscriptionError(AgriAssistError):
    """Speech-to-text produced no text; the audio is treated as inaudible."""


class SynthesisError(AgriAssistError):
    """Text-to-speech unavailable, commonly quota exhaustion or a timeout."""


class ExternalAgentError(AgriAssistError):
    """The external domain agent answered with a non-2xx status or not at all."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EncodingError(AgriAssistError):
    """Writing the WAV container failed."""


class FlowTimeoutError(AgriAssistError):
    """The whole request exceeded the caller-level deadline; partial results are discarded."""
