from .builder import (
    build_forecast_rewrite,
    build_generation_request,
    build_scheme_rewrite,
    build_transcription_prompt,
    build_voice_request,
    language_directive,
    list_missing_fields,
    validate_request,
)

__all__ = [
    "build_forecast_rewrite",
    "build_generation_request",
    "build_scheme_rewrite",
    "build_transcription_prompt",
    "build_voice_request",
    "language_directive",
    "list_missing_fields",
    "validate_request",
]
