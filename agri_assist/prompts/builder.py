"""
Prompt template builder: turns a validated flow request into a
provider-agnostic GenerationRequest.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Type

from pydantic import BaseModel

from ..domain.audio import parse_data_uri
from ..domain.errors import FlowValidationError
from ..schemas import (
    AdvisoryCalendarRequest,
    CropDiagnosisRequest,
    FlowRequestBase,
    GenerationRequest,
    MarketForecastAnswer,
    MarketForecastRequest,
    SchemeAnswer,
    SchemeNavigationRequest,
    TranscriptionRequest,
    VoiceInteractionRequest,
)
from . import flow_prompts as P


_DATA_URI_FIELDS = {"image_ref", "audio_ref"}


def language_directive(language: str) -> str:
    return P.LANGUAGE_DIRECTIVE.format(language=language)


def list_missing_fields(request: FlowRequestBase) -> List[str]:
    missing: List[str] = []
    for name in request.required_fields:
        value = getattr(request, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def validate_request(request: FlowRequestBase) -> None:
    """Raise FlowValidationError when a required field is absent or malformed."""
    missing = list_missing_fields(request)
    if missing:
        raise FlowValidationError(
            f"{request.flow} request is missing required fields: {', '.join(missing)}",
            missing,
        )
    for name in _DATA_URI_FIELDS.intersection(request.required_fields):
        try:
            parse_data_uri(getattr(request, name))
        except FlowValidationError as exc:
            raise FlowValidationError(f"{name}: {exc}", [name]) from exc
    if isinstance(request, AdvisoryCalendarRequest) and request.parsed_sowing_date() is None:
        raise FlowValidationError(
            f"sowing_date must be YYYY-MM-DD, got {request.sowing_date!r}",
            ["sowing_date"],
        )


def build_generation_request(
    request: FlowRequestBase,
    *,
    schema: Type[BaseModel],
    tools: Sequence[str] = (),
) -> GenerationRequest:
    validate_request(request)
    language = request.language.strip()
    directive = language_directive(language)
    media: Iterable[str] = ()
    role = "chat"

    if isinstance(request, CropDiagnosisRequest):
        system_prompt = P.DIAGNOSIS_SYSTEM_PROMPT
        instructions = P.DIAGNOSIS_TEMPLATE.format(language_directive=directive)
        media = (request.image_ref,)
        role = "vision"
    elif isinstance(request, MarketForecastRequest):
        system_prompt = P.FORECAST_SYSTEM_PROMPT
        instructions = P.FORECAST_TEMPLATE.format(
            crop=request.crop,
            location=request.location,
            language_directive=directive,
        )
    elif isinstance(request, SchemeNavigationRequest):
        system_prompt = P.SCHEME_SYSTEM_PROMPT
        instructions = P.SCHEME_TEMPLATE.format(
            query=request.query, language_directive=directive
        )
    elif isinstance(request, AdvisoryCalendarRequest):
        system_prompt = P.CALENDAR_SYSTEM_PROMPT
        instructions = P.CALENDAR_TEMPLATE.format(
            crop=request.crop,
            location=request.location,
            sowing_date=request.sowing_date,
            language=language,
            language_directive=directive,
        )
    else:
        raise FlowValidationError(
            f"no generation template for flow {request.flow!r}", ["flow"]
        )

    return GenerationRequest(
        instructions=instructions,
        response_schema=schema,
        language=language,
        media_refs=tuple(media),
        tools=tuple(tools),
        system_prompt=system_prompt,
        role=role,
        metadata=request.model_dump(exclude=_DATA_URI_FIELDS, exclude_none=True),
    )


def build_voice_request(
    transcribed_text: str,
    language: str,
    *,
    schema: Type[BaseModel],
) -> GenerationRequest:
    return GenerationRequest(
        instructions=P.VOICE_TEMPLATE.format(
            transcribed_text=transcribed_text,
            language_directive=language_directive(language),
        ),
        response_schema=schema,
        language=language,
        system_prompt=P.VOICE_SYSTEM_PROMPT,
        metadata={"flow": "voice_interaction", "transcribed_text": transcribed_text},
    )


def build_transcription_prompt(
    request: TranscriptionRequest | VoiceInteractionRequest,
) -> str:
    topic = P.SCHEME_TRANSCRIPTION_TOPIC if isinstance(request, TranscriptionRequest) else ""
    return P.TRANSCRIPTION_TEMPLATE.format(topic=topic, language=request.language)


def build_forecast_rewrite(answer: MarketForecastAnswer, language: str) -> GenerationRequest:
    return GenerationRequest(
        instructions=P.FORECAST_REWRITE_TEMPLATE.format(
            forecast=answer.forecast,
            suggestion=answer.suggestion,
            language_directive=language_directive(language),
        ),
        response_schema=MarketForecastAnswer,
        language=language,
        system_prompt=P.FORECAST_REWRITE_SYSTEM_PROMPT,
        role="rewrite",
        metadata={"stage": "rewrite", "answer": answer.model_dump()},
    )


def build_scheme_rewrite(answer: SchemeAnswer, language: str) -> GenerationRequest:
    return GenerationRequest(
        instructions=P.SCHEME_REWRITE_TEMPLATE.format(
            answer=answer.answer,
            language_directive=language_directive(language),
        ),
        response_schema=SchemeAnswer,
        language=language,
        system_prompt=P.SCHEME_REWRITE_SYSTEM_PROMPT,
        role="rewrite",
        metadata={"stage": "rewrite", "answer": answer.model_dump()},
    )
