"""
Voice-first interaction: transcription, then general reasoning or scheme
navigation, then speech. Inaudible audio short-circuits to a fixed apology
that is still spoken.
"""

from __future__ import annotations

from typing import Any, Dict

from ...domain.enums import FlowName
from ...domain.errors import TranscriptionError
from ...domain.summaries import voice_speech
from ...infra.config import AppConfig
from ...observability.logging_utils import log_event, log_warning, summarize_text
from ...prompts import build_scheme_rewrite, build_transcription_prompt, build_voice_request
from ...prompts.flow_prompts import TRANSCRIPTION_RETRY_MESSAGE, VOICE_APOLOGY_TEXT
from ...schemas import (
    FlowRequestBase,
    SchemeNavigationRequest,
    VoiceAnswer,
    VoiceInteractionRequest,
)
from .pipeline import FlowServices, FlowSpec, rewrite_answer
from .scheme_navigation import generate_scheme_answer
from .state import PipelineState


VOICE_MODES = ("general", "scheme")


def prepare_voice_request(request: FlowRequestBase, config: AppConfig) -> FlowRequestBase:
    updates: Dict[str, Any] = {}
    if not (request.language or "").strip():
        updates["language"] = config.voice_default_language
    if request.mode is None:
        updates["mode"] = config.voice_reasoning_mode
    return request.model_copy(update=updates) if updates else request


def generate_voice_reply(services: FlowServices, state: PipelineState) -> Dict[str, Any]:
    request: VoiceInteractionRequest = state["request"]
    language = state["language"]
    flow = FlowName.VOICE_INTERACTION.value
    try:
        heard = services.model_client.transcribe_audio(
            request.audio_ref, language, build_transcription_prompt(request)
        )
    except TranscriptionError as exc:
        log_warning("transcription_empty", flow=flow, error=str(exc))
        return {
            "answer": VoiceAnswer(response_text=VOICE_APOLOGY_TEXT),
            "transcribed_text": "",
            "message": TRANSCRIPTION_RETRY_MESSAGE,
        }
    log_event("voice_transcribed", mode=request.mode, text=summarize_text(heard))

    if request.mode == "scheme":
        scheme_request = SchemeNavigationRequest(query=heard, language=language)
        answer = generate_scheme_answer(
            services, scheme_request, services.config.scheme_navigation_mode
        )
        friendly = rewrite_answer(services, flow, answer, language, build_scheme_rewrite)
        reply = (friendly or answer).answer
    else:
        reply = services.model_client.generate_structured(
            build_voice_request(heard, language, schema=VoiceAnswer)
        ).response_text
    return {"answer": VoiceAnswer(response_text=reply), "transcribed_text": heard}


def build_voice_interaction_spec(config: AppConfig) -> FlowSpec:
    if config.voice_reasoning_mode not in VOICE_MODES:
        raise ValueError(
            f"unsupported VOICE_REASONING_MODE: {config.voice_reasoning_mode!r}"
        )
    return FlowSpec(
        name=FlowName.VOICE_INTERACTION.value,
        description=(
            "Spoken question in, spoken answer out; general farming help or "
            "government scheme navigation."
        ),
        request_model=VoiceInteractionRequest,
        answer_schema=VoiceAnswer,
        generator=generate_voice_reply,
        speech_summary=voice_speech,
        prepare=prepare_voice_request,
        mode=config.voice_reasoning_mode,
    )
