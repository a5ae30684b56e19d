from __future__ import annotations

from typing import Any, Dict

from ...domain.enums import FlowName
from ...domain.errors import TranscriptionError
from ...infra.config import AppConfig
from ...observability.logging_utils import log_warning
from ...prompts import build_transcription_prompt
from ...prompts.flow_prompts import TRANSCRIPTION_RETRY_MESSAGE
from ...schemas import TranscriptionAnswer, TranscriptionRequest
from .pipeline import FlowServices, FlowSpec
from .state import PipelineState


def transcribe_query(services: FlowServices, state: PipelineState) -> Dict[str, Any]:
    request: TranscriptionRequest = state["request"]
    try:
        text = services.model_client.transcribe_audio(
            request.audio_ref, state["language"], build_transcription_prompt(request)
        )
    except TranscriptionError as exc:
        if request.strict:
            raise
        log_warning(
            "transcription_empty", flow=FlowName.TRANSCRIBE_QUERY.value, error=str(exc)
        )
        return {
            "answer": TranscriptionAnswer(transcribed_text=""),
            "transcribed_text": "",
            "message": TRANSCRIPTION_RETRY_MESSAGE,
        }
    return {"answer": TranscriptionAnswer(transcribed_text=text), "transcribed_text": text}


def build_transcription_spec(config: AppConfig) -> FlowSpec:
    return FlowSpec(
        name=FlowName.TRANSCRIBE_QUERY.value,
        description="Transcribe a spoken government-scheme question to text.",
        request_model=TranscriptionRequest,
        answer_schema=TranscriptionAnswer,
        generator=transcribe_query,
    )
