"""
Model invocation client: the three capabilities the flows need from a model
provider (structured generation, speech-to-text, text-to-speech).
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from openai import OpenAI, OpenAIError
from pydantic import BaseModel

from ..agent.tool_loop import run_structured_generation, validate_answer
from ..agent.tools import MARKET_PRICE_TOOL, SCHEME_INFO_TOOL, build_tools
from ..domain.audio import decode_wav, is_silent_pcm, parse_data_uri
from ..domain.errors import (
    EncodingError,
    GenerationError,
    SynthesisError,
    TranscriptionError,
)
from ..domain.languages import language_code
from ..observability.logging_utils import log_event, summarize_text
from ..schemas import (
    AdvisoryCalendarAnswer,
    CropDiagnosisAnswer,
    GenerationRequest,
    MarketForecastAnswer,
    SchemeAnswer,
    VoiceAnswer,
    VoiceProfile,
)
from .config import AppConfig
from .llm import get_audio_client, get_chat_model


# speech endpoint input limit is 4096 characters
SPEECH_CHUNK_CHARS = 4000
_SENTENCE_END_RE = re.compile(r"(?<=[.!?।])\s+")
_AUDIO_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "audio/flac": "flac",
}


class ModelClient(ABC):
    @abstractmethod
    def generate_structured(self, request: GenerationRequest) -> BaseModel:
        """Return an instance of `request.response_schema` or raise GenerationError."""

    @abstractmethod
    def transcribe_audio(
        self, audio_ref: str, language_hint: str, prompt: Optional[str] = None
    ) -> str:
        """Return the spoken text; raise TranscriptionError when nothing was heard."""

    @abstractmethod
    def synthesize_speech(self, text: str, voice: VoiceProfile) -> bytes:
        """Return raw 16-bit little-endian PCM or raise SynthesisError."""


def split_for_speech(text: str, limit: int = SPEECH_CHUNK_CHARS) -> List[str]:
    """Split long text at sentence boundaries into pieces no longer than `limit`."""
    text = (text or "").strip()
    if len(text) <= limit:
        return [text] if text else []
    chunks: List[str] = []
    current = ""
    for sentence in _SENTENCE_END_RE.split(text):
        while len(sentence) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(sentence[:limit])
            sentence = sentence[limit:]
        candidate = f"{current} {sentence}".strip() if current else sentence
        if len(candidate) > limit:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def build_messages(request: GenerationRequest) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    if request.system_prompt:
        messages.append(SystemMessage(content=request.system_prompt))
    if request.media_refs:
        content: List[Dict[str, object]] = [{"type": "text", "text": request.instructions}]
        for ref in request.media_refs:
            content.append({"type": "image_url", "image_url": {"url": ref}})
        messages.append(HumanMessage(content=content))
    else:
        messages.append(HumanMessage(content=request.instructions))
    return messages


class OpenAIModelClient(ModelClient):
    def __init__(
        self,
        config: AppConfig,
        *,
        chat_models: Optional[Dict[str, BaseChatModel]] = None,
        audio_client: Optional[OpenAI] = None,
    ) -> None:
        self._config = config
        self._chat_models: Dict[str, BaseChatModel] = dict(chat_models or {})
        self._audio_client = audio_client

    def _chat_model(self, role: str) -> BaseChatModel:
        model = self._chat_models.get(role)
        if model is None:
            name = {
                "vision": self._config.vision_model,
                "rewrite": self._config.rewrite_model,
            }.get(role, self._config.chat_model)
            model = get_chat_model(self._config, model=name)
            self._chat_models[role] = model
        return model

    def _audio(self) -> OpenAI:
        if self._audio_client is None:
            self._audio_client = get_audio_client(self._config)
        return self._audio_client

    def generate_structured(self, request: GenerationRequest) -> BaseModel:
        tools = build_tools(self._config, request.tool_names)
        log_event(
            "generation_start",
            schema=request.response_schema.__name__,
            role=request.role,
            language=request.language,
            tools=request.tool_names,
            media=len(request.media_refs),
            instructions=summarize_text(request.instructions),
        )
        try:
            return run_structured_generation(
                self._chat_model(request.role),
                build_messages(request),
                request.response_schema,
                tools,
                max_rounds=self._config.max_tool_rounds,
            )
        except OpenAIError as exc:
            raise GenerationError(f"model call failed: {exc}") from exc

    def transcribe_audio(
        self, audio_ref: str, language_hint: str, prompt: Optional[str] = None
    ) -> str:
        mime_type, audio = parse_data_uri(audio_ref)
        extension = _AUDIO_EXTENSIONS.get(mime_type.lower(), "webm")
        kwargs = {
            "model": self._config.transcription_model,
            "file": (f"speech.{extension}", audio, mime_type),
            "timeout": self._config.transcription_timeout_seconds,
        }
        code = language_code(language_hint)
        if code:
            kwargs["language"] = code
        if prompt:
            kwargs["prompt"] = prompt
        try:
            result = self._audio().audio.transcriptions.create(**kwargs)
        except OpenAIError as exc:
            raise TranscriptionError(f"transcription failed: {exc}") from exc
        text = (getattr(result, "text", "") or "").strip()
        log_event("transcription", bytes=len(audio), text=summarize_text(text))
        if not text:
            raise TranscriptionError("no speech recognized in the audio")
        return text

    def synthesize_speech(self, text: str, voice: VoiceProfile) -> bytes:
        chunks = split_for_speech(text)
        if not chunks:
            raise SynthesisError("nothing to synthesize")
        # one deadline for the whole stage, shared across chunks
        deadline = time.monotonic() + self._config.synthesis_timeout_seconds
        pcm = bytearray()
        for chunk in chunks:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise SynthesisError(
                    f"speech synthesis exceeded {self._config.synthesis_timeout_seconds:g}s"
                )
            kwargs = {
                "model": self._config.tts_model,
                "voice": voice.voice,
                "input": chunk,
                "response_format": "pcm",
                "timeout": remaining,
            }
            if voice.instructions and not self._config.tts_model.startswith("tts-1"):
                kwargs["instructions"] = voice.instructions
            try:
                response = self._audio().audio.speech.create(**kwargs)
            except OpenAIError as exc:
                raise SynthesisError(f"speech synthesis failed: {exc}") from exc
            pcm.extend(response.content)
        if not pcm:
            raise SynthesisError("speech synthesis returned no audio")
        log_event("synthesis", chunks=len(chunks), pcm_bytes=len(pcm))
        return bytes(pcm)


class MockModelClient(ModelClient):
    """
    Offline client with canned, schema-valid answers.

    Tool-bearing requests still call the registered lookup tools so the
    configured data providers are exercised end to end.
    """

    SILENT_PCM_BYTES = 24000

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    def generate_structured(self, request: GenerationRequest) -> BaseModel:
        meta = request.metadata
        schema = request.response_schema
        if meta.get("stage") == "rewrite":
            return validate_answer(schema, meta.get("answer"))
        tools = {tool.name: tool for tool in build_tools(self._config, request.tool_names)}

        if schema is CropDiagnosisAnswer:
            payload = {
                "plantName": "Tomato",
                "diagnosis": "Early blight (Alternaria solani)",
                "remedies": (
                    "Remove and destroy infected lower leaves, avoid overhead "
                    "irrigation and spray a protective fungicide every 7-10 days."
                ),
                "productSuggestions": [
                    {
                        "name": "Mancozeb 75% WP",
                        "type": "Fungicide",
                        "description": "Contact fungicide that protects leaves from blight spores.",
                    },
                    {
                        "name": "Neem Oil 1500 ppm",
                        "type": "Organic",
                        "description": "Organic spray that slows the spread of leaf spots.",
                    },
                ],
            }
        elif schema is MarketForecastAnswer:
            crop = meta.get("crop", "")
            location = meta.get("location", "")
            forecast = f"Prices for {crop} in {location} are expected to stay steady."
            if MARKET_PRICE_TOOL in tools:
                result = tools[MARKET_PRICE_TOOL].invoke({"crop": crop, "location": location})
                if result.get("found"):
                    forecast = (
                        f"The current modal price of {crop} in {location} is about "
                        f"Rs. {result['price']:.0f} per {result['unit']} and is expected "
                        "to rise slightly over the next two weeks."
                    )
            payload = {
                "forecast": forecast,
                "suggestion": "Hold part of the harvest and sell in smaller lots as prices firm up.",
            }
        elif schema is SchemeAnswer:
            query = meta.get("query", "")
            answer = f"Please contact your local agriculture office about: {query}"
            if SCHEME_INFO_TOOL in tools:
                answer = tools[SCHEME_INFO_TOOL].invoke({"query": query})["summary"]
            payload = {"answer": answer}
        elif schema is AdvisoryCalendarAnswer:
            payload = {"schedule": self._calendar(meta)}
        elif schema is VoiceAnswer:
            heard = meta.get("transcribed_text", "")
            payload = {
                "responseText": (
                    f'You asked: "{heard}". Please check soil moisture before '
                    "irrigating and contact your local agriculture officer for details."
                )
            }
        else:
            raise GenerationError(f"mock client has no answer for {schema.__name__}")
        log_event("mock_generation", schema=schema.__name__, language=request.language)
        return validate_answer(schema, payload)

    @staticmethod
    def _calendar(meta: Dict[str, object]) -> List[Dict[str, str]]:
        crop = meta.get("crop", "the crop")
        try:
            sown = date.fromisoformat(str(meta.get("sowing_date")))
        except ValueError:
            sown = None

        def week(n: int) -> str:
            label = f"Week {n}"
            if sown is None:
                return label
            return f"{label} ({(sown + timedelta(weeks=n - 1)).isoformat()})"

        return [
            {
                "week": week(1),
                "title": "Field preparation and sowing",
                "description": f"Prepare a fine seedbed and apply farmyard manure before sowing {crop}.",
                "category": "Preparation",
            },
            {
                "week": week(3),
                "title": "First top dressing",
                "description": "Apply 25 kg urea per acre near the root zone and irrigate lightly.",
                "category": "Fertilizer",
            },
            {
                "week": week(6),
                "title": "Pest scouting",
                "description": "Check for leaf miners and aphids; spray neem oil at 5 ml per litre if seen.",
                "category": "Pest Control",
            },
            {
                "week": week(14),
                "title": "Harvest",
                "description": "Harvest at physiological maturity in dry weather.",
                "category": "Harvesting",
            },
        ]

    def transcribe_audio(
        self, audio_ref: str, language_hint: str, prompt: Optional[str] = None
    ) -> str:
        mime_type, audio = parse_data_uri(audio_ref)
        pcm = audio
        if "wav" in mime_type:
            try:
                pcm = decode_wav(audio).pcm
            except EncodingError:
                pcm = audio
        if is_silent_pcm(pcm):
            raise TranscriptionError("no speech recognized in the audio")
        if prompt and "government schemes" in prompt:
            return "How can I apply for the PM-KISAN scheme?"
        return "When should I irrigate my tomato crop?"

    def synthesize_speech(self, text: str, voice: VoiceProfile) -> bytes:
        if not (text or "").strip():
            raise SynthesisError("nothing to synthesize")
        return bytes(self.SILENT_PCM_BYTES)


def get_model_client(config: AppConfig) -> ModelClient:
    if config.llm_provider == "mock":
        return MockModelClient(config)
    if config.llm_provider == "openai":
        return OpenAIModelClient(config)
    raise ValueError(f"unsupported LLM_PROVIDER: {config.llm_provider!r}")
