from __future__ import annotations

from datetime import date
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)
from pydantic.alias_generators import to_camel

from ..domain.audio import WAV_MIME_TYPE, to_data_uri
from ..domain.enums import EventCategory, ProductType
from ..domain.normalizers import EnumNormalizer


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------- requests


class FlowRequestBase(ApiModel):
    """
    Fields are optional at parse time; each flow checks its own
    `required_fields` before any model call so a missing field surfaces as a
    FlowValidationError naming it.
    """

    required_fields: ClassVar[Tuple[str, ...]] = ("language",)

    language: Optional[str] = Field(
        default=None, description="Natural language the answer must be written in."
    )


class CropDiagnosisRequest(FlowRequestBase):
    required_fields: ClassVar[Tuple[str, ...]] = ("image_ref", "language")

    flow: Literal["crop_diagnosis"] = "crop_diagnosis"
    image_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("imageRef", "image_ref", "photoDataUri"),
        description="Plant photo as data:<mime>;base64,<payload>.",
    )


class MarketForecastRequest(FlowRequestBase):
    required_fields: ClassVar[Tuple[str, ...]] = ("crop", "location", "language")

    flow: Literal["market_forecast"] = "market_forecast"
    crop: Optional[str] = None
    location: Optional[str] = Field(
        default=None, description="Market location or state, e.g. 'Karnataka'."
    )


class SchemeNavigationRequest(FlowRequestBase):
    required_fields: ClassVar[Tuple[str, ...]] = ("query", "language")

    flow: Literal["scheme_navigation"] = "scheme_navigation"
    query: Optional[str] = None


class AdvisoryCalendarRequest(FlowRequestBase):
    required_fields: ClassVar[Tuple[str, ...]] = (
        "crop",
        "location",
        "sowing_date",
        "language",
    )

    flow: Literal["advisory_calendar"] = "advisory_calendar"
    crop: Optional[str] = None
    location: Optional[str] = Field(
        default=None, description="e.g. 'Kolar, Karnataka'."
    )
    sowing_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")

    def parsed_sowing_date(self) -> Optional[date]:
        if not self.sowing_date:
            return None
        try:
            return date.fromisoformat(self.sowing_date.strip())
        except ValueError:
            return None


class VoiceInteractionRequest(FlowRequestBase):
    required_fields: ClassVar[Tuple[str, ...]] = ("audio_ref", "language")

    flow: Literal["voice_interaction"] = "voice_interaction"
    audio_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("audioRef", "audio_ref", "audioDataUri"),
    )
    mode: Optional[Literal["general", "scheme"]] = Field(
        default=None,
        description="Reasoning stage after transcription; defaults to configuration.",
    )


class TranscriptionRequest(FlowRequestBase):
    required_fields: ClassVar[Tuple[str, ...]] = ("audio_ref", "language")

    flow: Literal["transcribe_query"] = "transcribe_query"
    audio_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("audioRef", "audio_ref", "audioDataUri"),
    )
    strict: bool = Field(
        default=False,
        description="Fail with 422 instead of returning an empty transcription.",
    )


FlowRequest = Annotated[
    Union[
        CropDiagnosisRequest,
        MarketForecastRequest,
        SchemeNavigationRequest,
        AdvisoryCalendarRequest,
        VoiceInteractionRequest,
        TranscriptionRequest,
    ],
    Field(discriminator="flow"),
]


# ---------------------------------------------------------------- answers


class ProductSuggestion(ApiModel):
    name: NonEmptyStr = Field(description="Commercial name of the suggested product.")
    type: ProductType = Field(description="Kind of product.")
    description: NonEmptyStr = Field(
        description="Why this product is recommended for the diagnosed problem."
    )

    @field_validator("type", mode="before")
    @classmethod
    def _norm_type(cls, v):
        return EnumNormalizer.normalize(ProductType, v)


class CropDiagnosisAnswer(ApiModel):
    """Diagnosis of a plant photo."""

    plant_name: NonEmptyStr = Field(description="Common name of the identified plant.")
    diagnosis: NonEmptyStr = Field(description="The disease or pest affecting the plant.")
    remedies: NonEmptyStr = Field(
        description="Clear, actionable remedies the farmer should apply."
    )
    product_suggestions: List[ProductSuggestion] = Field(
        ...,
        min_length=1,
        description="2-3 commercially available products (insecticides, fungicides, ...).",
    )


class MarketForecastAnswer(ApiModel):
    """Price outlook for one crop in one market."""

    forecast: NonEmptyStr = Field(
        description="Market price forecast for the crop and location."
    )
    suggestion: NonEmptyStr = Field(
        description="Selling suggestion based on the forecast."
    )


class SchemeAnswer(ApiModel):
    """Answer about a government scheme."""

    answer: NonEmptyStr = Field(
        description=(
            "Answer covering benefits, eligibility and, for application "
            "questions, the application steps."
        )
    )


class CalendarEvent(ApiModel):
    week: NonEmptyStr = Field(description="Week number or range, e.g. 'Week 1', 'Weeks 5-6'.")
    title: NonEmptyStr = Field(description="Concise title for the week's activities.")
    description: NonEmptyStr = Field(
        description="Tasks and advice for the week, with doses and methods."
    )
    category: EventCategory = Field(description="Primary category of the advice.")

    @field_validator("category", mode="before")
    @classmethod
    def _norm_category(cls, v):
        return EnumNormalizer.normalize(EventCategory, v)


class AdvisoryCalendarAnswer(ApiModel):
    """Week-by-week schedule from sowing to harvest, in chronological order."""

    schedule: List[CalendarEvent] = Field(
        min_length=1, description="The week-by-week advisory schedule."
    )


class VoiceAnswer(ApiModel):
    """Spoken assistant reply."""

    response_text: NonEmptyStr = Field(description="The reply to the farmer.")


class TranscriptionAnswer(ApiModel):
    transcribed_text: str = Field(default="", description="Text heard in the audio.")


StructuredAnswer = Union[
    CropDiagnosisAnswer,
    MarketForecastAnswer,
    SchemeAnswer,
    AdvisoryCalendarAnswer,
    VoiceAnswer,
    TranscriptionAnswer,
]


# ---------------------------------------------------------------- outcome


class AudioArtifact(ApiModel):
    """Always derived from synthesized PCM; never built from client input."""

    mime_type: Literal["audio/wav"] = WAV_MIME_TYPE
    base64_payload: str

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.base64_payload, self.mime_type)


class PipelineOutcome(ApiModel):
    flow: str
    structured_answer: StructuredAnswer
    audio: Optional[AudioArtifact] = None
    transcribed_text: Optional[str] = None
    message: Optional[str] = None
    trace: List[str] = Field(default_factory=list)

    def to_response(self) -> "FlowResponse":
        return FlowResponse(
            flow=self.flow,
            structured_answer=self.structured_answer.model_dump(mode="json", by_alias=True),
            audio_output=self.audio.data_uri if self.audio else None,
            transcribed_text=self.transcribed_text,
            message=self.message,
            trace=list(self.trace),
        )


class FlowResponse(ApiModel):
    """HTTP contract; absent audio means "voice unavailable", not an error."""

    flow: str
    structured_answer: Dict[str, Any]
    audio_output: Optional[str] = None
    transcribed_text: Optional[str] = None
    message: Optional[str] = None
    trace: List[str] = Field(default_factory=list)


class FlowInfo(ApiModel):
    name: str
    description: str
    mode: Optional[str] = None
    synthesizes_speech: bool = True


class ErrorResponse(ApiModel):
    error: str
    detail: str
    missing_fields: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------- tools


class ToolInvocation(BaseModel):
    """Raw payload returned by an intranet data provider."""

    name: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class MarketPriceResult(ApiModel):
    """`found=False` is the explicit "no information" sentinel."""

    crop: str
    location: str
    price: Optional[float] = None
    unit: str = "quintal"
    found: bool = True
    source: str = "mock"
    message: str = ""


class SchemeInfoResult(ApiModel):
    """`found=False` is the explicit "no information" sentinel."""

    query: str
    summary: str
    found: bool = True
    source: str = "mock"
