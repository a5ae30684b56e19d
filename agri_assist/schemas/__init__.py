from .generation import GenerationRequest, VoiceProfile
from .models import (
    AdvisoryCalendarAnswer,
    AdvisoryCalendarRequest,
    ApiModel,
    AudioArtifact,
    CalendarEvent,
    CropDiagnosisAnswer,
    CropDiagnosisRequest,
    ErrorResponse,
    FlowInfo,
    FlowRequest,
    FlowRequestBase,
    FlowResponse,
    MarketForecastAnswer,
    MarketForecastRequest,
    MarketPriceResult,
    PipelineOutcome,
    ProductSuggestion,
    SchemeAnswer,
    SchemeInfoResult,
    SchemeNavigationRequest,
    StructuredAnswer,
    ToolInvocation,
    TranscriptionAnswer,
    TranscriptionRequest,
    VoiceAnswer,
    VoiceInteractionRequest,
)

__all__ = [
    "AdvisoryCalendarAnswer",
    "AdvisoryCalendarRequest",
    "ApiModel",
    "AudioArtifact",
    "CalendarEvent",
    "CropDiagnosisAnswer",
    "CropDiagnosisRequest",
    "ErrorResponse",
    "FlowInfo",
    "FlowRequest",
    "FlowRequestBase",
    "FlowResponse",
    "GenerationRequest",
    "VoiceProfile",
    "MarketForecastAnswer",
    "MarketForecastRequest",
    "MarketPriceResult",
    "PipelineOutcome",
    "ProductSuggestion",
    "SchemeAnswer",
    "SchemeInfoResult",
    "SchemeNavigationRequest",
    "StructuredAnswer",
    "ToolInvocation",
    "TranscriptionAnswer",
    "TranscriptionRequest",
    "VoiceAnswer",
    "VoiceInteractionRequest",
]
