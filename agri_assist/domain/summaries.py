from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..schemas import (
        CropDiagnosisAnswer,
        MarketForecastAnswer,
        SchemeAnswer,
        VoiceAnswer,
    )


def diagnosis_speech(answer: "CropDiagnosisAnswer") -> str:
    products = ", ".join(p.name for p in answer.product_suggestions)
    text = (
        f"Plant: {answer.plant_name}. Diagnosis: {answer.diagnosis}. "
        f"Remedies: {answer.remedies}."
    )
    if products:
        text = f"{text} Recommended products include: {products}"
    return text


def forecast_speech(answer: "MarketForecastAnswer") -> str:
    return f"Forecast: {answer.forecast}. Suggestion: {answer.suggestion}"


def scheme_speech(answer: "SchemeAnswer") -> str:
    return answer.answer


def voice_speech(answer: "VoiceAnswer") -> str:
    return answer.response_text
