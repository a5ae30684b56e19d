from ...domain.enums import FlowName
from ...domain.summaries import diagnosis_speech
from ...infra.config import AppConfig
from ...schemas import CropDiagnosisAnswer, CropDiagnosisRequest
from .pipeline import FlowSpec


def build_crop_diagnosis_spec(config: AppConfig) -> FlowSpec:
    return FlowSpec(
        name=FlowName.CROP_DIAGNOSIS.value,
        description=(
            "Identify the plant and its disease or pest from a photo, with remedies "
            "and product suggestions, read aloud."
        ),
        request_model=CropDiagnosisRequest,
        answer_schema=CropDiagnosisAnswer,
        speech_summary=diagnosis_speech,
    )
