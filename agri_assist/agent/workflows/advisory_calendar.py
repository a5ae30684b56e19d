from ...domain.enums import FlowName
from ...infra.config import AppConfig
from ...schemas import AdvisoryCalendarAnswer, AdvisoryCalendarRequest
from .pipeline import FlowSpec


def build_advisory_calendar_spec(config: AppConfig) -> FlowSpec:
    # text only: no speech_summary, so the graph ends after generation
    return FlowSpec(
        name=FlowName.ADVISORY_CALENDAR.value,
        description="Week-by-week crop advisory calendar from sowing to harvest.",
        request_model=AdvisoryCalendarRequest,
        answer_schema=AdvisoryCalendarAnswer,
    )
