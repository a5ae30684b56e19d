from __future__ import annotations

from typing import Any, Dict

from ...domain.enums import FlowName
from ...domain.summaries import scheme_speech
from ...infra.config import AppConfig
from ...prompts import build_scheme_rewrite
from ...schemas import SchemeAnswer, SchemeNavigationRequest
from ..tools import SCHEME_INFO_TOOL
from .pipeline import FlowServices, FlowSpec, generate_answer
from .state import PipelineState


AGENT_MODE = "agent"
TOOLS_MODE = "tools"


def generate_scheme_answer(
    services: FlowServices, request: SchemeNavigationRequest, mode: str
) -> SchemeAnswer:
    """Answer a scheme question before the friendliness rewrite."""
    if mode == AGENT_MODE:
        text = services.agent_client.info_query(request.query, request.language)
        return SchemeAnswer(answer=text)
    return generate_answer(services, request, SchemeAnswer, (SCHEME_INFO_TOOL,))


def generate_scheme_via_agent(services: FlowServices, state: PipelineState) -> Dict[str, Any]:
    return {"answer": generate_scheme_answer(services, state["request"], AGENT_MODE)}


def build_scheme_navigation_spec(config: AppConfig) -> FlowSpec:
    mode = config.scheme_navigation_mode
    if mode not in (TOOLS_MODE, AGENT_MODE):
        raise ValueError(f"unsupported SCHEME_NAVIGATION_MODE: {mode!r}")
    return FlowSpec(
        name=FlowName.SCHEME_NAVIGATION.value,
        description=(
            "Benefits, eligibility and application steps of government schemes, "
            "in plain language and read aloud."
        ),
        request_model=SchemeNavigationRequest,
        answer_schema=SchemeAnswer,
        tools=(SCHEME_INFO_TOOL,) if mode == TOOLS_MODE else (),
        generator=generate_scheme_via_agent if mode == AGENT_MODE else None,
        rewrite=build_scheme_rewrite,
        speech_summary=scheme_speech,
        mode=mode,
    )
