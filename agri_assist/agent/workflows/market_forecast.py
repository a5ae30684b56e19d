from __future__ import annotations

from typing import Any, Dict

from ...domain.enums import FlowName
from ...domain.forecast import NO_SUGGESTION, split_forecast_text
from ...domain.summaries import forecast_speech
from ...infra.config import AppConfig
from ...observability.logging_utils import log_event
from ...prompts import build_forecast_rewrite
from ...schemas import MarketForecastAnswer, MarketForecastRequest
from ..tools import MARKET_PRICE_TOOL
from .pipeline import FlowServices, FlowSpec
from .state import PipelineState


AGENT_MODE = "agent"
TOOLS_MODE = "tools"


def generate_forecast_via_agent(services: FlowServices, state: PipelineState) -> Dict[str, Any]:
    """Ask the external market agent and split its free text into forecast and suggestion."""
    request: MarketForecastRequest = state["request"]
    text = services.agent_client.market_price(
        request.crop, request.location, request.language
    )
    split = split_forecast_text(text)
    log_event("forecast_split", has_suggestion=split.suggestion != NO_SUGGESTION)
    return {
        "answer": MarketForecastAnswer(
            forecast=split.forecast, suggestion=split.suggestion
        )
    }


def build_market_forecast_spec(config: AppConfig) -> FlowSpec:
    mode = config.market_forecast_mode
    if mode not in (TOOLS_MODE, AGENT_MODE):
        raise ValueError(f"unsupported MARKET_FORECAST_MODE: {mode!r}")
    return FlowSpec(
        name=FlowName.MARKET_FORECAST.value,
        description=(
            "Price forecast and selling suggestion for a crop in a market, "
            "rephrased for farmers and read aloud."
        ),
        request_model=MarketForecastRequest,
        answer_schema=MarketForecastAnswer,
        tools=(MARKET_PRICE_TOOL,) if mode == TOOLS_MODE else (),
        generator=generate_forecast_via_agent if mode == AGENT_MODE else None,
        rewrite=build_forecast_rewrite,
        speech_summary=forecast_speech,
        mode=mode,
    )
