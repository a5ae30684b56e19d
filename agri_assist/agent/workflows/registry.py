from __future__ import annotations

from typing import Callable, Dict, List

from ...infra.config import AppConfig
from .advisory_calendar import build_advisory_calendar_spec
from .diagnosis import build_crop_diagnosis_spec
from .market_forecast import build_market_forecast_spec
from .pipeline import FlowSpec
from .scheme_navigation import build_scheme_navigation_spec
from .transcription import build_transcription_spec
from .voice_interaction import build_voice_interaction_spec


_FLOW_BUILDERS: List[Callable[[AppConfig], FlowSpec]] = [
    build_crop_diagnosis_spec,
    build_market_forecast_spec,
    build_scheme_navigation_spec,
    build_advisory_calendar_spec,
    build_voice_interaction_spec,
    build_transcription_spec,
]


def build_flow_specs(config: AppConfig) -> Dict[str, FlowSpec]:
    """Flow specs keyed by flow name; modes come from `config`."""
    specs = [builder(config) for builder in _FLOW_BUILDERS]
    return {spec.name: spec for spec in specs}
