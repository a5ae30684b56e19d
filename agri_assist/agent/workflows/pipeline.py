"""
Generic flow pipeline.

Every flow runs the same LangGraph workflow

    validate -> generate -> [rewrite] -> [synthesize -> package] -> END

parameterized by a FlowSpec. Generation failures propagate; rewrite,
synthesis and WAV packaging failures are logged and the pipeline carries on
with the answer it already has.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Type

from langgraph.graph import END, StateGraph
from pydantic import BaseModel

from ...domain.audio import encode_wav
from ...domain.errors import EncodingError, GenerationError, SynthesisError
from ...infra.agent_client import DomainAgentClient
from ...infra.config import AppConfig
from ...infra.model_client import ModelClient
from ...observability.logging_utils import log_event, log_warning, summarize_text
from ...observability.otel import (
    build_span_attributes,
    record_exception,
    set_span_attributes,
    start_span,
    summarize_pipeline_state,
)
from ...prompts import build_generation_request, validate_request
from ...schemas import AudioArtifact, FlowRequestBase, GenerationRequest, VoiceProfile
from .state import PipelineState, add_trace


SPEECH_INSTRUCTIONS = "Speak slowly, warmly and clearly in {language} for a farmer."


@dataclass(frozen=True)
class FlowServices:
    """Request-independent collaborators handed to every node."""

    config: AppConfig
    model_client: ModelClient
    agent_client: DomainAgentClient


InstructionBuilder = Callable[..., GenerationRequest]
Generator = Callable[[FlowServices, PipelineState], Dict[str, Any]]


@dataclass(frozen=True)
class FlowSpec:
    name: str
    description: str
    request_model: Type[FlowRequestBase]
    answer_schema: Type[BaseModel]
    tools: Tuple[str, ...] = ()
    build_request: InstructionBuilder = build_generation_request
    # replaces the default single generation call, e.g. external-agent variants
    generator: Optional[Generator] = None
    rewrite: Optional[Callable[[BaseModel, str], GenerationRequest]] = None
    speech_summary: Optional[Callable[[BaseModel], str]] = None
    # fills request defaults from configuration before validation
    prepare: Optional[Callable[[FlowRequestBase, AppConfig], FlowRequestBase]] = None
    mode: Optional[str] = None

    @property
    def synthesizes_speech(self) -> bool:
        return self.speech_summary is not None


def voice_profile(config: AppConfig, language: str) -> VoiceProfile:
    return VoiceProfile(
        voice=config.tts_voice,
        language=language,
        instructions=SPEECH_INSTRUCTIONS.format(language=language),
    )


def generate_answer(
    services: FlowServices,
    request: FlowRequestBase,
    schema: Type[BaseModel],
    tools: Sequence[str] = (),
) -> BaseModel:
    gen_request = build_generation_request(request, schema=schema, tools=tools)
    return services.model_client.generate_structured(gen_request)


def rewrite_answer(
    services: FlowServices,
    flow: str,
    answer: BaseModel,
    language: str,
    builder: Callable[[BaseModel, str], GenerationRequest],
) -> Optional[BaseModel]:
    """Friendliness rewrite; returns None when it fails so callers keep the original."""
    try:
        rewritten = services.model_client.generate_structured(builder(answer, language))
    except GenerationError as exc:
        log_warning("rewrite_failed", flow=flow, error=str(exc))
        return None
    if not isinstance(rewritten, type(answer)):
        log_warning(
            "rewrite_failed",
            flow=flow,
            error=f"expected {type(answer).__name__}, got {type(rewritten).__name__}",
        )
        return None
    return rewritten


def _validate_node(spec: FlowSpec, services: FlowServices):
    def node(state: PipelineState) -> PipelineState:
        request = state["request"]
        if spec.prepare is not None:
            request = spec.prepare(request, services.config)
        validate_request(request)
        language = request.language.strip()
        log_event("flow_validated", flow=spec.name, language=language)
        return add_trace(
            {**state, "request": request, "language": language}, "validated"
        )

    return node


def _generate_node(spec: FlowSpec, services: FlowServices):
    def node(state: PipelineState) -> PipelineState:
        if spec.generator is not None:
            update = spec.generator(services, state)
        else:
            update = {
                "answer": generate_answer(
                    services, state["request"], spec.answer_schema, spec.tools
                )
            }
        answer = update.get("answer")
        if not isinstance(answer, spec.answer_schema):
            raise GenerationError(
                f"{spec.name}: expected {spec.answer_schema.__name__}, "
                f"got {type(answer).__name__}"
            )
        log_event(
            "flow_generated",
            flow=spec.name,
            answer=summarize_text(answer.model_dump_json(by_alias=True)),
        )
        return add_trace({**state, **update}, "generated")

    return node


def _rewrite_node(spec: FlowSpec, services: FlowServices):
    def node(state: PipelineState) -> PipelineState:
        rewritten = rewrite_answer(
            services, spec.name, state["answer"], state["language"], spec.rewrite
        )
        if rewritten is None:
            return add_trace(state, "rewrite skipped")
        return add_trace({**state, "answer": rewritten}, "rewritten")

    return node


def _synthesize_node(spec: FlowSpec, services: FlowServices):
    def node(state: PipelineState) -> PipelineState:
        text = spec.speech_summary(state["answer"])
        if not (text or "").strip():
            return add_trace({**state, "pcm": None}, "nothing to speak")
        try:
            pcm = services.model_client.synthesize_speech(
                text, voice_profile(services.config, state["language"])
            )
        except SynthesisError as exc:
            log_warning("synthesis_failed", flow=spec.name, error=str(exc))
            return add_trace({**state, "pcm": None}, "speech unavailable")
        return add_trace({**state, "pcm": pcm}, "synthesized")

    return node


def _package_node(spec: FlowSpec, services: FlowServices):
    def node(state: PipelineState) -> PipelineState:
        cfg = services.config
        try:
            payload = encode_wav(
                state["pcm"],
                channels=cfg.tts_channels,
                sample_rate_hz=cfg.tts_sample_rate_hz,
                bits_per_sample=cfg.tts_bits_per_sample,
            )
        except EncodingError as exc:
            log_warning("encoding_failed", flow=spec.name, error=str(exc))
            return add_trace({**state, "pcm": None, "audio": None}, "speech unavailable")
        audio = AudioArtifact(base64_payload=payload)
        return add_trace({**state, "pcm": None, "audio": audio}, "packaged")

    return node


def _route_after_synthesize(state: PipelineState) -> str:
    return "package" if state.get("pcm") else END


def build_flow_graph(spec: FlowSpec, services: FlowServices):
    """
    Construct and return the compiled LangGraph workflow for one flow.
    """

    def _trace_node(node_name: str, func):
        def _inner(state: PipelineState) -> PipelineState:
            attrs = {"flow.name": spec.name, "node.name": node_name}
            attrs.update(
                build_span_attributes("node.input", summarize_pipeline_state(state))
            )
            with start_span(f"flow.{spec.name}.{node_name}", attributes=attrs) as span:
                try:
                    result = func(state)
                except Exception as exc:
                    record_exception(span, exc)
                    raise
                set_span_attributes(
                    span,
                    build_span_attributes(
                        "node.output", summarize_pipeline_state(result)
                    ),
                )
                return result

        return _inner

    graph = StateGraph(PipelineState)
    graph.add_node("validate", _trace_node("validate", _validate_node(spec, services)))
    graph.add_node("generate", _trace_node("generate", _generate_node(spec, services)))
    graph.set_entry_point("validate")
    graph.add_edge("validate", "generate")

    last = "generate"
    if spec.rewrite is not None:
        graph.add_node("rewrite", _trace_node("rewrite", _rewrite_node(spec, services)))
        graph.add_edge(last, "rewrite")
        last = "rewrite"

    if spec.speech_summary is not None:
        graph.add_node(
            "synthesize", _trace_node("synthesize", _synthesize_node(spec, services))
        )
        graph.add_node("package", _trace_node("package", _package_node(spec, services)))
        graph.add_edge(last, "synthesize")
        graph.add_conditional_edges("synthesize", _route_after_synthesize)
        graph.add_edge("package", END)
    else:
        graph.add_edge(last, END)
    return graph.compile()
