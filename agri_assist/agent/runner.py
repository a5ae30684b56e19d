from __future__ import annotations

import contextvars
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..domain.errors import FlowTimeoutError, FlowValidationError
from ..infra.agent_client import DomainAgentClient
from ..infra.config import AppConfig
from ..infra.model_client import ModelClient, get_model_client
from ..observability.logging_utils import log_event, request_trace
from ..schemas import FlowInfo, FlowRequestBase, PipelineOutcome
from .workflows import FlowServices, FlowSpec, build_flow_graph, build_flow_specs


def _missing_from_validation(exc: ValidationError) -> List[str]:
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if isinstance(part, str)]
        if loc and loc[-1] not in fields:
            fields.append(loc[-1])
    return fields


class FlowRunner:
    """
    Owns one compiled graph per flow and runs requests through them.

    Usage:

        runner = FlowRunner(get_config())
        outcome = runner.run(MarketForecastRequest(crop="Tomato", location="Karnataka", language="Hindi"))
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        model_client: Optional[ModelClient] = None,
        agent_client: Optional[DomainAgentClient] = None,
        max_workers: int = 8,
    ) -> None:
        self.config = config
        self.services = FlowServices(
            config=config,
            model_client=model_client or get_model_client(config),
            agent_client=agent_client or DomainAgentClient(config),
        )
        self.specs: Dict[str, FlowSpec] = build_flow_specs(config)
        self._graphs = {
            name: build_flow_graph(spec, self.services)
            for name, spec in self.specs.items()
        }
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="flow"
        )

    def list_flows(self) -> List[FlowInfo]:
        return [
            FlowInfo(
                name=spec.name,
                description=spec.description,
                mode=spec.mode,
                synthesizes_speech=spec.synthesizes_speech,
            )
            for spec in self.specs.values()
        ]

    def get_spec(self, flow: str) -> FlowSpec:
        spec = self.specs.get(flow)
        if spec is None:
            raise FlowValidationError(f"unknown flow: {flow!r}", ["flow"])
        return spec

    def parse_request(self, flow: str, payload: Mapping[str, Any]) -> FlowRequestBase:
        """Validate a raw payload against the flow's request model."""
        spec = self.get_spec(flow)
        try:
            return spec.request_model.model_validate({**payload, "flow": flow})
        except ValidationError as exc:
            raise FlowValidationError(
                f"invalid {flow} request: {exc}", _missing_from_validation(exc)
            ) from exc

    def run(self, request: FlowRequestBase, *, trace_id: Optional[str] = None) -> PipelineOutcome:
        spec = self.get_spec(request.flow)
        with request_trace(trace_id):
            started = time.perf_counter()
            log_event("flow_start", flow=spec.name, mode=spec.mode)
            state = self._graphs[spec.name].invoke(
                {"flow": spec.name, "request": request, "trace": []}
            )
            outcome = PipelineOutcome(
                flow=spec.name,
                structured_answer=state["answer"],
                audio=state.get("audio"),
                transcribed_text=state.get("transcribed_text"),
                message=state.get("message"),
                trace=list(state.get("trace") or []),
            )
            log_event(
                "flow_done",
                flow=spec.name,
                has_audio=outcome.audio is not None,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return outcome

    def run_with_timeout(
        self,
        request: FlowRequestBase,
        *,
        timeout: Optional[float] = None,
        trace_id: Optional[str] = None,
    ) -> PipelineOutcome:
        """
        Run under the caller-level deadline. On expiry the result is discarded;
        the worker finishes in the background since stages are not cancellable.
        """
        limit = self.config.request_timeout_seconds if timeout is None else timeout
        ctx = contextvars.copy_context()
        future = self._executor.submit(ctx.run, self.run, request, trace_id=trace_id)
        try:
            return future.result(timeout=limit)
        except FutureTimeoutError as exc:
            log_event("flow_timeout", flow=request.flow, timeout_seconds=limit)
            raise FlowTimeoutError(
                f"{request.flow} did not finish within {limit:g}s"
            ) from exc

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
