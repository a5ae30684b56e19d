from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode


_SERVICE_NAME = "agri-assist"
_OTEL_INITIALIZED = False
_OTEL_INSTRUMENTED = False
_OTEL_ATTR_MAX_LEN = int(os.getenv("OTEL_ATTR_MAX_LEN", "2000"))


def _parse_pairs(raw: Optional[str]) -> Dict[str, str]:
    """Parse `k1=v1,k2=v2` strings used by OTEL_* header and resource vars."""
    if not raw:
        return {}
    pairs: Dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item or "=" not in item:
            continue
        key, value = item.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key and value:
            pairs[key] = value
    return pairs


def _safe_serialize(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def build_span_attributes(
    prefix: str, payload: object, limit: Optional[int] = None
) -> Dict[str, object]:
    text = _safe_serialize(payload)
    size = len(text)
    max_len = _OTEL_ATTR_MAX_LEN if limit is None else limit
    truncated = bool(max_len) and size > max_len
    if truncated:
        text = text[:max_len] + "..."
    return {
        prefix: text,
        f"{prefix}.size": size,
        f"{prefix}.truncated": truncated,
    }


def summarize_pipeline_state(state: object) -> object:
    """Reduce pipeline state to span-friendly fields; audio bytes are never exported."""
    if not isinstance(state, dict):
        return state
    summary: Dict[str, object] = {"keys": sorted(state.keys())}
    for key in ("flow", "language", "stage", "transcribed_text"):
        if key in state:
            summary[key] = state.get(key)
    trace_items = state.get("trace")
    if isinstance(trace_items, list):
        summary["trace_count"] = len(trace_items)
    answer = state.get("answer")
    if hasattr(answer, "model_dump"):
        summary["answer"] = answer.model_dump(mode="json")
    pcm = state.get("pcm")
    if isinstance(pcm, (bytes, bytearray)):
        summary["pcm_bytes"] = len(pcm)
    summary["has_audio"] = state.get("audio") is not None
    return summary


def set_span_attributes(span: Span, attributes: Optional[Dict[str, object]]) -> None:
    if not attributes:
        return None
    for key, value in attributes.items():
        if value is None:
            continue
        span.set_attribute(key, value)


@contextmanager
def start_span(
    name: str, attributes: Optional[Dict[str, object]] = None
) -> Iterator[Span]:
    tracer = trace.get_tracer(os.getenv("OTEL_SERVICE_NAME") or _SERVICE_NAME)
    with tracer.start_as_current_span(name) as span:
        set_span_attributes(span, attributes)
        yield span


def record_exception(span: Span, exc: Exception) -> None:
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


def _resolve_http_endpoint(base: Optional[str], override: Optional[str]) -> Optional[str]:
    endpoint = (override or base or "").strip()
    if not endpoint:
        return None
    if "/v1/" in endpoint:
        return endpoint
    return endpoint.rstrip("/") + "/v1/traces"


def init_otel(service_name: Optional[str] = None) -> bool:
    """
    Install an OTLP span exporter when an endpoint is configured.

    The SDK and exporters ship in the optional `otel` extra; without them the
    API keeps its no-op tracer and this returns False.
    """
    global _OTEL_INITIALIZED
    if _OTEL_INITIALIZED:
        return True
    base_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    traces_endpoint_env = os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    if not (base_endpoint or traces_endpoint_env):
        return False
    exporter_name = (os.getenv("OTEL_TRACES_EXPORTER") or "otlp").strip().lower()
    if exporter_name in {"none", "off", "false", "0"}:
        return False
    protocol = (os.getenv("OTEL_EXPORTER_OTLP_PROTOCOL") or "grpc").strip().lower()
    use_http = protocol.startswith("http")
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        if use_http:
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )
        else:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
    except ImportError:
        logging.getLogger(__name__).info("opentelemetry sdk not installed; tracing disabled")
        return False

    service = service_name or os.getenv("OTEL_SERVICE_NAME") or _SERVICE_NAME
    resource = Resource.create(
        {"service.name": service, **_parse_pairs(os.getenv("OTEL_RESOURCE_ATTRIBUTES"))}
    )
    endpoint = (
        _resolve_http_endpoint(base_endpoint, traces_endpoint_env)
        if use_http
        else (traces_endpoint_env or base_endpoint)
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(
                endpoint=endpoint,
                headers=_parse_pairs(os.getenv("OTEL_EXPORTER_OTLP_HEADERS")),
            )
        )
    )
    trace.set_tracer_provider(provider)
    _OTEL_INITIALIZED = True
    return True


def instrument_app(app: object) -> bool:
    """Instrument FastAPI and httpx when the instrumentation packages are present."""
    global _OTEL_INSTRUMENTED
    if _OTEL_INSTRUMENTED:
        return True
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
    except ImportError:
        return False
    FastAPIInstrumentor.instrument_app(app)
    HTTPXClientInstrumentor().instrument()
    _OTEL_INSTRUMENTED = True
    return True
