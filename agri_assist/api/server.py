from functools import lru_cache

import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..agent.runner import FlowRunner
from ..domain.enums import FlowName
from ..domain.errors import (
    ExternalAgentError,
    FlowTimeoutError,
    FlowValidationError,
    GenerationError,
    TranscriptionError,
)
from ..infra.config import get_config
from ..observability.logging_utils import init_logging, log_event
from ..observability.otel import init_otel, instrument_app
from ..prompts.flow_prompts import TRANSCRIPTION_RETRY_MESSAGE
from ..schemas import ErrorResponse, FlowInfo, FlowRequest, FlowResponse


@lru_cache(maxsize=1)
def get_runner() -> FlowRunner:
    return FlowRunner(get_config())


@asynccontextmanager
async def lifespan(_: FastAPI):
    cfg = get_config()
    init_logging(log_path=cfg.log_path)
    init_otel()
    try:
        _LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        _LOG_PATH.touch(exist_ok=True)
    except OSError:
        pass
    log_event("api_start", llm=cfg.llm_provider, error_log=str(_LOG_PATH))
    yield
    if get_runner.cache_info().currsize:
        get_runner().shutdown()


app = FastAPI(title="Agri Assist", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
instrument_app(app)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_LOG_PATH = _PROJECT_ROOT / "api_errors.log"

_FLOW_ROUTES = {
    "crop-diagnosis": FlowName.CROP_DIAGNOSIS,
    "market-forecast": FlowName.MARKET_FORECAST,
    "scheme-navigation": FlowName.SCHEME_NAVIGATION,
    "advisory-calendar": FlowName.ADVISORY_CALENDAR,
    "voice": FlowName.VOICE_INTERACTION,
}


def _append_error_log(message: str, tb: str = "") -> None:
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        with _LOG_PATH.open("a", encoding="utf-8") as handle:
            handle.write(f"[{timestamp}] {message}\n{tb}\n")
    except OSError:
        pass


def _error(status_code: int, error: str, detail: str, missing=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, missing_fields=list(missing or []))
    return JSONResponse(
        status_code=status_code, content=body.model_dump(mode="json", by_alias=True)
    )


@app.exception_handler(FlowValidationError)
async def _flow_validation_handler(_: Request, exc: FlowValidationError):
    return _error(422, "validation_error", str(exc), exc.missing_fields)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(_: Request, exc: RequestValidationError):
    missing = []
    for error in exc.errors():
        loc = [part for part in error.get("loc", ()) if isinstance(part, str)]
        if loc and loc[-1] != "body" and loc[-1] not in missing:
            missing.append(loc[-1])
    return _error(422, "validation_error", "request body failed validation", missing)


@app.exception_handler(TranscriptionError)
async def _transcription_handler(_: Request, exc: TranscriptionError):
    return _error(422, "transcription_failed", TRANSCRIPTION_RETRY_MESSAGE)


@app.exception_handler(GenerationError)
async def _generation_handler(_: Request, exc: GenerationError):
    return _error(502, "generation_failed", str(exc))


@app.exception_handler(ExternalAgentError)
async def _external_agent_handler(_: Request, exc: ExternalAgentError):
    return _error(502, "external_agent_failed", str(exc))


@app.exception_handler(FlowTimeoutError)
async def _timeout_handler(_: Request, exc: FlowTimeoutError):
    return _error(504, "timeout", str(exc))


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    _append_error_log(f"Unhandled error at {request.url.path}: {exc}", tb)
    return _error(500, "internal_error", str(exc))


@app.get("/health")
def health():
    cfg = get_config()
    return {
        "status": "ok",
        "llm": cfg.llm_provider,
        "marketForecastMode": cfg.market_forecast_mode,
        "schemeNavigationMode": cfg.scheme_navigation_mode,
        "voiceReasoningMode": cfg.voice_reasoning_mode,
    }


@app.get("/api/v1/flows", response_model=List[FlowInfo])
def list_flows(runner: FlowRunner = Depends(get_runner)):
    return runner.list_flows()


@app.post("/api/v1/flows", response_model=FlowResponse)
def run_flow(request: FlowRequest, runner: FlowRunner = Depends(get_runner)):
    return runner.run_with_timeout(request).to_response()


def _run_named_flow(flow: FlowName, payload: Dict[str, Any], runner: FlowRunner):
    request = runner.parse_request(flow.value, payload)
    return runner.run_with_timeout(request).to_response()


@app.post("/api/v1/transcribe", response_model=FlowResponse)
def transcribe(
    payload: Dict[str, Any] = Body(...), runner: FlowRunner = Depends(get_runner)
):
    return _run_named_flow(FlowName.TRANSCRIBE_QUERY, payload, runner)


@app.post("/api/v1/flows/{slug}", response_model=FlowResponse)
def run_named_flow(
    slug: str,
    payload: Dict[str, Any] = Body(...),
    runner: FlowRunner = Depends(get_runner),
):
    flow = _FLOW_ROUTES.get(slug)
    if flow is None:
        return _error(404, "unknown_flow", f"no flow is served at {slug!r}")
    return _run_named_flow(flow, payload, runner)
