from typing import List, Optional, TypedDict

from pydantic import BaseModel

from ...schemas import AudioArtifact, FlowRequestBase


class PipelineState(TypedDict, total=False):
    """State shared across the nodes of one flow pipeline."""

    flow: str
    request: FlowRequestBase
    language: str
    answer: BaseModel
    transcribed_text: Optional[str]
    message: Optional[str]
    pcm: Optional[bytes]
    audio: Optional[AudioArtifact]
    trace: List[str]


def add_trace(state: PipelineState, message: str) -> PipelineState:
    """Append a message to the pipeline trace."""
    trace = list(state.get("trace") or [])
    trace.append(message)
    return {**state, "trace": trace}
