from .pipeline import FlowServices, FlowSpec, build_flow_graph
from .registry import build_flow_specs
from .state import PipelineState, add_trace

__all__ = [
    "FlowServices",
    "FlowSpec",
    "PipelineState",
    "add_trace",
    "build_flow_graph",
    "build_flow_specs",
]
