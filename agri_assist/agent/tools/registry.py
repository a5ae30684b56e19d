from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Type

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel

from ...infra.config import AppConfig
from ...observability.logging_utils import log_event


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    args_schema: Type[BaseModel]
    handler: Callable[..., BaseModel]


TOOL_INDEX: Dict[str, ToolSpec] = {}


def register_tool(spec: ToolSpec) -> None:
    """Register a data-lookup tool the generation step may call by name."""
    TOOL_INDEX[spec.name] = spec


def auto_register_tool(name: str, *, description: str, args_schema: Type[BaseModel]):
    """
    Decorator registering a lookup handler as a tool.

    Usage:

        @auto_register_tool("name", description="...", args_schema=Args)
        def handler(config: AppConfig, **args) -> BaseModel:
            ...
    """

    def decorator(func):
        register_tool(
            ToolSpec(
                name=name,
                description=description,
                args_schema=args_schema,
                handler=func,
            )
        )
        return func

    return decorator


def list_tool_specs() -> List[Dict[str, str]]:
    return [
        {"name": spec.name, "description": spec.description}
        for spec in TOOL_INDEX.values()
    ]


def _run_tool(spec: ToolSpec, config: AppConfig, **kwargs: Any) -> Dict[str, Any]:
    result = spec.handler(config, **kwargs)
    payload = result.model_dump(mode="json", by_alias=True)
    log_event("tool_output", tool=spec.name, args=kwargs, output=payload)
    return payload


def _bind(spec: ToolSpec, config: AppConfig) -> Callable[..., Dict[str, Any]]:
    def run(**kwargs: Any) -> Dict[str, Any]:
        return _run_tool(spec, config, **kwargs)

    return run


def build_tools(config: AppConfig, names: Sequence[str]) -> List[BaseTool]:
    """Bind the named tools to this process's configuration."""
    unknown = [name for name in names if name not in TOOL_INDEX]
    if unknown:
        raise KeyError(f"unknown tools: {unknown}")
    tools: List[BaseTool] = []
    for name in names:
        spec = TOOL_INDEX[name]
        tools.append(
            StructuredTool.from_function(
                func=_bind(spec, config),
                name=spec.name,
                description=spec.description,
                args_schema=spec.args_schema,
            )
        )
    return tools


def format_tool_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    return json.dumps(output, ensure_ascii=False, default=str)
