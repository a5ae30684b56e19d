from . import market, schemes  # noqa: F401  registers the lookup tools
from .registry import (
    TOOL_INDEX,
    ToolSpec,
    auto_register_tool,
    build_tools,
    format_tool_output,
    list_tool_specs,
    register_tool,
)

MARKET_PRICE_TOOL = "market_price_lookup"
SCHEME_INFO_TOOL = "scheme_info_lookup"

__all__ = [
    "MARKET_PRICE_TOOL",
    "SCHEME_INFO_TOOL",
    "TOOL_INDEX",
    "ToolSpec",
    "auto_register_tool",
    "build_tools",
    "format_tool_output",
    "list_tool_specs",
    "register_tool",
]
