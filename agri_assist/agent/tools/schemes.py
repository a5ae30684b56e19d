from __future__ import annotations

from pydantic import BaseModel, Field

from ...application.services.scheme_search_service import lookup_scheme_info
from ...infra.config import AppConfig
from ...schemas import SchemeInfoResult
from .registry import auto_register_tool


class SchemeInfoArgs(BaseModel):
    query: str = Field(description="Scheme name or the farmer's question about it.")


@auto_register_tool(
    "scheme_info_lookup",
    description=(
        "Search information about an Indian government scheme for farmers. Returns a "
        "summary and found=false when nothing specific is known."
    ),
    args_schema=SchemeInfoArgs,
)
def scheme_info_lookup(config: AppConfig, query: str) -> SchemeInfoResult:
    return lookup_scheme_info(query, config=config)
