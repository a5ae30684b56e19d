from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..observability.logging_utils import log_warning
from ..schemas import ToolInvocation


INTRANET_TIMEOUT = 10.0
OFFLINE_PROVIDERS = {"mock", "local", "stub"}


def normalize_provider(value: Optional[str]) -> str:
    return (value or "mock").lower()


def build_intranet_headers(api_key: Optional[str]) -> Dict[str, str]:
    headers = {"Accept": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def invoke_intranet_tool(
    tool_name: str,
    payload: Dict[str, Any],
    api_url: Optional[str],
    api_key: Optional[str],
    *,
    timeout: float = INTRANET_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> ToolInvocation:
    """
    POST the lookup payload to a data provider.

    Never raises: failures come back as a ToolInvocation with empty `data` so
    the caller can return its "not found" sentinel.
    """
    if not api_url:
        return ToolInvocation(
            name=tool_name,
            message="intranet provider not configured",
            data={},
        )
    try:
        with httpx.Client(timeout=timeout, trust_env=False, transport=transport) as client:
            response = client.post(
                api_url,
                json=payload,
                headers=build_intranet_headers(api_key),
            )
            response.raise_for_status()
            body = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        log_warning("tool_provider_failed", tool=tool_name, error=str(exc))
        return ToolInvocation(
            name=tool_name,
            message=f"intranet request failed: {exc}",
            data={},
        )

    if isinstance(body, dict):
        name = body.get("name") or tool_name
        message = body.get("message") or "intranet response received"
        data = body.get("data")
        if data is None:
            data = {k: v for k, v in body.items() if k not in {"name", "message"}}
        if not isinstance(data, dict):
            data = {"payload": data}
        return ToolInvocation(name=name, message=message, data=data)
    return ToolInvocation(
        name=tool_name,
        message="intranet response received",
        data={"payload": body},
    )
