from __future__ import annotations

from typing import Dict, Optional

import httpx

from ..domain.errors import ExternalAgentError
from ..observability.logging_utils import log_event, summarize_text
from .config import AppConfig
from .tool_provider import build_intranet_headers


class DomainAgentClient:
    """
    Thin client for the pre-built agriculture agents hosted behind one base URL.

    Each endpoint answers with free text. Non-2xx and transport failures raise
    ExternalAgentError, which is fatal for the request.
    """

    MARKET_PRICE_PATH = "/market-price"
    INFO_QUERY_PATH = "/info-query"

    def __init__(
        self,
        config: AppConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = config.agent_base_url.rstrip("/")
        self._api_key = config.agent_api_key
        self._timeout = config.agent_timeout_seconds
        self._transport = transport

    def market_price(self, crop: str, state: str, language: Optional[str] = None) -> str:
        params = {"crop": crop, "state": state}
        if language:
            params["language"] = language
        return self._get(self.MARKET_PRICE_PATH, params)

    def info_query(self, query: str, language: Optional[str] = None) -> str:
        params = {"query": query}
        if language:
            params["language"] = language
        return self._get(self.INFO_QUERY_PATH, params)

    def _get(self, path: str, params: Dict[str, str]) -> str:
        url = f"{self._base_url}{path}"
        headers = build_intranet_headers(self._api_key)
        headers["Accept"] = "text/plain, application/json"
        log_event("agent_call", path=path, params=params)
        try:
            with httpx.Client(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ExternalAgentError(f"agent request to {path} failed: {exc}") from exc
        if not response.is_success:
            raise ExternalAgentError(
                f"agent {path} answered {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        text = response.text.strip()
        log_event("agent_response", path=path, text=summarize_text(text))
        if not text:
            raise ExternalAgentError(f"agent {path} returned an empty body")
        return text
