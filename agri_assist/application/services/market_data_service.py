from __future__ import annotations

import hashlib
from typing import Optional

from ...infra.config import AppConfig
from ...infra.tool_provider import (
    OFFLINE_PROVIDERS,
    invoke_intranet_tool,
    normalize_provider,
)
from ...observability.logging_utils import log_event
from ...schemas import MarketPriceResult, ToolInvocation


DEFAULT_UNIT = "quintal"
MOCK_PRICE_FLOOR = 2000
MOCK_PRICE_SPAN = 5000


def no_price_found(crop: str, location: str, reason: str, source: str) -> MarketPriceResult:
    return MarketPriceResult(
        crop=crop,
        location=location,
        price=None,
        unit=DEFAULT_UNIT,
        found=False,
        source=source,
        message=f'No market price information found for "{crop}" in "{location}" ({reason}).',
    )


def simulate_market_price(crop: str, location: str) -> MarketPriceResult:
    """
    Stand-in for a mandi price feed: a stable price per crop and location in
    the 2000-7000 per quintal band.
    """
    key = f"{crop.strip().lower()}|{location.strip().lower()}"
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    offset = int.from_bytes(digest[:4], "big") % (MOCK_PRICE_SPAN + 1)
    return MarketPriceResult(
        crop=crop,
        location=location,
        price=float(MOCK_PRICE_FLOOR + offset),
        unit=DEFAULT_UNIT,
        found=True,
        source="mock",
        message=f"Simulated modal price for {crop} in {location}.",
    )


def _coerce_intranet_price(
    crop: str, location: str, payload: ToolInvocation
) -> Optional[MarketPriceResult]:
    data = payload.data or {}
    price = data.get("price")
    if price is None:
        return None
    try:
        price_value = float(price)
    except (TypeError, ValueError):
        return None
    return MarketPriceResult(
        crop=crop,
        location=location,
        price=price_value,
        unit=str(data.get("unit") or DEFAULT_UNIT),
        found=True,
        source="intranet",
        message=payload.message,
    )


def lookup_market_price(crop: str, location: str, *, config: AppConfig) -> MarketPriceResult:
    crop = (crop or "").strip()
    location = (location or "").strip()
    provider = normalize_provider(config.market_data_provider)
    if not crop or not location:
        return no_price_found(crop, location, "crop and location are required", provider)

    if provider in OFFLINE_PROVIDERS:
        result = simulate_market_price(crop, location)
    elif provider == "intranet":
        payload = invoke_intranet_tool(
            "market_price_lookup",
            {"crop": crop, "location": location},
            config.market_data_api_url,
            config.market_data_api_key,
            timeout=config.tool_timeout_seconds,
        )
        result = _coerce_intranet_price(crop, location, payload) or no_price_found(
            crop, location, payload.message, provider
        )
    else:
        result = no_price_found(crop, location, f"unsupported provider: {provider}", provider)

    log_event(
        "market_price_lookup",
        crop=crop,
        location=location,
        found=result.found,
        price=result.price,
        source=result.source,
    )
    return result
