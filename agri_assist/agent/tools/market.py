from __future__ import annotations

from pydantic import BaseModel, Field

from ...application.services.market_data_service import lookup_market_price
from ...infra.config import AppConfig
from ...schemas import MarketPriceResult
from .registry import auto_register_tool


class MarketPriceArgs(BaseModel):
    crop: str = Field(description="Crop name, e.g. 'Tomato'.")
    location: str = Field(description="Market location or state, e.g. 'Karnataka'.")


@auto_register_tool(
    "market_price_lookup",
    description=(
        "Look up the current market price of a crop at a location. Returns price, "
        "unit and found=false when no price information exists."
    ),
    args_schema=MarketPriceArgs,
)
def market_price_lookup(config: AppConfig, crop: str, location: str) -> MarketPriceResult:
    return lookup_market_price(crop, location, config=config)
