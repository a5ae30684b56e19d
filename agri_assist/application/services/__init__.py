from .market_data_service import lookup_market_price
from .scheme_search_service import lookup_scheme_info

__all__ = ["lookup_market_price", "lookup_scheme_info"]
