from enum import Enum


class ProductType(str, Enum):
    FUNGICIDE = "Fungicide"
    INSECTICIDE = "Insecticide"
    FERTILIZER = "Fertilizer"
    ORGANIC = "Organic"
    OTHER = "Other"


class EventCategory(str, Enum):
    """Closed set used by clients only to pick an icon per calendar entry."""

    PREPARATION = "Preparation"
    FERTILIZER = "Fertilizer"
    IRRIGATION = "Irrigation"
    PEST_CONTROL = "Pest Control"
    HARVESTING = "Harvesting"
    GENERAL = "General"


class FlowName(str, Enum):
    CROP_DIAGNOSIS = "crop_diagnosis"
    MARKET_FORECAST = "market_forecast"
    SCHEME_NAVIGATION = "scheme_navigation"
    ADVISORY_CALENDAR = "advisory_calendar"
    VOICE_INTERACTION = "voice_interaction"
    TRANSCRIBE_QUERY = "transcribe_query"
