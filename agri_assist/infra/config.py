from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AGENT_BASE_URL = (
    "https://agriculture-ai-agents-534880792865.us-central1.run.app"
)


class AppConfig(BaseSettings):
    """Process-wide settings, read once from `.env` and the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    llm_provider: str = Field(default="openai", validation_alias="LLM_PROVIDER")
    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_api_base: Optional[str] = Field(
        default=None, validation_alias="OPENAI_API_BASE"
    )
    chat_model: str = Field(default="gpt-4.1-mini", validation_alias="CHAT_MODEL")
    vision_model: str = Field(default="gpt-4.1-mini", validation_alias="VISION_MODEL")
    rewrite_model: str = Field(
        default="gpt-4.1-mini", validation_alias="REWRITE_MODEL"
    )
    llm_temperature: float = Field(default=0.2, validation_alias="LLM_TEMPERATURE")
    transcription_model: str = Field(
        default="gpt-4o-mini-transcribe", validation_alias="TRANSCRIPTION_MODEL"
    )
    tts_model: str = Field(default="gpt-4o-mini-tts", validation_alias="TTS_MODEL")
    tts_voice: str = Field(default="alloy", validation_alias="TTS_VOICE")
    tts_sample_rate_hz: int = Field(
        default=24000, validation_alias="TTS_SAMPLE_RATE_HZ"
    )
    tts_channels: int = Field(default=1, validation_alias="TTS_CHANNELS")
    tts_bits_per_sample: int = Field(
        default=16, validation_alias="TTS_BITS_PER_SAMPLE"
    )

    generation_timeout_seconds: float = Field(
        default=60.0, validation_alias="GENERATION_TIMEOUT_SECONDS"
    )
    transcription_timeout_seconds: float = Field(
        default=30.0, validation_alias="TRANSCRIPTION_TIMEOUT_SECONDS"
    )
    synthesis_timeout_seconds: float = Field(
        default=20.0, validation_alias="SYNTHESIS_TIMEOUT_SECONDS"
    )
    tool_timeout_seconds: float = Field(
        default=10.0, validation_alias="TOOL_TIMEOUT_SECONDS"
    )
    agent_timeout_seconds: float = Field(
        default=30.0, validation_alias="AGENT_TIMEOUT_SECONDS"
    )
    request_timeout_seconds: float = Field(
        default=120.0, validation_alias="REQUEST_TIMEOUT_SECONDS"
    )
    max_tool_rounds: int = Field(default=5, ge=1, validation_alias="MAX_TOOL_ROUNDS")

    market_forecast_mode: str = Field(
        default="tools", validation_alias="MARKET_FORECAST_MODE"
    )
    scheme_navigation_mode: str = Field(
        default="tools", validation_alias="SCHEME_NAVIGATION_MODE"
    )
    agent_base_url: str = Field(
        default=DEFAULT_AGENT_BASE_URL, validation_alias="AGENT_BASE_URL"
    )
    agent_api_key: Optional[str] = Field(default=None, validation_alias="AGENT_API_KEY")

    market_data_provider: str = Field(
        default="mock", validation_alias="MARKET_DATA_PROVIDER"
    )
    market_data_api_url: Optional[str] = Field(
        default=None, validation_alias="MARKET_DATA_API_URL"
    )
    market_data_api_key: Optional[str] = Field(
        default=None, validation_alias="MARKET_DATA_API_KEY"
    )
    scheme_search_provider: str = Field(
        default="mock", validation_alias="SCHEME_SEARCH_PROVIDER"
    )
    scheme_search_api_url: Optional[str] = Field(
        default=None, validation_alias="SCHEME_SEARCH_API_URL"
    )
    scheme_search_api_key: Optional[str] = Field(
        default=None, validation_alias="SCHEME_SEARCH_API_KEY"
    )

    voice_default_language: str = Field(
        default="Kannada", validation_alias="VOICE_DEFAULT_LANGUAGE"
    )
    voice_reasoning_mode: str = Field(
        default="general", validation_alias="VOICE_REASONING_MODE"
    )

    log_path: Optional[str] = Field(default=None, validation_alias="LOG_PATH")
    fastapi_port: int = Field(default=8000, validation_alias="FASTAPI_PORT")
    cors_allow_origins: str = Field(default="*", validation_alias="CORS_ALLOW_ORIGINS")

    @field_validator("llm_provider", mode="after")
    @classmethod
    def normalize_llm_provider(cls, value: str) -> str:
        return value.lower() if value else value

    @field_validator(
        "market_forecast_mode",
        "scheme_navigation_mode",
        "voice_reasoning_mode",
        mode="after",
    )
    @classmethod
    def normalize_mode(cls, value: str) -> str:
        return value.strip().lower() if value else value

    @field_validator(
        "market_data_provider",
        "scheme_search_provider",
        mode="after",
    )
    @classmethod
    def normalize_tool_provider(cls, value: str) -> str:
        return value.lower() if value else value

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig()
