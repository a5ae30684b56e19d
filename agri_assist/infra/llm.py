from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from openai import OpenAI

from .config import AppConfig


def _require_openai_key(cfg: AppConfig) -> str:
    if cfg.llm_provider != "openai":
        raise ValueError(
            f"LLM_PROVIDER={cfg.llm_provider!r} does not use OpenAI models"
        )
    if not cfg.openai_api_key:
        raise ValueError("OPENAI_API_KEY is not set; cannot call the OpenAI API")
    return cfg.openai_api_key


def get_chat_model(
    cfg: AppConfig, *, model: Optional[str] = None, temperature: Optional[float] = None
) -> BaseChatModel:
    kwargs = {
        "api_key": _require_openai_key(cfg),
        "temperature": cfg.llm_temperature if temperature is None else temperature,
        "model": model or cfg.chat_model,
        "timeout": cfg.generation_timeout_seconds,
        # retries belong to the caller
        "max_retries": 0,
    }
    if cfg.openai_api_base:
        kwargs["base_url"] = cfg.openai_api_base
    return ChatOpenAI(**kwargs)


def get_audio_client(cfg: AppConfig) -> OpenAI:
    kwargs = {"api_key": _require_openai_key(cfg), "max_retries": 0}
    if cfg.openai_api_base:
        kwargs["base_url"] = cfg.openai_api_base
    return OpenAI(**kwargs)
