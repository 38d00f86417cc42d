"""Ollama chat client configuration for the multimodal annotation model."""

from functools import lru_cache

from langchain_ollama import ChatOllama
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    ollama_base_url: str = "http://localhost:11434"
    # Must accept image input
    model_name: str = "gemma3:latest"
    temperature: float = 0.2
    request_timeout: int = 180
    num_ctx: int = 16384
    num_predict: int = 4096  # Max tokens to generate


@lru_cache
def get_llm_settings() -> LLMSettings:
    """Get cached LLM settings."""
    return LLMSettings()


def create_vision_llm_client(settings: LLMSettings | None = None) -> ChatOllama:
    """Create a chat client that accepts text and image content parts.

    Args:
        settings: Optional custom settings. Uses defaults if not provided.

    Returns:
        Configured ChatOllama instance.
    """
    settings = settings or get_llm_settings()

    return ChatOllama(
        model=settings.model_name,
        base_url=settings.ollama_base_url,
        temperature=settings.temperature,
        num_ctx=settings.num_ctx,
        num_predict=settings.num_predict,
        client_kwargs={"timeout": settings.request_timeout},
    )
