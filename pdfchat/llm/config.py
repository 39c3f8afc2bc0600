"""LLM client construction from application settings."""

import requests

from config.settings import Settings, get_settings
from pdfchat.embedding.ollama import OllamaEmbeddingClient
from pdfchat.llm.client import GenerationClient, PollingPolicy


def get_polling_policy(settings: Settings | None = None) -> PollingPolicy:
    """Build the generation polling policy from the poll settings."""
    settings = settings or get_settings()
    return PollingPolicy(
        max_poll_attempts=settings.pdfchat_poll_max_attempts,
        poll_base_delay=settings.pdfchat_poll_base_delay,
        short_poll_enabled=settings.pdfchat_short_poll_enabled,
        short_response_threshold=settings.pdfchat_short_response_threshold,
        short_poll_attempts=settings.pdfchat_short_poll_attempts,
        short_poll_base_delay=settings.pdfchat_short_poll_base_delay,
        short_poll_min_length=settings.pdfchat_short_poll_min_length,
    )


def get_generation_client(
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> GenerationClient:
    """Create the generation client for the configured LLM service."""
    settings = settings or get_settings()
    return GenerationClient(
        base_url=settings.pdfchat_llm_base_url,
        model=settings.pdfchat_generation_model,
        max_tokens=settings.pdfchat_max_tokens,
        timeout=settings.pdfchat_generate_timeout,
        policy=get_polling_policy(settings),
        session=session,
    )


def get_embedding_client(
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> OllamaEmbeddingClient:
    """Create the embedding client for the configured LLM service.

    Pass the same session to both factories to share one connection pool.
    """
    settings = settings or get_settings()
    return OllamaEmbeddingClient(
        base_url=settings.pdfchat_llm_base_url,
        model=settings.pdfchat_embedding_model,
        timeout=settings.pdfchat_embed_timeout,
        session=session,
    )
