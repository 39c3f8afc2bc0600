"""Embedding client for the local LLM service's embedding endpoint."""

import json
import logging
from typing import Any

import requests

from pdfchat.embedding.provider import EmbeddingProvider
from pdfchat.exceptions import EmbeddingUnavailable
from pdfchat.llm.deadline import Deadline

logger = logging.getLogger(__name__)

EMBED_PATH = "/api/embed"
DEFAULT_EMBED_TIMEOUT = 10.0


def _first(items: Any) -> Any:
    if isinstance(items, list) and items:
        return items[0]
    return None


def _is_numeric_vector(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in value
    )


def normalize_embedding_response(payload: Any) -> list[float]:
    """Pull the embedding vector out of a service response.

    Checked in order: a direct ``embedding`` vector; an ``embeddings``
    list-of-vectors (first element); a ``data`` list-of-records whose
    first record carries an ``embedding``.

    Raises:
        EmbeddingUnavailable: If no shape matches or the value is not a
            non-empty list of numbers.
    """
    if not isinstance(payload, dict):
        raise EmbeddingUnavailable(f"unexpected embed response type: {type(payload).__name__}")

    vector = None
    if isinstance(payload.get("embedding"), list):
        vector = payload["embedding"]
    elif isinstance(payload.get("embeddings"), list):
        embeddings = payload["embeddings"]
        # Some servers return a flat vector under "embeddings"
        vector = embeddings[0] if isinstance(_first(embeddings), list) else embeddings
    elif isinstance(payload.get("data"), list):
        record = _first(payload["data"])
        if isinstance(record, dict):
            vector = record.get("embedding")

    if not _is_numeric_vector(vector):
        raise EmbeddingUnavailable(f"unexpected embed response shape: {json.dumps(payload)[:200]}")

    try:
        return [float(v) for v in vector]
    except (OverflowError, TypeError) as e:
        raise EmbeddingUnavailable(f"embedding values not representable as floats: {e}") from e


class OllamaEmbeddingClient(EmbeddingProvider):
    """Embedding provider backed by the LLM service's HTTP embed endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str = "mxbai-embed-large",
        timeout: float = DEFAULT_EMBED_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def model(self) -> str:
        return self._model

    def embed(self, text: str, deadline: Deadline | None = None) -> list[float] | None:
        if text is None:
            return None
        try:
            payload = self._request(text, deadline or Deadline())
            return normalize_embedding_response(payload)
        except EmbeddingUnavailable as e:
            logger.error("Embedding unavailable for text len=%d: %s", len(text), e)
            return None

    def _request(self, text: str, deadline: Deadline) -> Any:
        if deadline.expired:
            raise EmbeddingUnavailable("request deadline exceeded")

        body = {"model": self._model, "input": text}
        try:
            resp = self._session.post(
                f"{self._base_url}{EMBED_PATH}",
                json=body,
                timeout=deadline.timeout(self._timeout),
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise EmbeddingUnavailable(f"embed request failed: {e}") from e

        if payload is None:
            raise EmbeddingUnavailable("embed returned an empty response")

        logger.debug("Raw embed response keys: %s", list(payload) if isinstance(payload, dict) else type(payload))
        return payload
