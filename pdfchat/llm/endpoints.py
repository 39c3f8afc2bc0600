"""Generation endpoint strategies, probed in a fixed order."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from pdfchat.exceptions import EndpointNotFound
from pdfchat.llm.classifiers import classify_payload
from pdfchat.models.enums import EndpointKind, PayloadShape

logger = logging.getLogger(__name__)


def decode_payload(resp: requests.Response) -> Any:
    """Decode a JSON response body.

    Native endpoints stream newline-delimited JSON unless told otherwise;
    for such bodies the first non-empty line is decoded.
    """
    try:
        return resp.json()
    except ValueError:
        for line in resp.text.splitlines():
            if line.strip():
                return json.loads(line)
        return None


class EndpointStrategy(ABC):
    """One API shape of the LLM service: how to call it and read it."""

    kind: EndpointKind
    path: str

    @abstractmethod
    def build_body(self, prompt: str, model: str, max_tokens: int) -> dict:
        ...

    def request(
        self,
        session: requests.Session,
        base_url: str,
        body: dict,
        timeout: float,
    ) -> Any:
        """POST the body and return the decoded payload.

        Raises:
            EndpointNotFound: If the service answers 404 for this path.
            requests.RequestException: On any other transport or HTTP error.
            ValueError: If the body is not JSON.
        """
        resp = session.post(f"{base_url}{self.path}", json=body, timeout=timeout)
        if resp.status_code == 404:
            raise EndpointNotFound(self.path)
        resp.raise_for_status()
        return decode_payload(resp)

    def classify(self, payload: Any) -> tuple[PayloadShape, str] | None:
        return classify_payload(payload)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path})"


class NativeCompletionEndpoint(EndpointStrategy):
    kind = EndpointKind.NATIVE_COMPLETION
    path = "/api/generate"

    def build_body(self, prompt: str, model: str, max_tokens: int) -> dict:
        return {"model": model, "prompt": prompt, "max_tokens": max_tokens}


class NativeChatEndpoint(NativeCompletionEndpoint):
    kind = EndpointKind.NATIVE_CHAT
    path = "/api/chat"


class OpenAIChatEndpoint(EndpointStrategy):
    kind = EndpointKind.OPENAI_CHAT
    path = "/v1/chat/completions"

    def build_body(self, prompt: str, model: str, max_tokens: int) -> dict:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }


def default_endpoints() -> list[EndpointStrategy]:
    """Candidates in probe order: native completion, native chat, OpenAI chat."""
    return [NativeCompletionEndpoint(), NativeChatEndpoint(), OpenAIChatEndpoint()]
