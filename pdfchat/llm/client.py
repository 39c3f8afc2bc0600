"""Resilient generation client for the local LLM service.

The service's response format is not statically known: it varies by
endpoint and by model, and the native completion endpoint may answer
with a partial result that has to be polled to completion. The client

1. probes the candidate endpoint shapes in order until one answers,
2. classifies that single response (streaming, output list, choices,
   results, messages, short payload, raw JSON) into text, polling where
   the shape calls for it,
3. extracts the final answer from the text.

Only exhaustion of every endpoint candidate is terminal (NoWorkingEndpoint).
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from pdfchat.exceptions import EndpointNotFound, NoWorkingEndpoint
from pdfchat.llm.answer import extract_final_answer
from pdfchat.llm.classifiers import as_text, serialize_payload, streaming_partial
from pdfchat.llm.deadline import Deadline
from pdfchat.llm.endpoints import EndpointStrategy, default_endpoints

logger = logging.getLogger(__name__)

DEFAULT_GENERATE_TIMEOUT = 300.0


@dataclass(frozen=True)
class PollingPolicy:
    """Attempt budgets and backoff for the two polling loops.

    Streaming polls back off by ``poll_base_delay * attempt``; short-payload
    polls by ``short_poll_base_delay * attempt``.
    """

    max_poll_attempts: int = 10
    poll_base_delay: float = 0.8
    short_poll_enabled: bool = True
    short_response_threshold: int = 30
    short_poll_attempts: int = 5
    short_poll_base_delay: float = 0.6
    short_poll_min_length: int = 20


class GenerationClient:
    """Sends prompts to the LLM service and returns answer text."""

    def __init__(
        self,
        base_url: str,
        model: str = "mistral",
        max_tokens: int = 1024,
        timeout: float = DEFAULT_GENERATE_TIMEOUT,
        policy: PollingPolicy | None = None,
        session: requests.Session | None = None,
        endpoints: list[EndpointStrategy] | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._policy = policy or PollingPolicy()
        self._session = session or requests.Session()
        self._endpoints = endpoints if endpoints is not None else default_endpoints()

    @property
    def model(self) -> str:
        return self._model

    def generate(self, prompt: str | None, deadline: Deadline | None = None) -> str:
        """Generate the final answer text for a prompt.

        Returns an empty string for a missing or empty prompt.

        Raises:
            NoWorkingEndpoint: If every candidate endpoint failed.
        """
        if not prompt:
            return ""
        return extract_final_answer(self.generate_raw(prompt, deadline))

    def generate_raw(self, prompt: str | None, deadline: Deadline | None = None) -> str:
        """Call the endpoints in order and return the raw model text (not JSON)."""
        if not prompt:
            return ""
        deadline = deadline or Deadline()

        for endpoint in self._endpoints:
            if deadline.expired:
                logger.warning("Request deadline exceeded before %s was tried", endpoint.path)
                break

            body = endpoint.build_body(prompt, self._model, self._max_tokens)
            logger.debug("Trying LLM endpoint %s", endpoint.path)
            try:
                payload = endpoint.request(
                    self._session, self._base_url, body, deadline.timeout(self._timeout)
                )
            except EndpointNotFound:
                logger.info("Endpoint %s not found, trying next", endpoint.path)
                continue
            except (requests.RequestException, ValueError) as e:
                logger.warning("Error calling %s: %s", endpoint.path, e)
                continue

            if payload is None:
                logger.warning("Null response from %s. Trying next endpoint.", endpoint.path)
                continue

            logger.debug("Initial response from %s: %s", endpoint.path, serialize_payload(payload)[:500])
            return self._resolve(endpoint, body, payload, deadline)

        raise NoWorkingEndpoint("No working LLM endpoint found or generation failed")

    def _resolve(self, endpoint: EndpointStrategy, body: dict, payload: Any, deadline: Deadline) -> str:
        partial = streaming_partial(payload)
        if partial is not None:
            return self._poll_until_done(endpoint, body, partial.text, partial.done, deadline)

        classified = endpoint.classify(payload)
        if classified is not None:
            shape, text = classified
            logger.debug("Classified %s response as %s", endpoint.path, shape.value)
            return text

        serialized = serialize_payload(payload)
        if self._policy.short_poll_enabled and len(serialized) < self._policy.short_response_threshold:
            return self._short_poll(endpoint, body, serialized, deadline)

        return serialized

    def _poll_until_done(
        self,
        endpoint: EndpointStrategy,
        body: dict,
        text: str,
        done: bool,
        deadline: Deadline,
    ) -> str:
        """Re-issue the request until the service reports completion.

        Returns the last partial text observed when completion is reached,
        the attempt budget runs out, or the deadline expires.
        """
        attempt = 0
        while not done and attempt < self._policy.max_poll_attempts:
            attempt += 1
            deadline.sleep(self._policy.poll_base_delay * attempt)
            follow = self._poll(endpoint, body, deadline, attempt)
            if follow is None:
                break
            if isinstance(follow, dict):
                if "response" in follow:
                    text = as_text(follow["response"])
                if "done" in follow:
                    done = bool(follow["done"])

        if not done:
            logger.warning("Generation on %s incomplete after %d polls", endpoint.path, attempt)
        return text

    def _short_poll(self, endpoint: EndpointStrategy, body: dict, serialized: str, deadline: Deadline) -> str:
        """Poll a suspiciously short payload a few times hoping for more text.

        Brevity is treated as transient regardless of which endpoint
        answered; ``PollingPolicy.short_poll_enabled`` turns this off.
        """
        last = serialized
        for attempt in range(1, self._policy.short_poll_attempts + 1):
            deadline.sleep(self._policy.short_poll_base_delay * attempt)
            follow = self._poll(endpoint, body, deadline, attempt)
            if follow is None:
                break
            classified = endpoint.classify(follow)
            if classified is not None:
                last = classified[1]
            if len(last) > self._policy.short_poll_min_length:
                return last
        return last

    def _poll(self, endpoint: EndpointStrategy, body: dict, deadline: Deadline, attempt: int) -> Any:
        """One poll request; None when the poll failed or time ran out."""
        if deadline.expired:
            logger.warning("Request deadline reached while polling %s", endpoint.path)
            return None
        try:
            follow = endpoint.request(self._session, self._base_url, body, deadline.timeout(self._timeout))
        except (EndpointNotFound, requests.RequestException, ValueError) as e:
            logger.warning("Poll #%d to %s failed: %s", attempt, endpoint.path, e)
            return None
        if follow is not None:
            logger.debug("Poll #%d response from %s: %s", attempt, endpoint.path, serialize_payload(follow)[:500])
        return follow
