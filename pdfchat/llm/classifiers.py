"""Response-shape classifiers for generation payloads.

The LLM service answers in several JSON shapes depending on endpoint
and model. Each classifier is a pure function that inspects a decoded
payload and returns the extracted text, or None when the payload does
not have that shape. ``classify_payload`` applies them in priority order.
"""

import json
from typing import Any, Callable, NamedTuple

from pdfchat.models.enums import PayloadShape


class StreamingPartial(NamedTuple):
    """Partial text plus completion flag from a streaming-shape payload."""
    text: str
    done: bool


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def serialize_payload(payload: Any) -> str:
    """Compact JSON rendering used for length checks and last-resort text."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def streaming_partial(payload: Any) -> StreamingPartial | None:
    """Match ``{"response": ..., "done": ...}``."""
    if isinstance(payload, dict) and "response" in payload and "done" in payload:
        return StreamingPartial(as_text(payload["response"]), bool(payload["done"]))
    return None


def classify_streaming(payload: Any) -> str | None:
    partial = streaming_partial(payload)
    return partial.text if partial else None


def classify_output_list(payload: Any) -> str | None:
    """Concatenate an ``output`` list of strings."""
    if not isinstance(payload, dict) or not isinstance(payload.get("output"), list):
        return None
    text = "".join(as_text(item) for item in payload["output"])
    return text if text.strip() else None


def classify_choices(payload: Any) -> str | None:
    """OpenAI style: first choice's message content, else its text."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    first = choices[0]
    message = first.get("message")
    if isinstance(message, dict) and "content" in message:
        return as_text(message["content"])
    if "text" in first:
        return as_text(first["text"])
    return None


def classify_results(payload: Any) -> str | None:
    """First ``results`` record's content."""
    if not isinstance(payload, dict):
        return None
    results = payload.get("results")
    if isinstance(results, list) and results and isinstance(results[0], dict) and "content" in results[0]:
        return as_text(results[0]["content"])
    return None


def classify_messages(payload: Any) -> str | None:
    """Per message, any text field then any content field, in list order."""
    if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
        return None
    parts = []
    for message in payload["messages"]:
        if not isinstance(message, dict):
            continue
        if "text" in message:
            parts.append(as_text(message["text"]))
        if "content" in message:
            parts.append(as_text(message["content"]))
    text = "".join(parts)
    return text if text else None


Classifier = Callable[[Any], str | None]

CLASSIFIERS: list[tuple[PayloadShape, Classifier]] = [
    (PayloadShape.STREAMING, classify_streaming),
    (PayloadShape.OUTPUT_LIST, classify_output_list),
    (PayloadShape.CHOICES, classify_choices),
    (PayloadShape.RESULTS, classify_results),
    (PayloadShape.MESSAGES, classify_messages),
]


def classify_payload(payload: Any) -> tuple[PayloadShape, str] | None:
    """Return the first matching shape and its extracted text, or None."""
    for shape, classifier in CLASSIFIERS:
        text = classifier(payload)
        if text is not None:
            return shape, text
    return None
