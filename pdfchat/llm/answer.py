"""Extraction of the final answer from raw model text."""

import re

INCOMPLETE_ANSWER_MESSAGE = "I couldn't generate a complete answer. Please try again."

# Case-insensitive, searched across the whole payload rather than per line
ANSWER_MARKER = re.compile(r"answer:(.*)", re.IGNORECASE | re.DOTALL)


def extract_final_answer(raw_text: str | None) -> str:
    """Return the human-readable answer from the model's raw output.

    Prefers the text after the first ``Answer:`` marker. A marker followed
    by nothing (or by the bare word "Answer") falls back to the whole
    response when it is longer than 10 characters. Without a marker, a
    response of two words or fewer is treated as an incomplete generation.
    """
    if raw_text is None:
        return ""

    trimmed = raw_text.strip()

    match = ANSWER_MARKER.search(raw_text)
    if match:
        after = match.group(1).strip()
        if not after or after.lower() == "answer":
            if len(trimmed) > 10:
                return trimmed
            return INCOMPLETE_ANSWER_MESSAGE
        return after

    if len(trimmed.split()) <= 2:
        return INCOMPLETE_ANSWER_MESSAGE

    return trimmed
