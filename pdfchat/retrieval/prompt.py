"""Grounding prompt assembly for question answering."""

from typing import Sequence

from pdfchat.models.chunk import RetrievedExcerpt

SYSTEM_PREAMBLE = (
    "System: You are an assistant that answers user questions using ONLY the provided document excerpts. "
    "If the answer is not found in those excerpts, reply exactly: \"I don't know\".\n\n"
)

INSTRUCTIONS = (
    "=== INSTRUCTIONS ===\n"
    "- Provide one complete answer only. Start your final output with the literal prefix: "
    "\"Answer: \" followed by the answer text.\n"
    "- Do NOT return only the word \"Answer\". The text after the prefix must contain the actual answer.\n"
    "- If you must cite an excerpt, include its number in square brackets, e.g. [2].\n"
    "- If no answer is present in the excerpts, output exactly: \"I don't know\"\n\n"
)

EXAMPLE = (
    "=== EXAMPLE ===\n"
    "Question: What color is the sky?\n"
    "Answer: The sky usually appears blue during the day due to Rayleigh scattering [1].\n\n"
)

# The model continues after this cue
ANSWER_CUE = "Now answer below.\nAnswer:"


def build_prompt(excerpts: Sequence[RetrievedExcerpt], question: str) -> str:
    """Build the grounding prompt from retrieved excerpts and the question.

    Excerpts are numbered from 1 in retrieval order so the model can cite
    them as [n].
    """
    parts = [SYSTEM_PREAMBLE, "=== DOCUMENT EXCERPTS (use these only) ===\n"]
    for i, excerpt in enumerate(excerpts, start=1):
        parts.append(f"[{i}] {excerpt['content']}\n\n")

    parts.append("=== USER QUESTION ===\n")
    parts.append(f"{question}\n\n")
    parts.append(INSTRUCTIONS)
    parts.append(EXAMPLE)
    parts.append(ANSWER_CUE)
    return "".join(parts)
