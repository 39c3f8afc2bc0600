"""Abstract embedding provider interface."""

from abc import ABC, abstractmethod

from pdfchat.llm.deadline import Deadline


class EmbeddingProvider(ABC):
    """Interface for single-text embedding generation.

    Implementations wrap a specific embedding backend. A failed call is
    reported by returning None rather than raising, so callers decide
    their own retry policy.
    """

    @abstractmethod
    def embed(self, text: str, deadline: Deadline | None = None) -> list[float] | None:
        """Generate an embedding vector for one text string.

        Args:
            text: Text to embed.
            deadline: Optional request deadline bounding the call.

        Returns:
            The vector as a list of floats, or None if the embedding is
            unavailable (network error, timeout, or unrecognized response).
        """
        ...
