"""Error types for the PDF chat RAG pipeline.

Per-call transport and response-shape failures are absorbed inside the
LLM clients. Only exhausted retries or exhausted endpoint candidates
escalate to the caller, as a ServiceUnavailableError subclass.
"""


class PdfChatError(Exception):
    """Base class for all pdfchat errors."""


class ServiceUnavailableError(PdfChatError):
    """The LLM service could not serve the request; callers report service-unavailable."""


class EmbeddingUnavailable(PdfChatError):
    """A single embedding call failed (network, timeout, or unexpected response shape)."""


class EndpointNotFound(PdfChatError):
    """A generation endpoint answered 404."""

    def __init__(self, path: str):
        super().__init__(f"endpoint not found: {path}")
        self.path = path


class NoWorkingEndpoint(ServiceUnavailableError):
    """Every candidate generation endpoint failed."""


class EmbeddingFailed(ServiceUnavailableError):
    """The question could not be embedded after all attempts."""


class InvalidEmbedding(PdfChatError, ValueError):
    """An embedding vector holds null, NaN, infinite, or non-numeric values."""


class EmbeddingDimensionMismatch(InvalidEmbedding):
    """An embedding vector's width differs from the storage column width."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"embedding dimension must be {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class EmptyQuestion(PdfChatError, ValueError):
    """The question was missing or blank."""
