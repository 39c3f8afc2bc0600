"""Question answering over ingested documents.

Flow: question → embedding (with retry) → nearest-neighbour lookup →
grounding prompt → generation client → answer text.
"""

import logging

from pdfchat.embedding.provider import EmbeddingProvider
from pdfchat.exceptions import EmbeddingFailed, EmptyQuestion, InvalidEmbedding
from pdfchat.llm.client import GenerationClient
from pdfchat.llm.deadline import Deadline
from pdfchat.models.chunk import validate_embedding
from pdfchat.retrieval.prompt import build_prompt
from pdfchat.vectorstore.store import ChunkStore

logger = logging.getLogger(__name__)

NO_RELEVANT_EXCERPTS_MESSAGE = "I couldn't find any relevant document excerpts to answer that."


class RetrievalPipeline:
    """Answers questions from the chunks held in a ChunkStore."""

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingProvider,
        generator: GenerationClient,
        top_k: int = 6,
        embed_attempts: int = 2,
        embed_backoff: float = 0.3,
        request_deadline: float | None = 300.0,
    ):
        self._store = store
        self._embedder = embedder
        self._generator = generator
        self._top_k = top_k
        self._embed_attempts = embed_attempts
        self._embed_backoff = embed_backoff
        self._request_deadline = request_deadline

    def answer(self, question: str | None) -> str:
        """Answer a question grounded in the nearest stored excerpts.

        Returns NO_RELEVANT_EXCERPTS_MESSAGE without calling the LLM when
        the store has no embedded chunks to offer.

        Raises:
            EmptyQuestion: If the question is missing or blank.
            EmbeddingFailed: If the question could not be embedded.
            NoWorkingEndpoint: If no generation endpoint answered.
        """
        if question is None or not question.strip():
            raise EmptyQuestion("question must not be null or blank")

        deadline = Deadline(self._request_deadline)

        vector = self.embed_with_retry(question, self._embed_attempts, deadline)
        if vector is None:
            raise EmbeddingFailed("Failed to generate query embedding from the LLM service")

        excerpts = self._store.nearest_neighbors(vector, self._top_k)
        if not excerpts:
            logger.info("No excerpts found for question (len=%d)", len(question))
            return NO_RELEVANT_EXCERPTS_MESSAGE

        prompt = build_prompt(excerpts, question)
        answer = self._generator.generate(prompt, deadline=deadline)
        return answer or ""

    def embed_with_retry(
        self,
        text: str,
        max_attempts: int,
        deadline: Deadline | None = None,
    ) -> list[float] | None:
        """Embed text, backing off ``embed_backoff * attempt`` between attempts.

        Returns None after max_attempts failures or once the deadline expires.
        """
        deadline = deadline or Deadline()
        for attempt in range(1, max_attempts + 1):
            if deadline.expired:
                logger.warning("Request deadline reached before embed attempt %d", attempt)
                break

            try:
                embedding = self._embedder.embed(text, deadline=deadline)
            except Exception as e:
                logger.warning("Embed attempt %d raised: %s", attempt, e)
                embedding = None

            if embedding:
                try:
                    return validate_embedding(embedding)
                except InvalidEmbedding as e:
                    logger.warning("Embed attempt %d returned an invalid vector: %s", attempt, e)
            else:
                logger.warning("Embedding returned empty on attempt %d", attempt)

            if attempt < max_attempts:
                deadline.sleep(self._embed_backoff * attempt)

        logger.error("Embedding failed after %d attempts for text length=%d", max_attempts, len(text))
        return None
