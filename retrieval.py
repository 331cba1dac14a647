"""
Knowledge retrieval for the session chat backend.

Provides the Retriever interface and its implementations:
- QdrantRetriever: Cohere query embedding + Qdrant similarity search
- StaticRetriever: fixed passage, used for demos and tests
"""

import logging
from typing import Optional, Protocol, runtime_checkable

import cohere
from qdrant_client import QdrantClient

from errors import RetrievalFailure
from models import KnowledgeChunk


logger = logging.getLogger("chatbot-backend")


@runtime_checkable
class Retriever(Protocol):
    """Anything that can find the most relevant passage for a query."""

    def search(self, query: str) -> Optional[str]: ...


class QdrantRetriever:
    """
    Vector search over a Qdrant collection.

    This retriever:
    1. Embeds the query using Cohere (``input_type="search_query"``)
    2. Searches the Qdrant collection for the top ``limit`` chunks
    3. Returns the best chunk above ``score_threshold`` as plain text
    """

    def __init__(
        self,
        qdrant: QdrantClient,
        cohere_client: cohere.Client,
        collection_name: str,
        embed_model: str = "embed-v4.0",
        limit: int = 5,
        score_threshold: float = 0.4,
        max_chars: int = 1200,
    ):
        self.qdrant = qdrant
        self.cohere = cohere_client
        self.collection_name = collection_name
        self.embed_model = embed_model
        self.limit = limit
        self.score_threshold = score_threshold
        self.max_chars = max_chars

    def rank(self, query: str) -> list[KnowledgeChunk]:
        """
        Search the knowledge base for passages relevant to ``query``.

        Args:
            query: Free-text search query

        Returns:
            Chunks ordered by relevance, best first (possibly empty)

        Raises:
            RetrievalFailure: If the embedding or search call fails
        """
        try:
            # Step 1: Embed query using Cohere
            embedding_response = self.cohere.embed(
                texts=[query],
                model=self.embed_model,
                input_type="search_query"
            )
            query_embedding = embedding_response.embeddings[0]

            # Step 2: Search Qdrant vector database
            points = self.qdrant.query_points(
                collection_name=self.collection_name,
                query=query_embedding,
                limit=self.limit,
                score_threshold=self.score_threshold
            ).points
        except Exception as e:
            logger.error(f"Retrieval error: {str(e)}", exc_info=True)
            raise RetrievalFailure(f"{type(e).__name__}: {e}") from e

        chunks = []
        for point in points:
            payload = point.payload or {}
            content = payload.get("content", "")
            if not content:
                continue
            chunks.append(KnowledgeChunk(
                content=content,
                source=payload.get("source_file") or payload.get("source"),
                title=payload.get("title") or payload.get("chapter_title"),
                relevance_score=point.score
            ))

        chunks.sort(key=lambda chunk: chunk.relevance_score, reverse=True)
        return chunks

    def search(self, query: str) -> Optional[str]:
        """Return the best passage for ``query``, or None if nothing matched."""
        chunks = self.rank(query)
        if not chunks:
            logger.info("No relevant passage found", extra={"query_length": len(query)})
            return None

        best = chunks[0]
        if len(best.content) > self.max_chars:
            best = best.model_copy(update={"content": best.content[:self.max_chars] + "..."})
        return best.to_context_text()


class StaticRetriever:
    """Retriever that always answers with the same passage."""

    def __init__(self, passage: Optional[str]):
        self.passage = passage
        self.queries: list[str] = []

    def search(self, query: str) -> Optional[str]:
        self.queries.append(query)
        return self.passage
