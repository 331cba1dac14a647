"""
Application lifecycle management for the session chat backend.

Manages shared resources on app.state:
- Session store (in-memory transcripts)
- Completion client (OpenAI-compatible provider via the Agents SDK)
- Qdrant + Cohere clients and the retriever, when retrieval is configured
- Response orchestrator wiring them together
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import cohere
from fastapi import Depends, FastAPI, Request
from qdrant_client import QdrantClient

from completion import AgentCompletionClient
from config import settings
from orchestrator import ResponseOrchestrator
from retrieval import QdrantRetriever, Retriever
from session import SessionStore


logger = logging.getLogger("chatbot-backend")


def create_retriever() -> tuple[Optional[Retriever], Optional[QdrantClient]]:
    """
    Build the Qdrant-backed retriever if both providers are configured.

    Returns:
        (retriever, qdrant_client), or (None, None) when retrieval is disabled
    """
    if not settings.retrieval_enabled:
        logger.info("Retrieval disabled: QDRANT_URL or COHERE_API_KEY not set")
        return None, None

    qdrant_client = QdrantClient(
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        timeout=settings.qdrant_timeout
    )
    cohere_client = cohere.Client(
        api_key=settings.cohere_api_key
    )
    logger.info("Qdrant and Cohere clients initialized")

    retriever = QdrantRetriever(
        qdrant=qdrant_client,
        cohere_client=cohere_client,
        collection_name=settings.qdrant_collection_name,
        embed_model=settings.cohere_embed_model,
        limit=settings.retrieval_limit,
        score_threshold=settings.retrieval_score_threshold
    )
    return retriever, qdrant_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle: startup and shutdown.

    Startup:
    - Create the session store and completion client
    - Initialize retrieval clients if configured
    - Wire the response orchestrator

    Shutdown:
    - Close the completion and vector database clients
    """
    # ========== STARTUP ==========
    store = SessionStore()
    completion_client = AgentCompletionClient()
    retriever, qdrant_client = create_retriever()

    app.state.session_store = store
    app.state.retriever = retriever
    app.state.orchestrator = ResponseOrchestrator(
        store=store,
        completion=completion_client,
        system_prompt=settings.system_prompt,
        temperature=settings.temperature,
        timeout_seconds=settings.completion_timeout_seconds,
        max_history_turns=settings.max_history_turns
    )
    logger.info(f"Application started (model={settings.llm_model}, retrieval={retriever is not None})")

    yield  # Application runs here

    # ========== SHUTDOWN ==========
    await completion_client.close()
    if qdrant_client:
        qdrant_client.close()
        logger.info("Qdrant client closed")

    logger.info(f"Shut down with {len(store)} session(s) in memory")


# ========== Dependency Getters ==========

def get_orchestrator(request: Request) -> ResponseOrchestrator:
    """
    Get the response orchestrator.

    Raises:
        RuntimeError: If the lifespan context is not running
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise RuntimeError("Orchestrator not initialized. Ensure lifespan context is running.")
    return orchestrator


def get_session_store(orchestrator: ResponseOrchestrator = Depends(get_orchestrator)) -> SessionStore:
    """Get the shared session store."""
    return orchestrator.store


def get_retriever(request: Request) -> Optional[Retriever]:
    """Get the retriever, or None when retrieval is disabled."""
    return getattr(request.app.state, "retriever", None)
