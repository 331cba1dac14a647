"""
FastAPI application entrypoint for the session chat backend.

Includes:
- Application lifecycle management
- Chat and session transcript endpoints
- Health check endpoint
- CORS middleware configuration
- Error handling with user-friendly messages
"""

from typing import Optional
import logging
import time

import uvicorn

from fastapi import Depends, FastAPI, status, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from config import settings
from database import lifespan, get_orchestrator, get_retriever, get_session_store
from errors import ChatbotError, InvalidInput
from middleware import register_middleware
from models import ChatRequest, ChatResponse, ErrorResponse, TranscriptResponse
from orchestrator import ResponseOrchestrator
from retrieval import Retriever
from session import SessionStore


# ========== Logging Setup ==========

logger = logging.getLogger("chatbot-backend")


# Create FastAPI app with lifespan context manager
app = FastAPI(
    title="Session Chat Backend API",
    version="1.0.0",
    description="Session-aware chat backend with optional retrieval-augmented prompts",
    lifespan=lifespan
)


# ========== CORS Configuration ==========

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register additional middleware (rate limiting, logging)
register_middleware(app)


# ========== Exception Handlers ==========

def _error_body(exc: ChatbotError) -> dict:
    return ErrorResponse(error=exc.message, code=exc.code, details=exc.details).model_dump()


def _invalid_input_from(errors: list[dict]) -> InvalidInput:
    """Pick the most specific validation code for the first failing field."""
    summary = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in errors
    ]
    code = "ERR_VAL_003"
    for err in errors:
        if tuple(err.get("loc", ()))[-1:] != ("message",):
            continue
        if err.get("type") == "string_too_long":
            code = "ERR_VAL_002"
        elif err.get("type") in ("string_too_short", "value_error"):
            code = "ERR_VAL_001"
        break
    return InvalidInput(code=code, details={"validation_errors": summary})


@app.exception_handler(ChatbotError)
async def chatbot_error_handler(request: Request, exc: ChatbotError):
    """
    Handle custom ChatbotError exceptions.

    Provider details (``reason``) are logged but never returned to the caller.
    """
    logger.error(
        f"ChatbotError: {exc.code} - {getattr(exc, 'reason', exc.message)}",
        extra={
            "code": exc.code,
            "details": exc.details,
            "path": request.url.path
        }
    )

    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle Pydantic validation errors from request body.

    Args:
        request: Incoming request
        exc: RequestValidationError exception

    Returns:
        JSONResponse with user-friendly error message
    """
    invalid = _invalid_input_from(exc.errors())

    logger.warning(
        f"Validation error: {invalid.code}",
        extra={
            "errors": invalid.details["validation_errors"],
            "path": request.url.path
        }
    )

    return JSONResponse(status_code=invalid.status_code, content=_error_body(invalid))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        f"Unexpected error: {str(exc)}",
        extra={
            "type": type(exc).__name__,
            "path": request.url.path
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="An unexpected error occurred. Please try again later.",
            code="ERR_INTERNAL_001",
            details={"type": type(exc).__name__}
        ).model_dump()
    )


# ========== Chat Endpoint ==========

@app.post(
    "/v1/chat",
    status_code=status.HTTP_200_OK,
    response_model=ChatResponse,
    tags=["Chat"]
)
async def chat(
    payload: ChatRequest,
    request: Request,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
    retriever: Optional[Retriever] = Depends(get_retriever),
):
    """
    Send a chat message and receive the assistant's reply.

    Process:
    1. Retrieve the best reference passage (if retrieval is configured)
    2. Let the orchestrator replay the session history and call the model
    3. Return the reply

    Raises:
        RetrievalFailure: If the vector search fails
        CompletionFailure: If the completion provider fails; the session is unchanged
    """
    start_time = time.time()
    logger.info(
        f"Chat message for session {payload.session_id!r}",
        extra={
            "session_id": payload.session_id,
            "correlation_id": getattr(request.state, "correlation_id", None),
            "message_length": len(payload.message)
        }
    )

    context_text = None
    if retriever is not None:
        context_text = await run_in_threadpool(retriever.search, payload.message)

    reply = await orchestrator.respond(payload.session_id, payload.message, context_text)

    return ChatResponse(
        response=reply,
        session_id=payload.session_id,
        processing_time_ms=int((time.time() - start_time) * 1000)
    )


# ========== Session Endpoints ==========

@app.get(
    "/v1/sessions/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=TranscriptResponse,
    tags=["Sessions"]
)
async def get_transcript(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Return a session's transcript, oldest first (empty for unknown sessions)."""
    return TranscriptResponse(session_id=session_id, turns=store.get(session_id))


@app.delete("/v1/sessions/{session_id}", tags=["Sessions"])
async def delete_session(
    session_id: str,
    orchestrator: ResponseOrchestrator = Depends(get_orchestrator),
):
    """Discard a session's transcript."""
    return {"session_id": session_id, "cleared": await orchestrator.forget(session_id)}


# ========== Health Check Endpoint ==========

@app.get(
    "/v1/health",
    status_code=status.HTTP_200_OK,
    response_model=dict,
    tags=["Health"]
)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        JSON response with status, version and retrieval availability
    """
    return {
        "status": "healthy",
        "version": "1.0.0",
        "service": "session-chat-backend",
        "retrieval": getattr(request.app.state, "retriever", None) is not None
    }


# ========== Root Endpoint ==========

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Session Chat Backend API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/v1/health"
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
