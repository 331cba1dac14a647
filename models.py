"""
Pydantic data models for the session chat backend.

Includes:
- Request/Response models (ChatRequest, ChatResponse, TranscriptResponse, ErrorResponse)
- Domain entities (Turn, KnowledgeChunk)
- Enums (MessageRole)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ========== Enums ==========

class MessageRole(str, Enum):
    """Message sender role in conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# ========== Domain Entities ==========

class Turn(BaseModel):
    """One immutable message of a session transcript."""

    role: MessageRole = Field(..., description="Message sender (user/assistant)")
    content: str = Field(..., description="Literal message text")

    model_config = ConfigDict(frozen=True)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: MessageRole) -> MessageRole:
        """System instructions are prompt-only and never stored as turns."""
        if v is MessageRole.SYSTEM:
            raise ValueError("Transcript turns must be 'user' or 'assistant'")
        return v

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Turn":
        return cls(role=MessageRole.ASSISTANT, content=content)

    def to_message(self) -> dict:
        """Convert to the role/content dict sent to the completion provider."""
        return {"role": self.role.value, "content": self.content}


class KnowledgeChunk(BaseModel):
    """Ranked passage returned by the vector search."""

    content: str = Field(..., description="Passage text")
    source: Optional[str] = Field(None, description="Where the passage came from")
    title: Optional[str] = Field(None, description="Title of the source document")
    relevance_score: float = Field(..., description="Search similarity score")

    def to_context_text(self) -> str:
        """
        Render the passage as plain text for the system instruction.

        Returns:
            Passage content followed by a source line when one is known
        """
        label = self.title or self.source
        if not label:
            return self.content
        return f"{self.content}\n\nSource: {label}"


# ========== API Request/Response Models ==========

class ChatRequest(BaseModel):
    """Request model for POST /v1/chat endpoint."""

    session_id: str = Field(
        ...,
        min_length=1,
        max_length=128,
        pattern=r"^[A-Za-z0-9_.:-]+$",
        description="Opaque conversation key chosen by the client"
    )

    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="User's question or message"
    )

    @field_validator("message")
    @classmethod
    def validate_message_content(cls, v: str) -> str:
        """Validate message is not empty or whitespace only."""
        if not v.strip():
            raise ValueError("Message cannot be empty or whitespace only")
        return v.strip()

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "session_id": "s1",
                "message": "Recommend a mystery novel"
            }]
        }
    }


class ChatResponse(BaseModel):
    """Response model for POST /v1/chat endpoint."""

    response: str = Field(..., description="Assistant reply")
    session_id: str = Field(..., description="Session the reply belongs to")
    processing_time_ms: int = Field(..., description="Total processing time in milliseconds")

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "response": "Try 'Gone Girl'.",
                "session_id": "s1",
                "processing_time_ms": 1245
            }]
        }
    }


class TranscriptResponse(BaseModel):
    """Response model for GET /v1/sessions/{session_id}."""

    session_id: str = Field(..., description="Session identifier")
    turns: list[Turn] = Field(default_factory=list, description="Transcript, oldest first")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="User-friendly error message")
    code: str = Field(..., description="Error code for support/debugging")
    details: Optional[dict] = Field(None, description="Optional additional context")

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "error": "The chatbot is temporarily unavailable. Please try again in a moment.",
                "code": "ERR_AGENT_001",
                "details": {}
            }]
        }
    }
