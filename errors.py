"""
Error types and user-facing error messages for the session chat backend.

Every error carries a stable code so the HTTP layer can report a generic,
user-friendly message while the provider details stay in the logs.
"""

from typing import Optional

from fastapi import status


# ========== Error Code Mappings ==========

ERROR_MESSAGES = {
    # Agent/LLM Errors (ERR_AGENT_001-099)
    "ERR_AGENT_001": "The chatbot is temporarily unavailable. Please try again in a moment.",
    "ERR_AGENT_002": "The chatbot took too long to answer. Please try again.",
    "ERR_AGENT_003": "Failed to generate response. Please try again.",

    # Tool/Knowledge Retrieval Errors (ERR_TOOL_001-099)
    "ERR_TOOL_001": "Could not retrieve reference content. Please try again.",

    # Input Validation Errors (ERR_VAL_001-099)
    "ERR_VAL_001": "Your message appears to be empty. Please ask a question.",
    "ERR_VAL_002": "Your message is too long. Please keep it under 2000 characters.",
    "ERR_VAL_003": "Invalid request format. Please check your input.",

    # Internal Errors
    "ERR_INTERNAL_001": "An unexpected error occurred. Please try again later.",
}


# ========== Custom Exceptions ==========

class ChatbotError(Exception):
    """Base exception for chatbot-specific errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "ERR_INTERNAL_001"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, details: dict = None):
        self.code = code or self.default_code
        self.message = message or ERROR_MESSAGES.get(self.code, ERROR_MESSAGES["ERR_INTERNAL_001"])
        self.details = details or {}
        super().__init__(self.message)


class CompletionFailure(ChatbotError):
    """
    The completion provider did not produce a usable reply.

    Covers network errors, provider errors, rate limits, timeouts and
    malformed (empty) replies. The detail string is for logs only.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "ERR_AGENT_001"

    def __init__(self, reason: str, code: Optional[str] = None):
        self.reason = reason
        super().__init__(code=code)


class RetrievalFailure(ChatbotError):
    """The retrieval collaborator failed to answer a query."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "ERR_TOOL_001"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__()


class InvalidInput(ChatbotError):
    """Missing or malformed session_id / message at the HTTP boundary."""

    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    default_code = "ERR_VAL_003"
