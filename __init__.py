"""
Session Chat Backend API Package.

This package provides a FastAPI-based chat backend that keeps per-session
conversation history in memory and optionally augments prompts with
passages retrieved from a Qdrant vector store.
"""

__version__ = "1.0.0"
