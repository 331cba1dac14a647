"""
Shared fixtures for the session chat backend tests.

Environment defaults are set before any application module is imported so
``config.settings`` can be built without a real provider key.
"""

import asyncio
import os

os.environ.setdefault("LLM_API_KEY", "test-key")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")
os.environ.pop("QDRANT_URL", None)

import pytest

from errors import CompletionFailure
from orchestrator import ResponseOrchestrator
from session import SessionStore


class StubCompletionClient:
    """
    Completion collaborator double.

    Replies are served from ``replies`` in order, then fall back to
    ``"reply <n>"``. Call numbers listed in ``fail_on`` (1-based) raise
    ``CompletionFailure``. Every call is recorded in ``calls``.
    """

    def __init__(self, replies=None, fail_on=(), delay=0.0):
        self.replies = list(replies or [])
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, messages, temperature):
        self.calls.append({"messages": [dict(m) for m in messages], "temperature": temperature})
        call_number = len(self.calls)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if call_number in self.fail_on:
                raise CompletionFailure("provider returned 500")
            if self.replies:
                return self.replies.pop(0)
            return f"reply {call_number}"
        finally:
            self.in_flight -= 1


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def completion():
    return StubCompletionClient()


@pytest.fixture
def orchestrator(store, completion):
    return ResponseOrchestrator(
        store=store,
        completion=completion,
        system_prompt="You recommend books.",
        temperature=0.7,
        timeout_seconds=5.0,
    )
