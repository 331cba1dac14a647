"""
Response orchestration for the session chat backend.

One ``respond`` call loads a session's transcript, builds the outbound
message sequence, calls the completion collaborator and, only on success,
records the new user/assistant turn pair.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Optional, Sequence

from completion import CompletionClient
from errors import CompletionFailure
from models import MessageRole, Turn
from session import SessionStore


logger = logging.getLogger("chatbot-backend")


class ResponseOrchestrator:
    """
    Builds prompts from session history and records completed exchanges.

    Args:
        store: Session store holding every transcript
        completion: Completion collaborator
        system_prompt: Static persona text for the leading system message
        temperature: Sampling temperature sent with every call
        timeout_seconds: Upper bound on one completion call
        max_history_turns: Most recent turns replayed per call (None = all)
    """

    def __init__(
        self,
        store: SessionStore,
        completion: CompletionClient,
        system_prompt: str = "",
        temperature: float = 0.7,
        timeout_seconds: Optional[float] = 30.0,
        max_history_turns: Optional[int] = None,
    ):
        self.store = store
        self.completion = completion
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        if max_history_turns is not None and max_history_turns < 2:
            raise ValueError("max_history_turns must be at least 2 (one user/assistant pair) or None")
        self.max_history_turns = max_history_turns
        self._session_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def system_instruction(self, retrieved_context_text: Optional[str] = None) -> Optional[str]:
        """Persona text, with retrieved context appended as plain text."""
        parts = []
        if self.system_prompt.strip():
            parts.append(self.system_prompt.strip())
        if retrieved_context_text and retrieved_context_text.strip():
            parts.append(
                "Use the following reference material when it is relevant:\n\n"
                + retrieved_context_text.strip()
            )
        return "\n\n".join(parts) or None

    def history_window(self, history: Sequence[Turn]) -> list[Turn]:
        """
        Most recent turns to replay to the model.

        The window never opens on an assistant turn, so the model always
        sees a reply together with the question it answered.
        """
        if self.max_history_turns is None:
            return list(history)

        window = list(history[-self.max_history_turns:])
        while window and window[0].role is MessageRole.ASSISTANT:
            window.pop(0)
        return window

    def build_messages(
        self,
        history: Sequence[Turn],
        user_text: str,
        retrieved_context_text: Optional[str] = None,
    ) -> list[dict]:
        """
        Construct the outbound message sequence.

        Returns:
            [system instruction] + history window + new user message
        """
        messages = []
        instruction = self.system_instruction(retrieved_context_text)
        if instruction is not None:
            messages.append({"role": MessageRole.SYSTEM.value, "content": instruction})
        messages.extend(turn.to_message() for turn in self.history_window(history))
        messages.append(Turn.user(user_text).to_message())
        return messages

    async def _complete(self, messages: list[dict]) -> str:
        try:
            reply = await asyncio.wait_for(
                self.completion.complete(messages, self.temperature),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise CompletionFailure(
                f"No reply within {self.timeout_seconds}s",
                code="ERR_AGENT_002"
            ) from e
        except CompletionFailure:
            raise
        except Exception as e:
            raise CompletionFailure(f"{type(e).__name__}: {e}") from e

        if not isinstance(reply, str) or not reply.strip():
            raise CompletionFailure("Empty reply from completion provider", code="ERR_AGENT_003")
        return reply

    async def respond(
        self,
        session_id: str,
        user_text: str,
        retrieved_context_text: Optional[str] = None,
    ) -> str:
        """
        Answer one user message within a session.

        Process:
        1. Load the session transcript
        2. Build system instruction + history + new user message
        3. Call the completion collaborator (bounded by the timeout)
        4. Append the user turn and the assistant turn
        5. Return the assistant text

        Args:
            session_id: Session identifier
            user_text: New user message
            retrieved_context_text: Optional passage from the retrieval collaborator

        Returns:
            The assistant reply

        Raises:
            CompletionFailure: If the completion call fails; the transcript is left untouched
        """
        async with self._session_locks[session_id]:
            history = self.store.get(session_id)
            messages = self.build_messages(history, user_text, retrieved_context_text)

            logger.info(
                f"Requesting completion for session {session_id!r}",
                extra={
                    "session_id": session_id,
                    "history_turns": len(history),
                    "message_count": len(messages),
                    "has_context": bool(retrieved_context_text)
                }
            )

            try:
                assistant_text = await self._complete(messages)
            except CompletionFailure as e:
                logger.warning(
                    f"Completion failed for session {session_id!r}: {e.reason}",
                    extra={"session_id": session_id, "code": e.code}
                )
                raise

            self.store.append(session_id, [Turn.user(user_text), Turn.assistant(assistant_text)])

        return assistant_text

    async def forget(self, session_id: str) -> bool:
        """
        Clear a session's transcript.

        Waits for an in-flight ``respond`` on the same session, so its turns
        are cleared too instead of recreating the session afterwards.
        """
        async with self._session_locks[session_id]:
            return self.store.clear(session_id)
