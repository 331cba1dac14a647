"""
Session management for the session chat backend.

Handles:
- Accumulating per-session conversation transcripts
- Reading transcripts back in chronological order
- Explicitly discarding a session's transcript
"""

import logging
import threading
from typing import Dict, Iterable, List

from models import Turn


logger = logging.getLogger("chatbot-backend")


class SessionStore:
    """
    In-memory store mapping a session id to its ordered transcript.

    Sessions are created implicitly by the first ``append`` and live for
    the lifetime of the process unless ``clear`` is called. A single lock
    guards the mapping so ``get``/``append`` are safe from any task or
    thread; serializing a whole read-call-append cycle for one session is
    the orchestrator's job.
    """

    def __init__(self) -> None:
        self._transcripts: Dict[str, List[Turn]] = {}
        self._lock = threading.Lock()

    def append(self, session_id: str, turns: Iterable[Turn]) -> None:
        """
        Append turns to a session, creating it on first use.

        Args:
            session_id: Session identifier (any string, including "")
            turns: Turns to append, in order
        """
        new_turns = list(turns)
        with self._lock:
            transcript = self._transcripts.setdefault(session_id, [])
            transcript.extend(new_turns)
            size = len(transcript)

        logger.debug(
            f"Appended {len(new_turns)} turn(s) to session {session_id!r}",
            extra={"session_id": session_id, "transcript_length": size}
        )

    def get(self, session_id: str) -> List[Turn]:
        """
        Retrieve the transcript of a session.

        Args:
            session_id: Session identifier

        Returns:
            Copy of the transcript, oldest first; empty for unseen ids
        """
        with self._lock:
            return list(self._transcripts.get(session_id, ()))

    def clear(self, session_id: str) -> bool:
        """
        Discard a session's transcript.

        Args:
            session_id: Session identifier

        Returns:
            True if the session existed, False if not found
        """
        with self._lock:
            removed = self._transcripts.pop(session_id, None)

        if removed is None:
            return False

        logger.info(
            f"Session {session_id!r} cleared",
            extra={"session_id": session_id, "turns_removed": len(removed)}
        )
        return True

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._transcripts

    def __len__(self) -> int:
        with self._lock:
            return len(self._transcripts)
