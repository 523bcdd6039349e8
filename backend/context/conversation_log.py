"""
Conversation log.

Responsibilities:
- Store exchanged messages (agent transcripts, user-sent text) in order
- Assign unique, monotonically increasing message ids
- Provide a serializable representation for display

Non-responsibilities:
- No reducer logic
- No persistence across process restarts
- No deletion of individual entries
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Literal

from observability.logger import log_event


Sender = Literal["user", "agent"]


@dataclass(frozen=True)
class Message:
    """Single exchanged message."""
    id: int
    sender: Sender
    text: str
    timestamp: float


class ConversationLog:
    """
    Append-only message record owned by one orchestrator.

    This object is intentionally imperative:
    - Reducer decides *when* to append or clear
    - This class decides ids and timestamps

    Invariants:
    - Messages are stored in append order
    - ids are strictly increasing and never reused, even across clear()
    """

    def __init__(
        self,
        session_id: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session_id = session_id
        self._clock = clock
        self._ids = itertools.count(1)
        self._messages: list[Message] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, sender: Sender, text: str) -> Message:
        """Append one message and return it."""
        message = Message(
            id=next(self._ids),
            sender=sender,
            text=text,
            timestamp=self._clock(),
        )
        self._messages.append(message)
        return message

    def clear(self) -> None:
        """Drop all messages. Called once per new connection attempt."""
        dropped = len(self._messages)
        self._messages.clear()
        log_event({
            "event_type": "conversation_cleared",
            "session_id": self._session_id,
            "dropped": dropped,
        })

    @property
    def messages(self) -> tuple[Message, ...]:
        """Immutable snapshot of the log."""
        return tuple(self._messages)

    def serialize(self) -> list[dict[str, object]]:
        """
        Serialize messages for display.

        Output format:
        [
          {"id": 1, "sender": "agent", "text": "...", "timestamp": 1700000000.0},
          {"id": 2, "sender": "user", "text": "...", "timestamp": 1700000001.5},
        ]
        """
        return [
            {"id": m.id, "sender": m.sender, "text": m.text, "timestamp": m.timestamp}
            for m in self._messages
        ]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
