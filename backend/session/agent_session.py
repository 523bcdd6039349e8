"""
Agent session container.

- Owns the conversation log and the wired capabilities (gateway, transport)
- Holds the caller's callbacks
- NOT a state machine
- Contains no orchestration logic
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from context.conversation_log import ConversationLog

if TYPE_CHECKING:
    from orchestrator.runtime_context import GatewayProtocol
    from transport.base import TransportProtocol


Callback = Callable[..., Any]


@dataclass
class AgentSession:
    """Mutable runtime container for one orchestrator instance."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Capabilities (concrete, side-effectful)
    # ------------------------------------------------------------------

    gateway: GatewayProtocol | None = None
    transport: TransportProtocol | None = None

    # ------------------------------------------------------------------
    # Caller callbacks
    # ------------------------------------------------------------------

    on_error: Callback | None = None
    on_transcript: Callback | None = None
    on_state_change: Callback | None = None

    # ------------------------------------------------------------------
    # Session-owned objects
    # ------------------------------------------------------------------

    conversation_log: ConversationLog = field(init=False)

    def __post_init__(self) -> None:
        self.conversation_log = ConversationLog(session_id=self.session_id)

    def log_context(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "session_age_s": round(time.time() - self.created_at, 3),
        }
