"""
Runtime execution context.

Provides Runtime with live access to session-owned imperative resources
needed for command execution and side effects (gateway, transport,
conversation log, caller callbacks).

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from context.conversation_log import ConversationLog
from orchestrator.enums.mode import CallMode
from orchestrator.state_dataclass import AccessGrant
from transport.base import TransportProtocol

if TYPE_CHECKING:
    from session.agent_session import AgentSession


# ---------------------------------------------------------------------
# Capability Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class GatewayProtocol(Protocol):
    """
    Access-grant gateway.

    Contract:
    - Exactly one outbound request per call
    - Returns an AccessGrant or raises (GatewayError preferred)
    """

    async def request_grant(
        self,
        *,
        agent_id: str,
        api_key: str,
        mode: CallMode,
    ) -> AccessGrant: ...


# ---------------------------------------------------------------------
# Runtime Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for Runtime.

    This object provides *live views* into session-owned resources
    so Runtime does not need to synchronize or cache anything.

    Runtime is allowed to:
    - Call the gateway and the transport
    - Append to and clear the conversation log
    - Invoke caller callbacks

    Runtime is NOT allowed to:
    - Mutate session state directly
    - Perform orchestration decisions
    """

    def __init__(self, session: AgentSession) -> None:
        self.session = session

    def log_context(self) -> dict[str, Any]:
        return self.session.log_context()

    # ----------------------------
    # Capabilities
    # ----------------------------

    @property
    def gateway(self) -> GatewayProtocol | None:
        return self.session.gateway

    @property
    def transport(self) -> TransportProtocol | None:
        return self.session.transport

    @property
    def conversation_log(self) -> ConversationLog:
        return self.session.conversation_log

    # ----------------------------
    # Callbacks
    # ----------------------------

    @property
    def on_error(self) -> Callable[..., Any] | None:
        return self.session.on_error

    @property
    def on_transcript(self) -> Callable[..., Any] | None:
        return self.session.on_transcript

    @property
    def on_state_change(self) -> Callable[..., Any] | None:
        return self.session.on_state_change
