"""Transition function and routing for the agent loop."""

from langchain_core.messages import AIMessage, BaseMessage

from app.graphs.state import AgentPhase, ConversationState
from app.utils.logging import get_logger

logger = get_logger(__name__)


def transition(phase: AgentPhase, message: BaseMessage | None) -> AgentPhase:
    """Compute the next phase from the current one and the message it just produced.

    AWAIT_MODEL moves to AWAIT_TOOL when the model asked for tools and to DONE
    otherwise. AWAIT_TOOL always hands back to the model. DONE is terminal.
    """
    if phase == AgentPhase.AWAIT_MODEL:
        if isinstance(message, AIMessage) and message.tool_calls:
            return AgentPhase.AWAIT_TOOL
        return AgentPhase.DONE

    if phase == AgentPhase.AWAIT_TOOL:
        return AgentPhase.AWAIT_MODEL

    raise ValueError(f"No transition out of terminal phase {phase}")


def route_by_phase(state: ConversationState) -> AgentPhase:
    """Pick the next graph node; every edge in the graph goes through here."""
    logger.debug(f"Routing on phase {state.phase}")
    return state.phase
