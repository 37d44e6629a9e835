"""Agent graph assembly and the turn runner."""

from collections.abc import Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.tools import BaseTool
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from app.errors import (
    AgentAuthenticationError,
    AgentError,
    AgentRateLimitedError,
    MaxRetriesExceededError,
    TurnBudgetExceededError,
)
from app.graphs.edges import route_by_phase
from app.graphs.nodes import create_agent_node, create_tools_node, error_tool_message
from app.graphs.state import AgentPhase, ConversationState
from app.models.search import InventorySearchError
from app.utils.logging import get_logger
from app.utils.retry import get_status_code

logger = get_logger(__name__)

DEFAULT_RECURSION_LIMIT = 15

PHASE_ROUTES = {
    AgentPhase.AWAIT_MODEL: AgentPhase.AWAIT_MODEL.value,
    AgentPhase.AWAIT_TOOL: AgentPhase.AWAIT_TOOL.value,
    AgentPhase.DONE: END,
}


def create_agent_graph(
    model: BaseChatModel,
    tools: Sequence[BaseTool],
    checkpointer: BaseCheckpointSaver | None = None,
    max_retries: int = 3,
) -> CompiledStateGraph:
    """Create the agent graph.

    Two nodes, one per non-terminal phase. Both leave through ``route_by_phase``,
    so the phase each node records is the only thing deciding where the turn goes.

    Args:
        model: Chat model used for generation
        tools: Tools exposed to the model
        checkpointer: Conversation state store (in-memory if omitted)
        max_retries: Attempts allowed per generation step while rate limited

    Returns:
        Compiled LangGraph workflow
    """
    logger.info("Creating agent graph")

    workflow = StateGraph(ConversationState)

    workflow.add_node(AgentPhase.AWAIT_MODEL.value, create_agent_node(model, tools, max_retries=max_retries))
    workflow.add_node(AgentPhase.AWAIT_TOOL.value, create_tools_node(tools))

    workflow.set_entry_point(AgentPhase.AWAIT_MODEL.value)

    workflow.add_conditional_edges(AgentPhase.AWAIT_MODEL.value, route_by_phase, PHASE_ROUTES)
    workflow.add_conditional_edges(AgentPhase.AWAIT_TOOL.value, route_by_phase, PHASE_ROUTES)

    return workflow.compile(checkpointer=checkpointer or MemorySaver())


def message_text(message: BaseMessage) -> str:
    """Plain text of a message, joining text blocks when content is a list."""
    if isinstance(message.content, str):
        return message.content

    parts = []
    for block in message.content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class InventoryAgent:
    """Runs conversation turns through the agent graph."""

    def __init__(
        self,
        model: BaseChatModel,
        tools: Sequence[BaseTool],
        checkpointer: BaseCheckpointSaver | None = None,
        max_retries: int = 3,
        recursion_limit: int = DEFAULT_RECURSION_LIMIT,
    ):
        """Initialize the agent.

        Args:
            model: Chat model used for generation
            tools: Tools exposed to the model
            checkpointer: Conversation state store keyed by thread id
            max_retries: Attempts allowed per generation step while rate limited
            recursion_limit: Turn budget, in graph steps
        """
        self.recursion_limit = recursion_limit
        self.graph = create_agent_graph(model, tools, checkpointer=checkpointer, max_retries=max_retries)

    def _config(self, thread_id: str) -> dict:
        return {
            "configurable": {"thread_id": thread_id},
            "recursion_limit": self.recursion_limit,
        }

    async def run(self, message: str, thread_id: str) -> str:
        """Process one user message on a thread and return the assistant's answer.

        Raises:
            AgentRateLimitedError: The provider kept rate limiting
            AgentAuthenticationError: The provider rejected the credentials
            TurnBudgetExceededError: No final answer within the turn budget
            AgentError: Anything else that went wrong
        """
        logger.info(f"Processing message for thread {thread_id}")

        try:
            result = await self.graph.ainvoke(
                {"messages": [HumanMessage(content=message)], "phase": AgentPhase.AWAIT_MODEL},
                self._config(thread_id),
            )
        except GraphRecursionError as e:
            logger.error(f"Thread {thread_id} exceeded the turn budget of {self.recursion_limit} steps")
            await self._close_pending_tool_calls(thread_id)
            raise TurnBudgetExceededError(self.recursion_limit) from e
        except MaxRetriesExceededError as e:
            logger.error(f"Error in agent for thread {thread_id}: {e}")
            raise AgentRateLimitedError() from e
        except Exception as e:
            logger.error(f"Error in agent for thread {thread_id}: {e}", exc_info=True)
            status_code = get_status_code(e)
            if status_code == 429:
                raise AgentRateLimitedError() from e
            if status_code == 401:
                raise AgentAuthenticationError() from e
            raise AgentError(f"Agent failed: {e}") from e

        response = message_text(result["messages"][-1])
        logger.info(f"Agent response for thread {thread_id}: {response[:50]}...")
        return response

    async def _close_pending_tool_calls(self, thread_id: str) -> None:
        """Answer tool calls left open by an aborted turn.

        The provider rejects a history where a tool request has no result, so
        without this every later turn on the thread would fail.
        """
        config = {"configurable": {"thread_id": thread_id}}
        messages = await self.history(thread_id)
        if not messages or not isinstance(messages[-1], AIMessage) or not messages[-1].tool_calls:
            return

        error = InventorySearchError(
            error="Turn budget exceeded",
            message="The turn ended before this tool call could run",
        )
        closing = [error_tool_message(error, call["id"], call["name"]) for call in messages[-1].tool_calls]
        logger.info(f"Closing {len(closing)} pending tool calls on thread {thread_id}")
        await self.graph.aupdate_state(
            config,
            {"messages": closing, "phase": AgentPhase.DONE},
            as_node=AgentPhase.AWAIT_TOOL.value,
        )

    async def history(self, thread_id: str) -> list[BaseMessage]:
        """Load the stored conversation for a thread, oldest first (empty if unknown)."""
        snapshot = await self.graph.aget_state({"configurable": {"thread_id": thread_id}})
        return list(snapshot.values.get("messages", [])) if snapshot.values else []
