"""Node implementations for the agent loop."""

import json
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.tools import BaseTool
from pydantic import ValidationError

from app.graphs.edges import transition
from app.graphs.state import AgentPhase, ConversationState
from app.models.search import InventorySearchError
from app.utils.logging import get_logger
from app.utils.retry import retry_with_backoff

logger = get_logger(__name__)

NodeFunction = Callable[[ConversationState], Awaitable[dict[str, Any]]]

SYSTEM_PROMPT = """You are a helpful E-commerce Chatbot Agent for a furniture store.

IMPORTANT: You have access to an item_lookup tool that searches the furniture inventory database.
ALWAYS use this tool when customers ask about furniture items, even if the tool returns errors or empty results.

When using the item_lookup tool:
- If it returns results, provide helpful details about the furniture items
- If it returns an error or no results, acknowledge this and offer to help in other ways
- If the database appears to be empty, let the customer know that inventory might be being updated

Current time: {time}"""


def build_prompt() -> ChatPromptTemplate:
    """System instruction followed by the full conversation history."""
    return ChatPromptTemplate.from_messages(
        [
            ("system", SYSTEM_PROMPT),
            MessagesPlaceholder("messages"),
        ]
    )


def create_agent_node(model: BaseChatModel, tools: Sequence[BaseTool], max_retries: int = 3) -> NodeFunction:
    """Build the AWAIT_MODEL node.

    Args:
        model: Chat model; tools are bound to it here
        tools: Tools the model may call
        max_retries: Attempts allowed while the provider is rate limiting

    Returns:
        Async node function
    """
    prompt = build_prompt()
    bound_model = model.bind_tools(list(tools)) if tools else model

    async def agent_node(state: ConversationState) -> dict[str, Any]:
        logger.info(f"Agent node invoked with {len(state.messages)} messages")

        async def generate() -> AIMessage:
            formatted = await prompt.aformat_messages(
                time=datetime.now(UTC).isoformat(),
                messages=state.messages,
            )
            return await bound_model.ainvoke(formatted)

        response = await retry_with_backoff(generate, max_retries=max_retries)

        next_phase = transition(AgentPhase.AWAIT_MODEL, response)
        if next_phase == AgentPhase.AWAIT_TOOL:
            logger.info(f"Agent requesting {len(response.tool_calls)} tool calls")

        return {"messages": [response], "phase": next_phase}

    return agent_node


def create_tools_node(tools: Sequence[BaseTool]) -> NodeFunction:
    """Build the AWAIT_TOOL node.

    Each pending tool call gets exactly one ToolMessage answering it. Tool
    failures are reported to the model as error payloads instead of raising.
    """
    tools_by_name = {t.name: t for t in tools}

    async def tools_node(state: ConversationState) -> dict[str, Any]:
        last_message = state.messages[-1]
        tool_calls = last_message.tool_calls if isinstance(last_message, AIMessage) else []

        results: list[ToolMessage] = []
        for tool_call in tool_calls:
            name = tool_call["name"]
            args = tool_call["args"]
            logger.debug(f"Executing tool: {name} with input: {json.dumps(args)}")

            selected = tools_by_name.get(name)
            if selected is None:
                logger.error(f"Unknown tool requested: {name}")
                error = InventorySearchError(error="Unknown tool", message=f"No tool named {name}")
                results.append(error_tool_message(error, tool_call["id"], name))
                continue

            try:
                content = await selected.ainvoke(args)
            except ValidationError as e:
                logger.warning(f"Invalid arguments for tool {name}: {e}")
                error = InventorySearchError(
                    error="Invalid tool arguments", message=str(e), query=args.get("query")
                )
                results.append(error_tool_message(error, tool_call["id"], name))
                continue

            results.append(ToolMessage(content=content, tool_call_id=tool_call["id"], name=name))

        return {"messages": results, "phase": transition(AgentPhase.AWAIT_TOOL, last_message)}

    return tools_node


def error_tool_message(error: InventorySearchError, tool_call_id: str, name: str) -> ToolMessage:
    """Answer a tool call with an error payload."""
    return ToolMessage(content=error.model_dump_json(), tool_call_id=tool_call_id, name=name, status="error")
