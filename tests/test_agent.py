"""Tests for the agent loop: phase transitions, tool dispatch and error mapping."""

import anthropic
import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langgraph.checkpoint.memory import MemorySaver

from app.errors import AgentAuthenticationError, AgentError, AgentRateLimitedError, TurnBudgetExceededError
from app.graphs.conversation import InventoryAgent, message_text
from app.graphs.edges import transition
from app.graphs.nodes import create_tools_node
from app.graphs.state import AgentPhase, ConversationState
from app.models.search import InventorySearchError, InventorySearchResult
from app.tools import create_item_lookup_tool
from tests.conftest import LoopingFakeModel, ShopAssistantFakeModel, parse_search_outcome


def make_api_error(status: int) -> anthropic.APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status, request=request)
    if status == 401:
        return anthropic.AuthenticationError("invalid x-api-key", response=response, body=None)
    if status == 429:
        return anthropic.RateLimitError("rate limited", response=response, body=None)
    return anthropic.APIStatusError(f"HTTP {status}", response=response, body=None)


def tool_call(name: str, args: dict, call_id: str = "call_1") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


@pytest.fixture
def agent(chat_model, stocked_gateway) -> InventoryAgent:
    return InventoryAgent(chat_model, [create_item_lookup_tool(stocked_gateway)], checkpointer=MemorySaver())


class TestTransition:
    """Tests for the phase transition function."""

    def test_model_requests_tools(self):
        """Test that a tool request moves the loop to AWAIT_TOOL."""
        assert transition(AgentPhase.AWAIT_MODEL, tool_call("item_lookup", {"query": "sofa"})) == AgentPhase.AWAIT_TOOL

    def test_model_answers(self):
        """Test that a plain answer ends the turn."""
        assert transition(AgentPhase.AWAIT_MODEL, AIMessage(content="Hello!")) == AgentPhase.DONE

    def test_tools_hand_back_to_model(self):
        """Test that tool results always return control to the model."""
        message = ToolMessage(content="{}", tool_call_id="call_1")
        assert transition(AgentPhase.AWAIT_TOOL, message) == AgentPhase.AWAIT_MODEL

    def test_done_is_terminal(self):
        """Test that nothing leaves DONE."""
        with pytest.raises(ValueError):
            transition(AgentPhase.DONE, AIMessage(content="again"))


class TestToolsNode:
    """Tests for tool dispatch."""

    @pytest.mark.asyncio
    async def test_one_tool_message_per_call(self, stocked_gateway):
        """Test that each tool call is answered by exactly one matching ToolMessage."""
        node = create_tools_node([create_item_lookup_tool(stocked_gateway)])
        request = AIMessage(
            content="",
            tool_calls=[
                {"name": "item_lookup", "args": {"query": "sofa"}, "id": "call_a"},
                {"name": "item_lookup", "args": {"query": "blue velvet", "n": 2}, "id": "call_b"},
            ],
        )

        update = await node(ConversationState(messages=[HumanMessage(content="sofa?"), request]))

        assert update["phase"] == AgentPhase.AWAIT_MODEL
        assert [m.tool_call_id for m in update["messages"]] == ["call_a", "call_b"]
        for message in update["messages"]:
            assert isinstance(parse_search_outcome(message.content), InventorySearchResult)

    @pytest.mark.asyncio
    async def test_unknown_tool(self, stocked_gateway):
        """Test that an unknown tool name is answered with an error payload."""
        node = create_tools_node([create_item_lookup_tool(stocked_gateway)])

        update = await node(ConversationState(messages=[tool_call("place_order", {"item": "SOFA-001"})]))

        (message,) = update["messages"]
        assert message.status == "error"
        assert message.tool_call_id == "call_1"
        assert parse_search_outcome(message.content).error == "Unknown tool"

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, stocked_gateway):
        """Test that a non-positive n is reported back instead of raised."""
        node = create_tools_node([create_item_lookup_tool(stocked_gateway)])

        update = await node(ConversationState(messages=[tool_call("item_lookup", {"query": "sofa", "n": 0})]))

        (message,) = update["messages"]
        assert message.status == "error"
        outcome = parse_search_outcome(message.content)
        assert isinstance(outcome, InventorySearchError)
        assert outcome.query == "sofa"


class TestInventoryAgent:
    """Tests for full turns through the graph."""

    @pytest.mark.asyncio
    async def test_tool_round_trip(self, agent, chat_model):
        """Test that a lookup question calls the tool once and then answers."""
        response = await agent.run("Do you have any blue sofas?", "thread-1")

        assert response == "Yes! We have the Harbor Blue Velvet Sofa by Northwind Living."
        assert len(chat_model.received) == 2

        second_prompt = chat_model.received[1]
        assert isinstance(second_prompt[0], SystemMessage)
        assert "Current time:" in second_prompt[0].content
        request, result = second_prompt[-2], second_prompt[-1]
        assert isinstance(request, AIMessage) and request.tool_calls
        assert isinstance(result, ToolMessage)
        assert result.tool_call_id == request.tool_calls[0]["id"]

    @pytest.mark.asyncio
    async def test_history_persists_across_turns(self, agent, chat_model):
        """Test that a follow-up on the same thread sees every earlier message in order."""
        await agent.run("Do you have any blue sofas?", "thread-1")
        first_turn = await agent.history("thread-1")

        response = await agent.run("What's its price?", "thread-1")

        assert response == "The Harbor Blue Velvet Sofa is $899.99."
        follow_up_prompt = chat_model.received[-1][1:]
        assert [m.content for m in follow_up_prompt[: len(first_turn)]] == [m.content for m in first_turn]
        assert follow_up_prompt[-1].content == "What's its price?"

        history = await agent.history("thread-1")
        assert len(history) == len(first_turn) + 2
        assert message_text(history[-1]) == response

    @pytest.mark.asyncio
    async def test_threads_are_isolated(self, agent):
        """Test that a new thread starts with no history."""
        await agent.run("Do you have any blue sofas?", "thread-1")

        response = await agent.run("What's its price?", "thread-2")

        assert response == "Which item would you like a price for?"
        assert len(await agent.history("thread-2")) == 2

    @pytest.mark.asyncio
    async def test_unknown_thread_history(self, agent):
        """Test that an unknown thread has an empty history."""
        assert await agent.history("never-used") == []

    @pytest.mark.asyncio
    async def test_turn_budget(self, stocked_gateway):
        """Test that a model that never stops calling tools hits the turn budget."""
        looping = InventoryAgent(LoopingFakeModel(), [create_item_lookup_tool(stocked_gateway)], recursion_limit=15)

        with pytest.raises(TurnBudgetExceededError) as exc_info:
            await looping.run("sofa", "thread-loop")

        assert exc_info.value.limit == 15

    @pytest.mark.asyncio
    async def test_turn_budget_leaves_no_unanswered_tool_calls(self, stocked_gateway):
        """Test that every stored tool request has a result after the budget is hit."""
        looping = InventoryAgent(LoopingFakeModel(), [create_item_lookup_tool(stocked_gateway)], recursion_limit=15)

        with pytest.raises(TurnBudgetExceededError):
            await looping.run("sofa", "thread-loop")

        history = await looping.history("thread-loop")
        requested = [call["id"] for m in history if isinstance(m, AIMessage) for call in m.tool_calls]
        answered = [m.tool_call_id for m in history if isinstance(m, ToolMessage)]
        assert requested
        assert sorted(requested) == sorted(answered)
        assert isinstance(history[-1], ToolMessage)

    @pytest.mark.asyncio
    async def test_thread_usable_after_turn_budget(self, chat_model, stocked_gateway):
        """Test that a thread keeps working after a turn ran out of budget."""
        tools = [create_item_lookup_tool(stocked_gateway)]
        checkpointer = MemorySaver()
        looping = InventoryAgent(LoopingFakeModel(), tools, checkpointer=checkpointer, recursion_limit=15)
        with pytest.raises(TurnBudgetExceededError):
            await looping.run("sofa", "thread-loop")

        recovered = InventoryAgent(chat_model, tools, checkpointer=checkpointer)
        response = await recovered.run("Do you have any blue sofas?", "thread-loop")

        assert response == "Yes! We have the Harbor Blue Velvet Sofa by Northwind Living."

    @pytest.mark.asyncio
    async def test_authentication_failure(self, stocked_gateway):
        """Test that a 401 from the provider maps to an authentication error."""
        model = ShopAssistantFakeModel(failures=[make_api_error(401)])
        failing = InventoryAgent(model, [create_item_lookup_tool(stocked_gateway)])

        with pytest.raises(AgentAuthenticationError, match="Authentication failed"):
            await failing.run("sofa", "thread-auth")

    @pytest.mark.asyncio
    async def test_rate_limit_exhausted(self, stocked_gateway):
        """Test that persistent rate limiting maps to the rate-limited error."""
        model = ShopAssistantFakeModel(failures=[make_api_error(429)])
        limited = InventoryAgent(model, [create_item_lookup_tool(stocked_gateway)], max_retries=1)

        with pytest.raises(AgentRateLimitedError, match="rate limits"):
            await limited.run("sofa", "thread-429")

        assert len(model.received) == 1

    @pytest.mark.asyncio
    async def test_other_provider_failure(self, stocked_gateway):
        """Test that any other failure is wrapped as a generic agent error."""
        model = ShopAssistantFakeModel(failures=[make_api_error(500)])
        failing = InventoryAgent(model, [create_item_lookup_tool(stocked_gateway)])

        with pytest.raises(AgentError, match="^Agent failed:") as exc_info:
            await failing.run("sofa", "thread-500")

        assert type(exc_info.value) is AgentError
        assert len(model.received) == 1


class TestMessageText:
    """Tests for extracting text from model messages."""

    def test_string_content(self):
        assert message_text(AIMessage(content="hello")) == "hello"

    def test_block_content(self):
        message = AIMessage(content=[{"type": "text", "text": "Blue "}, "sofa"])
        assert message_text(message) == "Blue sofa"
