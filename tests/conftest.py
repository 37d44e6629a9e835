"""Shared fixtures: an in-memory inventory and a scripted chat model."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from langchain_core.vectorstores import InMemoryVectorStore
from pydantic import Field, TypeAdapter

from app.db.session import Database
from app.models.inventory import InventoryItem
from app.models.search import InventorySearchError, InventorySearchOutcome, InventorySearchResult
from app.services.inventory import InventoryRepository, InventorySearchGateway, index_items

search_outcome_adapter: TypeAdapter[InventorySearchOutcome] = TypeAdapter(InventorySearchOutcome)


def parse_search_outcome(payload: str) -> InventorySearchResult | InventorySearchError:
    """Parse a serialized item_lookup payload back into its tagged outcome."""
    return search_outcome_adapter.validate_json(payload)


BLUE_SOFA = InventoryItem.model_validate(
    {
        "item_id": "SOFA-001",
        "item_name": "Harbor Blue Velvet Sofa",
        "item_description": "A three-seat sofa upholstered in deep blue velvet with solid oak legs.",
        "brand": "Northwind Living",
        "prices": {"full_price": 1199.0, "sale_price": 899.99},
        "categories": ["Living Room", "Sofas"],
        "user_reviews": [{"review_date": "2024-03-02", "rating": 5, "comment": "Gorgeous colour."}],
    }
)

DINING_TABLE = InventoryItem.model_validate(
    {
        "item_id": "TABLE-014",
        "item_name": "Alder Round Dining Table",
        "item_description": "Solid alder dining table seating four.",
        "brand": "Timberline Works",
        "prices": {"full_price": 749.0, "sale_price": 649.0},
        "categories": ["Dining Room", "Tables"],
    }
)


class ShopAssistantFakeModel(BaseChatModel):
    """Behaves like the real assistant would with the item_lookup tool.

    A customer question triggers a lookup, a lookup result is described by name,
    and a question about price is answered from the last lookup in the history.
    Every prompt it receives is recorded in ``received``.
    """

    received: list[list[BaseMessage]] = Field(default_factory=list)
    failures: list[Exception] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "shop-assistant-fake"

    def bind_tools(self, tools: Any, **kwargs: Any) -> "ShopAssistantFakeModel":
        return self

    def _generate(self, messages: list[BaseMessage], stop=None, run_manager=None, **kwargs: Any) -> ChatResult:
        self.received.append(list(messages))
        if self.failures:
            raise self.failures.pop(0)
        return ChatResult(generations=[ChatGeneration(message=self._reply(messages))])

    def _reply(self, messages: list[BaseMessage]) -> AIMessage:
        last = messages[-1]
        if isinstance(last, ToolMessage):
            return AIMessage(content=self._describe(last))
        if isinstance(last, HumanMessage) and "price" in last.content.lower():
            return AIMessage(content=self._quote_price(messages))
        return self._lookup(last.content)

    def _lookup(self, query: str) -> AIMessage:
        return AIMessage(
            content="",
            tool_calls=[{"name": "item_lookup", "args": {"query": query, "n": 3}, "id": f"call_{len(self.received)}"}],
        )

    @staticmethod
    def _describe(tool_message: ToolMessage) -> str:
        outcome = parse_search_outcome(tool_message.content)
        if not isinstance(outcome, InventorySearchResult) or not outcome.results:
            return "Sorry, I couldn't find anything matching that right now."
        first = outcome.results[0]
        return f"Yes! We have the {first['item_name']} by {first['brand']}."

    @staticmethod
    def _quote_price(messages: list[BaseMessage]) -> str:
        for message in reversed(messages):
            if isinstance(message, ToolMessage):
                outcome = parse_search_outcome(message.content)
                if isinstance(outcome, InventorySearchResult) and outcome.results:
                    first = outcome.results[0]
                    return f"The {first['item_name']} is ${first['prices']['sale_price']:.2f}."
        return "Which item would you like a price for?"


class LoopingFakeModel(ShopAssistantFakeModel):
    """Never stops asking for the tool."""

    def _reply(self, messages: list[BaseMessage]) -> AIMessage:
        return self._lookup("sofa")


@pytest_asyncio.fixture
async def database() -> AsyncIterator[Database]:
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_tables()
    yield db
    await db.dispose()


@pytest.fixture
def repository(database: Database) -> InventoryRepository:
    return InventoryRepository(database)


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(embedding=DeterministicFakeEmbedding(size=32))


@pytest_asyncio.fixture
async def stocked_gateway(repository: InventoryRepository, vector_store: InMemoryVectorStore) -> InventorySearchGateway:
    """Gateway over an inventory holding a single blue sofa, indexed for semantic search."""
    await repository.add_items([BLUE_SOFA])
    await index_items(vector_store, [BLUE_SOFA])
    return InventorySearchGateway(repository, vector_store)


@pytest.fixture
def chat_model() -> ShopAssistantFakeModel:
    return ShopAssistantFakeModel()
