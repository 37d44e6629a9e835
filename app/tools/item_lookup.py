"""Inventory lookup tool."""

from langchain_core.tools import BaseTool, tool

from app.models.search import ItemLookupInput
from app.services.inventory import InventorySearchGateway

ITEM_LOOKUP_TOOL_NAME = "item_lookup"


def create_item_lookup_tool(gateway: InventorySearchGateway) -> BaseTool:
    @tool(ITEM_LOOKUP_TOOL_NAME, args_schema=ItemLookupInput)
    async def item_lookup_handler(query: str, n: int = 10) -> str:
        """Gathers furniture item details from the Inventory database.

        Purpose: Find items matching what the customer is asking about (type, colour,
        material, style, brand, room, price range described in words).

        Example Usage:
        - User says: "Do you have any blue sofas?"
        - Call: item_lookup(query="blue sofa")
        - Describe the matching items (name, brand, price, notable reviews) to the customer.

        Response Format: JSON object with either
        - status "ok": results, search_type ("vector" for semantic matches, "text" for
          keyword matches), query and count
        - status "error": error, message and count 0 (for example when the inventory is empty)
        """
        outcome = await gateway.search(query, n)
        return outcome.model_dump_json()

    return item_lookup_handler
