"""Inventory search inputs and tagged search outcomes."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ItemLookupInput(BaseModel):
    """Input schema for the item lookup tool."""

    query: str = Field(..., description="The search query")
    n: int = Field(default=10, gt=0, description="Number of results to return")


class InventorySearchResult(BaseModel):
    """Items found for a query, tagged with the search mode that produced them."""

    status: Literal["ok"] = "ok"
    results: list[dict[str, Any]]
    search_type: Literal["vector", "text"]
    query: str
    count: int


class InventorySearchError(BaseModel):
    """A search that produced no usable results, with the reason why."""

    status: Literal["error"] = "error"
    error: str
    message: str
    query: str | None = None
    count: int = 0


InventorySearchOutcome = Annotated[InventorySearchResult | InventorySearchError, Field(discriminator="status")]
