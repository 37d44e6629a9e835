"""Inventory item data models."""

from pydantic import BaseModel, ConfigDict, Field


class ManufacturerAddress(BaseModel):
    """Postal address of an item's manufacturer."""

    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class Prices(BaseModel):
    """Regular and current selling price."""

    full_price: float
    sale_price: float


class UserReview(BaseModel):
    """A customer review."""

    review_date: str
    rating: float = Field(..., ge=0, le=5)
    comment: str = ""


class InventoryItem(BaseModel):
    """A furniture item as exposed by the API and handed to the agent."""

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    item_name: str
    item_description: str = ""
    brand: str = ""
    manufacturer_address: ManufacturerAddress | None = None
    prices: Prices
    categories: list[str] = Field(default_factory=list)
    user_reviews: list[UserReview] = Field(default_factory=list)
    notes: str = ""
    embedding_text: str = ""

    def build_embedding_text(self) -> str:
        """Text indexed for semantic search when no explicit embedding text is given."""
        if self.embedding_text:
            return self.embedding_text

        parts = [self.item_name, self.item_description, f"Brand: {self.brand}"]
        if self.categories:
            parts.append(f"Categories: {', '.join(self.categories)}")
        if self.notes:
            parts.append(self.notes)
        return "\n".join(part for part in parts if part)
