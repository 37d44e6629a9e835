"""Tools for the conversational AI assistant."""

from app.tools.item_lookup import ITEM_LOOKUP_TOOL_NAME, create_item_lookup_tool

__all__ = ["ITEM_LOOKUP_TOOL_NAME", "create_item_lookup_tool"]
