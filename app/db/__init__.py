"""Inventory store persistence."""
