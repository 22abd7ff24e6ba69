"""Inventory listing and filtering."""

from .fetcher import InventoryFetcher
from .filters import PatternFilter

__all__ = ["InventoryFetcher", "PatternFilter"]
