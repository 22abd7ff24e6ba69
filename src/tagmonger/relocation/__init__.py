"""Relocation of expired tags."""

from .executor import Relocator
from .models import RelocationEvent

__all__ = ["Relocator", "RelocationEvent"]
