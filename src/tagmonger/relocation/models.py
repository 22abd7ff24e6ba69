"""Relocation event models."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class RelocationEvent(BaseModel):
    """Record of one expired tag moved (or planned to move) into the archive.

    Attributes:
        timestamp: When the move finished or, in dry-run mode, was reported.
        source: Original object key.
        destination: Archive key the object was copied to.
        applied: False when the move was only reported during a dry run.
    """

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str
    destination: str
    applied: bool = True


__all__ = ["RelocationEvent"]
