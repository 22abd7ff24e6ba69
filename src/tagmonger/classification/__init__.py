"""Tag classification package."""

from .engine import TagClassifier
from .grammar import parse_daily_tag, parse_tag_date, parse_weekly_tag
from .models import ClassificationResult, TagRecord, TagState

__all__ = [
    "TagClassifier",
    "ClassificationResult",
    "TagRecord",
    "TagState",
    "parse_tag_date",
    "parse_daily_tag",
    "parse_weekly_tag",
]
