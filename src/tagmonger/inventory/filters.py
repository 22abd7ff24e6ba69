"""Key filtering by naming convention."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from tagmonger.config.models import DEFAULT_TAG_PATTERN
from tagmonger.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)


class PatternFilter:
    """Select keys whose path matches a regular expression."""

    def __init__(self, pattern: str = DEFAULT_TAG_PATTERN) -> None:
        try:
            self._regex = re.compile(pattern)
        except re.error as exc:
            raise ConfigurationError(f"Invalid tag pattern {pattern!r}: {exc}") from exc
        self.pattern = pattern

    def matches(self, key: str) -> bool:
        return self._regex.search(key) is not None

    def apply(self, keys: Iterable[str]) -> list[str]:
        """Return the matching keys in their original order."""

        LOGGER.info("looking for objects like: %s", self.pattern)
        matched: list[str] = []
        for key in keys:
            if self.matches(key):
                LOGGER.debug("%s", key)
                matched.append(key)
        LOGGER.info("found %d objects", len(matched))
        return matched


__all__ = ["PatternFilter"]
