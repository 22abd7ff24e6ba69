"""Error taxonomy shared by the tag housekeeping pipeline."""


class TagMongerError(Exception):
    """Base exception for tagmonger failures."""


class ConfigurationError(TagMongerError):
    """Raised when configuration values are missing or invalid."""


class IterationError(TagMongerError):
    """Raised when listing objects from a bucket fails."""


class ParseError(TagMongerError):
    """Base exception for recoverable parsing failures."""


class TagParseError(ParseError, ValueError):
    """Raised when a tag name does not match the daily or weekly grammar."""

    def __init__(self, tag_name: str, reason: str) -> None:
        super().__init__(f"Invalid tag name {tag_name!r}: {reason}")
        self.tag_name = tag_name
        self.reason = reason


class BackendError(TagMongerError):
    """Raised when a storage backend call fails."""


class RelocationError(BackendError):
    """Raised when a step of moving an expired tag into the archive fails."""

    def __init__(self, key: str, target_key: str, step: str, message: str) -> None:
        super().__init__(f"Failed to {step} while moving {key} -> {target_key}: {message}")
        self.key = key
        self.target_key = target_key
        self.step = step


__all__ = [
    "TagMongerError",
    "ConfigurationError",
    "IterationError",
    "ParseError",
    "TagParseError",
    "BackendError",
    "RelocationError",
]
