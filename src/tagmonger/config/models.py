"""Configuration models describing tagmonger settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TAG_PATTERN = r"(?:d_[0-9]{4}_[0-9]{2}_[0-9]{2}|[Ww]_[0-9]{4}_[0-9]{2})\.list$"


class TagMongerBaseModel(BaseModel):
    """Shared configuration for tagmonger Pydantic models.

    Environment and YAML values such as a bucket named ``2024`` arrive as numbers;
    string fields accept them as text.
    """

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)


class StorageSettings(TagMongerBaseModel):
    """Object store selection and listing options.

    Attributes:
        provider: Cloud provider hosting the bucket.
        bucket: Bucket holding the tag manifests.
        page_size: Number of keys requested per listing page.
        max_objects: Maximum number of keys to list; 0 lists everything.
        region: AWS region override for S3.
        endpoint_url: Custom endpoint for S3-compatible storage.
        project: Google Cloud project for GCS.
    """

    provider: Optional[Literal["aws", "gcs"]] = None
    bucket: Optional[str] = None
    page_size: int = Field(default=100, ge=1)
    max_objects: int = Field(default=1000, ge=0)
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    project: Optional[str] = None


class RetentionSettings(TagMongerBaseModel):
    """Rules deciding which tags are expired.

    Attributes:
        days: Number of days, including today, a tag stays fresh.
        timezone: IANA zone identifier used to determine "today".
        archive_dir: Directory name expired tags are moved under.
        manifest_suffix: Suffix stripped from filenames before parsing.
        pattern: Regular expression selecting tag manifests from the listing.
    """

    days: int = Field(default=30, ge=1)
    timezone: str = "America/Los_Angeles"
    archive_dir: str = Field(default="old_tags", min_length=1, pattern=r"^[^/]+$")
    manifest_suffix: str = ".list"
    pattern: str = DEFAULT_TAG_PATTERN


class RelocationSettings(TagMongerBaseModel):
    """Options for moving expired tags.

    Attributes:
        dry_run: Report moves without touching the bucket.
        wait_delay_seconds: Delay between existence checks after copy/delete.
        wait_max_attempts: Existence checks before a move step is failed.
    """

    dry_run: bool = False
    wait_delay_seconds: float = Field(default=5.0, ge=0)
    wait_max_attempts: int = Field(default=20, ge=1)


class LoggingSettings(TagMongerBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        progress_interval: Emit a listing progress line every N keys.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    progress_interval: int = Field(default=10_000, ge=1)


class CLIOptions(TagMongerBaseModel):
    """CLI behavior defaults.

    Attributes:
        verbose_default: Whether `run` prints per-key classification by default.
    """

    verbose_default: bool = False


class TagMongerConfig(TagMongerBaseModel):
    """Top-level configuration struct for tagmonger.

    Attributes:
        storage: Object store settings.
        retention: Classification settings.
        relocation: Archive move settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    relocation: RelocationSettings = Field(default_factory=RelocationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_TAG_PATTERN",
    "TagMongerBaseModel",
    "StorageSettings",
    "RetentionSettings",
    "RelocationSettings",
    "LoggingSettings",
    "CLIOptions",
    "TagMongerConfig",
]
