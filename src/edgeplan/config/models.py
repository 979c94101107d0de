"""Configuration models describing Edgeplan settings."""

from __future__ import annotations

from typing import Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

TextEncoding = Literal["utf-8", "iso-8859-1", "windows-1252", "ascii", "none"]


class EdgeplanBaseModel(BaseModel):
    """Shared configuration for Edgeplan Pydantic models."""

    model_config = ConfigDict(extra="forbid")


def _as_pattern_tuple(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return value


class FileRule(EdgeplanBaseModel):
    """Caching and content-type behavior applied to files matching a glob set.

    Attributes:
        files: Glob patterns (relative to the output root) selecting files.
        ignore: Glob patterns excluding files otherwise selected by ``files``.
        cache_control: ``Cache-Control`` header value for matched files.
        content_type: ``Content-Type`` header that replaces the extension-derived type.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    files: Tuple[str, ...]
    ignore: Tuple[str, ...] = ()
    cache_control: Optional[str] = None
    content_type: Optional[str] = None

    @field_validator("files", "ignore", mode="before")
    @classmethod
    def _coerce_patterns(cls, value: Any) -> Any:
        return _as_pattern_tuple(value)


class InvalidationConfig(EdgeplanBaseModel):
    """CDN invalidation behavior.

    Attributes:
        enabled: Whether an invalidation should be requested at all.
        wait: Whether the CDN collaborator should block until the invalidation completes.
        paths: ``"all"`` or an explicit list of path globs to invalidate.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = True
    wait: bool = False
    paths: Union[Literal["all"], Tuple[str, ...]] = "all"

    @field_validator("paths", mode="before")
    @classmethod
    def _coerce_paths(cls, value: Any) -> Any:
        if isinstance(value, str) and value != "all":
            return (value,)
        return value

    @classmethod
    def disabled(cls) -> "InvalidationConfig":
        """Return a configuration that never requests invalidation."""
        return cls(enabled=False)


class AssetOptions(EdgeplanBaseModel):
    """Settings that govern asset planning.

    Attributes:
        text_encoding: Charset appended to text-like content types, or ``"none"``.
        file_options: User rules appended after the built-in rules.
        max_workers: Upper bound on files hashed (and held open) concurrently.
    """

    text_encoding: TextEncoding = "utf-8"
    file_options: List[FileRule] = Field(default_factory=list)
    max_workers: int = Field(default=8, ge=1)


class StateOptions(EdgeplanBaseModel):
    """Location of recorded deployment state.

    Attributes:
        directory: Directory holding one JSON state file per site.
    """

    directory: str = "~/.edgeplan/deployments"


class LoggingSettings(EdgeplanBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(EdgeplanBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class EdgeplanConfig(EdgeplanBaseModel):
    """Top-level configuration struct for Edgeplan.

    Attributes:
        assets: Asset planning settings.
        invalidation: CDN invalidation settings; ``false`` disables invalidation.
        state: Deployment state settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    assets: AssetOptions = Field(default_factory=AssetOptions)
    invalidation: InvalidationConfig = Field(default_factory=InvalidationConfig)
    state: StateOptions = Field(default_factory=StateOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)

    @field_validator("invalidation", mode="before")
    @classmethod
    def _coerce_invalidation(cls, value: Any) -> Any:
        if value is False:
            return {"enabled": False}
        if value is True or value is None:
            return {}
        return value


__all__ = [
    "EdgeplanBaseModel",
    "TextEncoding",
    "FileRule",
    "InvalidationConfig",
    "AssetOptions",
    "StateOptions",
    "LoggingSettings",
    "CLIOptions",
    "EdgeplanConfig",
]
