"""Asset planning data models."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PendingFile(BaseModel):
    """A regular file discovered under the output root, prior to classification.

    Attributes:
        path: Absolute path used to read the file (symlinks are not resolved).
        relative_key: POSIX path relative to the output root.
        size_bytes: File size reported by ``stat`` at discovery time.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    relative_key: str
    size_bytes: int = 0


class AssetRecord(BaseModel):
    """Upload instructions for a single file.

    Attributes:
        source_path: Absolute path of the file on disk.
        relative_key: Object key relative to the output root.
        content_hash: Hex SHA-256 of the raw file bytes.
        cache_control: ``Cache-Control`` header from the governing rule.
        content_type: ``Content-Type`` header for the object.
    """

    model_config = ConfigDict(frozen=True)

    source_path: Path
    relative_key: str
    content_hash: str
    cache_control: Optional[str] = None
    content_type: str


class SyncPlan(BaseModel):
    """Ordered upload plan for an output tree, one record per file."""

    model_config = ConfigDict(frozen=True)

    root: Path
    text_encoding: str = "utf-8"
    records: List[AssetRecord] = Field(default_factory=list)

    def keys(self) -> List[str]:
        """Return the relative keys in plan order."""
        return [record.relative_key for record in self.records]

    def get(self, relative_key: str) -> Optional[AssetRecord]:
        """Return the record stored under ``relative_key`` if present."""
        for record in self.records:
            if record.relative_key == relative_key:
                return record
        return None


__all__ = ["PendingFile", "AssetRecord", "SyncPlan"]
