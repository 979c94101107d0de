"""Recorded deployment state and plan comparison models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class AssetFingerprint(BaseModel):
    """What was uploaded for a single key."""

    content_hash: str
    cache_control: Optional[str] = None
    content_type: str


class DeploymentState(BaseModel):
    """The last successful deployment of a site."""

    site: str
    root: str
    version_token: Optional[str] = None
    assets: Dict[str, AssetFingerprint] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PlanDiff(BaseModel):
    """Keys of a plan grouped by how they compare to recorded state."""

    added: List[str] = Field(default_factory=list)
    changed: List[str] = Field(default_factory=list)
    unchanged: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.changed or self.removed)


__all__ = ["AssetFingerprint", "DeploymentState", "PlanDiff"]
