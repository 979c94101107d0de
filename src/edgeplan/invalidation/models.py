"""Invalidation request models."""

from __future__ import annotations

from typing import Tuple

from pydantic import BaseModel, ConfigDict

ALL_PATHS = "/*"


class InvalidationRequest(BaseModel):
    """Cache invalidation to submit once assets have been uploaded.

    Attributes:
        paths: Paths to invalidate, de-duplicated in declaration order.
        version_token: Hex MD5 over every file's bytes in relative-key order.
        wait: Whether the CDN collaborator should block until completion.
    """

    model_config = ConfigDict(frozen=True)

    paths: Tuple[str, ...]
    version_token: str
    wait: bool = False


__all__ = ["ALL_PATHS", "InvalidationRequest"]
