"""Invalidation planning based on an aggregate fingerprint of the output tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from edgeplan.assets.detectors import HashComputer
from edgeplan.assets.discovery import DirectoryScanner
from edgeplan.config.models import InvalidationConfig

from .models import ALL_PATHS, InvalidationRequest

LOGGER = logging.getLogger(__name__)


def normalize_paths(config: InvalidationConfig) -> Tuple[str, ...]:
    """Expand ``"all"`` to ``/*`` and drop duplicate explicit paths."""
    if config.paths == "all":
        return (ALL_PATHS,)
    return tuple(dict.fromkeys(config.paths))


class InvalidationPlanner:
    """Decide whether an invalidation is needed and compute its version token."""

    def __init__(
        self,
        *,
        scanner: Optional[DirectoryScanner] = None,
        hasher: Optional[HashComputer] = None,
    ) -> None:
        self.scanner = scanner or DirectoryScanner()
        self.hasher = hasher or HashComputer()

    def version_token(self, root: Path) -> str:
        """Return the hex MD5 of every file's bytes, streamed in sorted key order."""
        pending = self.scanner.scan(root.expanduser())
        return self.hasher.compute_tree(item.path for item in pending)

    def plan(self, root: Path, config: InvalidationConfig) -> Optional[InvalidationRequest]:
        """Return the invalidation to submit for ``root``, or None when none is needed.

        Raises:
            ConfigurationError: If ``root`` is missing or not a directory.
            AssetReadError: If any file cannot be read.
        """
        if not config.enabled:
            LOGGER.info("Invalidation disabled; nothing to request.")
            return None

        paths = normalize_paths(config)
        if not paths:
            LOGGER.info("Invalidation paths are empty; nothing to request.")
            return None

        token = self.version_token(root)
        LOGGER.info("Invalidation of %d path(s) with version %s", len(paths), token)
        return InvalidationRequest(paths=paths, version_token=token, wait=config.wait)
