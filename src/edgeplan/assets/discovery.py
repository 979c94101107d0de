"""File discovery utilities."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterator, List, Tuple

from edgeplan.config.exceptions import ConfigurationError

from .errors import AssetReadError
from .models import PendingFile

LOGGER = logging.getLogger(__name__)


class DirectoryScanner:
    """Enumerate every regular file in an output tree in a deterministic order.

    Hidden files are always included. Symlinks to regular files are listed under
    the link's own path; symlinked directories are descended into when
    ``follow_symlinks`` is set, and a directory that links back to one of its
    ancestors is skipped.
    """

    def __init__(self, *, follow_symlinks: bool = True) -> None:
        self.follow_symlinks = follow_symlinks

    def scan(self, root: Path) -> List[PendingFile]:
        """Return files under ``root`` sorted by relative key.

        Raises:
            ConfigurationError: If ``root`` does not exist or is not a directory.
            AssetReadError: If a directory cannot be listed.
        """
        root = root.expanduser()
        if not root.exists():
            raise ConfigurationError(f"No build output found at {root.resolve()}")
        if not root.is_dir():
            raise ConfigurationError(f"Build output {root.resolve()} is not a directory")

        found = list(self._walk(root, (), frozenset({self._identity(root)})))
        found.sort(key=lambda pending: pending.relative_key)
        return found

    def _walk(
        self,
        directory: Path,
        prefix: Tuple[str, ...],
        ancestors: FrozenSet[Tuple[int, int]],
    ) -> Iterator[PendingFile]:
        try:
            with os.scandir(directory) as iterator:
                entries = list(iterator)
        except OSError as exc:
            raise AssetReadError(f"Unable to list {directory}: {exc}") from exc

        for entry in entries:
            parts = prefix + (entry.name,)
            path = directory / entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
                is_file = not is_dir and entry.is_file()
                identity = self._identity(path) if is_dir else None
                size = entry.stat().st_size if is_file else 0
            except OSError as exc:
                raise AssetReadError(f"Unable to inspect {path}: {exc}") from exc

            if identity is not None:
                if identity in ancestors:
                    LOGGER.debug("Skipping symlink cycle at %s", path)
                    continue
                yield from self._walk(path, parts, ancestors | {identity})
            elif is_file:
                yield PendingFile(path=path, relative_key="/".join(parts), size_bytes=size)
            else:
                LOGGER.debug("Skipping non-regular entry %s", path)

    @staticmethod
    def _identity(path: Path) -> Tuple[int, int]:
        stat = path.stat()
        return stat.st_dev, stat.st_ino
