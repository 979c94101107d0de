"""Asset planning: classify, fingerprint, and type every file in an output tree."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from edgeplan.config.models import AssetOptions, FileRule

from .detectors import ContentTypeResolver, HashComputer
from .discovery import DirectoryScanner
from .models import AssetRecord, PendingFile, SyncPlan
from .rules import RulebookMatcher

LOGGER = logging.getLogger(__name__)


class AssetPlanner:
    """Coordinate discovery, rule matching, hashing, and typing into a ``SyncPlan``."""

    def __init__(
        self,
        *,
        rules: Optional[Iterable[FileRule]] = None,
        text_encoding: str = "utf-8",
        max_workers: int = 8,
        scanner: Optional[DirectoryScanner] = None,
        resolver: Optional[ContentTypeResolver] = None,
        hasher: Optional[HashComputer] = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.matcher = RulebookMatcher(rules)
        self.text_encoding = text_encoding
        self.max_workers = max_workers
        self.scanner = scanner or DirectoryScanner()
        self.resolver = resolver or ContentTypeResolver()
        self.hasher = hasher or HashComputer()

    @classmethod
    def from_options(cls, options: AssetOptions, **kwargs) -> "AssetPlanner":
        """Build a planner from the ``assets`` configuration section."""
        return cls(
            rules=options.file_options,
            text_encoding=options.text_encoding,
            max_workers=options.max_workers,
            **kwargs,
        )

    def plan(self, root: Path) -> SyncPlan:
        """Produce the upload plan for ``root``.

        Args:
            root: Build-output directory.

        Returns:
            SyncPlan: One record per regular file, ordered by relative key.

        Raises:
            ConfigurationError: If ``root`` is missing or not a directory.
            AssetReadError: If any file cannot be read; no partial plan is returned.
        """
        root = root.expanduser()
        pending = self.scanner.scan(root)
        assignments = self.matcher.assign(item.relative_key for item in pending)
        hashes = self._hash_all(pending)

        records: List[AssetRecord] = []
        for item in pending:
            rule = assignments[item.relative_key]
            records.append(
                AssetRecord(
                    source_path=item.path,
                    relative_key=item.relative_key,
                    content_hash=hashes[item.relative_key],
                    cache_control=rule.cache_control,
                    content_type=self.resolver.content_type(
                        item.relative_key, self.text_encoding, rule.content_type
                    ),
                )
            )

        LOGGER.info("Planned %d asset(s) under %s", len(records), root)
        return SyncPlan(root=root, text_encoding=self.text_encoding, records=records)

    def _hash_all(self, pending: List[PendingFile]) -> Dict[str, str]:
        if not pending:
            return {}
        # Each worker holds at most one open file, so max_workers bounds open handles.
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {
                executor.submit(self.hasher.compute, item.path): item.relative_key
                for item in pending
            }
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise error
            return {key: future.result() for future, key in futures.items()}
        finally:
            executor.shutdown(wait=True)
