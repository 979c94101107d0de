"""Deployment orchestration around the storage and CDN collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from edgeplan.assets.models import SyncPlan
from edgeplan.assets.planner import AssetPlanner
from edgeplan.config.models import InvalidationConfig
from edgeplan.invalidation.models import InvalidationRequest
from edgeplan.invalidation.planner import InvalidationPlanner
from edgeplan.state import PlanDiff, StateRepository, diff_plan

LOGGER = logging.getLogger(__name__)


class StorageSink(Protocol):
    """Uploads planned assets, deciding per record whether a transfer is needed."""

    def sync(self, plan: SyncPlan) -> None: ...


class CdnControl(Protocol):
    """Submits cache invalidations to the edge distribution."""

    def invalidate(self, request: InvalidationRequest) -> None: ...


class DeploymentError(Exception):
    """Raised when a collaborator fails during a deployment."""


@dataclass(slots=True)
class DeploymentResult:
    """Outcome of a deployment run.

    Attributes:
        plan: Asset plan handed to the storage sink.
        diff: Plan compared against the previously recorded deployment.
        request: Invalidation computed for the tree, if any.
        invalidated: Whether the request was submitted to the CDN collaborator.
        dry_run: Whether collaborators were skipped entirely.
    """

    plan: SyncPlan
    diff: PlanDiff
    request: Optional[InvalidationRequest]
    invalidated: bool
    dry_run: bool


class DeploymentRunner:
    """Sequence planning, upload, and invalidation for one site."""

    def __init__(
        self,
        asset_planner: AssetPlanner,
        invalidation_planner: InvalidationPlanner,
        sink: StorageSink,
        cdn: CdnControl,
        repository: Optional[StateRepository] = None,
    ) -> None:
        self.asset_planner = asset_planner
        self.invalidation_planner = invalidation_planner
        self.sink = sink
        self.cdn = cdn
        self.repository = repository

    def run(
        self,
        root: Path,
        invalidation: InvalidationConfig,
        *,
        site: str,
        dry_run: bool = False,
    ) -> DeploymentResult:
        """Deploy ``root`` for ``site``.

        The full plan is built before anything is uploaded, and the invalidation is
        only submitted after the sink succeeds. When the recorded version token for
        the site equals the new one the invalidation is skipped.

        Raises:
            ConfigurationError: If ``root`` is unusable.
            AssetReadError: If a file cannot be read while planning.
            DeploymentError: If the sink or CDN collaborator fails.
        """
        plan = self.asset_planner.plan(root)
        previous = self.repository.load_optional(site) if self.repository else None
        diff = diff_plan(plan, previous)

        if dry_run:
            request = self.invalidation_planner.plan(root, invalidation)
            return DeploymentResult(plan, diff, request, invalidated=False, dry_run=True)

        try:
            self.sink.sync(plan)
        except Exception as exc:
            raise DeploymentError(f"Uploading assets for {site!r} failed: {exc}") from exc

        request = self.invalidation_planner.plan(root, invalidation)
        invalidated = False
        if request is None:
            LOGGER.info("No invalidation requested for %s.", site)
        elif previous is not None and previous.version_token == request.version_token:
            LOGGER.info("Content for %s unchanged; skipping invalidation.", site)
        else:
            try:
                self.cdn.invalidate(request)
            except Exception as exc:
                raise DeploymentError(f"Invalidating cache for {site!r} failed: {exc}") from exc
            invalidated = True

        if self.repository is not None:
            self.repository.record(site, plan, request.version_token if request else None)
        return DeploymentResult(plan, diff, request, invalidated=invalidated, dry_run=False)


__all__ = [
    "CdnControl",
    "DeploymentError",
    "DeploymentResult",
    "DeploymentRunner",
    "StorageSink",
]
