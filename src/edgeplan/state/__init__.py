"""Persistence of recorded deployments."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from edgeplan.assets.models import SyncPlan

from .errors import MissingStateError, StateError
from .models import AssetFingerprint, DeploymentState, PlanDiff

DEFAULT_STATE_DIR = Path("~/.edgeplan/deployments")
_SITE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class StateRepository:
    """Store one JSON document per site describing its last recorded deployment.

    State lives outside the output tree so recording a deployment never changes the
    tree's version token.
    """

    def __init__(self, directory: Path | str = DEFAULT_STATE_DIR) -> None:
        """Initialize the repository.

        Args:
            directory: Directory holding ``<site>.json`` files.
        """
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        """Return the directory holding state files."""
        return self._directory

    def path_for(self, site: str) -> Path:
        """Return the state file path for ``site``.

        Raises:
            StateError: If the site name is not usable as a file name.
        """
        if not _SITE_PATTERN.match(site):
            raise StateError(f"Invalid site name {site!r}")
        return self._directory / f"{site}.json"

    def load(self, site: str) -> DeploymentState:
        """Load the recorded deployment for ``site``.

        Raises:
            MissingStateError: If nothing has been recorded for the site.
            StateError: If the stored data cannot be parsed.
        """
        path = self.path_for(site)
        if not path.exists():
            raise MissingStateError(f"No deployment recorded for {site!r} at {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return DeploymentState.model_validate(data)
        except (json.JSONDecodeError, ValueError) as exc:
            raise StateError(f"Invalid deployment state in {path}: {exc}") from exc

    def load_optional(self, site: str) -> Optional[DeploymentState]:
        """Return the recorded deployment for ``site`` or None."""
        try:
            return self.load(site)
        except MissingStateError:
            return None

    def save(self, state: DeploymentState) -> Path:
        """Persist ``state`` and return the written path."""
        path = self.path_for(state.site)
        path.parent.mkdir(parents=True, exist_ok=True)
        state.updated_at = datetime.now(timezone.utc)
        path.write_text(
            json.dumps(state.model_dump(mode="json"), indent=2, sort_keys=False),
            encoding="utf-8",
        )
        return path

    def record(self, site: str, plan: SyncPlan, version_token: Optional[str]) -> DeploymentState:
        """Record ``plan`` as the deployed contents of ``site``."""
        previous = self.load_optional(site)
        state = DeploymentState(
            site=site,
            root=str(plan.root),
            version_token=version_token,
            assets={
                record.relative_key: AssetFingerprint(
                    content_hash=record.content_hash,
                    cache_control=record.cache_control,
                    content_type=record.content_type,
                )
                for record in plan.records
            },
        )
        if previous is not None:
            state.created_at = previous.created_at
        self.save(state)
        return state


def diff_plan(plan: SyncPlan, state: Optional[DeploymentState]) -> PlanDiff:
    """Compare a plan against recorded state.

    A key counts as changed when its hash or either header differs, since the
    storage sink must rewrite the object in both cases.
    """
    recorded = state.assets if state is not None else {}
    diff = PlanDiff()
    for record in plan.records:
        previous = recorded.get(record.relative_key)
        if previous is None:
            diff.added.append(record.relative_key)
        elif (
            previous.content_hash != record.content_hash
            or previous.cache_control != record.cache_control
            or previous.content_type != record.content_type
        ):
            diff.changed.append(record.relative_key)
        else:
            diff.unchanged.append(record.relative_key)
    planned = set(plan.keys())
    diff.removed = sorted(key for key in recorded if key not in planned)
    return diff


__all__ = [
    "DEFAULT_STATE_DIR",
    "AssetFingerprint",
    "DeploymentState",
    "MissingStateError",
    "PlanDiff",
    "StateError",
    "StateRepository",
    "diff_plan",
]
