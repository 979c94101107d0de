"""Asset synchronization planning."""

from .detectors import ContentTypeResolver, HashComputer
from .discovery import DirectoryScanner
from .errors import AssetReadError, PlanningError
from .models import AssetRecord, PendingFile, SyncPlan
from .planner import AssetPlanner
from .rules import RulebookMatcher, build_rulebook

__all__ = [
    "AssetPlanner",
    "AssetReadError",
    "AssetRecord",
    "ContentTypeResolver",
    "DirectoryScanner",
    "HashComputer",
    "PendingFile",
    "PlanningError",
    "RulebookMatcher",
    "SyncPlan",
    "build_rulebook",
]
