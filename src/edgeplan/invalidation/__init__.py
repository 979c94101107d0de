"""CDN invalidation planning."""

from .models import ALL_PATHS, InvalidationRequest
from .planner import InvalidationPlanner, normalize_paths

__all__ = ["ALL_PATHS", "InvalidationPlanner", "InvalidationRequest", "normalize_paths"]
