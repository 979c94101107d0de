"""Asset planning errors."""


class PlanningError(Exception):
    """Base exception for planning failures."""


class AssetReadError(PlanningError, OSError):
    """Raised when a file disappears or cannot be read while it is being fingerprinted."""
