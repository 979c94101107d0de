"""Rulebook construction and glob-based file classification."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from wcmatch import glob as wcglob

from edgeplan.config.exceptions import ConfigurationError
from edgeplan.config.models import FileRule

LOGGER = logging.getLogger(__name__)

NO_CACHE = "max-age=0,no-cache,no-store,must-revalidate"
IMMUTABLE = "max-age=31536000,public,immutable"

CATCH_ALL_RULE = FileRule(files=("**",), cache_control=NO_CACHE)
SCRIPT_STYLE_RULE = FileRule(files=("**/*.js", "**/*.css"), cache_control=IMMUTABLE)

GLOB_FLAGS = wcglob.GLOBSTAR | wcglob.DOTGLOB | wcglob.BRACE


def build_rulebook(user_rules: Optional[Iterable[FileRule]] = None) -> Tuple[FileRule, ...]:
    """Return the rulebook in declaration order: built-ins first, then user rules."""
    return (CATCH_ALL_RULE, SCRIPT_STYLE_RULE, *(user_rules or ()))


def validate_patterns(patterns: Sequence[str]) -> None:
    """Reject glob patterns that cannot address a file inside the output root.

    Raises:
        ConfigurationError: If a pattern is empty, absolute, prefixed with ``./``,
            escapes the root, or cannot be compiled.
    """
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern.strip():
            raise ConfigurationError(f"Invalid glob pattern {pattern!r}: pattern is empty")
        if "\x00" in pattern:
            raise ConfigurationError(f"Invalid glob pattern {pattern!r}: contains NUL")
        if pattern.startswith("/"):
            raise ConfigurationError(
                f"Invalid glob pattern {pattern!r}: patterns are relative to the output root"
            )
        if pattern.startswith("./"):
            raise ConfigurationError(
                f"Invalid glob pattern {pattern!r}: drop the leading './'; keys never carry it"
            )
        if ".." in pattern.split("/"):
            raise ConfigurationError(f"Invalid glob pattern {pattern!r}: '..' is not allowed")
    try:
        wcglob.translate(list(patterns), flags=GLOB_FLAGS)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(f"Invalid glob pattern in {list(patterns)!r}: {exc}") from exc


class RulebookMatcher:
    """Assign exactly one rule from a rulebook to each relative path.

    Rules are evaluated in reverse declaration order: the last user rule wins over
    earlier user rules and both built-ins, and the script/style built-in beats only
    the catch-all. Within that order the first matching rule claims the file.
    """

    def __init__(self, user_rules: Optional[Iterable[FileRule]] = None) -> None:
        self.rulebook = build_rulebook(user_rules)
        for rule in self.rulebook:
            validate_patterns(rule.files)
            if rule.ignore:
                validate_patterns(rule.ignore)

    @property
    def evaluation_order(self) -> Tuple[FileRule, ...]:
        """Return rules in the order they are tried."""
        return tuple(reversed(self.rulebook))

    def matches(self, rule: FileRule, relative_path: str) -> bool:
        """Return True when ``relative_path`` is selected by ``rule``."""
        if not wcglob.globmatch(relative_path, list(rule.files), flags=GLOB_FLAGS):
            return False
        if rule.ignore and wcglob.globmatch(relative_path, list(rule.ignore), flags=GLOB_FLAGS):
            return False
        return True

    def classify(self, relative_path: str) -> FileRule:
        """Return the rule governing a single path."""
        for rule in self.evaluation_order:
            if self.matches(rule, relative_path):
                return rule
        # "**" matches every relative path, so this only guards custom rulebooks.
        return CATCH_ALL_RULE

    def assign(self, relative_paths: Iterable[str]) -> Dict[str, FileRule]:
        """Classify a whole file set in one pass.

        Each rule, in evaluation order, claims every not-yet-classified path it
        matches, so every path ends up with exactly one rule.
        """
        remaining: List[str] = list(dict.fromkeys(relative_paths))
        assigned: Dict[str, FileRule] = {}
        for index, rule in enumerate(self.evaluation_order):
            if not remaining:
                break
            claimed = [path for path in remaining if self.matches(rule, path)]
            for path in claimed:
                assigned[path] = rule
            if claimed:
                LOGGER.debug(
                    "Rule %d (%s) claimed %d file(s)", index, ", ".join(rule.files), len(claimed)
                )
            remaining = [path for path in remaining if path not in assigned]
        for path in remaining:
            assigned[path] = CATCH_ALL_RULE
        return assigned


__all__ = [
    "CATCH_ALL_RULE",
    "SCRIPT_STYLE_RULE",
    "IMMUTABLE",
    "NO_CACHE",
    "RulebookMatcher",
    "build_rulebook",
    "validate_patterns",
]
