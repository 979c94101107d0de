"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import EdgeplanConfig

ENV_PREFIX = "EDGEPLAN__"


def resolve_with_precedence(
    *,
    defaults: EdgeplanConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> EdgeplanConfig:
    """Merge configuration layers where later sources win.

    Precedence runs defaults, then the YAML file, then ``EDGEPLAN__`` environment
    variables, then CLI overrides. Dotted keys (``assets.text_encoding``) are
    expanded before merging. Lists such as ``assets.file_options`` replace the
    lower layer rather than extending it, so a rulebook is always declared in one
    place.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the configuration file.
        env_overrides: Values extracted from the environment.
        cli_overrides: Values supplied on the command line.

    Returns:
        EdgeplanConfig: Validated configuration.

    Raises:
        ConfigurationError: If a layer is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="json")
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        merged = _merge(merged, _normalize_sections(_expand(source, source_name=name)))

    try:
        return EdgeplanConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: EdgeplanConfig) -> Dict[str, str]:
    """Render the config as ``EDGEPLAN__SECTION__KEY`` environment variable mappings."""
    flat: Dict[str, str] = {}

    def _walk(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict) and value:
            for key, child in value.items():
                _walk(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, (dict, list)):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif isinstance(value, bool):
            flat[env_key] = "true" if value else "false"
        else:
            flat[env_key] = "null" if value is None else str(value)

    for key, child in config.model_dump(mode="json").items():
        _walk([key], child)
    return flat


def _expand(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigurationError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str) or not key:
            raise ConfigurationError(f"{source_name.capitalize()} override keys must be strings.")
        *parents, leaf = key.split(".")
        node = expanded
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigurationError(
                    f"{source_name.capitalize()} override for {key} conflicts with existing value."
                )
            node = child
        if isinstance(value, MappingABC):
            value = _expand(value, source_name=source_name)
            if isinstance(node.get(leaf), dict):
                value = _merge(node[leaf], value)
        node[leaf] = value
    return expanded


def _normalize_sections(layer: dict[str, Any]) -> dict[str, Any]:
    # A bare ``invalidation: false`` must survive nested overrides from later layers.
    value = layer.get("invalidation")
    if isinstance(value, bool):
        layer["invalidation"] = {"enabled": value}
    elif "invalidation" in layer and value is None:
        layer["invalidation"] = {}
    return layer


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = _merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "resolve_with_precedence", "flatten_for_env"]
