"""Command line interface for the Edgeplan project."""

from __future__ import annotations

import difflib
import logging
import re
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from edgeplan.assets import AssetPlanner, AssetReadError, SyncPlan
from edgeplan.config import (
    ConfigManager,
    ConfigurationError,
    EdgeplanConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from edgeplan.invalidation import InvalidationPlanner
from edgeplan.state import StateError, StateRepository, diff_plan

console = Console()

_ENCODINGS = ["utf-8", "iso-8859-1", "windows-1252", "ascii", "none"]


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output.
        click.ClickException: For non-JSON flows.
    """
    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)
    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Print CLI output according to quiet/summary settings."""
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign ``value`` at a dotted location inside ``target``.

    Raises:
        ConfigurationError: If a non-mapping value is encountered along the path.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigurationError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _without_stamp(lines: list[str]) -> list[str]:
    return [line for line in lines if not line.startswith("# Last updated:")]


def _configure_logging(config: EdgeplanConfig) -> None:
    level = logging.getLevelName(config.logging.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("edgeplan").setLevel(level)


def _default_site(root: Path) -> str:
    name = re.sub(r"[^A-Za-z0-9._-]+", "-", root.name).strip("-._")
    return name or "site"


def _resolve_modes(
    ctx: click.Context,
    config: EdgeplanConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured defaults into (quiet, summary_only)."""
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False
    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config(cli_overrides: dict[str, Any] | None = None) -> EdgeplanConfig:
    config = ConfigManager().load(cli_overrides=cli_overrides)
    _configure_logging(config)
    return config


def _plan_payload(plan: SyncPlan) -> dict[str, Any]:
    return {
        "root": str(plan.root),
        "text_encoding": plan.text_encoding,
        "records": [record.model_dump(mode="json") for record in plan.records],
    }


def _plan_table(plan: SyncPlan) -> Table:
    table = Table(title=f"Sync plan for {plan.root}")
    table.add_column("Key", overflow="fold")
    table.add_column("Content-Type")
    table.add_column("Cache-Control")
    table.add_column("SHA-256", overflow="fold")
    for record in plan.records:
        table.add_row(
            record.relative_key,
            record.content_type,
            record.cache_control or "-",
            record.content_hash[:12],
        )
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="edgeplan")
def cli() -> None:
    """Edgeplan plans static-site uploads and CDN cache invalidations."""


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option("--encoding", type=click.Choice(_ENCODINGS), help="Override assets.text_encoding.")
@click.option("--json", "json_output", is_flag=True, help="Emit the plan as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def plan(
    ctx: click.Context,
    path: str,
    encoding: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Classify and fingerprint every file under PATH.

    Args:
        ctx: Click context used for parameter source inspection.
        path: Build-output directory.
        encoding: Optional text encoding override.
        json_output: If True, emit JSON instead of a table.
        summary_mode: When True, limit output to summary lines.
        quiet: When True, suppress non-error output.
    """
    try:
        overrides = {"assets.text_encoding": encoding} if encoding else None
        config = _load_config(overrides)
        quiet_enabled, summary_only = _resolve_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        sync_plan = AssetPlanner.from_options(config.assets).plan(Path(path))
    except ConfigurationError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except AssetReadError as exc:
        _handle_cli_error(str(exc), code="read_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(data=_plan_payload(sync_plan))
        return

    _emit_message(
        _plan_table(sync_plan), mode="detail", quiet=quiet_enabled, summary_only=summary_only
    )
    _emit_message(
        _format_summary_line("Plan", sync_plan.root, {"files": len(sync_plan.records)}),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option("--site", type=str, help="Site name used to look up the recorded deployment.")
@click.option("--json", "json_output", is_flag=True, help="Emit the request as JSON.")
def invalidation(path: str, site: str | None, json_output: bool) -> None:
    """Show the cache invalidation that deploying PATH would request.

    Args:
        path: Build-output directory.
        site: Optional site name; defaults to the directory name.
        json_output: If True, emit JSON.
    """
    root = Path(path)
    site_name = site or _default_site(root.expanduser().resolve())
    try:
        config = _load_config()
        request = InvalidationPlanner().plan(root, config.invalidation)
        previous = StateRepository(config.state.directory).load_optional(site_name)
    except ConfigurationError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except AssetReadError as exc:
        _handle_cli_error(str(exc), code="read_error", json_output=json_output, original=exc)
        return
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
        return

    unchanged = (
        request is not None
        and previous is not None
        and previous.version_token == request.version_token
    )
    if json_output:
        console.print_json(
            data={
                "site": site_name,
                "request": request.model_dump(mode="json") if request else None,
                "unchanged": unchanged,
            }
        )
        return

    if request is None:
        console.print("[yellow]No invalidation will be requested.[/yellow]")
        return
    console.print(f"Paths: {', '.join(request.paths)}")
    console.print(f"Version: {request.version_token}")
    console.print(f"Wait: {'yes' if request.wait else 'no'}")
    if unchanged:
        console.print(
            f"[green]Content unchanged since the last recorded deployment of {site_name}.[/green]"
        )


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option("--site", type=str, help="Site name used to look up the recorded deployment.")
@click.option("--json", "json_output", is_flag=True, help="Emit the comparison as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def status(
    ctx: click.Context,
    path: str,
    site: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Compare PATH against the last recorded deployment.

    Args:
        ctx: Click context used for parameter source inspection.
        path: Build-output directory.
        site: Optional site name; defaults to the directory name.
        json_output: If True, emit JSON.
        summary_mode: When True, limit output to summary lines.
        quiet: When True, suppress non-error output.
    """
    root = Path(path)
    site_name = site or _default_site(root.expanduser().resolve())
    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        sync_plan = AssetPlanner.from_options(config.assets).plan(root)
        previous = StateRepository(config.state.directory).load_optional(site_name)
    except ConfigurationError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except AssetReadError as exc:
        _handle_cli_error(str(exc), code="read_error", json_output=json_output, original=exc)
        return
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
        return

    diff = diff_plan(sync_plan, previous)
    if json_output:
        payload = {"site": site_name, "recorded": previous is not None, **diff.model_dump()}
        console.print_json(data=payload)
        return

    if previous is None:
        _emit_message(
            f"[yellow]No deployment recorded for {site_name}; every file is new.[/yellow]",
            mode="warning",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    for label, keys, style in (
        ("added", diff.added, "green"),
        ("changed", diff.changed, "yellow"),
        ("removed", diff.removed, "red"),
    ):
        for key in keys:
            _emit_message(
                f"[{style}]{label:>8}[/{style}] {key}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
    _emit_message(
        _format_summary_line(
            "Status",
            sync_plan.root,
            {
                "added": len(diff.added),
                "changed": len(diff.changed),
                "unchanged": len(diff.unchanged),
                "removed": len(diff.removed),
            },
        ),
        mode="summary",
        quiet=quiet_enabled,
        summary_only=summary_only,
    )


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=str))
@click.option("--site", type=str, help="Site name to record under.")
def record(path: str, site: str | None) -> None:
    """Record the current contents of PATH as the deployed baseline.

    Args:
        path: Build-output directory.
        site: Optional site name; defaults to the directory name.
    """
    root = Path(path)
    site_name = site or _default_site(root.expanduser().resolve())
    try:
        config = _load_config()
        sync_plan = AssetPlanner.from_options(config.assets).plan(root)
        request = InvalidationPlanner().plan(root, config.invalidation)
        repository = StateRepository(config.state.directory)
        repository.record(site_name, sync_plan, request.version_token if request else None)
    except (ConfigurationError, AssetReadError, StateError) as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        f"[green]Recorded {len(sync_plan.records)} file(s) for {site_name} "
        f"at {repository.path_for(site_name)}.[/green]"
    )


@cli.group()
def config() -> None:
    """Manage Edgeplan configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option("--as-env", is_flag=True, help="Print EDGEPLAN__ environment assignments instead.")
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    try:
        loaded = ConfigManager().load(include_env=not no_env)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for key, value in flatten_for_env(loaded).items():
            click.echo(f"{key}={value}")
        return

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path such as ``assets.text_encoding``.
        value: YAML-literal value to write into the configuration file.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'assets.text_encoding'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    file_data = manager.load_file_overrides()
    try:
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=EdgeplanConfig(), file_overrides=file_data)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()
    # The timestamp line always changes.
    if _without_stamp(before) == _without_stamp(after):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        before, after, fromfile="config.yaml (before)", tofile="config.yaml (after)", lineterm=""
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=EdgeplanConfig(), file_overrides=parsed)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
