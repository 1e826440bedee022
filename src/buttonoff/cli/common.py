from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from buttonoff.config import (
    Settings,
    expand_path,
    get_settings,
    load_settings,
    resolve_config_path,
)


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def load_run_settings_or_exit(
    config: str | None, interface: str | None, broker: str | None
) -> Settings:
    """Load the config file and apply command line overrides.

    A missing config file is tolerated when the flags supply the required
    interface and broker.
    """
    overrides: dict[str, Any] = {}
    if interface:
        overrides["listener"] = {"interface": interface}
    if broker:
        overrides["mqtt"] = {"broker_addr": broker}

    if config is not None:
        path, exists = expand_path(config), expand_path(config).exists()
    else:
        path, exists = resolve_config_path_or_exit(allow_missing=True)

    if not exists and not (interface and broker):
        typer.echo(
            f"No config file at {path}. Run 'buttonoff config init' to create one.",
            err=True,
        )
        raise typer.Exit(1)

    try:
        return load_settings(path if exists else None, overrides)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
