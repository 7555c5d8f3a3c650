"""Shared utilities for all CLI command modules.

Provides the Rich console instance, logging setup and the
project/config loading every command starts with.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ..config import PqlConfig, load_config

console = Console()
logger = logging.getLogger("pql_ci_cd.cli")

project_option = click.option(
    "--project",
    "-p",
    default=".",
    type=click.Path(file_okay=False),
    help="Project root (default: current directory).",
)


def configure_logging(verbose: bool) -> None:
    """Send library logs to stderr; DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


def resolve_project(project: str) -> Path:
    return Path(project).expanduser().resolve()


def load_project_config(project_root: Path, pql_path: Optional[str] = None) -> PqlConfig:
    """Load config for ``project_root`` and apply CLI overrides."""
    config = load_config(project_root)
    if pql_path:
        config.pql_path = pql_path
    return config
