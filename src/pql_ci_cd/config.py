"""
Tool configuration.

Defaults work for a stock github.com project. A project can
override them with an optional ``.pql-ci-cd.yaml`` at its root,
and the API endpoint and timeout can also come from the
environment (``PQL_CI_CD_API_URL``, ``PQL_CI_CD_TIMEOUT``).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from . import CONFIG_FILE, WORKFLOWS_DIR

logger = logging.getLogger("pql_ci_cd.config")

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0


class PqlConfig(BaseModel):
    """Settings for one pql-ci-cd run."""

    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    pql_path: str = "."
    workflows_dir: Path = Path(WORKFLOWS_DIR)
    # Re-fetch the repository public key before every upload instead
    # of once per batch.
    refresh_key_per_secret: bool = True
    exclude_keys: list[str] = Field(default_factory=list)


def _env_overrides() -> dict:
    overrides: dict = {}
    api_url = os.environ.get("PQL_CI_CD_API_URL")
    if api_url:
        overrides["api_url"] = api_url
    timeout = os.environ.get("PQL_CI_CD_TIMEOUT")
    if timeout:
        try:
            overrides["timeout"] = float(timeout)
        except ValueError:
            logger.warning("Ignoring non-numeric PQL_CI_CD_TIMEOUT=%r", timeout)
    return overrides


def load_config(project_root: Path, config_file: Optional[Path] = None) -> PqlConfig:
    """Load configuration for a project.

    Args:
        project_root: Project directory to look in.
        config_file: Explicit config path. Defaults to
            ``<project_root>/.pql-ci-cd.yaml``.

    Returns:
        PqlConfig from file and environment, or defaults when the
        file is absent or unreadable.
    """
    path = config_file or (project_root / CONFIG_FILE)
    data: dict = {}
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                raise ValueError(f"expected a mapping, got {type(data).__name__}")
        except (yaml.YAMLError, ValueError) as exc:
            logger.warning("Failed to load %s: %s; using defaults", path, exc)
            data = {}

    data.update(_env_overrides())
    try:
        return PqlConfig(**data)
    except ValueError as exc:
        logger.warning("Invalid configuration: %s; using defaults", exc)
        return PqlConfig(**_env_overrides())
