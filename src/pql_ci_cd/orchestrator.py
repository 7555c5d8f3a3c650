"""
The setup run, start to finish.

    validate project -> parse .env.cloud -> render workflows
        -> decide sync -> [sync secrets | skip] -> done

A failed precondition returns a SetupResult with exit code 1 before
anything is written. Secret sync failures are reported but never
change the exit code, and the workflow files stay written either way.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from . import GITHUB_OWNER_KEY, GITHUB_REPO_KEY, GITHUB_TOKEN_KEY
from .config import PqlConfig
from .models import EnvVar, SetupResult, SyncReport, ValidationResult
from .secrets_sync import (
    ClientFactory,
    default_client_factory,
    handle_secret_sync,
    sync_targets,
)
from .validator import (
    extract_github_config,
    validate_and_parse_env_cloud,
    validate_env_file,
    validate_project,
)
from .workflows import write_workflow_files

logger = logging.getLogger("pql_ci_cd.orchestrator")


def print_validation_failure(console: Console, result: ValidationResult) -> None:
    """Show a failed precondition and its guidance."""
    console.print(f"[bold red]{escape(result.message)}[/]", highlight=False)
    for line in result.hint:
        console.print(line, highlight=False, markup=False)


def check_preconditions(project_root: Path) -> Optional[ValidationResult]:
    """Return the first failed precondition, or None if all pass."""
    for check in (validate_project, validate_env_file):
        result = check(project_root)
        if not result.ok:
            return result
    return None


def load_env_vars(
    project_root: Path, console: Console,
) -> tuple[list[EnvVar], Optional[ValidationResult]]:
    """Validate the project and parse .env.cloud, printing any failure.

    Returns:
        ``(env_vars, None)`` on success, ``([], failure)`` when a
        precondition does not hold.
    """
    failure = check_preconditions(project_root)
    if failure is not None:
        print_validation_failure(console, failure)
        logger.debug("Aborted before parsing: %s", failure.message)
        return [], failure
    env_vars = validate_and_parse_env_cloud(project_root)
    console.print(f"  Found [bold]{len(env_vars)}[/] environment variables")
    return env_vars, None


def print_sync_report(console: Console, report: SyncReport) -> None:
    for key, error in report.failed.items():
        console.print(
            f"  [red]Failed to sync secret '{escape(key)}':[/] {escape(error)}",
            highlight=False,
        )
    color = "green" if report.ok else "yellow"
    console.print(
        f"  [{color}]Secret sync completed! "
        f"({report.success_count}/{report.attempted} secrets synced)[/]",
        highlight=False,
    )


def print_sync_skipped(console: Console) -> None:
    console.print()
    console.print(
        "[yellow]Skipping secret sync[/] (GitHub credentials not found in .env.cloud file)"
    )
    console.print("To enable secret sync, add these to your .env.cloud file:")
    console.print(f"  {GITHUB_TOKEN_KEY}=your_github_personal_access_token", highlight=False)
    console.print(f"  {GITHUB_OWNER_KEY}=your_github_username_or_org", highlight=False)
    console.print(f"  {GITHUB_REPO_KEY}=your_repository_name", highlight=False)


def run_sync(
    env_vars: list[EnvVar],
    config: PqlConfig,
    console: Console,
    client_factory: Optional[ClientFactory] = None,
) -> tuple[bool, Optional[SyncReport]]:
    """Apply the sync gate and, if open, push all secrets."""
    github = extract_github_config(env_vars)
    if not github.is_complete:
        print_sync_skipped(console)
        return False, None

    targets = sync_targets(env_vars, config.exclude_keys)
    console.print()
    console.print(
        f"Syncing [bold]{len(targets)}[/] secrets to [cyan]{github.slug}[/]...",
        highlight=False,
    )
    factory = client_factory or default_client_factory(config.api_url, config.timeout)
    report = SyncReport()
    synced = handle_secret_sync(
        env_vars,
        github,
        client_factory=factory,
        refresh_key_per_secret=config.refresh_key_per_secret,
        exclude_keys=config.exclude_keys,
        report=report,
    )
    if not synced:
        return False, None
    print_sync_report(console, report)
    return True, report


def run_setup(
    project_root: Path,
    config: Optional[PqlConfig] = None,
    client_factory: Optional[ClientFactory] = None,
    console: Optional[Console] = None,
    sync: bool = True,
) -> SetupResult:
    """Run the full CI/CD bootstrap for one project.

    Args:
        project_root: Root of the DDN project.
        config: Tool configuration. Defaults apply when omitted.
        client_factory: Builds the secrets client; swap for a fake in tests.
        console: Where progress goes.
        sync: Set False to render workflows without touching GitHub.

    Returns:
        SetupResult describing what happened.
    """
    config = config or PqlConfig()
    console = console or Console()

    console.print(f"Project directory: [cyan]{project_root}[/]", highlight=False)

    env_vars, failure = load_env_vars(project_root, console)
    if failure is not None:
        return SetupResult(exit_code=1, validation=failure)

    console.print()
    console.print("Generating GitHub Actions workflows...")
    paths = write_workflow_files(
        project_root, env_vars, pql_path=config.pql_path, workflows_dir=config.workflows_dir,
    )
    console.print("  [green]Generated workflow files:[/]")
    for path in paths:
        console.print(f"    - {path}", highlight=False)

    result = SetupResult(env_vars=env_vars, workflow_paths=paths)
    if sync:
        result.secrets_synced, result.report = run_sync(
            env_vars, config, console, client_factory=client_factory,
        )
    return result
