"""Secret commands: sync, secrets."""

from __future__ import annotations

import sys

import click
import requests
from rich.markup import escape
from rich.table import Table

from ._common import console, load_project_config, project_option, resolve_project
from ..github_secrets import SecretsError
from ..orchestrator import load_env_vars, print_sync_skipped, run_sync
from ..secrets_sync import default_client_factory
from ..validator import extract_github_config


def register_secrets_commands(main: click.Group) -> None:
    """Register the sync and secrets commands."""

    @main.command()
    @project_option
    def sync(project):
        """Push every .env.cloud value into GitHub repository secrets."""
        project_root = resolve_project(project)
        config = load_project_config(project_root)

        env_vars, failure = load_env_vars(project_root, console)
        if failure is not None:
            sys.exit(1)

        synced, _report = run_sync(env_vars, config, console)
        if not synced:
            sys.exit(1)

    @main.command("secrets")
    @project_option
    def list_secrets(project):
        """List the secrets already stored on the GitHub repository."""
        project_root = resolve_project(project)
        config = load_project_config(project_root)

        env_vars, failure = load_env_vars(project_root, console)
        if failure is not None:
            sys.exit(1)

        github = extract_github_config(env_vars)
        if not github.is_complete:
            print_sync_skipped(console)
            sys.exit(1)

        client = default_client_factory(config.api_url, config.timeout)(github)
        try:
            secrets = client.list_secrets()
        except (SecretsError, requests.RequestException) as exc:
            console.print(f"[bold red]Could not list secrets:[/] {escape(str(exc))}", highlight=False)
            sys.exit(1)

        if not secrets:
            console.print(f"\n  [dim]No secrets on {github.slug}.[/]\n")
            return

        local_keys = {var.key for var in env_vars}
        table = Table(title=f"Secrets on {github.slug}", show_lines=False)
        table.add_column("Name", style="cyan")
        table.add_column("Updated", style="dim")
        table.add_column("In .env.cloud")
        for secret in secrets:
            table.add_row(
                secret.name,
                secret.updated_at.isoformat() if secret.updated_at else "-",
                "[green]yes[/]" if secret.name in local_keys else "[dim]no[/]",
            )
        console.print()
        console.print(table)
        console.print()
