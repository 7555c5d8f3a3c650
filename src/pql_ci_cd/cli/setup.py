"""Setup commands: setup, workflows."""

from __future__ import annotations

import sys

import click

from ._common import console, load_project_config, logger, project_option, resolve_project
from ..orchestrator import load_env_vars, run_setup
from ..workflows import write_workflow_files


def register_setup_commands(main: click.Group) -> None:
    """Register the setup and workflows commands."""

    @main.command()
    @project_option
    @click.option("--pql-path", default=None, help="Directory the workflow steps cd into.")
    @click.option("--no-sync", is_flag=True, help="Render workflows only; skip secret sync.")
    def setup(project, pql_path, no_sync):
        """Generate CI/CD workflows and sync secrets to GitHub."""
        project_root = resolve_project(project)
        config = load_project_config(project_root, pql_path)

        console.print("\n[bold cyan]pql-ci-cd[/] - Setting up CI/CD for your Hasura DDN project\n")
        result = run_setup(project_root, config, console=console, sync=not no_sync)
        if result.exit_code:
            sys.exit(result.exit_code)

        console.print()
        console.print("[bold green]Setup completed![/] Your project is now configured with:")
        console.print("  [green]✓[/] GitHub Actions workflows (create-build.yml + apply-build.yml)")
        if result.secrets_synced:
            console.print("  [green]✓[/] Synced environment secrets")
        console.print()
        console.print("Next steps:")
        console.print(f"  1. Commit and push the {config.workflows_dir}/ files", highlight=False)
        console.print("  2. Create a pull request to test the create-build workflow")
        console.print("  3. Merge the PR to test the apply-build workflow")
        console.print()

    @main.command()
    @project_option
    @click.option("--pql-path", default=None, help="Directory the workflow steps cd into.")
    def workflows(project, pql_path):
        """Render create-build.yml and apply-build.yml only."""
        project_root = resolve_project(project)
        config = load_project_config(project_root, pql_path)

        env_vars, failure = load_env_vars(project_root, console)
        if failure is not None:
            sys.exit(1)

        paths = write_workflow_files(
            project_root, env_vars, pql_path=config.pql_path, workflows_dir=config.workflows_dir,
        )
        logger.debug("Rendered %d workflows for %s", len(paths), project_root)
        console.print("  [green]Generated workflow files:[/]")
        for path in paths:
            console.print(f"    - {path}", highlight=False)
