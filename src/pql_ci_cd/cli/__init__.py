"""
pql-ci-cd CLI.

The main Click group lives here; each command group is defined in
its own module and attached through a register function.

Entry point: pql_ci_cd.cli:main
"""

from __future__ import annotations

import click

from .. import __version__
from ._common import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="pql-ci-cd")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose):
    """pql-ci-cd: GitHub Actions CI/CD for Hasura DDN projects.

    Renders the PromptQL build workflows and syncs .env.cloud
    into GitHub repository secrets.
    """
    configure_logging(verbose)


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .setup import register_setup_commands
from .secrets import register_secrets_commands

register_setup_commands(main)
register_secrets_commands(main)
