"""
Push .env.cloud values into GitHub repository secrets.

Best effort: each key is attempted once, a failure is logged against
its key name and the batch moves on. No retries.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from .github_secrets import GitHubSecretsClient, SecretsError
from .models import EnvVar, GitHubConfig, PublicKeyRecord, SyncReport

logger = logging.getLogger("pql_ci_cd.secrets_sync")

ClientFactory = Callable[[GitHubConfig], GitHubSecretsClient]


def default_client_factory(
    api_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ClientFactory:
    """Build a factory producing real GitHubSecretsClient instances."""

    def factory(github: GitHubConfig) -> GitHubSecretsClient:
        kwargs: dict = {}
        if api_url:
            kwargs["api_url"] = api_url
        if timeout:
            kwargs["timeout"] = timeout
        return GitHubSecretsClient(github.token, github.owner, github.repo, **kwargs)

    return factory


def sync_targets(env_vars: list[EnvVar], exclude_keys: Optional[list[str]] = None) -> list[EnvVar]:
    """Env vars that will be uploaded, in order."""
    excluded = set(exclude_keys or [])
    return [var for var in env_vars if var.key not in excluded]


def sync_secrets(
    client: GitHubSecretsClient,
    env_vars: list[EnvVar],
    refresh_key_per_secret: bool = True,
    exclude_keys: Optional[list[str]] = None,
    report: Optional[SyncReport] = None,
) -> SyncReport:
    """Upload every env var as a repository secret.

    Args:
        client: Secrets client for the target repository.
        env_vars: Values to upload, in order.
        refresh_key_per_secret: Fetch a fresh public key before each
            upload. When False one key is fetched for the whole batch.
        exclude_keys: Keys to leave out of the upload.
        report: Report to fill in. A new one is created when omitted.

    Returns:
        SyncReport with per-key outcomes.
    """
    targets = sync_targets(env_vars, exclude_keys)
    if report is None:
        report = SyncReport()
    report.attempted = len(targets)

    shared_key: Optional[PublicKeyRecord] = None
    if targets and not refresh_key_per_secret:
        try:
            shared_key = client.get_public_key()
        except (SecretsError, requests.RequestException) as exc:
            logger.error("Could not fetch repository public key: %s", exc)
            report.failed = {var.key: str(exc) for var in targets}
            return report

    for var in targets:
        try:
            client.create_or_update_secret(var.key, var.value, public_key=shared_key)
            report.synced.append(var.key)
        except (SecretsError, requests.RequestException) as exc:
            logger.error("Failed to sync secret '%s': %s", var.key, exc)
            report.failed[var.key] = str(exc)

    logger.info(
        "Secret sync finished: %d/%d synced", report.success_count, report.attempted,
    )
    return report


def handle_secret_sync(
    env_vars: list[EnvVar],
    github: GitHubConfig,
    client_factory: Optional[ClientFactory] = None,
    refresh_key_per_secret: bool = True,
    exclude_keys: Optional[list[str]] = None,
    report: Optional[SyncReport] = None,
) -> bool:
    """Sync secrets if the GitHub credentials are complete.

    Per-key outcomes go into ``report`` when one is given.

    Returns:
        False without touching the network when token, owner or repo
        is missing; True once the upload batch has been attempted.
    """
    if not github.is_complete:
        logger.info("Skipping secret sync: GitHub credentials incomplete")
        return False

    factory = client_factory or default_client_factory()
    client = factory(github)
    sync_secrets(
        client,
        env_vars,
        refresh_key_per_secret=refresh_key_per_secret,
        exclude_keys=exclude_keys,
        report=report,
    )
    return True
