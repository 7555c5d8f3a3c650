"""Tests for batch secret sync and the sync gate."""

from __future__ import annotations

from unittest.mock import MagicMock

import requests

from pql_ci_cd.github_secrets import GitHubSecretsClient, SecretsError
from pql_ci_cd.models import EnvVar, GitHubConfig, PublicKeyRecord, SyncReport
from pql_ci_cd.secrets_sync import handle_secret_sync, sync_secrets, sync_targets

ENV_VARS = [
    EnvVar(key="ONE", value="1"),
    EnvVar(key="TWO", value="2"),
    EnvVar(key="THREE", value="3"),
]
FULL = GitHubConfig(token="t", owner="acme", repo="docs-bot")


def _mock_client() -> MagicMock:
    return MagicMock(spec=GitHubSecretsClient)


class TestSyncSecrets:
    """Tests for sync_secrets()."""

    def test_all_succeed(self):
        client = _mock_client()
        report = sync_secrets(client, ENV_VARS)
        assert report.ok
        assert report.synced == ["ONE", "TWO", "THREE"]
        assert client.create_or_update_secret.call_count == 3

    def test_partial_failure_continues(self):
        """A failure on key 2 of 3 still attempts key 3."""
        client = _mock_client()
        client.create_or_update_secret.side_effect = [None, SecretsError("boom"), None]

        report = sync_secrets(client, ENV_VARS)

        attempted = [c.args[0] for c in client.create_or_update_secret.call_args_list]
        assert attempted == ["ONE", "TWO", "THREE"]
        assert report.success_count == 2
        assert report.failed == {"TWO": "boom"}
        assert not report.ok

    def test_transport_errors_are_per_key(self):
        client = _mock_client()
        client.create_or_update_secret.side_effect = [
            requests.ConnectionError("down"), None, None,
        ]
        report = sync_secrets(client, ENV_VARS)
        assert report.synced == ["TWO", "THREE"]
        assert "ONE" in report.failed

    def test_fresh_key_per_secret_by_default(self):
        """The client is left to fetch its own key for every upload."""
        client = _mock_client()
        sync_secrets(client, ENV_VARS)
        client.get_public_key.assert_not_called()
        for call in client.create_or_update_secret.call_args_list:
            assert call.kwargs["public_key"] is None

    def test_shared_key_per_batch(self):
        """With refresh disabled the key is fetched once and reused."""
        client = _mock_client()
        key = PublicKeyRecord(key="k", key_id="id")
        client.get_public_key.return_value = key

        sync_secrets(client, ENV_VARS, refresh_key_per_secret=False)

        client.get_public_key.assert_called_once()
        for call in client.create_or_update_secret.call_args_list:
            assert call.kwargs["public_key"] is key

    def test_shared_key_fetch_failure_fails_batch(self):
        client = _mock_client()
        client.get_public_key.side_effect = SecretsError("no key")
        report = sync_secrets(client, ENV_VARS, refresh_key_per_secret=False)
        assert report.success_count == 0
        assert set(report.failed) == {"ONE", "TWO", "THREE"}
        client.create_or_update_secret.assert_not_called()

    def test_exclude_keys(self):
        client = _mock_client()
        report = sync_secrets(client, ENV_VARS, exclude_keys=["TWO"])
        assert report.attempted == 2
        assert report.synced == ["ONE", "THREE"]

    def test_empty_batch(self):
        client = _mock_client()
        report = sync_secrets(client, [], refresh_key_per_secret=False)
        assert report.attempted == 0
        client.get_public_key.assert_not_called()


class TestHandleSecretSync:
    """Tests for handle_secret_sync()."""

    def test_gate_closed_makes_no_calls(self):
        """Any missing credential means no client and no network."""
        factory = MagicMock()
        for github in (
            GitHubConfig(token="", owner="acme", repo="docs-bot"),
            GitHubConfig(token="t", owner="", repo="docs-bot"),
            GitHubConfig(token="t", owner="acme", repo=""),
            GitHubConfig(),
        ):
            report = SyncReport()
            synced = handle_secret_sync(
                ENV_VARS, github, client_factory=factory, report=report,
            )
            assert synced is False
            assert report.attempted == 0
        factory.assert_not_called()

    def test_gate_open_uploads_every_key(self, fake_session, fake_response, keypair):
        """One PUT per env var goes out when the gate is open."""
        _, public_b64 = keypair
        session = fake_session({
            ("GET", "/public-key"): fake_response(200, {"key": public_b64, "key_id": "kid"}),
        })

        def factory(github):
            return GitHubSecretsClient(github.token, github.owner, github.repo, session=session)

        report = SyncReport()
        synced = handle_secret_sync(ENV_VARS, FULL, client_factory=factory, report=report)

        assert synced is True
        assert report.attempted == 3
        assert report.success_count == 3
        assert session.count("PUT") == len(ENV_VARS)
        assert session.count("GET") == len(ENV_VARS)

    def test_returns_plain_bool_without_report(self):
        client = _mock_client()
        synced = handle_secret_sync(ENV_VARS, FULL, client_factory=lambda github: client)
        assert synced is True
        assert client.create_or_update_secret.call_count == 3

    def test_malformed_public_key_body_fails_each_key(self, fake_session, fake_response):
        """A 200 with a junk body fails every key without aborting the batch."""
        session = fake_session({
            ("GET", "/public-key"): fake_response(200, {"unexpected": 1}),
        })

        def factory(github):
            return GitHubSecretsClient(github.token, github.owner, github.repo, session=session)

        report = SyncReport()
        synced = handle_secret_sync(ENV_VARS, FULL, client_factory=factory, report=report)

        assert synced is True
        assert report.success_count == 0
        assert list(report.failed) == ["ONE", "TWO", "THREE"]
        assert "unexpected public key body" in report.failed["ONE"]
        assert session.count("PUT") == 0


class TestSyncTargets:
    """Tests for sync_targets()."""

    def test_excludes_named_keys_in_order(self):
        targets = sync_targets(ENV_VARS, ["TWO"])
        assert [var.key for var in targets] == ["ONE", "THREE"]

    def test_no_exclusions(self):
        assert sync_targets(ENV_VARS) == ENV_VARS
