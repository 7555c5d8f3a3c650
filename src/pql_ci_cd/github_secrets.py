"""
GitHub Actions repository secrets over the REST API.

GitHub only accepts secret values sealed to the repository's
Curve25519 public key (a libsodium sealed box). Anyone holding the
public key can encrypt; only GitHub can decrypt. This client never
needs or sees a private key.

Endpoints used:
    GET /repos/{owner}/{repo}/actions/secrets/public-key
    PUT /repos/{owner}/{repo}/actions/secrets/{secret_name}
    GET /repos/{owner}/{repo}/actions/secrets
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import requests
from nacl import public
from nacl.exceptions import CryptoError

from .config import DEFAULT_API_URL, DEFAULT_TIMEOUT
from .models import PublicKeyRecord, SecretInfo

logger = logging.getLogger("pql_ci_cd.github_secrets")

GITHUB_API_VERSION = "2022-11-28"


class SecretsError(Exception):
    """Base class for secret store failures."""


class GitHubAPIError(SecretsError):
    """The GitHub API returned an error status or an unusable body.

    ``status_code`` is None when the status was fine but the body was not.
    """

    def __init__(
        self, method: str, endpoint: str, status_code: Optional[int], body: str = "",
    ):
        self.method = method
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        status = "" if status_code is None else f"{status_code} "
        super().__init__(f"GitHub API {method} {endpoint}: {status}{body}".rstrip())


class AuthError(GitHubAPIError):
    """The token was rejected (401) or lacks permission (403)."""


class NotFoundError(GitHubAPIError):
    """The repository does not exist or the token cannot see it."""


class EncryptionError(SecretsError):
    """Sealing a value with the repository public key failed."""

    def __init__(self, message: str, key_length: int, key_prefix: str):
        self.key_length = key_length
        self.key_prefix = key_prefix
        super().__init__(message)


def encrypt_secret(value: str, public_key: str) -> str:
    """Seal ``value`` to a base64 encoded Curve25519 public key.

    Args:
        value: Plaintext secret.
        public_key: Repository public key, base64 encoded.

    Returns:
        Base64 encoded sealed box ciphertext.

    Raises:
        EncryptionError: If the key cannot be decoded or sealing fails.
    """
    try:
        key_bytes = base64.b64decode(public_key, validate=True)
        sealed = public.SealedBox(public.PublicKey(key_bytes)).encrypt(value.encode("utf-8"))
    except (ValueError, TypeError, CryptoError) as exc:
        logger.error("Failed to encrypt secret: %s", exc)
        logger.error("Public key length: %d", len(public_key))
        logger.error("Public key (first 50 chars): %s", public_key[:50])
        raise EncryptionError(
            f"Failed to encrypt secret: {exc}",
            key_length=len(public_key),
            key_prefix=public_key[:50],
        ) from exc
    return base64.b64encode(sealed).decode("utf-8")


class GitHubSecretsClient:
    """Read and write Actions secrets for one repository.

    Args:
        token: Personal access token with ``secrets`` write access.
        owner: Repository owner (user or organization).
        repo: Repository name.
        api_url: API root, override for GitHub Enterprise.
        timeout: Per request timeout in seconds.
        session: HTTP session. A fresh ``requests.Session`` by default.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        })

    @property
    def _secrets_endpoint(self) -> str:
        return f"/repos/{self.owner}/{self.repo}/actions/secrets"

    def _api_call(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict] = None,
    ) -> Any:
        """Make an authenticated GitHub API call.

        Args:
            method: HTTP method.
            endpoint: Path below the API root.
            data: JSON request body.

        Returns:
            Parsed JSON response, or None for empty bodies.

        Raises:
            AuthError: On 401/403.
            NotFoundError: On 404.
            GitHubAPIError: On any other status >= 400, or a non-JSON body.
        """
        url = f"{self._api_url}{endpoint}"
        resp = self._session.request(method, url, json=data, timeout=self._timeout)

        if resp.status_code in (401, 403):
            raise AuthError(method, endpoint, resp.status_code, resp.text)
        if resp.status_code == 404:
            raise NotFoundError(method, endpoint, resp.status_code, resp.text)
        if resp.status_code >= 400:
            raise GitHubAPIError(method, endpoint, resp.status_code, resp.text)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise GitHubAPIError(method, endpoint, None, "response body is not JSON") from exc

    def get_public_key(self) -> PublicKeyRecord:
        """Fetch the repository's current secrets public key."""
        endpoint = f"{self._secrets_endpoint}/public-key"
        data = self._api_call("GET", endpoint)
        if not isinstance(data, dict):
            raise GitHubAPIError("GET", endpoint, None, f"unexpected public key body: {data!r}")
        try:
            return PublicKeyRecord(key=data["key"], key_id=data["key_id"])
        except (KeyError, ValueError) as exc:
            raise GitHubAPIError(
                "GET", endpoint, None, f"unexpected public key body: {data!r}",
            ) from exc

    def upsert_secret(self, name: str, encrypted_value: str, key_id: str) -> None:
        """Create or replace a secret with an already sealed value.

        GitHub answers 201 for a new secret and 204 for an update;
        both are success.
        """
        self._api_call(
            "PUT",
            f"{self._secrets_endpoint}/{name}",
            data={"encrypted_value": encrypted_value, "key_id": key_id},
        )

    def create_or_update_secret(
        self,
        name: str,
        value: str,
        public_key: Optional[PublicKeyRecord] = None,
    ) -> None:
        """Encrypt ``value`` and store it as secret ``name``.

        Args:
            name: Secret name.
            value: Plaintext value.
            public_key: Key to seal with. Fetched fresh when omitted.
        """
        key = public_key or self.get_public_key()
        encrypted = encrypt_secret(value, key.key)
        self.upsert_secret(name, encrypted, key.key_id)
        logger.info("Secret '%s' created/updated on %s/%s", name, self.owner, self.repo)

    def list_secrets(self) -> list[SecretInfo]:
        """List secret names and timestamps. Values are never returned."""
        data = self._api_call("GET", self._secrets_endpoint) or {}
        items = data.get("secrets", []) if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise GitHubAPIError(
                "GET", self._secrets_endpoint, None, f"unexpected secrets body: {data!r}",
            )
        try:
            return [SecretInfo(**item) for item in items]
        except (TypeError, ValueError) as exc:
            raise GitHubAPIError(
                "GET", self._secrets_endpoint, None, f"unexpected secrets body: {data!r}",
            ) from exc
