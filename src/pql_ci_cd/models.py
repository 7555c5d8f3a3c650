"""
Pydantic models for everything a single pql-ci-cd run touches.

Nothing here is persisted. Each object is built, used once,
and dropped when the process exits.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class EnvVar(BaseModel):
    """One KEY=VALUE assignment from a dotenv file."""

    key: str
    value: str = ""


class PublicKeyRecord(BaseModel):
    """A repository's sealed-box public key as GitHub hands it out."""

    key: str
    key_id: str


class SecretInfo(BaseModel):
    """Metadata for a repository secret. GitHub never returns values."""

    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GitHubConfig(BaseModel):
    """GitHub coordinates pulled out of .env.cloud."""

    token: str = ""
    owner: str = ""
    repo: str = ""

    @property
    def is_complete(self) -> bool:
        """Secret sync only runs when token, owner and repo are all set."""
        return bool(self.token and self.owner and self.repo)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


class SyncReport(BaseModel):
    """Outcome of one secret sync batch."""

    attempted: int = 0
    synced: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.synced)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        """True when every attempted secret made it."""
        return self.failure_count == 0


class ValidationResult(BaseModel):
    """Result of a precondition check on the project root.

    A failed check short-circuits the run. ``hint`` holds the
    guidance lines shown to the user.
    """

    ok: bool
    message: str = ""
    hint: list[str] = Field(default_factory=list)
    path: Optional[Path] = None


class SetupResult(BaseModel):
    """Everything the orchestrator did in one run."""

    exit_code: int = 0
    validation: Optional[ValidationResult] = None
    env_vars: list[EnvVar] = Field(default_factory=list)
    workflow_paths: list[Path] = Field(default_factory=list)
    secrets_synced: bool = False
    report: Optional[SyncReport] = None
