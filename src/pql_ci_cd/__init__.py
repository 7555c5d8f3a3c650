"""
pql-ci-cd: CI/CD bootstrap for Hasura DDN / PromptQL projects.

Run it from a project root. It renders the create-build and
apply-build GitHub Actions workflows from .env.cloud and, when
GitHub credentials are present, pushes every value into the
repository's encrypted Actions secrets.
"""

__version__ = "0.1.0"

HASURA_DIR = ".hasura"
ENV_FILE = ".env.cloud"
CONFIG_FILE = ".pql-ci-cd.yaml"
WORKFLOWS_DIR = ".github/workflows"

CREATE_WORKFLOW_FILE = "create-build.yml"
APPLY_WORKFLOW_FILE = "apply-build.yml"

DDN_PAT_KEY = "HASURA_DDN_PAT"
GITHUB_TOKEN_KEY = "PQL_GITHUB_TOKEN"
GITHUB_OWNER_KEY = "PQL_GITHUB_OWNER"
GITHUB_REPO_KEY = "PQL_GITHUB_REPO"
