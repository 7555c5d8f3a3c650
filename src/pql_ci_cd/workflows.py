"""
GitHub Actions workflow rendering.

Two workflows drive the PromptQL build lifecycle:

  create-build.yml  On every PR push, build a DDN supergraph and post
                    the build version back to the PR as a comment.
  apply-build.yml   When the PR merges into main, read the version from
                    that comment and apply it.

Rendering is pure: the same env var list always produces the same
text. Only ``write_workflow_files`` touches the disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import APPLY_WORKFLOW_FILE, CREATE_WORKFLOW_FILE, DDN_PAT_KEY, WORKFLOWS_DIR
from .models import EnvVar

logger = logging.getLogger("pql_ci_cd.workflows")

# Marker the apply workflow searches for in PR comments.
BUILD_COMMENT_TITLE = "🚀 PromptQL Build Complete"

_BUILD_COMMENT_STEP = r"""      - name: Comment on PR
        if: always()
        uses: actions/github-script@v7
        with:
          script: |
            const buildOutput = JSON.parse(`${{ steps.build.outputs.build_output }}`);

            const comment = `## 🚀 PromptQL Build Complete

            **Build Version:** \`${buildOutput.build_version || 'N/A'}\`
            **Project:** \`${buildOutput.project_name || 'docs-bot'}\`
            **PromptQL Playground:** ${buildOutput.promptql_url ? `[Open Playground](${buildOutput.promptql_url})` : 'N/A'}

            ${buildOutput.description ? `\n**Description:** ${buildOutput.description}` : ''}
            `;

            // Find existing comment
            const comments = await github.rest.issues.listComments({
              issue_number: context.issue.number,
              owner: context.repo.owner,
              repo: context.repo.repo,
            });

            const existingComment = comments.data.find(comment =>
              comment.body.includes('🚀 PromptQL Build Complete')
            );

            if (existingComment) {
              // Update existing comment
              await github.rest.issues.updateComment({
                comment_id: existingComment.id,
                owner: context.repo.owner,
                repo: context.repo.repo,
                body: comment
              });
            } else {
              // Create new comment
              await github.rest.issues.createComment({
                issue_number: context.issue.number,
                owner: context.repo.owner,
                repo: context.repo.repo,
                body: comment
              });
            }
"""

_GET_BUILD_STEP = r"""      - name: Get build version from PR comment
        id: get_build
        uses: actions/github-script@v7
        with:
          script: |
            // Get all comments from the merged PR
            const comments = await github.rest.issues.listComments({
              issue_number: context.payload.pull_request.number,
              owner: context.repo.owner,
              repo: context.repo.repo,
            });

            // Find the build comment
            const buildComment = comments.data.find(comment => 
              comment.body.includes('🚀 PromptQL Build Complete')
            );

            if (!buildComment) {
              core.setFailed('No build comment found in PR');
              return;
            }

            // Extract build version from comment
            const buildVersionMatch = buildComment.body.match(/\*\*Build Version:\*\* \`([^\`]+)\`/);
            if (!buildVersionMatch) {
              core.setFailed('Could not extract build version from comment');
              return;
            }

            const buildVersion = buildVersionMatch[1];
            console.log(`Found build version: ${buildVersion}`);
            core.setOutput('build_version', buildVersion);
"""

_APPLIED_COMMENT_STEP = r"""      - name: Comment on merged PR
        uses: actions/github-script@v7
        with:
          script: |
            const comment = `## ✅ PromptQL Build Applied

            **Build Version:** \`${{ steps.get_build.outputs.build_version }}\`
            **Status:** Successfully applied to production
            **Applied at:** ${new Date().toISOString()}
            `;

            await github.rest.issues.createComment({
              issue_number: context.payload.pull_request.number,
              owner: context.repo.owner,
              repo: context.repo.repo,
              body: comment
            });
"""


def with_ddn_pat(env_vars: list[EnvVar]) -> list[EnvVar]:
    """Return ``env_vars`` with HASURA_DDN_PAT guaranteed present.

    The build job always authenticates with the PAT, so it is
    prepended with an empty value when .env.cloud leaves it out.
    """
    if any(var.key == DDN_PAT_KEY for var in env_vars):
        return list(env_vars)
    return [EnvVar(key=DDN_PAT_KEY, value=""), *env_vars]


def render_create_workflow(env_vars: list[EnvVar], pql_path: str = ".") -> str:
    """Render create-build.yml.

    Every env key becomes a ``secrets.<KEY>`` reference on the step
    that rewrites .env.cloud inside the runner.

    Args:
        env_vars: Parsed .env.cloud contents. Only the keys are used.
        pql_path: Project directory relative to the repository root.

    Returns:
        Complete workflow YAML.
    """
    all_vars = with_ddn_pat(env_vars)
    secret_refs = "\n".join(
        f"          {var.key}: ${{{{ secrets.{var.key} }}}}" for var in all_vars
    )
    env_section = "\n".join(f"          {var.key}=${var.key}" for var in all_vars)

    return f"""name: Create PromptQL Build

on:
  pull_request:
    types: [opened, synchronize, reopened]

jobs:
  build:
    runs-on: ubuntu-latest

    steps:
      - name: Checkout code
        uses: actions/checkout@v4

      - name: Set environment variables
        run: |
          cd {pql_path}
          cat > .env.cloud << EOF
{env_section}
          EOF
        env:
{secret_refs}

      - name: Install DDN CLI
        run: |
          curl -L https://graphql-engine-cdn.hasura.io/ddn/cli/v4/get.sh | bash
          echo "$HOME/.local/bin" >> $GITHUB_PATH

      - name: Verify DDN CLI installation
        run: ddn --version

      - name: Authenticate with Hasura DDN
        run: |
          cd {pql_path}
          ddn auth login --pat "$HASURA_DDN_PAT"
        env:
          HASURA_DDN_PAT: ${{{{ secrets.HASURA_DDN_PAT }}}}

      - name: Create DDN build
        id: build
        run: |
          cd {pql_path}
          BUILD_OUTPUT=$(ddn supergraph build create --out json -d "PR #${{{{ github.event.number }}}}: ${{{{ github.event.pull_request.title }}}}")
          echo "build_output<<EOF" >> $GITHUB_OUTPUT
          echo "$BUILD_OUTPUT" >> $GITHUB_OUTPUT
          echo "EOF" >> $GITHUB_OUTPUT

{_BUILD_COMMENT_STEP}"""


def render_apply_workflow(pql_path: str = ".") -> str:
    """Render apply-build.yml. ``pql_path`` is the only variable part."""
    return f"""name: Apply PromptQL Build

on:
  pull_request:
    types: [closed]
    branches: [main]

jobs:
  apply:
    if: github.event.pull_request.merged == true
    runs-on: ubuntu-latest

    steps:
      - name: Checkout code
        uses: actions/checkout@v4

      - name: Set environment variables
        run: |
          cd {pql_path}
          cat > .env.cloud << EOF
          HASURA_DDN_PAT=$HASURA_DDN_PAT
          EOF
        env:
          HASURA_DDN_PAT: ${{{{ secrets.HASURA_DDN_PAT }}}}

      - name: Install DDN CLI
        run: |
          curl -L https://graphql-engine-cdn.hasura.io/ddn/cli/v4/get.sh | bash
          echo "$HOME/.local/bin" >> $GITHUB_PATH

      - name: Authenticate with PromptQL
        run: |
          cd {pql_path}
          ddn auth login --pat "$HASURA_DDN_PAT"
        env:
          HASURA_DDN_PAT: ${{{{ secrets.HASURA_DDN_PAT }}}}

{_GET_BUILD_STEP}
      - name: Apply build
        run: |
          cd {pql_path}
          echo "Applying build version: ${{{{ steps.get_build.outputs.build_version }}}}"
          ddn supergraph build apply ${{{{ steps.get_build.outputs.build_version }}}}

{_APPLIED_COMMENT_STEP}"""


def write_workflow_files(
    project_root: Path,
    env_vars: list[EnvVar],
    pql_path: str = ".",
    workflows_dir: Optional[Path] = None,
) -> list[Path]:
    """Render both workflows and write them under the project.

    Existing files are overwritten. The two writes are independent;
    if the second fails the first stays on disk.

    Args:
        project_root: Project directory.
        env_vars: Parsed .env.cloud contents.
        pql_path: Directory the workflow steps ``cd`` into.
        workflows_dir: Output directory relative to ``project_root``.

    Returns:
        Paths of the create-build and apply-build files, in that order.
    """
    target_dir = project_root / (workflows_dir or Path(WORKFLOWS_DIR))
    target_dir.mkdir(parents=True, exist_ok=True)

    create_path = target_dir / CREATE_WORKFLOW_FILE
    apply_path = target_dir / APPLY_WORKFLOW_FILE

    create_path.write_text(render_create_workflow(env_vars, pql_path), encoding="utf-8")
    apply_path.write_text(render_apply_workflow(pql_path), encoding="utf-8")

    logger.info("Wrote workflows: %s, %s", create_path, apply_path)
    return [create_path, apply_path]
