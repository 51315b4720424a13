"""GitHub CLI operations."""

import json
import logging
from typing import List, Optional

from ..core.types import CommandError, GitOperationError
from .runner import CommandRunner

logger = logging.getLogger(__name__)

GH_INSTALL_URL = "https://cli.github.com/"

MERGE_METHODS = ("--merge", "--squash", "--rebase")


def merge_args(pr_number: Optional[str] = None, extra_args: Optional[List[str]] = None) -> List[str]:
    """Arguments for gh pr merge.

    A merge commit and branch deletion are added unless extra_args already
    choose a merge method or mention branch deletion.
    """
    extra_args = list(extra_args or [])
    args = ["pr", "merge"]
    if pr_number:
        args.append(str(pr_number).lstrip("#"))
    if not any(arg in MERGE_METHODS for arg in extra_args):
        args.append("--merge")
    if not any(arg in ("--delete-branch", "-d") for arg in extra_args):
        args.append("--delete-branch")
    return args + extra_args


class GitHubCLI:
    """Pull request operations through the gh executable."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner("gh")

    def is_available(self) -> bool:
        """Check that gh is installed."""
        try:
            return self.runner.quiet("--version") == 0
        except CommandError:
            return False

    def ensure_available(self) -> None:
        if not self.is_available():
            raise GitOperationError(
                f"GitHub CLI (gh) is not installed. See {GH_INSTALL_URL}")

    def get_latest_pr_number(self) -> Optional[str]:
        """Number of the most recent open pull request, or None."""
        output = self.runner.capture("pr", "list", "--limit", "1", "--json", "number")
        try:
            prs = json.loads(output or "[]")
        except ValueError as e:
            raise GitOperationError(f"Unexpected output from gh pr list: {e}") from e

        if not prs:
            return None
        try:
            return str(prs[0]["number"])
        except (KeyError, TypeError, IndexError) as e:
            raise GitOperationError(f"Unexpected output from gh pr list: {output.strip()}") from e

    def checkout_pr(self, pr_number: str) -> None:
        """Check out the branch of a pull request."""
        logger.info("Checking out PR #%s", pr_number)
        self.runner.passthrough("pr", "checkout", str(pr_number))

    def merge_pr(self, pr_number: Optional[str] = None,
                 extra_args: Optional[List[str]] = None) -> None:
        """Merge a pull request, the one for the current branch by default."""
        logger.info("Merging PR %s", f"#{pr_number}" if pr_number else "for the current branch")
        self.runner.passthrough(*merge_args(pr_number, extra_args))
