"""Commit rewriting shortcuts: amend and squash."""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..core.types import CommitEntry, GitPlusError, WorkflowError
from ..git.operations import GitOperations

logger = logging.getLogger(__name__)

SQUASH_CANDIDATES = 10


@dataclass
class SquashResult:
    """Outcome of squashing commits."""
    commits: List[CommitEntry] = field(default_factory=list)
    previous_head: str = ""
    cancelled: bool = False


class CommitWorkflow:
    """Rewrites the most recent commits of the current branch."""

    def __init__(self, git_ops: GitOperations,
                 confirm: Callable[[str, bool], bool]):
        self.git_ops = git_ops
        self.confirm = confirm

    def amend(self, extra_args: Optional[List[str]] = None) -> None:
        """Amend the last commit. Arguments go to git commit --amend unchanged."""
        try:
            self.git_ops.amend_commit(extra_args)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to amend the last commit: {e}") from e

    def recent_commits(self, count: int = SQUASH_CANDIDATES) -> List[CommitEntry]:
        try:
            return self.git_ops.get_recent_commits(count)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to read the commit history: {e}") from e

    def squash(self, count: int, message: str) -> SquashResult:
        """Replace the last count commits with one commit carrying message.

        The commits are undone with a soft reset, so their changes stay
        staged and become the content of the new commit.
        """
        if count < 2:
            raise WorkflowError("Squashing needs at least 2 commits")
        message = message.strip()
        if not message:
            raise WorkflowError("Commit message is empty")

        commits = self.recent_commits(count)
        if len(commits) < count:
            raise WorkflowError(
                f"Cannot squash {count} commits; only {len(commits)} exist")
        result = SquashResult(commits=commits)

        if not self.confirm(f"Squash these {count} commits into one?", False):
            result.cancelled = True
            return result

        try:
            result.previous_head = self.git_ops.get_head()
            self.git_ops.soft_reset(f"HEAD~{count}")
        except GitPlusError as e:
            raise WorkflowError(f"Failed to reset to HEAD~{count}: {e}") from e

        try:
            self.git_ops.commit(message)
        except GitPlusError as e:
            raise WorkflowError(
                f"Failed to create the squashed commit: {e}\n"
                f"The changes are staged. To undo the squash run: "
                f"git reset --soft {result.previous_head[:12]}") from e

        logger.info("Squashed %d commits", count)
        return result
