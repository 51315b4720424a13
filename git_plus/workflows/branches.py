"""Branch shortcuts."""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..core.config import GitPlusConfig
from ..core.types import BranchEntry, GitPlusError, WorkflowError
from ..git.operations import GitOperations

logger = logging.getLogger(__name__)

RECREATE = "recreate"
SWITCH = "switch"
CANCEL = "cancel"

RECENT_LIMIT = 10


@dataclass
class DeleteBranchesResult:
    """Outcome of deleting merged branches."""
    candidates: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    cancelled: bool = False


class BranchWorkflow:
    """Create, clean up and move between branches."""

    def __init__(self, git_ops: GitOperations,
                 confirm: Callable[[str, bool], bool],
                 config: Optional[GitPlusConfig] = None):
        self.git_ops = git_ops
        self.confirm = confirm
        self.config = config or GitPlusConfig()

    def new_branch(self, branch: str, choose: Callable[[str], str]) -> str:
        """Create branch, asking what to do when it already exists.

        Args:
            branch: Name of the branch to create
            choose: Called with the branch name when it exists; returns
                recreate, switch or cancel

        Returns:
            The action taken: recreate, switch, cancel or create
        """
        try:
            exists = self.git_ops.branch_exists(branch)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to check branch {branch}: {e}") from e

        action = "create"
        if exists:
            action = choose(branch)
            if action == CANCEL:
                return CANCEL
            if action == SWITCH:
                self._run(f"switch to {branch}", self.git_ops.switch, branch)
                return SWITCH
            if action != RECREATE:
                raise ValueError(f"Unknown branch action: {action}")
            self._run(f"delete {branch}", self.git_ops.delete_branch, branch, True)

        self._run(f"create {branch}", self.git_ops.create_branch, branch)
        return action

    def merged_branches(self) -> List[str]:
        """Merged local branches that are safe to delete."""
        protected = set(self.config.protected_branches)
        branches = self._run("list merged branches", self.git_ops.get_merged_branches)
        return [b for b in branches if b not in protected]

    def delete_merged_branches(self, candidates: Optional[List[str]] = None) -> DeleteBranchesResult:
        """Delete merged local branches except protected ones and the current one."""
        if candidates is None:
            candidates = self.merged_branches()
        result = DeleteBranchesResult(candidates=list(candidates))
        if not result.candidates:
            return result

        if not self.confirm(f"Delete {len(result.candidates)} merged branches?", False):
            result.cancelled = True
            return result

        failed = []
        for branch in result.candidates:
            try:
                self.git_ops.delete_branch(branch)
            except GitPlusError as e:
                logger.warning("Failed to delete %s: %s", branch, e)
                failed.append(branch)
            else:
                result.deleted.append(branch)

        if failed:
            raise WorkflowError(f"Failed to delete some branches: {', '.join(failed)}")
        return result

    def recent_branches(self, limit: int = RECENT_LIMIT) -> List[BranchEntry]:
        """Branches with the most recent commits, the current one excluded."""
        branches = self._run("list recent branches", self.git_ops.get_recent_branches)
        try:
            current = self.git_ops.get_current_branch()
        except GitPlusError as e:
            logger.debug("No current branch to exclude: %s", e)
            current = None
        return [b for b in branches if b.name != current][:limit]

    def switch_to(self, branch: str) -> None:
        self._run(f"switch to {branch}", self.git_ops.switch, branch)

    def undo_last_commit(self) -> None:
        """Undo the last commit, keeping its changes staged."""
        self._run("undo the last commit", self.git_ops.undo_last_commit)

    def back(self) -> None:
        """Return to the previous branch or tag."""
        self._run("switch to the previous branch", self.git_ops.switch_back)

    @staticmethod
    def _run(description: str, func, *args):
        try:
            return func(*args)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to {description}: {e}") from e
