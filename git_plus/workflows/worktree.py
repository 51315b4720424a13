"""Worktree management."""

import logging
from pathlib import Path
from typing import List, Optional

from ..core.types import GitPlusError, WorkflowError, Worktree
from ..git.operations import GitOperations

logger = logging.getLogger(__name__)


def worktree_path_for(repo_root: Path, branch: str) -> Path:
    """Sibling directory for a branch worktree.

    feature/login in ~/src/app becomes ~/src/app-feature-login.
    """
    repo_root = Path(repo_root)
    return repo_root.parent / f"{repo_root.name}-{branch.replace('/', '-')}"


class WorktreeWorkflow:
    """Create, list and remove worktrees next to the main checkout."""

    def __init__(self, git_ops: GitOperations):
        self.git_ops = git_ops

    def list(self) -> List[Worktree]:
        try:
            return self.git_ops.list_worktrees()
        except GitPlusError as e:
            raise WorkflowError(f"Failed to list worktrees: {e}") from e

    def new(self, branch: str, base: Optional[str] = None) -> Path:
        """Add a worktree for branch, creating the branch if needed."""
        try:
            repo_root = self.git_ops.get_repo_root()
        except GitPlusError as e:
            raise WorkflowError(f"Failed to find the repository root: {e}") from e

        path = worktree_path_for(repo_root, branch)
        if path.exists():
            raise WorkflowError(f"Directory already exists: {path}")

        try:
            exists = self.git_ops.branch_exists(branch)
            if exists:
                logger.info("Using existing branch %s", branch)
                self.git_ops.add_worktree(path, branch)
            else:
                self.git_ops.add_worktree(path, branch, create=True, base=base)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to create worktree {path}: {e}") from e
        return path

    def removable(self) -> List[Worktree]:
        """Worktrees other than the current one and the bare repository."""
        try:
            current = self.git_ops.get_repo_root().resolve()
        except GitPlusError as e:
            raise WorkflowError(f"Failed to find the repository root: {e}") from e
        return [wt for wt in self.list()
                if not wt.bare and Path(wt.path).resolve() != current]

    def delete(self, target: str, force: bool = False) -> Worktree:
        """Remove the worktree whose path or branch matches target."""
        candidates = self.removable()
        target_path = Path(target).expanduser()
        matches = [wt for wt in candidates
                   if wt.branch == target
                   or Path(wt.path) == target_path
                   or Path(wt.path).resolve() == target_path.resolve()]
        if not matches:
            raise WorkflowError(
                f"No removable worktree matches {target}. Use worktree-list to see them.")
        worktree = matches[0]

        try:
            self.git_ops.remove_worktree(worktree.path, force=force)
        except GitPlusError as e:
            hint = "" if force else " If it has uncommitted changes, use --force."
            raise WorkflowError(f"Failed to remove worktree {worktree.path}: {e}.{hint}") from e
        return worktree
