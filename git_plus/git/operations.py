"""Git operations for the git plus tool."""

import logging
from pathlib import Path
from typing import List, Optional
from ..core.types import (
    BranchEntry, CommandError, CommitEntry, GitOperationError, StashEntry, Worktree
)
from ..core.config import GitPlusConfig
from .runner import CommandRunner

logger = logging.getLogger(__name__)

# git show exits with 128 when the path is absent from the given tree
_PATH_NOT_IN_TREE = 128


def parse_worktree_list(output: str) -> List[Worktree]:
    """Parse the output of `git worktree list --porcelain`."""
    worktrees = []
    current: Optional[Worktree] = None

    for line in output.splitlines():
        line = line.strip()
        if not line:
            if current is not None:
                worktrees.append(current)
                current = None
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            if current is not None:
                worktrees.append(current)
            current = Worktree(path=value)
        elif current is None:
            logger.warning("Skipping worktree line without a path: %s", line)
        elif key == "HEAD":
            current.head = value
        elif key == "branch":
            current.branch = value.removeprefix("refs/heads/")
        elif key == "bare":
            current.bare = True
        elif key == "detached":
            current.detached = True

    if current is not None:
        worktrees.append(current)
    return worktrees


class GitOperations:
    """Handles all git operations for the git plus tool."""

    def __init__(self, runner: Optional[CommandRunner] = None,
                 config: Optional[GitPlusConfig] = None):
        self.runner = runner or CommandRunner("git")
        self.config = config or GitPlusConfig()
        self._validate_git_repository()

    def _validate_git_repository(self) -> None:
        """Validate that we're in a git repository."""
        try:
            git_dir = self.runner.capture("rev-parse", "--git-dir")
            logger.debug("Git repository found at: %s", git_dir.strip())
        except CommandError:
            raise GitOperationError(
                "Not in a git repository. Please run this command from within a git repository."
            )

    def get_current_branch(self) -> str:
        """Get the name of the current branch.

        Raises:
            GitOperationError: If HEAD is detached.
        """
        branch = self.runner.capture("branch", "--show-current").strip()
        if not branch:
            raise GitOperationError("HEAD is detached; check out a branch first")
        return branch

    def has_uncommitted_changes(self) -> bool:
        """Check for modified, staged or untracked content."""
        return bool(self.runner.capture("status", "--porcelain").strip())

    def checkout(self, branch: str) -> None:
        """Checkout an existing branch.

        The trailing -- keeps git from reading branch as a path, which would
        leave HEAD where it was and still exit 0.
        """
        logger.info("Checking out branch: %s", branch)
        self.runner.capture("checkout", branch, "--")

    def switch(self, branch: str) -> None:
        """Switch to an existing branch."""
        logger.info("Switching to branch: %s", branch)
        self.runner.capture("switch", branch)

    def switch_back(self) -> None:
        """Return to the previously checked out branch or tag."""
        self.runner.passthrough("checkout", "-")

    def branch_exists(self, branch: str) -> bool:
        """Check if a local branch exists."""
        code = self.runner.quiet("show-ref", "--verify", "--quiet", f"refs/heads/{branch}")
        if code == 0:
            return True
        if code == 1:
            return False
        raise GitOperationError(f"Failed to look up branch {branch} (exit status {code})")

    def create_branch(self, branch: str, start_point: Optional[str] = None) -> None:
        """Create a new branch and switch to it."""
        logger.info("Creating branch: %s from %s", branch, start_point or "HEAD")
        args = ["switch", "-c", branch]
        if start_point:
            args.append(start_point)
        self.runner.passthrough(*args)

    def delete_branch(self, branch: str, force: bool = False) -> None:
        """Delete a local branch."""
        logger.info("Deleting branch: %s", branch)
        self.runner.passthrough("branch", "-D" if force else "-d", branch)

    def get_merged_branches(self) -> List[str]:
        """Local branches merged into HEAD, excluding the current one.

        Branches checked out in another worktree are excluded as well since
        git refuses to delete them.
        """
        branches = []
        for line in self.runner.capture("branch", "--merged").splitlines():
            line = line.rstrip()
            if not line.strip() or line.startswith(("*", "+")):
                continue
            branches.append(line.strip())
        return branches

    def create_stash(self, message: str) -> str:
        """Stash all uncommitted work, untracked files included.

        Returns:
            The commit id of the new stash.
        """
        logger.info("Stashing changes: %s", message)
        self.runner.capture("stash", "push", "--include-untracked", "-m", message)
        return self.runner.capture("rev-parse", "stash@{0}").strip()

    def list_stashes(self) -> List[StashEntry]:
        """List stashes, newest first."""
        output = self.runner.capture("stash", "list", "--format=%H%x1F%gs")
        stashes = []
        for line in output.splitlines():
            if not line.strip():
                continue
            commit, _, subject = line.partition("\x1F")
            stashes.append(StashEntry(index=len(stashes), commit=commit.strip(), subject=subject))
        return stashes

    def find_stash(self, stash_ref: str) -> Optional[StashEntry]:
        """Find the stash whose commit id matches stash_ref."""
        if not stash_ref:
            return None
        for entry in self.list_stashes():
            if entry.commit == stash_ref or (len(stash_ref) >= 7 and entry.commit.startswith(stash_ref)):
                return entry
        return None

    def pop_stash(self, entry: StashEntry) -> None:
        """Apply and drop a stash, leaving git's own conflict output on the terminal."""
        logger.info("Restoring stash %s (%s)", entry.name, entry.commit[:8])
        self.runner.passthrough("stash", "pop", entry.name)

    def drop_stash(self, index: int) -> None:
        """Drop a stash by index."""
        self.runner.capture("stash", "drop", f"stash@{{{index}}}")

    def get_stash_files(self, name: str) -> List[str]:
        """Sorted unique paths touched by a stash, untracked files included."""
        output = self.runner.capture("stash", "show", "--name-only", "--include-untracked", name)
        return sorted({line.strip() for line in output.splitlines() if line.strip()})

    def show_file(self, ref: str, path: str) -> Optional[bytes]:
        """Raw contents of path at ref, or None if the path is absent there."""
        try:
            return self.runner.capture_bytes("show", f"{ref}:{path}")
        except CommandError as e:
            if e.returncode == _PATH_NOT_IN_TREE:
                return None
            raise

    def get_latest_tag(self) -> Optional[str]:
        """Most recent tag reachable from HEAD, or None when there is none."""
        try:
            return self.runner.capture("describe", "--tags", "--abbrev=0").strip() or None
        except CommandError as e:
            logger.debug("No tag found: %s", e)
            return None

    def create_tag(self, tag: str, message: Optional[str] = None) -> None:
        """Create a lightweight tag, or an annotated one when a message is given."""
        logger.info("Creating tag: %s", tag)
        if message:
            self.runner.capture("tag", "-a", tag, "-m", message)
        else:
            self.runner.capture("tag", tag)

    def push_tag(self, tag: str, remote: Optional[str] = None) -> None:
        """Push a tag to a remote."""
        self.runner.passthrough("push", remote or self.config.remote, tag)

    def delete_tag(self, tag: str) -> bool:
        """Delete a local tag. Returns False if git refused, e.g. the tag is absent."""
        return self.runner.quiet("tag", "-d", tag) == 0

    def delete_remote_tag(self, tag: str, remote: Optional[str] = None) -> bool:
        """Delete a tag on a remote. Returns False if the push was rejected."""
        return self.runner.quiet("push", "--delete", remote or self.config.remote, tag) == 0

    def undo_last_commit(self) -> None:
        """Undo the last commit, keeping its changes staged."""
        self.runner.passthrough("reset", "--soft", "HEAD^")

    def amend_commit(self, extra_args: Optional[List[str]] = None) -> None:
        """Run git commit --amend attached to the terminal so the editor can open."""
        self.runner.passthrough("commit", "--amend", *(extra_args or []))

    def get_head(self) -> str:
        """Commit id of HEAD."""
        return self.runner.capture("rev-parse", "HEAD").strip()

    def get_recent_commits(self, count: int) -> List[CommitEntry]:
        """Up to count commits reachable from HEAD, newest first."""
        output = self.runner.capture("log", "-n", str(count), "--format=%H%x1F%s")
        commits = []
        for line in output.splitlines():
            if not line.strip():
                continue
            commit, _, subject = line.partition("\x1F")
            commits.append(CommitEntry(commit=commit.strip(), subject=subject))
        return commits

    def soft_reset(self, target: str) -> None:
        """Move HEAD to target, keeping every change staged."""
        logger.info("Resetting (soft) to %s", target)
        self.runner.capture("reset", "--soft", target)

    def commit(self, message: str) -> None:
        self.runner.passthrough("commit", "-m", message)

    def get_recent_branches(self) -> List[BranchEntry]:
        """Local branches ordered by their last commit, newest first."""
        output = self.runner.capture(
            "for-each-ref", "--sort=-committerdate",
            "--format=%(refname:short)%1F%(committerdate:relative)", "refs/heads/")
        branches = []
        for line in output.splitlines():
            name, sep, when = line.strip().partition("\x1F")
            if not name or not sep:
                continue
            branches.append(BranchEntry(name=name, last_commit=when))
        return branches

    def get_repo_root(self) -> Path:
        """Top-level directory of the current working tree."""
        return Path(self.runner.capture("rev-parse", "--show-toplevel").strip())

    def list_worktrees(self) -> List[Worktree]:
        """All worktrees attached to the repository."""
        return parse_worktree_list(self.runner.capture("worktree", "list", "--porcelain"))

    def add_worktree(self, path: Path, branch: str, create: bool = False,
                     base: Optional[str] = None) -> None:
        """Add a worktree at path for branch, optionally creating the branch."""
        logger.info("Adding worktree %s for branch %s", path, branch)
        if create:
            args = ["worktree", "add", "-b", branch, str(path)]
            if base:
                args.append(base)
        else:
            args = ["worktree", "add", str(path), branch]
        self.runner.passthrough(*args)

    def remove_worktree(self, path: str, force: bool = False) -> None:
        """Remove a worktree directory. The branch is kept."""
        logger.info("Removing worktree %s", path)
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(path)
        self.runner.passthrough(*args)
