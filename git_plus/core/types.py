"""Type definitions for the git plus tool."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from enum import Enum


@dataclass
class PauseSession:
    """Record of an in-progress pause, used by resume to find its way back."""
    from_branch: str
    to_branch: str
    stash_ref: str
    stash_message: str
    timestamp: datetime

    @property
    def has_stash(self) -> bool:
        """Whether uncommitted work was stashed when pausing."""
        return bool(self.stash_ref)

    @property
    def short_stash_ref(self) -> str:
        """Short version of the stash commit id."""
        return self.stash_ref[:8]

    def describe(self) -> str:
        """One-line description used in prompts and messages."""
        return f"{self.from_branch} → {self.to_branch}"


class WorkflowStatus(Enum):
    """How a workflow terminated."""
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class PauseResult:
    """Outcome of the pause workflow."""
    status: WorkflowStatus
    session: Optional[PauseSession] = None

    @property
    def cancelled(self) -> bool:
        return self.status is WorkflowStatus.CANCELLED


@dataclass
class ResumeResult:
    """Outcome of the resume workflow."""
    session: PauseSession
    switched: bool
    stash_restored: bool
    warnings: List[str] = field(default_factory=list)


@dataclass
class PRCheckoutResult:
    """Outcome of the pull request checkout workflow."""
    status: WorkflowStatus
    pr_number: str
    session: Optional[PauseSession] = None

    @property
    def cancelled(self) -> bool:
        return self.status is WorkflowStatus.CANCELLED


@dataclass
class StashEntry:
    """A single line of `git stash list`."""
    index: int
    commit: str
    subject: str

    @property
    def name(self) -> str:
        return f"stash@{{{self.index}}}"


@dataclass
class CommitEntry:
    """A commit id with its subject line."""
    commit: str
    subject: str

    @property
    def short_commit(self) -> str:
        return self.commit[:8]


@dataclass
class BranchEntry:
    """A local branch and how long ago it was last committed to."""
    name: str
    last_commit: str = ""


@dataclass
class Worktree:
    """A single entry of `git worktree list --porcelain`."""
    path: str
    head: str = ""
    branch: str = ""
    bare: bool = False
    detached: bool = False

    @property
    def short_head(self) -> str:
        return self.head[:8]


class GitPlusError(Exception):
    """Base exception for git plus operations."""
    pass


class CommandError(GitPlusError):
    """Raised when a git or gh subprocess exits with a non-zero status."""

    def __init__(self, argv: List[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"'{' '.join(self.argv)}' exited with status {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)


class GitOperationError(GitPlusError):
    """Raised when git reports a state the tool cannot work with."""
    pass


class WorkflowError(GitPlusError):
    """Raised when a workflow step fails."""
    pass


class StateStoreError(GitPlusError):
    """Raised on unexpected I/O failures of the session store."""
    pass


class SessionNotFoundError(StateStoreError):
    """Raised when no pause session is stored."""
    pass


class NoActiveSessionError(SessionNotFoundError):
    """Raised when resume is requested without a prior pause."""
    pass


class CorruptStateError(StateStoreError):
    """Raised when the stored session cannot be parsed."""
    pass
