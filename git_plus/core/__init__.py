"""Core functionality for git plus tool."""

from .config import GitPlusConfig
from .state import SessionStore, FileSessionStore, MemorySessionStore
from .types import (
    PauseSession, PauseResult, ResumeResult, PRCheckoutResult, WorkflowStatus,
    StashEntry, Worktree, CommitEntry, BranchEntry,
    GitPlusError, CommandError, GitOperationError, WorkflowError,
    StateStoreError, SessionNotFoundError, NoActiveSessionError, CorruptStateError
)

__all__ = [
    "GitPlusConfig",
    "SessionStore", "FileSessionStore", "MemorySessionStore",
    "PauseSession", "PauseResult", "ResumeResult", "PRCheckoutResult", "WorkflowStatus",
    "StashEntry", "Worktree", "CommitEntry", "BranchEntry",
    "GitPlusError", "CommandError", "GitOperationError", "WorkflowError",
    "StateStoreError", "SessionNotFoundError", "NoActiveSessionError", "CorruptStateError"
]
