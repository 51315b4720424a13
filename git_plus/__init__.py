"""
Git Plus - shortcuts for everyday git and GitHub workflows

Pause and resume work across branches, check out pull requests without
losing uncommitted changes, and tidy up stashes, tags, branches and
worktrees.
"""

__version__ = "1.0.0"

from .core.config import GitPlusConfig
from .core.state import SessionStore, FileSessionStore, MemorySessionStore
from .core.types import PauseSession, GitPlusError
from .git.runner import CommandRunner
from .git.operations import GitOperations
from .git.github import GitHubCLI
from .workflows.session import SessionWorkflow

__all__ = [
    "GitPlusConfig",
    "SessionStore",
    "FileSessionStore",
    "MemorySessionStore",
    "PauseSession",
    "GitPlusError",
    "CommandRunner",
    "GitOperations",
    "GitHubCLI",
    "SessionWorkflow"
]
