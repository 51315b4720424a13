"""Workflows built on git operations."""

from .session import SessionWorkflow
from .commits import CommitWorkflow, SquashResult
from .stash import StashCleanup, StashCleanupResult, StashInfo, find_duplicates
from .tags import TagWorkflow, NewTagResult, Version, parse_version, normalize_bump
from .branches import BranchWorkflow, DeleteBranchesResult
from .worktree import WorktreeWorkflow, worktree_path_for

__all__ = [
    "SessionWorkflow",
    "CommitWorkflow", "SquashResult",
    "StashCleanup", "StashCleanupResult", "StashInfo", "find_duplicates",
    "TagWorkflow", "NewTagResult", "Version", "parse_version", "normalize_bump",
    "BranchWorkflow", "DeleteBranchesResult",
    "WorktreeWorkflow", "worktree_path_for"
]
