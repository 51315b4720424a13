"""Wrappers around the git and gh executables."""

from .runner import CommandRunner
from .operations import GitOperations, parse_worktree_list
from .github import GitHubCLI, merge_args

__all__ = ["CommandRunner", "GitOperations", "GitHubCLI", "merge_args", "parse_worktree_list"]
