"""Shared test doubles for git plus tests."""

import subprocess
from typing import Dict, List, Optional, Tuple

import pytest

from git_plus.core.types import CommandError, GitOperationError, StashEntry
from git_plus.git.runner import CommandRunner


class FakeRunner(CommandRunner):
    """CommandRunner that answers from a script instead of spawning processes."""

    def __init__(self, program: str = "git",
                 responses: Optional[Dict[Tuple[str, ...], Tuple[int, str, str]]] = None):
        super().__init__(program)
        self.responses = {("rev-parse", "--git-dir"): (0, ".git\n", "")}
        self.responses.update(responses or {})
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []
        self.inputs: List[Optional[str]] = []

    def respond(self, *args: str, stdout="", returncode: int = 0, stderr: str = ""):
        self.responses[tuple(args)] = (returncode, stdout, stderr)

    def commands(self, mode: Optional[str] = None) -> List[Tuple[str, ...]]:
        return [args for m, args in self.calls if mode is None or m == mode]

    def _execute(self, args, mode, input=None, text=True):
        self.calls.append((mode, tuple(args)))
        self.inputs.append(input)
        returncode, stdout, stderr = self.responses.get(tuple(args), (0, "", ""))
        if not text:
            stdout = stdout if isinstance(stdout, bytes) else stdout.encode()
            stderr = stderr if isinstance(stderr, bytes) else stderr.encode()
        return subprocess.CompletedProcess(
            [self.program] + list(args), returncode, stdout, stderr)


class FakeGit:
    """In-memory stand-in for GitOperations used by workflow tests."""

    def __init__(self, branch: str = "feature-x", branches=("main", "feature-x"),
                 dirty: bool = False):
        self.branch = branch
        self.branches = set(branches)
        self.dirty = dirty
        self.stashes: List[StashEntry] = []
        self.pop_fails = False
        self.detached = False
        self.log: List[Tuple] = []
        self._stash_counter = 0

    def get_current_branch(self) -> str:
        if self.detached:
            raise GitOperationError("HEAD is detached; check out a branch first")
        return self.branch

    def has_uncommitted_changes(self) -> bool:
        return self.dirty

    def create_stash(self, message: str) -> str:
        self._stash_counter += 1
        commit = f"{self._stash_counter:040x}"
        self.stashes.insert(0, StashEntry(index=0, commit=commit, subject=f"On {self.branch}: {message}"))
        self._reindex()
        self.dirty = False
        self.log.append(("stash", message))
        return commit

    def checkout(self, branch: str) -> None:
        self.log.append(("checkout", branch))
        if branch not in self.branches:
            raise CommandError(["git", "checkout", branch], 1,
                               f"error: pathspec '{branch}' did not match any file(s) known to git")
        self.branch = branch

    def switch(self, branch: str) -> None:
        self.log.append(("switch", branch))
        if branch not in self.branches:
            raise CommandError(["git", "switch", branch], 128, f"fatal: invalid reference: {branch}")
        self.branch = branch

    def list_stashes(self) -> List[StashEntry]:
        return list(self.stashes)

    def find_stash(self, stash_ref: str) -> Optional[StashEntry]:
        for entry in self.stashes:
            if entry.commit == stash_ref:
                return entry
        return None

    def pop_stash(self, entry: StashEntry) -> None:
        self.log.append(("pop", entry.name))
        if self.pop_fails:
            raise CommandError(["git", "stash", "pop", entry.name], 1,
                               "CONFLICT (content): Merge conflict in app.py")
        self.stashes.remove(entry)
        self._reindex()
        self.dirty = True

    def _reindex(self):
        self.stashes = [StashEntry(index=i, commit=s.commit, subject=s.subject)
                        for i, s in enumerate(self.stashes)]


class ScriptedConfirm:
    """Confirm callable that returns queued answers and records prompts."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.prompts: List[Tuple[str, bool]] = []

    def __call__(self, prompt: str, default: bool = False) -> bool:
        self.prompts.append((prompt, default))
        if self.answers:
            return self.answers.pop(0)
        return default


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def fake_git():
    return FakeGit()
