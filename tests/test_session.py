"""Tests for the pause, resume and pull request checkout workflows."""

from unittest.mock import Mock

import pytest

from conftest import FakeGit, ScriptedConfirm
from git_plus.core.config import GitPlusConfig
from git_plus.core.state import MemorySessionStore
from git_plus.core.types import (
    CommandError, CorruptStateError, GitOperationError, NoActiveSessionError,
    WorkflowError, WorkflowStatus
)
from git_plus.workflows.session import SessionWorkflow


class BrokenStore(MemorySessionStore):
    """Store whose stored session cannot be parsed."""

    def exists(self):
        return True

    def load(self):
        raise CorruptStateError("Session file is not valid JSON")


class TestPause:
    """Test the pause workflow."""

    def setup_method(self):
        """Set up test fixtures."""
        self.git = FakeGit(branch="feature-x")
        self.store = MemorySessionStore()
        self.confirm = ScriptedConfirm()
        self.workflow = SessionWorkflow(self.git, self.store, self.confirm)

    def test_pause_without_changes_skips_stash(self):
        result = self.workflow.pause("main")

        assert result.status is WorkflowStatus.COMPLETED
        assert self.git.branch == "main"
        session = self.store.load()
        assert session.from_branch == "feature-x"
        assert session.to_branch == "main"
        assert session.stash_ref == ""
        assert session.stash_message == "git-pause: from feature-x"
        assert self.git.stashes == []

    def test_pause_with_changes_stashes(self):
        self.git.dirty = True

        result = self.workflow.pause("main")

        session = self.store.load()
        assert session.stash_ref != ""
        assert session.stash_ref == self.git.stashes[0].commit
        assert result.session == session
        assert ("stash", "git-pause: from feature-x") in self.git.log
        assert self.git.log.index(("stash", "git-pause: from feature-x")) < self.git.log.index(("checkout", "main"))

    def test_pause_does_not_prompt_without_existing_session(self):
        self.workflow.pause("main")

        assert self.confirm.prompts == []

    def test_existing_session_declined(self):
        self.workflow.pause("main")
        first = self.store.load()
        self.git.branch = "feature-x"
        self.git.dirty = True
        self.confirm.answers = [False]

        result = self.workflow.pause("main")

        assert result.status is WorkflowStatus.CANCELLED
        assert result.cancelled
        assert self.store.load() == first
        assert self.git.stashes == []
        assert self.git.dirty is True
        prompt, default = self.confirm.prompts[0]
        assert "feature-x → main" in prompt
        assert default is False

    def test_existing_session_overwritten(self):
        self.git.dirty = True
        self.workflow.pause("main")
        first_stash = self.store.load().stash_ref

        self.git.branches.add("hotfix")
        self.git.branch = "hotfix"
        self.git.dirty = True
        self.confirm.answers = [True]
        self.workflow.pause("main")

        session = self.store.load()
        assert session.from_branch == "hotfix"
        assert session.stash_ref != first_stash
        # The first stash stays in the list, no longer referenced
        assert first_stash in [s.commit for s in self.git.stashes]

    def test_detached_head_fails_before_stashing(self):
        self.git.detached = True
        self.git.dirty = True

        with pytest.raises(WorkflowError, match="current branch"):
            self.workflow.pause("main")

        assert self.git.stashes == []
        assert self.store.exists() is False

    def test_failed_switch_without_changes(self):
        with pytest.raises(WorkflowError, match="switch to nonexistent") as exc_info:
            self.workflow.pause("nonexistent")

        assert isinstance(exc_info.value.__cause__, CommandError)
        assert "did not match" in str(exc_info.value)
        assert self.store.exists() is False

    def test_failed_switch_restores_stash(self):
        self.git.dirty = True

        with pytest.raises(WorkflowError):
            self.workflow.pause("nonexistent")

        assert self.store.exists() is False
        assert self.git.stashes == []
        assert self.git.dirty is True
        assert self.git.branch == "feature-x"

    def test_failed_switch_leaves_stash_when_restore_disabled(self):
        config = GitPlusConfig(restore_stash_on_failure=False)
        workflow = SessionWorkflow(self.git, self.store, self.confirm, config)
        self.git.dirty = True

        with pytest.raises(WorkflowError, match="remain stashed"):
            workflow.pause("nonexistent")

        assert self.store.exists() is False
        assert len(self.git.stashes) == 1
        assert self.git.stashes[0].subject.endswith("git-pause: from feature-x")
        assert ("pop", "stash@{0}") not in self.git.log

    def test_failed_restore_is_reported(self):
        self.git.dirty = True
        self.git.pop_fails = True

        with pytest.raises(WorkflowError) as exc_info:
            self.workflow.pause("nonexistent")

        message = str(exc_info.value)
        assert "switch to nonexistent" in message
        assert "could not be restored" in message
        assert self.store.exists() is False

    def test_corrupt_existing_session_is_surfaced(self):
        workflow = SessionWorkflow(self.git, BrokenStore(), self.confirm)

        with pytest.raises(CorruptStateError):
            workflow.pause("main")

        assert self.git.branch == "feature-x"

    def test_custom_stash_prefix(self):
        config = GitPlusConfig(pause_stash_prefix="wip")
        workflow = SessionWorkflow(self.git, self.store, self.confirm, config)
        self.git.dirty = True

        workflow.pause("main")

        assert self.store.load().stash_message == "wip: from feature-x"


class TestResume:
    """Test the resume workflow."""

    def setup_method(self):
        """Set up test fixtures."""
        self.git = FakeGit(branch="feature-x")
        self.store = MemorySessionStore()
        self.confirm = ScriptedConfirm()
        self.workflow = SessionWorkflow(self.git, self.store, self.confirm)

    def test_resume_without_session(self):
        with pytest.raises(NoActiveSessionError):
            self.workflow.resume()

        assert self.store.exists() is False
        assert self.git.log == []

    def test_pause_then_resume_restores_work(self):
        self.git.dirty = True
        self.workflow.pause("main")
        assert self.git.dirty is False

        result = self.workflow.resume()

        assert self.git.branch == "feature-x"
        assert self.git.dirty is True
        assert self.git.stashes == []
        assert result.switched is True
        assert result.stash_restored is True
        assert result.warnings == []
        assert self.store.exists() is False

    def test_resume_without_stash(self):
        self.workflow.pause("main")

        result = self.workflow.resume()

        assert self.git.branch == "feature-x"
        assert result.stash_restored is False
        assert not any(entry[0] == "pop" for entry in self.git.log)
        assert self.store.exists() is False

    def test_resume_when_already_on_branch(self):
        self.workflow.pause("main")
        self.git.branch = "feature-x"

        result = self.workflow.resume()

        assert result.switched is False
        assert self.git.log.count(("switch", "feature-x")) == 0
        assert self.store.exists() is False

    def test_resume_pops_the_recorded_stash(self):
        self.git.dirty = True
        self.workflow.pause("main")
        recorded = self.store.load().stash_ref
        # A newer, unrelated stash is created on main
        self.git.dirty = True
        self.git.create_stash("unrelated")

        self.workflow.resume()

        assert [s.subject for s in self.git.stashes] == ["On main: unrelated"]
        assert ("pop", "stash@{1}") in self.git.log
        assert recorded not in [s.commit for s in self.git.stashes]

    def test_pop_conflict_still_clears_session(self):
        self.git.dirty = True
        self.workflow.pause("main")
        self.git.pop_fails = True

        result = self.workflow.resume()

        assert self.git.branch == "feature-x"
        assert result.stash_restored is False
        assert len(result.warnings) == 1
        assert "Resolve the conflicts manually" in result.warnings[0]
        assert self.store.exists() is False

    def test_missing_stash_is_a_warning(self):
        self.git.dirty = True
        self.workflow.pause("main")
        self.git.stashes.clear()

        result = self.workflow.resume()

        assert result.stash_restored is False
        assert "not found" in result.warnings[0]
        assert self.store.exists() is False

    def test_failed_switch_keeps_session(self):
        self.workflow.pause("main")
        self.git.branches.discard("feature-x")

        with pytest.raises(WorkflowError, match="switch to feature-x"):
            self.workflow.resume()

        assert self.store.exists() is True

    def test_corrupt_session_is_surfaced(self):
        workflow = SessionWorkflow(self.git, BrokenStore(), self.confirm)

        with pytest.raises(CorruptStateError):
            workflow.resume()


class TestPRCheckout:
    """Test checking out pull requests."""

    def setup_method(self):
        """Set up test fixtures."""
        self.git = FakeGit(branch="feature-x")
        self.store = MemorySessionStore()
        self.confirm = ScriptedConfirm()
        self.github = Mock()
        self.github.get_latest_pr_number.return_value = "42"

        def checkout_pr(number):
            self.git.branches.add(f"pr-{number}")
            self.git.branch = f"pr-{number}"

        self.github.checkout_pr.side_effect = checkout_pr
        self.workflow = SessionWorkflow(self.git, self.store, self.confirm, github=self.github)

    def test_checkout_latest_pr(self):
        result = self.workflow.pr_checkout()

        assert result.status is WorkflowStatus.COMPLETED
        assert result.pr_number == "42"
        self.github.checkout_pr.assert_called_once_with("42")
        session = self.store.load()
        assert session.from_branch == "feature-x"
        assert session.to_branch == "pr-42"
        assert session.stash_message == "git-pr-checkout: from feature-x"

    def test_checkout_given_pr_with_changes(self):
        self.git.dirty = True

        result = self.workflow.pr_checkout("#7")

        assert result.pr_number == "7"
        self.github.get_latest_pr_number.assert_not_called()
        assert self.store.load().stash_ref == self.git.stashes[0].commit

    def test_no_open_prs(self):
        self.github.get_latest_pr_number.return_value = None

        with pytest.raises(WorkflowError, match="No open pull requests"):
            self.workflow.pr_checkout()

        self.github.checkout_pr.assert_not_called()

    def test_gh_missing(self):
        self.github.ensure_available.side_effect = GitOperationError("GitHub CLI (gh) is not installed")

        with pytest.raises(GitOperationError):
            self.workflow.pr_checkout("1")

        assert self.git.log == []

    def test_failed_checkout_restores_stash(self):
        self.git.dirty = True
        self.github.checkout_pr.side_effect = CommandError(
            ["gh", "pr", "checkout", "9"], 1)

        with pytest.raises(WorkflowError, match="check out PR #9"):
            self.workflow.pr_checkout("9")

        assert self.git.stashes == []
        assert self.git.dirty is True
        assert self.store.exists() is False

    def test_existing_session_declined(self):
        self.workflow.pause("main")
        self.confirm.answers = [False]

        result = self.workflow.pr_checkout("5")

        assert result.cancelled
        self.github.checkout_pr.assert_not_called()
        assert self.store.load().to_branch == "main"

    def test_resume_after_pr_checkout(self):
        self.git.dirty = True
        self.workflow.pr_checkout("3")

        self.workflow.resume()

        assert self.git.branch == "feature-x"
        assert self.git.dirty is True
        assert self.store.exists() is False
