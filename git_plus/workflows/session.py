"""Pause, resume and pull request checkout workflows.

A pause moves uncommitted work into a stash, switches branch and records
where it came from. Resume reads that record, switches back and restores
the stash. Pull request checkout is a pause whose switch step is
`gh pr checkout`, so the same resume brings the user back.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.config import GitPlusConfig
from ..core.state import SessionStore
from ..core.types import (
    CorruptStateError, GitPlusError, NoActiveSessionError, PauseResult, PauseSession,
    PRCheckoutResult, ResumeResult, WorkflowError, WorkflowStatus
)
from ..git.github import GitHubCLI
from ..git.operations import GitOperations

logger = logging.getLogger(__name__)

ConfirmFunc = Callable[[str, bool], bool]


class SessionWorkflow:
    """Coordinates stash, branch switch and the stored pause session."""

    def __init__(self,
                 git_ops: GitOperations,
                 store: SessionStore,
                 confirm: ConfirmFunc,
                 config: Optional[GitPlusConfig] = None,
                 github: Optional[GitHubCLI] = None):
        self.git_ops = git_ops
        self.store = store
        self.confirm = confirm
        self.config = config or GitPlusConfig()
        self.github = github

    def pause(self, target_branch: str) -> PauseResult:
        """Stash uncommitted work and switch to target_branch."""
        logger.info("Pausing work to switch to %s", target_branch)

        if not self._confirm_overwrite("Overwrite?"):
            return PauseResult(status=WorkflowStatus.CANCELLED)

        from_branch = self._step("get the current branch", self.git_ops.get_current_branch)
        stash_message = f"{self.config.pause_stash_prefix}: from {from_branch}"
        stash_ref = self._stash_if_needed(stash_message)

        try:
            self.git_ops.checkout(target_branch)
        except GitPlusError as e:
            self._handle_switch_failure(f"switch to {target_branch}", e, stash_ref)

        session = PauseSession(
            from_branch=from_branch,
            to_branch=target_branch,
            stash_ref=stash_ref,
            stash_message=stash_message,
            timestamp=datetime.now(timezone.utc),
        )
        self._step("save the pause session", self.store.save, session)
        logger.info("Paused %s", session.describe())
        return PauseResult(status=WorkflowStatus.COMPLETED, session=session)

    def resume(self) -> ResumeResult:
        """Switch back to the paused branch and restore its stash."""
        if not self._step("check for a pause session", self.store.exists):
            raise NoActiveSessionError(
                "No active pause session. Use 'git pause <branch>' to save your work first.")

        session = self._step("load the pause session", self.store.load)
        logger.info("Resuming %s", session.describe())

        current = self._step("get the current branch", self.git_ops.get_current_branch)
        switched = False
        if current != session.from_branch:
            self._step(f"switch to {session.from_branch}", self.git_ops.switch, session.from_branch)
            switched = True
        else:
            logger.info("Already on %s", session.from_branch)

        warnings = []
        stash_restored = False
        if session.has_stash:
            stash_restored = self._restore_stash(session.stash_ref, warnings)

        # The branch switch succeeded, so the record is spent even if the
        # stash could not be reapplied.
        try:
            self.store.delete()
        except GitPlusError as e:
            warnings.append(f"Failed to remove the pause session: {e}")

        return ResumeResult(
            session=session,
            switched=switched,
            stash_restored=stash_restored,
            warnings=warnings,
        )

    def pr_checkout(self, pr_number: Optional[str] = None) -> PRCheckoutResult:
        """Stash uncommitted work and check out a pull request branch."""
        github = self.github or GitHubCLI()
        github.ensure_available()

        if pr_number is None:
            pr_number = self._step("fetch the latest pull request", github.get_latest_pr_number)
            if pr_number is None:
                raise WorkflowError("No open pull requests found")
        pr_number = str(pr_number).lstrip("#")
        logger.info("Checking out PR #%s", pr_number)

        if not self._confirm_overwrite(f"Overwrite and check out PR #{pr_number}?"):
            return PRCheckoutResult(status=WorkflowStatus.CANCELLED, pr_number=pr_number)

        from_branch = self._step("get the current branch", self.git_ops.get_current_branch)
        stash_message = f"{self.config.pr_stash_prefix}: from {from_branch}"
        stash_ref = self._stash_if_needed(stash_message)

        try:
            github.checkout_pr(pr_number)
            to_branch = self.git_ops.get_current_branch()
        except GitPlusError as e:
            self._handle_switch_failure(f"check out PR #{pr_number}", e, stash_ref)

        session = PauseSession(
            from_branch=from_branch,
            to_branch=to_branch,
            stash_ref=stash_ref,
            stash_message=stash_message,
            timestamp=datetime.now(timezone.utc),
        )
        self._step("save the pause session", self.store.save, session)
        return PRCheckoutResult(status=WorkflowStatus.COMPLETED, pr_number=pr_number, session=session)

    def _confirm_overwrite(self, question: str) -> bool:
        """Ask before replacing an existing session. True when it is safe to go on."""
        if not self._step("check for a pause session", self.store.exists):
            return True
        existing = self._step("load the existing pause session", self.store.load)
        prompt = f"Already paused ({existing.describe()}). {question}"
        if self.confirm(prompt, False):
            logger.info("Overwriting pause session %s", existing.describe())
            return True
        logger.info("Kept existing pause session %s", existing.describe())
        return False

    def _stash_if_needed(self, message: str) -> str:
        """Stash uncommitted work. Returns the stash commit id, or "" when clean."""
        if not self._step("check for uncommitted changes", self.git_ops.has_uncommitted_changes):
            logger.info("No uncommitted changes, skipping stash")
            return ""
        stash_ref = self._step("stash changes", self.git_ops.create_stash, message)
        logger.info("Stashed changes as %s", stash_ref[:8])
        return stash_ref

    def _handle_switch_failure(self, step: str, error: GitPlusError, stash_ref: str):
        """Raise for a failed switch, popping the new stash back first if configured."""
        message = f"Failed to {step}: {error}"
        if stash_ref:
            if self.config.restore_stash_on_failure:
                try:
                    entry = self.git_ops.find_stash(stash_ref)
                    if entry is None:
                        raise WorkflowError(f"stash {stash_ref[:8]} not found")
                    self.git_ops.pop_stash(entry)
                    logger.info("Restored stash %s after failure", stash_ref[:8])
                except GitPlusError as pop_error:
                    logger.warning("Could not restore stash %s: %s", stash_ref[:8], pop_error)
                    message += (
                        f"\nWarning: your changes are still stashed as {stash_ref[:8]} "
                        f"and could not be restored ({pop_error}). "
                        "Restore them manually with 'git stash list' and 'git stash pop'.")
            else:
                message += (
                    f"\nYour changes remain stashed as {stash_ref[:8]}; "
                    "restore them with 'git stash pop'.")
        raise WorkflowError(message) from error

    def _restore_stash(self, stash_ref: str, warnings: list) -> bool:
        """Pop the session's stash. Failures become warnings."""
        try:
            entry = self.git_ops.find_stash(stash_ref)
        except GitPlusError as e:
            warnings.append(
                f"Could not list stashes ({e}). Restore your changes manually: git stash list")
            return False

        if entry is None:
            warnings.append(
                f"Stash {stash_ref[:8]} was not found in the stash list; "
                "it may have been applied or dropped already. Check 'git stash list'.")
            return False

        try:
            self.git_ops.pop_stash(entry)
        except GitPlusError as e:
            logger.warning("Stash pop failed: %s", e)
            warnings.append(
                f"Failed to restore stash {entry.name} ({entry.commit[:8]}). "
                "Resolve the conflicts manually; the stash is kept in 'git stash list' "
                "until you drop it.")
            return False
        return True

    @staticmethod
    def _step(description: str, func, *args):
        """Run one workflow step, wrapping failures with what the step was for."""
        try:
            return func(*args)
        except (NoActiveSessionError, CorruptStateError):
            raise
        except GitPlusError as e:
            raise WorkflowError(f"Failed to {description}: {e}") from e
